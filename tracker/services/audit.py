import logging
from typing import Any

from fastapi import Request

from tracker.services.security import mask_email, mask_sensitive

logger = logging.getLogger("audit")

_SECRET_KEYS = {"token", "password"}


def audit_log(event: str, user_id: str | None, request: Request | None = None, **details: Any) -> None:
    safe_details = {}
    for key, value in details.items():
        if key in _SECRET_KEYS and isinstance(value, str):
            safe_details[key] = mask_sensitive(value)
        elif key == "email" and isinstance(value, str):
            safe_details[key] = mask_email(value)
        else:
            safe_details[key] = value
    payload = {
        "event": event,
        "user_id": user_id,
        "ip": request.client.host if request is not None and request.client else None,
        "details": safe_details,
    }
    logger.info("audit", extra={"event": payload})
