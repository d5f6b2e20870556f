import bleach
import bcrypt

from tracker.core.config import settings


def hash_password(password: str) -> str:
    if len(password) < settings.password_min_length:
        raise ValueError(
            f"Password must be at least {settings.password_min_length} characters"
        )
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > 72:
        raise ValueError("Password exceeds bcrypt maximum length")
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def sanitize_text(text: str | None) -> str | None:
    """Strip HTML so stored text is safe to render."""
    if text is None:
        return None
    return bleach.clean(text, tags=[], attributes={}, strip=True)


def mask_sensitive(value: str, visible: int = 4) -> str:
    if not value:
        return value
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}***"


def mask_email(email: str) -> str:
    if not email:
        return email
    if "@" not in email:
        return mask_sensitive(email)
    local, _, domain = email.partition("@")
    if not local or not domain:
        return mask_sensitive(email)
    return f"{local[0]}***@{domain}"
