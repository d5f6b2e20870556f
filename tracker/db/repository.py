import logging
from pathlib import Path
from typing import TypeVar

from pydantic import ValidationError as SchemaError

from tracker.db.store import Store
from tracker.models import Record, Session

logger = logging.getLogger("tracker.repository")

R = TypeVar("R", bound=Record)


class Repository:
    """Typed access to the store's collections plus the uploads directory.

    Every call is a full read or a full overwrite of one collection.
    """

    def __init__(self, store: Store, uploads_dir: Path):
        self.store = store
        self.uploads_dir = Path(uploads_dir)

    def load(self, model: type[R]) -> list[R]:
        raw = self.store.read(model.collection)
        if not isinstance(raw, list):
            return []
        records: list[R] = []
        for item in raw:
            try:
                records.append(model.model_validate(item))
            except SchemaError:
                logger.warning(
                    "Skipping malformed record",
                    extra={"event": {"collection": model.collection}},
                )
        return records

    def save(self, model: type[R], records: list[R]) -> None:
        self.store.write(
            model.collection, [record.model_dump(mode="json") for record in records]
        )

    def get(self, model: type[R], record_id: str | None) -> R | None:
        if not record_id:
            return None
        for record in self.load(model):
            if getattr(record, "id", None) == record_id:
                return record
        return None

    def add(self, record: R) -> R:
        model = type(record)
        records = self.load(model)
        records.append(record)
        self.save(model, records)
        return record

    def replace(self, record: R) -> R:
        """Overwrite the stored record with the same id."""
        model = type(record)
        records = [
            record if existing.id == record.id else existing
            for existing in self.load(model)
        ]
        self.save(model, records)
        return record

    def load_sessions(self) -> dict[str, Session]:
        raw = self.store.read(Session.collection)
        if not isinstance(raw, dict):
            return {}
        sessions: dict[str, Session] = {}
        for token, item in raw.items():
            try:
                sessions[token] = Session.model_validate(item)
            except SchemaError:
                logger.warning(
                    "Skipping malformed session",
                    extra={"event": {"collection": Session.collection}},
                )
        return sessions

    def save_sessions(self, sessions: dict[str, Session]) -> None:
        self.store.write(
            Session.collection,
            {token: session.model_dump(mode="json") for token, session in sessions.items()},
        )

    def upload_path(self, filename: str) -> Path:
        return self.uploads_dir / filename
