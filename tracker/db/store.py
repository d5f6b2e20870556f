"""Whole-collection stores: in-memory, JSON files, or one SQL row per collection."""
from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from tracker.core.config import Settings, settings
from tracker.db.tables import CollectionRow

logger = logging.getLogger("tracker.store")

CollectionValue = list[Any] | dict[str, Any]


class Store(Protocol):
    def read(self, name: str) -> CollectionValue | None: ...
    def write(self, name: str, value: CollectionValue) -> None: ...


class InMemoryStore:
    def __init__(self):
        self._data: dict[str, CollectionValue] = {}

    def read(self, name: str) -> CollectionValue | None:
        value = self._data.get(name)
        return copy.deepcopy(value) if value is not None else None

    def write(self, name: str, value: CollectionValue) -> None:
        self._data[name] = copy.deepcopy(value)


class JsonFileStore:
    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()

    def _path(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def read(self, name: str) -> CollectionValue | None:
        path = self._path(name)
        if not path.exists():
            return None
        try:
            raw = path.read_text(encoding="utf-8")
            return json.loads(raw or "null")
        except (OSError, ValueError):
            logger.exception(
                "Failed to read collection",
                extra={"event": {"collection": name, "path": str(path)}},
            )
            return None

    def write(self, name: str, value: CollectionValue) -> None:
        path = self._path(name)
        payload = json.dumps(value, indent=2)
        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f"{name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, path)
            except OSError:
                Path(tmp_name).unlink(missing_ok=True)
                raise


class SqlStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def read(self, name: str) -> CollectionValue | None:
        try:
            with self._session_factory() as db:
                row = db.get(CollectionRow, name)
                return row.payload if row is not None else None
        except SQLAlchemyError:
            logger.exception(
                "Failed to read collection", extra={"event": {"collection": name}}
            )
            return None

    def write(self, name: str, value: CollectionValue) -> None:
        with self._session_factory() as db:
            row = db.get(CollectionRow, name)
            if row is None:
                db.add(CollectionRow(name=name, payload=value))
            else:
                row.payload = value
            db.commit()


def build_store(config: Settings = settings) -> Store:
    backend = "memory" if config.is_test else config.storage_backend
    if backend == "memory":
        return InMemoryStore()
    if backend == "sql":
        from tracker.db.session import get_session_local, init_db

        init_db()
        return SqlStore(get_session_local())
    return JsonFileStore(config.data_dir)
