from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from tracker.core.config import settings

Base = declarative_base()

_engine = None
_SessionLocal = None


def _create_engine():
    db_url = settings.database_url
    kwargs = {}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if db_url.rstrip("/").endswith(":memory:") or db_url.endswith("://"):
            kwargs["poolclass"] = StaticPool
    return create_engine(db_url, pool_pre_ping=True, future=True, **kwargs)


def get_engine():
    global _engine
    if _engine is None:
        _engine = _create_engine()
    return _engine


def get_session_local():
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=get_engine(), future=True
        )
    return _SessionLocal


def init_db() -> None:
    from tracker.db import tables  # noqa: F401  registers the table on Base

    Base.metadata.create_all(get_engine())
