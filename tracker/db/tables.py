from datetime import datetime, timezone
from sqlalchemy import JSON, Column, DateTime, String

from tracker.db.session import Base


class CollectionRow(Base):
    """One named collection, stored whole as a JSON document."""

    __tablename__ = "collections"

    name = Column(String(64), primary_key=True)
    payload = Column(JSON, nullable=True)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
