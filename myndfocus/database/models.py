"""SQLAlchemy database models for myndfocus."""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import Column, String, DateTime, JSON

from myndfocus.database.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentDB(Base):
    """A schemaless document addressed by (collection path, document id)."""

    __tablename__ = "documents"

    collection = Column(String, primary_key=True)
    id = Column(String, primary_key=True)

    # Document body (camelCase keys, JSON-safe values)
    fields = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    def to_document(self) -> Dict[str, Any]:
        """Return the document body with its id."""
        document = dict(self.fields or {})
        document["id"] = self.id
        return document
