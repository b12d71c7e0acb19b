"""SQLAlchemy model for saved objects."""

from datetime import datetime, timezone
from typing import Any, Optional
import json

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for saved object tables."""
    pass


class SavedObject(Base):
    """
    A typed document owned by the server.

    Identity is ``(type, id)``; ``version`` is bumped on every write and
    used for optimistic concurrency.
    """
    __tablename__ = "saved_objects"

    type = Column(String(256), primary_key=True)
    id = Column(String(256), primary_key=True)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    _attributes = Column("attributes", Text, nullable=False)  # JSON string
    _migration_version = Column("migration_version", Text, nullable=True)  # JSON string

    @property
    def attributes(self) -> dict[str, Any]:
        return json.loads(self._attributes) if self._attributes else {}

    @attributes.setter
    def attributes(self, value: dict[str, Any]) -> None:
        self._attributes = json.dumps(value)

    @property
    def migration_version(self) -> Optional[dict[str, Any]]:
        if self._migration_version:
            return json.loads(self._migration_version)
        return None

    @migration_version.setter
    def migration_version(self, value: Optional[dict[str, Any]]) -> None:
        self._migration_version = json.dumps(value) if value is not None else None

    def to_dict(self, fields: Optional[list[str]] = None) -> dict[str, Any]:
        """Serialize to the saved object wire shape."""
        attributes = self.attributes
        if fields:
            attributes = {k: v for k, v in attributes.items() if k in fields}

        result: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "updated_at": _isoformat(self.updated_at),
            "version": self.version,
            "attributes": attributes,
        }
        if self.migration_version is not None:
            result["migrationVersion"] = self.migration_version
        return result


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    # SQLite hands back naive UTC values
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"
