"""Database model backing the local key-value store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Text, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base


class KeyValueEntry(Base):
    """A single serialized value stored under a unique key."""

    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    """Storage key, e.g. the application's state key."""

    value: Mapped[str] = mapped_column(Text, nullable=False)
    """Serialized payload. The store does not interpret it."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    """Timestamp automatically bumped whenever the value is rewritten."""

    def __init__(
        self,
        *,
        key: str,
        value: str,
        updated_at: Optional[datetime] = None,
    ) -> None:
        self.key = key
        self.value = value
        if updated_at is not None:
            self.updated_at = updated_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<KeyValueEntry(key={key}, size={size})>".format(
            key=self.key,
            size=len(self.value or ""),
        )

    @classmethod
    def get_by_key(cls, session: Session, key: str) -> Optional["KeyValueEntry"]:
        """Return the entry stored under ``key`` if it exists."""

        return session.scalar(select(cls).where(cls.key == key))


__all__ = ["KeyValueEntry"]
