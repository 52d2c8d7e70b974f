"""
SQLAlchemy ORM models for persistent storage.

The economy is stored as versioned JSON blobs keyed by logical name
(e.g. "ledger/<playerId>"). The version column backs compare-and-swap.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class JsonBlobDB(Base):
    """
    A single JSON document stored under a logical key.

    Every successful write bumps `version` by one.
    """

    __tablename__ = "json_blobs"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, default=1)
    payload: Mapped[Any] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<JsonBlobDB(key={self.key}, version={self.version})>"
