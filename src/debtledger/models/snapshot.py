"""Serialized portfolio snapshots stored in the database."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PortfolioSnapshot(SQLModel, table=True):
    """Key-value storage for the latest JSON snapshot of a portfolio."""

    __tablename__: ClassVar[str] = "portfolio_snapshot"

    key: str = Field(primary_key=True, max_length=64)
    payload: str = Field(nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)
