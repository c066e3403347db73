"""SQLModel implementation of the snapshot repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.snapshot import PortfolioSnapshot


class SQLModelSnapshotRepository:
    """SQLModel-based snapshot repository."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[PortfolioSnapshot]:
        with self.session_factory() as session:
            return session.exec(
                select(PortfolioSnapshot).where(PortfolioSnapshot.key == key)
            ).first()

    def save(self, key: str, payload: str) -> PortfolioSnapshot:
        with self.session_factory() as session:
            snapshot = session.exec(
                select(PortfolioSnapshot).where(PortfolioSnapshot.key == key)
            ).first()
            if snapshot:
                snapshot.payload = payload
                snapshot.updated_at = datetime.now(timezone.utc)
            else:
                snapshot = PortfolioSnapshot(key=key, payload=payload)
            session.add(snapshot)
            session.commit()
            session.refresh(snapshot)
            return snapshot

    def delete(self, key: str) -> None:
        with self.session_factory() as session:
            snapshot = session.exec(
                select(PortfolioSnapshot).where(PortfolioSnapshot.key == key)
            ).first()
            if snapshot:
                session.delete(snapshot)
                session.commit()


__all__ = ["SQLModelSnapshotRepository"]
