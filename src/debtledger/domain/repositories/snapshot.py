"""Snapshot repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.snapshot import PortfolioSnapshot


class SnapshotRepository(Protocol):
    """Repository for persisted portfolio snapshots."""

    def get(self, key: str) -> Optional[PortfolioSnapshot]:
        """Retrieve the snapshot stored under ``key``."""
        ...

    def save(self, key: str, payload: str) -> PortfolioSnapshot:
        """Create or replace the snapshot stored under ``key``."""
        ...

    def delete(self, key: str) -> None:
        """Delete the snapshot stored under ``key``."""
        ...
