"""Repository protocols."""

from .snapshot import SnapshotRepository

__all__ = ["SnapshotRepository"]
