"""SQLModel repository implementations."""

from .snapshot import SQLModelSnapshotRepository

__all__ = ["SQLModelSnapshotRepository"]
