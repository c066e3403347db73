"""Load and save portfolio snapshots.

Snapshots are a local cache: a missing or unreadable snapshot yields an empty
portfolio instead of an error.
"""

from __future__ import annotations

import json

from ..domain.repositories.snapshot import SnapshotRepository
from ..logging_config import get_logger
from .portfolio import DebtPortfolio

logger = get_logger(__name__)

DEFAULT_SNAPSHOT_KEY = "finance-engine-v1"


def load_portfolio(repo: SnapshotRepository, key: str = DEFAULT_SNAPSHOT_KEY) -> DebtPortfolio:
    """Return the stored portfolio, or an empty one when none can be read."""

    snapshot = repo.get(key)
    if snapshot is None:
        return DebtPortfolio()
    try:
        raw = json.loads(snapshot.payload)
        if not isinstance(raw, dict):
            raise ValueError("snapshot payload is not an object")
        return DebtPortfolio.from_dict(raw)
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.warning(
            "Discarding unreadable portfolio snapshot",
            extra={"snapshot_key": key, "error": str(exc)},
        )
        return DebtPortfolio()


def save_portfolio(
    repo: SnapshotRepository, portfolio: DebtPortfolio, key: str = DEFAULT_SNAPSHOT_KEY
) -> None:
    payload = json.dumps(portfolio.to_dict(), ensure_ascii=False)
    repo.save(key, payload)
    logger.debug("Saved portfolio snapshot", extra={"snapshot_key": key, "debts": len(portfolio.debts)})


__all__ = ["DEFAULT_SNAPSHOT_KEY", "load_portfolio", "save_portfolio"]
