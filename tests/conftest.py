"""Pytest configuration and shared fixtures for debtledger tests.

Provides an isolated SQLite database per test, a session factory matching the
repository pattern, and factories for debts and portfolios.
"""

from __future__ import annotations

import logging
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from debtledger.logging_config import LOGGER_NAMESPACE
from debtledger.models import PortfolioSnapshot  # noqa: F401
from debtledger.services.accrual import DebtTerms
from debtledger.services.ledger import Debt
from debtledger.services.portfolio import DebtPortfolio


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep configuration away from the working directory and real backends."""

    monkeypatch.setenv("DEBTLEDGER_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("DEBTLEDGER_DATABASE_URL", raising=False)
    monkeypatch.delenv("DEBTLEDGER_ADVISOR_API_KEY", raising=False)
    monkeypatch.setenv("DEBTLEDGER_DEV_MODE", "0")


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers that setup_logging attached during a test."""

    yield
    logger = logging.getLogger(LOGGER_NAMESPACE)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory for repositories that expect Callable[[], Session]."""

    @contextmanager
    def factory():
        session = Session(db_engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        finally:
            session.close()

    return factory


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def debt_factory():
    """Factory for standalone debts with sensible defaults.

    Returns:
        Callable: Function that builds Debt instances
    """

    def _create_debt(
        principal: float = 10000.0,
        start_date: datetime = datetime(2024, 1, 1),
        end_date: datetime | None = None,
        debt_id: int = 1,
        name: str = "Test Debt",
        **terms,
    ) -> Debt:
        return Debt(
            id=debt_id,
            name=name,
            initial_principal=principal,
            start_date=start_date,
            end_date=end_date,
            terms=DebtTerms(**terms),
        )

    return _create_debt


@pytest.fixture
def portfolio() -> DebtPortfolio:
    return DebtPortfolio()


# =============================================================================
# Helper Functions
# =============================================================================


def assert_float_equal(actual: float, expected: float, tolerance: float = 0.01):
    """Assert that two floats are equal within a tolerance.

    Args:
        actual: Actual value
        expected: Expected value
        tolerance: Maximum allowed difference (default 0.01)

    Raises:
        AssertionError: If values differ by more than tolerance
    """
    assert abs(actual - expected) <= tolerance, (
        f"Expected {expected}, got {actual} (diff: {abs(actual - expected)})"
    )
