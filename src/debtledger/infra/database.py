"""SQLite/SQLModel wiring for the snapshot store."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig
from ..logging_config import get_logger

logger = get_logger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


def _session_factory(engine: Engine) -> SessionFactory:
    @contextmanager
    def open_session() -> Iterator[Session]:
        session = Session(engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return open_session


def bootstrap_database(config: BaseConfig | None = None) -> tuple[Engine, SessionFactory]:
    """Open the configured database and make sure the snapshot table exists.

    Returns ``(engine, session_factory)``; each call of the factory yields a
    session that commits on success and rolls back on error.
    """

    from .. import models  # noqa: F401  registers PortfolioSnapshot

    cfg = config or BaseConfig()
    engine = create_engine(cfg.DATABASE_URL, **cfg.sqlalchemy_engine_options())
    SQLModel.metadata.create_all(engine)
    logger.debug("Database ready", extra={"database_url": cfg.DATABASE_URL})
    return engine, _session_factory(engine)


__all__ = ["SessionFactory", "bootstrap_database"]
