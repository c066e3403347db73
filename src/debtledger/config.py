"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "debtledger"
    DB_FILENAME = "debtledger.db"
    DEFAULT_SNAPSHOT_KEY = "finance-engine-v1"
    DEFAULT_ADVISOR_URL = "https://api.openai.com/v1/chat/completions"
    DEFAULT_ADVISOR_MODEL = "gpt-4o-mini"

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("DEBTLEDGER_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("DEBTLEDGER_DATABASE_URL", self._build_sqlite_url())
        self.SNAPSHOT_KEY = os.getenv("DEBTLEDGER_SNAPSHOT_KEY", self.DEFAULT_SNAPSHOT_KEY)
        self.ADVISOR_API_KEY = os.getenv("DEBTLEDGER_ADVISOR_API_KEY") or None
        self.ADVISOR_URL = os.getenv("DEBTLEDGER_ADVISOR_URL", self.DEFAULT_ADVISOR_URL)
        self.ADVISOR_MODEL = os.getenv("DEBTLEDGER_ADVISOR_MODEL", self.DEFAULT_ADVISOR_MODEL)
        self.ADVISOR_TIMEOUT = _env_float("DEBTLEDGER_ADVISOR_TIMEOUT", 15.0)
        self.CURRENCY_SYMBOL = os.getenv("DEBTLEDGER_CURRENCY_SYMBOL", "₹")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("DEBTLEDGER_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    @property
    def advisor_enabled(self) -> bool:
        """True when an AI backend is configured for the advisor."""

        return bool(self.ADVISOR_API_KEY)

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False
