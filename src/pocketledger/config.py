"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "PocketLedger"
    DB_FILENAME = "pocketledger.db"
    LOG_FILENAME = "pocketledger.log"
    SQLITE_PRAGMAS = {"foreign_keys": "on"}

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("POCKETLEDGER_DEV_MODE", default=True)
        self.LOG_LEVEL = os.getenv("POCKETLEDGER_LOG_LEVEL", "INFO").strip().upper()
        self.DEFAULT_CURRENCY = os.getenv("POCKETLEDGER_DEFAULT_CURRENCY", "EUR").strip().upper()
        self.SQL_ECHO = _env_bool("POCKETLEDGER_SQL_ECHO", default=False)
        self.DATABASE_URL = os.getenv("POCKETLEDGER_DATABASE_URL", self._build_sqlite_url())

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("POCKETLEDGER_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def display_database_url(self) -> str:
        """Database URL with any password masked, safe for logs and terminal output."""
        return make_url(self.DATABASE_URL).render_as_string(hide_password=True)

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {"echo": self.SQL_ECHO}
        if self.is_sqlite:
            engine_options["connect_args"] = {"check_same_thread": False}
            if self.DATABASE_URL in {"sqlite://", "sqlite:///:memory:"}:
                # A single shared connection keeps the in-memory schema alive.
                engine_options["poolclass"] = StaticPool
        return engine_options


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration for tests: in-memory database, verbose console logging."""

    DEBUG = True
    TESTING = True

    def __init__(self, database_url: str = "sqlite://") -> None:
        super().__init__()
        self.DEV_MODE = True
        self.DATABASE_URL = database_url
