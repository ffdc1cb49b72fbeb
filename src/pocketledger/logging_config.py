"""Structured logging: console output plus a rotating JSON file per data dir."""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from .config import BaseConfig
from .errors import LedgerError
from .money import Money

ROOT_LOGGER_NAME = "pocketledger"

# LogRecord attributes that are never reported under "extra"
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def _json_default(value: Any) -> Any:
    if isinstance(value, Money):
        return value.format()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


class JSONFormatter(logging.Formatter):
    """One JSON object per record; ledger errors carry their code and field."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self._exception_payload(record)
        extra = {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS}
        if extra:
            payload["extra"] = extra
        return json.dumps(payload, default=_json_default)

    def _exception_payload(self, record: logging.LogRecord) -> dict[str, Any]:
        exc_type, exc, _ = record.exc_info  # type: ignore[misc]
        details: dict[str, Any] = {
            "type": exc_type.__name__ if exc_type else None,
            "message": str(exc) if exc else None,
            "traceback": self.formatException(record.exc_info),  # type: ignore[arg-type]
        }
        if isinstance(exc, LedgerError):
            details.update(exc.to_dict())
        return details


_DEV_CONSOLE_FORMAT = "[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(message)s"
_CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_MAX_LOG_BYTES = 10 * 1024 * 1024
_LOG_BACKUPS = 5


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _console_handler(config: BaseConfig, level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    # Outside dev mode the console only shows problems; the file keeps everything
    handler.setLevel(level if config.DEV_MODE else logging.WARNING)
    if config.DEV_MODE:
        handler.setFormatter(logging.Formatter(_DEV_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def _file_handler(log_file: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=_MAX_LOG_BYTES,
        backupCount=_LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(config: BaseConfig) -> logging.Logger:
    """Configure the ``pocketledger`` logger.

    Installs a console handler (verbose in dev mode, warnings only otherwise)
    and a rotating JSON file under ``DATA_DIR/logs``. Calling it again
    replaces the handlers instead of stacking them.

    Args:
        config: Application configuration with DATA_DIR, DEV_MODE and LOG_LEVEL

    Returns:
        Configured package logger
    """
    logs_dir = Path(config.DATA_DIR) / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / config.LOG_FILENAME
    level = _resolve_level(config.LOG_LEVEL)

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    package_logger.addHandler(_console_handler(config, level))
    package_logger.addHandler(_file_handler(log_file, level))

    package_logger.info(
        "Logging initialized",
        extra={
            "dev_mode": config.DEV_MODE,
            "log_level": logging.getLevelName(level),
            "log_file": log_file,
            "database_url": config.display_database_url,
        },
    )
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger below ``pocketledger``; module ``__name__`` values pass through."""

    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
