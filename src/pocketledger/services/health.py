"""Database health check."""

from __future__ import annotations

from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..logging_config import get_logger

logger = get_logger(__name__)


def check_health(engine: Engine) -> dict[str, Any]:
    """Run ``SELECT 1`` and report the database status; never raises."""

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check failed", exc_info=True)
        down = {"database": {"status": "down", "message": str(exc)}}
        return {"status": "error", "info": {}, "error": down, "details": down}

    up = {"database": {"status": "up"}}
    return {"status": "ok", "info": up, "error": {}, "details": up}
