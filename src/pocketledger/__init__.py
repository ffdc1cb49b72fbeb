"""PocketLedger: personal-finance ledger core."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .context import AppContext, create_app_context
from .money import Money

__all__ = ["AppContext", "BaseConfig", "DevConfig", "Money", "create_app_context"]
