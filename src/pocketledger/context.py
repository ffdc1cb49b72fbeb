"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import (
    SQLModelAccountRepository,
    SQLModelCategoryRepository,
    SQLModelTransactionRepository,
)
from .services.accounts import AccountService
from .services.categories import CategoryService
from .services.reports import ReportService
from .services.transactions import TransactionService


@dataclass
class AppContext:
    """Wiring of configuration, repositories and services.

    Built once per process or test; nothing here is module-level state.
    """

    # Configuration
    config: BaseConfig

    # Database
    engine: Engine
    session_factory: SessionFactory

    # Repositories
    account_repo: SQLModelAccountRepository
    transaction_repo: SQLModelTransactionRepository
    category_repo: SQLModelCategoryRepository

    # Services
    accounts: AccountService
    transactions: TransactionService
    categories: CategoryService
    reports: ReportService

    def dispose(self) -> None:
        self.engine.dispose()


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)

    account_repo = SQLModelAccountRepository(session_factory)
    transaction_repo = SQLModelTransactionRepository(session_factory)
    category_repo = SQLModelCategoryRepository(session_factory)

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        account_repo=account_repo,
        transaction_repo=transaction_repo,
        category_repo=category_repo,
        accounts=AccountService(
            session_factory,
            account_repo,
            transaction_repo,
            default_currency=config.DEFAULT_CURRENCY,
        ),
        transactions=TransactionService(session_factory, transaction_repo),
        categories=CategoryService(session_factory, category_repo, transaction_repo),
        reports=ReportService(session_factory, account_repo, transaction_repo, category_repo),
    )
