"""Pytest configuration and shared fixtures for PocketLedger tests.

This module provides database fixtures, test data factories, and helper utilities
for testing domain logic, repositories, and services without touching the real
application database.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

import pytest

from pocketledger.config import TestingConfig
from pocketledger.infra.database import create_db_engine, create_session_factory, init_database
from pocketledger.logging_config import ROOT_LOGGER_NAME
from pocketledger.models import Account, Category, Transaction, User
from pocketledger.services.accounts import AccountService
from pocketledger.services.categories import CategoryService
from pocketledger.services.transactions import TransactionService
from pocketledger.services.users import get_or_create_user


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by setup_logging so streams never outlive a test."""

    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def test_config(tmp_path, monkeypatch) -> TestingConfig:
    """Configuration pointing at a per-test SQLite file and data directory."""

    monkeypatch.setenv("POCKETLEDGER_DATA_DIR", str(tmp_path / "instance"))
    return TestingConfig(database_url=f"sqlite:///{tmp_path / 'ledger.db'}")


@pytest.fixture(scope="function")
def db_engine(test_config):
    """Create an isolated SQLite database for each test.

    Uses the same engine options and PRAGMAs as the application, so foreign
    keys are enforced. The file lives in ``tmp_path`` and goes away with it.

    Yields:
        Engine: SQLAlchemy engine with all tables created
    """
    engine = create_db_engine(test_config)
    init_database(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory whose scopes commit on success and roll back on error."""

    return create_session_factory(db_engine)


# =============================================================================
# Owners and services
# =============================================================================


@pytest.fixture
def user(session_factory) -> User:
    """Create a default user for scoping data."""

    return get_or_create_user(session_factory, "tester")


@pytest.fixture
def other_user(session_factory) -> User:
    return get_or_create_user(session_factory, "someone-else")


@pytest.fixture
def account_service(session_factory) -> AccountService:
    return AccountService(session_factory)


@pytest.fixture
def transaction_service(session_factory) -> TransactionService:
    return TransactionService(session_factory)


@pytest.fixture
def category_service(session_factory) -> CategoryService:
    return CategoryService(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def account_factory(account_service, user):
    """Factory for creating test accounts through the service.

    Returns:
        Callable: Function that creates and persists Account instances
    """

    def _create_account(
        name: str = "Checking",
        account_type: str = "asset",
        currency: str = "EUR",
        opening_balance: str = "0.00",
        owner: Optional[User] = None,
        **extra,
    ) -> Account:
        owner = owner or user
        return account_service.create(
            user_id=owner.id,
            name=name,
            account_type=account_type,
            currency=currency,
            opening_balance=opening_balance,
            **extra,
        )

    return _create_account


@pytest.fixture
def category_factory(category_service, user):
    """Factory for creating test categories.

    Returns:
        Callable: Function that creates and persists Category instances
    """

    def _create_category(
        name: str = "Groceries",
        parent_id: Optional[int] = None,
        owner: Optional[User] = None,
        **extra,
    ) -> Category:
        owner = owner or user
        return category_service.create(user_id=owner.id, name=name, parent_id=parent_id, **extra)

    return _create_category


@pytest.fixture
def transaction_factory(transaction_service, user):
    """Factory for creating (and by default posting) transactions.

    Returns:
        Callable: Function that creates and persists Transaction instances
    """

    def _create_transaction(
        amount: str = "10.00",
        txn_type: str = "withdrawal",
        source: Optional[Account] = None,
        destination: Optional[Account] = None,
        description: str = "Test transaction",
        currency: str = "EUR",
        occurred_on: Optional[date] = None,
        post: bool = True,
        owner: Optional[User] = None,
        **extra,
    ) -> Transaction:
        owner = owner or user
        return transaction_service.create(
            user_id=owner.id,
            post=post,
            amount=amount,
            currency=currency,
            description=description,
            occurred_on=occurred_on or date.today(),
            txn_type=txn_type,
            source_account_id=source.id if source else None,
            destination_account_id=destination.id if destination else None,
            **extra,
        )

    return _create_transaction


@pytest.fixture
def balance_of(account_service, user):
    """Return the cached balance of an account as a plain string amount."""

    def _balance(account: Account) -> str:
        return str(account_service.get(account.id, user_id=user.id).balance.amount)

    return _balance
