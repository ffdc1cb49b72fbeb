"""Repository implementations and the guarded balance write path."""

from __future__ import annotations

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from pocketledger.errors import ConcurrencyConflict
from pocketledger.infra.repositories import (
    SQLModelAccountRepository,
    SQLModelCategoryRepository,
    SQLModelTransactionRepository,
)
from pocketledger.infra.repositories.account import find_by_name, lock_accounts, write_balance
from pocketledger.models import Account


def test_account_repository_scopes_by_owner(session_factory, account_factory, user, other_user):
    mine = account_factory("Checking")
    account_factory("Checking", owner=other_user)
    repo = SQLModelAccountRepository(session_factory)

    assert [a.id for a in repo.list_all(user_id=user.id)] == [mine.id]
    assert repo.get_by_id(mine.id, user_id=other_user.id) is None
    with session_factory() as session:
        assert find_by_name(session, "CHECKING", user_id=user.id).id == mine.id


def test_account_update_never_touches_balance(account_factory, account_service, user, balance_of):
    account = account_factory("Checking", opening_balance="10.00")

    renamed = account_service.update(account.id, user_id=user.id, name="Renamed", sort_order=3)

    assert renamed.name == "Renamed"
    assert renamed.version == account.version
    assert balance_of(account) == "10.00"


def test_transaction_repository_filters(session_factory, account_factory, transaction_factory, user):
    checking = account_factory("Checking", opening_balance="100.00")
    savings = account_factory("Savings")
    transaction_factory("1.00", "transfer", source=checking, destination=savings)
    transaction_factory("2.00", "withdrawal", source=checking, post=False)
    repo = SQLModelTransactionRepository(session_factory)

    assert len(repo.filter_by_account(savings.id, user_id=user.id)) == 1
    assert len(repo.filter_by_account(checking.id, user_id=user.id)) == 2
    assert len(repo.filter_by_account(checking.id, user_id=user.id, status="posted")) == 1
    assert len(repo.list_all(user_id=user.id, limit=1)) == 1


def test_category_repository_scopes_and_orders(session_factory, category_factory, user, other_user):
    food = category_factory("Food", sort_order=1)
    bills = category_factory("Bills", sort_order=0)
    category_factory("Food", owner=other_user)
    repo = SQLModelCategoryRepository(session_factory)

    assert [c.id for c in repo.list_all(user_id=user.id)] == [bills.id, food.id]
    assert repo.get_by_id(food.id, user_id=other_user.id) is None
    assert repo.get_by_id(food.id, user_id=user.id).name == "Food"


def test_lock_accounts_skips_foreign_ids(session_factory, account_factory, user, other_user):
    mine = account_factory("Checking")
    foreign = account_factory("Checking", owner=other_user)

    with session_factory() as session:
        locked = lock_accounts(session, [foreign.id, mine.id], user_id=user.id)

    assert list(locked) == [mine.id]


def test_write_balance_bumps_version(session_factory, account_factory):
    account = account_factory("Checking")

    with session_factory() as session:
        stored = session.get(Account, account.id)
        write_balance(session, stored, 4200)

    with session_factory() as session:
        stored = session.exec(select(Account).where(Account.id == account.id)).one()
        assert stored.balance_minor == 4200
        assert stored.version == account.version + 1


def test_stale_version_raises_concurrency_conflict(session_factory, account_factory, balance_of):
    account = account_factory("Checking", opening_balance="5.00")

    with pytest.raises(ConcurrencyConflict):
        with session_factory() as session:
            stored = session.get(Account, account.id)
            # Another writer commits between our read and our write
            session.connection().execute(
                text("UPDATE account SET version = version + 1 WHERE id = :id"), {"id": account.id}
            )
            write_balance(session, stored, 0)

    assert balance_of(account) == "5.00"


def test_unrelated_operational_error_propagates(session_factory):
    with pytest.raises(OperationalError, match="no such table"):
        with session_factory() as session:
            session.connection().execute(text("SELECT * FROM missing_table"))
