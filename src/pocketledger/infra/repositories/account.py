"""SQLModel implementation of Account repository plus the balance write path."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from sqlalchemy import func, or_, update
from sqlmodel import Session, col, select

from ...errors import ConcurrencyConflict
from ...models.account import Account
from ...models.transaction import Transaction
from ...money import Money
from ..database import SessionFactory


class SQLModelAccountRepository:
    """SQLModel-based account repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, account_id: int, *, user_id: int) -> Optional[Account]:
        """Retrieve an account by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Account).where(Account.id == account_id, Account.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(
        self,
        *,
        user_id: int,
        active: Optional[bool] = None,
        account_type: Optional[str] = None,
    ) -> list[Account]:
        """List accounts ordered by sort order then name."""
        with self.session_factory() as session:
            statement = select(Account).where(Account.user_id == user_id)
            if active is not None:
                statement = statement.where(Account.active == active)
            if account_type:
                statement = statement.where(Account.account_type == account_type)
            statement = statement.order_by(col(Account.sort_order), col(Account.name))
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows


def find_by_name(
    session: Session, name: str, *, user_id: int, active_only: bool = True
) -> Optional[Account]:
    """Case-insensitive lookup done in Python so non-ASCII names fold correctly."""

    wanted = name.strip().casefold()
    statement = select(Account).where(Account.user_id == user_id)
    if active_only:
        statement = statement.where(Account.active == True)  # noqa: E712
    for account in session.exec(statement).all():
        if account.name.casefold() == wanted:
            return account
    return None


def count_account_references(session: Session, account_id: int, *, user_id: int) -> int:
    statement = (
        select(func.count())
        .select_from(Transaction)
        .where(Transaction.user_id == user_id)
        .where(
            or_(
                Transaction.source_account_id == account_id,
                Transaction.destination_account_id == account_id,
            )
        )
    )
    return int(session.exec(statement).one())


def lock_accounts(session: Session, account_ids: Iterable[int], *, user_id: int) -> dict[int, Account]:
    """Load the owner's accounts ``FOR UPDATE`` in ascending id order.

    A fixed lock order keeps two transfers touching the same pair of
    accounts from deadlocking. Unknown or foreign ids are simply absent.
    """

    ids = sorted(set(account_ids))
    if not ids:
        return {}
    statement = (
        select(Account)
        .where(Account.user_id == user_id)
        .where(col(Account.id).in_(ids))
        .order_by(col(Account.id))
        .with_for_update()
    )
    return {account.id: account for account in session.exec(statement).all()}


def write_balance(session: Session, account: Account, balance_minor: int) -> None:
    """Compare-and-set the cached balance against the version read earlier."""

    statement = (
        update(Account)
        .where(col(Account.id) == account.id)
        .where(col(Account.version) == account.version)
        .values(balance_minor=balance_minor, version=account.version + 1)
        .execution_options(synchronize_session=False)
    )
    result = session.exec(statement)  # type: ignore[call-overload]
    if result.rowcount != 1:
        raise ConcurrencyConflict(account.id)
    session.refresh(account)


def apply_balance_deltas(
    session: Session, deltas: Mapping[int, Money], accounts: Mapping[int, Account]
) -> None:
    """Apply net deltas in lock order; zero deltas are skipped."""

    for account_id in sorted(deltas):
        delta = deltas[account_id]
        if delta.is_zero:
            continue
        account = accounts[account_id]
        write_balance(session, account, account.balance_minor + delta.minor)
