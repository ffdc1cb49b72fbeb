"""Account lifecycle and balance verification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from sqlmodel import Session, col, select

from ..domain.posting import Posting, compute_balance
from ..domain.repositories import AccountRepository, TransactionRepository
from ..errors import AccountInUse, DuplicateName, NotFound, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.account import (
    SQLModelAccountRepository,
    count_account_references,
    find_by_name,
    write_balance,
)
from ..infra.repositories.transaction import SQLModelTransactionRepository
from ..logging_config import get_logger
from ..models.account import Account, AccountType
from ..models.transaction import PostingStatus, Transaction
from ..money import Money
from ..schemas import AccountCreate, AccountUpdate, validate_input

logger = get_logger(__name__)


@dataclass(frozen=True)
class BalanceDrift:
    """An account whose cached balance disagrees with its postings."""

    account_id: int
    name: str
    cached: Money
    computed: Money

    @property
    def difference(self) -> Money:
        return self.cached.subtract(self.computed)


def balance_from_transactions(account: Account, transactions: Iterable[Transaction]) -> Money:
    """Opening balance plus the effect of every posted transaction in ``transactions``.

    Drafts and reversed transactions are ignored, as are transactions that
    do not reference the account.
    """

    postings = [
        Posting.from_transaction(transaction)
        for transaction in transactions
        if transaction.status == PostingStatus.POSTED.value
    ]
    return compute_balance(account.opening_balance, account.id, postings)


class AccountService:
    def __init__(
        self,
        session_factory: SessionFactory,
        repository: Optional[AccountRepository] = None,
        transactions: Optional[TransactionRepository] = None,
        *,
        default_currency: str = "EUR",
    ) -> None:
        self.session_factory = session_factory
        self.repository = repository or SQLModelAccountRepository(session_factory)
        self.transactions = transactions or SQLModelTransactionRepository(session_factory)
        self.default_currency = default_currency

    @staticmethod
    def _load(session: Session, account_id: int, user_id: int) -> Account:
        account = session.exec(
            select(Account).where(Account.id == account_id, Account.user_id == user_id)
        ).first()
        if account is None:
            raise NotFound("account", account_id)
        return account

    @staticmethod
    def _ensure_unique(session: Session, name: str, user_id: int, account_id: Optional[int] = None) -> None:
        existing = find_by_name(session, name, user_id=user_id, active_only=True)
        if existing is not None and existing.id != account_id:
            logger.warning(
                "Duplicate account name rejected",
                extra={"user_id": user_id, "account_name": name, "existing_id": existing.id},
            )
            raise DuplicateName("account", name)

    def get(self, account_id: int, *, user_id: int) -> Account:
        account = self.repository.get_by_id(account_id, user_id=user_id)
        if account is None:
            raise NotFound("account", account_id)
        return account

    def list(
        self,
        *,
        user_id: int,
        active: Optional[bool] = None,
        account_type: Optional[str] = None,
    ) -> list[Account]:
        return self.repository.list_all(user_id=user_id, active=active, account_type=account_type)

    def create(self, *, user_id: int, **fields: Any) -> Account:
        """Create an account; its balance starts at the opening balance."""

        fields.setdefault("currency", self.default_currency)
        data = validate_input(AccountCreate, fields)
        opening = data.opening_money()
        with self.session_factory() as session:
            self._ensure_unique(session, data.name, user_id)
            account = Account(
                user_id=user_id,
                name=data.name,
                account_type=data.account_type.value,
                currency=data.currency,
                opening_balance_minor=opening.minor,
                opening_balance_date=data.opening_balance_date,
                balance_minor=opening.minor,
                notes=data.notes,
                include_net_worth=data.include_net_worth,
                sort_order=data.sort_order,
            )
            session.add(account)
            session.flush()
            session.refresh(account)

        logger.info(
            "Account created",
            extra={
                "user_id": user_id,
                "account_id": account.id,
                "account_type": account.account_type,
                "opening_balance": str(opening),
            },
        )
        return account

    def update(self, account_id: int, *, user_id: int, **changes: Any) -> Account:
        """Change descriptive fields. Currency, type and opening balance are fixed."""

        data = validate_input(AccountUpdate, changes)
        updates = data.model_dump(exclude_unset=True)
        with self.session_factory() as session:
            account = self._load(session, account_id, user_id)
            for field_name in ("name", "include_net_worth", "sort_order"):
                if field_name in updates and updates[field_name] is None:
                    raise ValidationError(f"{field_name} cannot be empty", field=field_name)
            if "name" in updates and account.active:
                self._ensure_unique(session, updates["name"], user_id, account_id=account.id)
            for field_name, value in updates.items():
                setattr(account, field_name, value)
            session.add(account)
            session.flush()
            session.refresh(account)
        return account

    def deactivate(self, account_id: int, *, user_id: int) -> Account:
        """Soft-deactivate; history referencing the account is kept."""

        with self.session_factory() as session:
            account = self._load(session, account_id, user_id)
            account.active = False
            session.add(account)
            session.flush()
            session.refresh(account)
        logger.info("Account deactivated", extra={"user_id": user_id, "account_id": account_id})
        return account

    def activate(self, account_id: int, *, user_id: int) -> Account:
        with self.session_factory() as session:
            account = self._load(session, account_id, user_id)
            if not account.active:
                self._ensure_unique(session, account.name, user_id, account_id=account.id)
                account.active = True
                session.add(account)
                session.flush()
                session.refresh(account)
        logger.info("Account activated", extra={"user_id": user_id, "account_id": account_id})
        return account

    def delete(self, account_id: int, *, user_id: int) -> None:
        """Hard delete, only for accounts no transaction references."""

        with self.session_factory() as session:
            account = self._load(session, account_id, user_id)
            if account.type is AccountType.INITIAL_BALANCE:
                raise ValidationError(
                    "Initial balance accounts cannot be deleted", field="account_type"
                )
            references = count_account_references(session, account_id, user_id=user_id)
            if references:
                logger.warning(
                    "Account delete rejected",
                    extra={"user_id": user_id, "account_id": account_id, "references": references},
                )
                raise AccountInUse(account_id, references)
            session.delete(account)
        logger.info("Account deleted", extra={"user_id": user_id, "account_id": account_id})

    def recompute_balance(
        self,
        account_id: int,
        *,
        user_id: int,
        ledger: Optional[Iterable[Transaction]] = None,
    ) -> Money:
        """Derive the balance from postings; the cached value is not consulted.

        ``ledger`` defaults to the owner's stored transactions for the account.
        """

        account = self.get(account_id, user_id=user_id)
        if ledger is None:
            ledger = self.transactions.filter_by_account(
                account_id, user_id=user_id, status=PostingStatus.POSTED.value
            )
        return balance_from_transactions(account, ledger)

    def verify_balances(self, *, user_id: int, repair: bool = False) -> list[BalanceDrift]:
        """Compare every cached balance with its recomputed value.

        With ``repair`` the drifted caches are rewritten in the same session.
        """

        drifts: list[BalanceDrift] = []
        with self.session_factory() as session:
            accounts = list(
                session.exec(
                    select(Account)
                    .where(Account.user_id == user_id)
                    .order_by(col(Account.id))
                    .with_for_update()
                ).all()
            )
            posted = list(
                session.exec(
                    select(Transaction)
                    .where(Transaction.user_id == user_id)
                    .where(Transaction.status == PostingStatus.POSTED.value)
                ).all()
            )
            for account in accounts:
                computed = balance_from_transactions(account, posted)
                if computed.minor == account.balance_minor:
                    continue
                drift = BalanceDrift(
                    account_id=account.id,
                    name=account.name,
                    cached=account.balance,
                    computed=computed,
                )
                drifts.append(drift)
                logger.warning(
                    "Balance drift detected",
                    extra={
                        "user_id": user_id,
                        "account_id": account.id,
                        "cached": str(drift.cached),
                        "computed": str(computed),
                        "repair": repair,
                    },
                )
                if repair:
                    write_balance(session, account, computed.minor)
        return drifts
