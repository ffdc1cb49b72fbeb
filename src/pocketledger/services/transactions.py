"""Transaction posting: create, post, reverse, edit and delete atomically.

Every public operation is a batch of one. A batch runs inside a single
session: rows are loaded, every change is validated, the ledger plan is
computed, and only then are rows and balances written. Any error rolls the
whole session back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Sequence, Union

from sqlmodel import Session, select

from ..domain.posting import Posting, validate_accounts_for_type
from ..domain.repositories import TransactionRepository
from ..errors import InvalidTransition, LedgerError, NotFound, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.account import apply_balance_deltas, lock_accounts
from ..infra.repositories.transaction import SQLModelTransactionRepository
from ..logging_config import get_logger
from ..models.category import Category
from ..models.transaction import PostingStatus, Transaction
from ..schemas import TransactionCreate, validate_input
from .ledger_validator import LedgerPlan, LedgerValidator, Mutation, referenced_account_ids

logger = get_logger(__name__)

__all__ = [
    "CreateTransaction",
    "DeleteTransaction",
    "EditTransaction",
    "PostTransaction",
    "ReverseTransaction",
    "TransactionService",
    "validate_accounts_for_type",
]


@dataclass(frozen=True)
class CreateTransaction:
    data: Mapping[str, Any]
    post: bool = True


@dataclass(frozen=True)
class EditTransaction:
    transaction_id: int
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class DeleteTransaction:
    transaction_id: int


@dataclass(frozen=True)
class PostTransaction:
    transaction_id: int


@dataclass(frozen=True)
class ReverseTransaction:
    transaction_id: int


BatchOperation = Union[
    CreateTransaction, EditTransaction, DeleteTransaction, PostTransaction, ReverseTransaction
]


@dataclass
class _Step:
    row: Transaction
    action: str  # insert | update | delete
    values: dict[str, Any] = field(default_factory=dict)
    mutation: Optional[Mutation] = None
    # Draft postings are validated but have no balance effect
    check: Optional[Posting] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _row_values(data: TransactionCreate) -> dict[str, Any]:
    return {
        "amount_minor": data.money().minor,
        "currency": data.currency,
        "description": data.description,
        "occurred_on": data.occurred_on,
        "txn_type": data.txn_type.value,
        "source_account_id": data.source_account_id,
        "destination_account_id": data.destination_account_id,
        "category_id": data.category_id,
        "tags": list(data.tags),
        "notes": data.notes,
        "reconciled": data.reconciled,
    }


def _row_as_input(row: Transaction) -> dict[str, Any]:
    return {
        "amount": row.amount.amount,
        "currency": row.currency,
        "description": row.description,
        "occurred_on": row.occurred_on,
        "txn_type": row.txn_type,
        "source_account_id": row.source_account_id,
        "destination_account_id": row.destination_account_id,
        "category_id": row.category_id,
        "tags": list(row.tags or []),
        "notes": row.notes,
        "reconciled": row.reconciled,
    }


def _posting_for(data: TransactionCreate) -> Posting:
    return Posting(
        amount=data.money(),
        txn_type=data.txn_type,
        source_account_id=data.source_account_id,
        destination_account_id=data.destination_account_id,
    )


def _only(results: Sequence[Optional[Transaction]]) -> Transaction:
    """Unwrap the row of a single-operation batch."""
    (row,) = results
    if row is None:
        raise RuntimeError("Single-operation batch returned no transaction row")
    return row


class TransactionService:
    """Posting service for one owner's ledger at a time."""

    def __init__(
        self,
        session_factory: SessionFactory,
        repository: Optional[TransactionRepository] = None,
    ) -> None:
        self.session_factory = session_factory
        self.repository = repository or SQLModelTransactionRepository(session_factory)

    # ------------------------------------------------------------------ reads

    def get(self, transaction_id: int, *, user_id: int) -> Transaction:
        transaction = self.repository.get_by_id(transaction_id, user_id=user_id)
        if transaction is None:
            raise NotFound("transaction", transaction_id)
        return transaction

    def list(
        self,
        *,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        txn_type: Optional[str] = None,
        status: Optional[str] = None,
        text: Optional[str] = None,
        page: int = 1,
        per_page: int = 25,
    ) -> list[Transaction]:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("Start date must be on or before end date", field="end_date")
        if per_page < 1 or per_page > 100:
            raise ValidationError("Page size must be between 1 and 100", field="per_page")
        page = max(1, page)
        return self.repository.search(
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
            category_id=category_id,
            txn_type=txn_type,
            status=status,
            text=text,
            limit=per_page,
            offset=(page - 1) * per_page,
        )

    # ----------------------------------------------------------------- writes

    def create(self, *, user_id: int, post: bool = True, **fields: Any) -> Transaction:
        """Create a transaction; posted immediately unless ``post`` is False."""
        return _only(self.apply_batch([CreateTransaction(fields, post=post)], user_id=user_id))

    def post(self, transaction_id: int, *, user_id: int) -> Transaction:
        """Move a draft to posted, applying its balance effect."""
        return _only(self.apply_batch([PostTransaction(transaction_id)], user_id=user_id))

    def reverse(self, transaction_id: int, *, user_id: int) -> Transaction:
        """Undo a posted transaction's balance effect; the row is kept as reversed."""
        return _only(self.apply_batch([ReverseTransaction(transaction_id)], user_id=user_id))

    def edit(self, transaction_id: int, *, user_id: int, **changes: Any) -> Transaction:
        """Apply ``changes``: the old effect is reversed and the new one posted together."""
        return _only(self.apply_batch([EditTransaction(transaction_id, changes)], user_id=user_id))

    def delete(self, transaction_id: int, *, user_id: int) -> None:
        """Remove a transaction, reversing its effect when posted."""
        self.apply_batch([DeleteTransaction(transaction_id)], user_id=user_id)

    def set_reconciled(self, transaction_id: int, reconciled: bool, *, user_id: int) -> Transaction:
        """Flag a transaction as reconciled; no balance effect."""
        with self.session_factory() as session:
            row = self._load(session, transaction_id, user_id)
            row.reconciled = reconciled
            row.updated_at = _now()
            session.add(row)
            session.flush()
            session.refresh(row)
            return row

    def apply_batch(
        self, operations: Sequence[BatchOperation], *, user_id: int
    ) -> list[Optional[Transaction]]:
        """Validate and commit ``operations`` as one unit.

        Returns one entry per operation: the resulting row, or None for deletes.
        The first invalid operation rejects the whole batch.
        """

        seen: set[int] = set()
        for operation in operations:
            transaction_id = getattr(operation, "transaction_id", None)
            if transaction_id is None:
                continue
            if transaction_id in seen:
                raise ValidationError(
                    f"Transaction {transaction_id} appears more than once in the batch",
                    field="transaction_id",
                )
            seen.add(transaction_id)

        operation_names = [type(operation).__name__ for operation in operations]
        try:
            with self.session_factory() as session:
                results, plan = self._commit(session, operations, user_id)
        except LedgerError as exc:
            logger.warning(
                "Ledger batch rejected",
                extra={"user_id": user_id, "operations": operation_names, "error_code": exc.code},
            )
            raise

        logger.info(
            "Ledger batch committed",
            extra={
                "user_id": user_id,
                "operations": operation_names,
                "balance_deltas": {
                    account_id: str(delta) for account_id, delta in plan.non_zero().items()
                },
            },
        )
        return results

    # ---------------------------------------------------------------- helpers

    def _commit(
        self, session: Session, operations: Sequence[BatchOperation], user_id: int
    ) -> tuple[list[Optional[Transaction]], LedgerPlan]:
        steps = [self._prepare(session, operation, user_id) for operation in operations]

        mutations = [step.mutation for step in steps if step.mutation is not None]
        drafts = [step.check for step in steps if step.check is not None]
        account_ids = referenced_account_ids(mutations)
        for posting in drafts:
            account_ids.update(posting.account_ids)

        accounts = lock_accounts(session, account_ids, user_id=user_id)
        validator = LedgerValidator(accounts)
        for posting in drafts:
            validator.check(posting)
        plan = validator.plan(mutations)
        self._check_categories(session, steps, user_id)

        results: list[Optional[Transaction]] = []
        for step in steps:
            if step.action == "delete":
                session.delete(step.row)
                results.append(None)
                continue
            for name, value in step.values.items():
                setattr(step.row, name, value)
            session.add(step.row)
            results.append(step.row)
        session.flush()

        apply_balance_deltas(session, plan.deltas, accounts)
        for row in results:
            if row is not None:
                session.refresh(row)
        return results, plan

    @staticmethod
    def _load(session: Session, transaction_id: int, user_id: int) -> Transaction:
        row = session.exec(
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .where(Transaction.user_id == user_id)
        ).first()
        if row is None:
            raise NotFound("transaction", transaction_id)
        return row

    def _prepare(self, session: Session, operation: BatchOperation, user_id: int) -> _Step:
        if isinstance(operation, CreateTransaction):
            data = validate_input(TransactionCreate, operation.data)
            posting = _posting_for(data)
            status = PostingStatus.POSTED if operation.post else PostingStatus.DRAFT
            row = Transaction(user_id=user_id, **_row_values(data), status=status.value, revision=0)
            if operation.post:
                return _Step(row=row, action="insert", mutation=Mutation.create(posting))
            return _Step(row=row, action="insert", check=posting)

        row = self._load(session, operation.transaction_id, user_id)
        status = PostingStatus(row.status)

        if isinstance(operation, EditTransaction):
            if status is PostingStatus.REVERSED:
                raise InvalidTransition(status.value, "edit")
            merged = {**_row_as_input(row), **dict(operation.changes)}
            data = validate_input(TransactionCreate, merged)
            new_posting = _posting_for(data)
            values = {**_row_values(data), "revision": row.revision + 1, "updated_at": _now()}
            if status is PostingStatus.POSTED:
                mutation = Mutation.edit(Posting.from_transaction(row), new_posting, row.id)
                return _Step(row=row, action="update", values=values, mutation=mutation)
            return _Step(row=row, action="update", values=values, check=new_posting)

        if isinstance(operation, DeleteTransaction):
            mutation = None
            if status is PostingStatus.POSTED:
                mutation = Mutation.delete(Posting.from_transaction(row), row.id)
            return _Step(row=row, action="delete", mutation=mutation)

        if isinstance(operation, PostTransaction):
            if status is not PostingStatus.DRAFT:
                raise InvalidTransition(status.value, "post")
            return _Step(
                row=row,
                action="update",
                values={"status": PostingStatus.POSTED.value, "updated_at": _now()},
                mutation=Mutation.create(Posting.from_transaction(row), row.id),
            )

        if isinstance(operation, ReverseTransaction):
            if status is not PostingStatus.POSTED:
                raise InvalidTransition(status.value, "reverse")
            return _Step(
                row=row,
                action="update",
                values={"status": PostingStatus.REVERSED.value, "updated_at": _now()},
                mutation=Mutation.delete(Posting.from_transaction(row), row.id),
            )

        raise TypeError(f"Unsupported batch operation {operation!r}")

    @staticmethod
    def _check_categories(session: Session, steps: Sequence[_Step], user_id: int) -> None:
        for step in steps:
            if step.action == "delete":
                continue
            category_id = step.values.get("category_id", step.row.category_id)
            if category_id is None:
                continue
            exists = session.exec(
                select(Category.id).where(Category.id == category_id, Category.user_id == user_id)
            ).first()
            if exists is None:
                raise NotFound("category", category_id, field="category_id")
