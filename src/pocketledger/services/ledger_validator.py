"""Batch consistency checks for transaction mutations.

Given pending creates, edits and deletes, verify that every resulting
posting is valid and compute the net balance delta per account. Nothing is
applied here: the caller writes the plan only after ``plan`` returns, so a
failing batch leaves no trace.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional

from ..domain.posting import Posting, validate_accounts_for_type
from ..errors import CurrencyMismatch, NotFound, ValidationError
from ..logging_config import get_logger
from ..models.account import Account
from ..money import Money

logger = get_logger(__name__)


class MutationKind(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"


@dataclass(frozen=True)
class Mutation:
    """One pending change expressed as before/after postings.

    ``before`` is the effect currently applied (None for a create);
    ``after`` the effect to apply instead (None for a delete).
    """

    kind: MutationKind
    before: Optional[Posting] = None
    after: Optional[Posting] = None
    transaction_id: Optional[int] = None

    @classmethod
    def create(cls, posting: Posting, transaction_id: Optional[int] = None) -> "Mutation":
        return cls(MutationKind.CREATE, before=None, after=posting, transaction_id=transaction_id)

    @classmethod
    def edit(cls, before: Posting, after: Posting, transaction_id: Optional[int] = None) -> "Mutation":
        return cls(MutationKind.EDIT, before=before, after=after, transaction_id=transaction_id)

    @classmethod
    def delete(cls, posting: Posting, transaction_id: Optional[int] = None) -> "Mutation":
        return cls(MutationKind.DELETE, before=posting, after=None, transaction_id=transaction_id)

    @property
    def account_ids(self) -> set[int]:
        ids: set[int] = set()
        for posting in (self.before, self.after):
            if posting is not None:
                ids.update(posting.account_ids)
        return ids


@dataclass
class LedgerPlan:
    """Net balance delta per account, iterated in lock order."""

    deltas: dict[int, Money] = field(default_factory=dict)

    @property
    def account_ids(self) -> list[int]:
        return sorted(self.deltas)

    def delta_for(self, account_id: int) -> Optional[Money]:
        return self.deltas.get(account_id)

    def non_zero(self) -> dict[int, Money]:
        return {account_id: delta for account_id, delta in sorted(self.deltas.items()) if not delta.is_zero}


def referenced_account_ids(mutations: Iterable[Mutation]) -> set[int]:
    ids: set[int] = set()
    for mutation in mutations:
        ids.update(mutation.account_ids)
    return ids


class LedgerValidator:
    """Validate postings against a snapshot of the owner's accounts."""

    def __init__(self, accounts: Mapping[int, Account]) -> None:
        self._accounts = accounts

    def _account(self, account_id: int, field_name: str) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise NotFound("account", account_id, field=field_name)
        return account

    def check(self, posting: Posting) -> None:
        """Raise if ``posting`` may not be applied to the current accounts."""

        validate_accounts_for_type(
            posting.txn_type, posting.source_account_id, posting.destination_account_id
        )
        if not posting.amount.is_positive:
            raise ValidationError("Amount must be greater than 0", field="amount")
        for field_name, account_id in (
            ("source_account_id", posting.source_account_id),
            ("destination_account_id", posting.destination_account_id),
        ):
            if account_id is None:
                continue
            account = self._account(account_id, field_name)
            if not account.active:
                raise ValidationError(f"Account '{account.name}' is inactive", field=field_name)
            if account.currency != posting.amount.currency:
                raise CurrencyMismatch(posting.amount.currency, account.currency, field=field_name)

    def _accumulate(self, deltas: dict[int, Money], posting: Posting, sign: int) -> None:
        for account_id, effect in posting.effects().items():
            account = self._account(account_id, "account_id")
            current = deltas.get(account_id, Money.zero(account.currency))
            deltas[account_id] = current.add(effect if sign > 0 else effect.negate())

    def plan(self, mutations: Iterable[Mutation]) -> LedgerPlan:
        """Validate every mutation (fail fast) and return the net deltas."""

        deltas: dict[int, Money] = {}
        for index, mutation in enumerate(mutations):
            try:
                if mutation.after is not None:
                    self.check(mutation.after)
                if mutation.before is not None:
                    self._accumulate(deltas, mutation.before, sign=-1)
                if mutation.after is not None:
                    self._accumulate(deltas, mutation.after, sign=1)
            except (ValidationError, NotFound, CurrencyMismatch) as exc:
                logger.warning(
                    "Rejected ledger batch",
                    extra={
                        "mutation_index": index,
                        "mutation_kind": mutation.kind.value,
                        "transaction_id": mutation.transaction_id,
                        "error_code": exc.code,
                    },
                )
                raise
        return LedgerPlan(deltas=deltas)
