"""Posting rules: which accounts a transaction touches and in which direction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ..errors import InvalidAccountConfiguration, ValidationError
from ..models.transaction import Transaction, TransactionType
from ..money import Money


def validate_accounts_for_type(
    txn_type: TransactionType | str,
    source_account_id: Optional[int],
    destination_account_id: Optional[int],
) -> TransactionType:
    """Check the account references required by each transaction type.

    - withdrawal: source set, destination unset
    - deposit: destination set, source unset
    - transfer: both set and different
    """

    try:
        kind = TransactionType(txn_type)
    except ValueError as exc:
        raise ValidationError(f"Unknown transaction type {txn_type!r}", field="txn_type") from exc

    if kind is TransactionType.WITHDRAWAL:
        if source_account_id is None:
            raise InvalidAccountConfiguration(
                "A withdrawal requires a source account",
                field="source_account_id",
                reason="missing",
            )
        if destination_account_id is not None:
            raise InvalidAccountConfiguration(
                "A withdrawal cannot have a destination account",
                field="destination_account_id",
                reason="unexpected",
            )
    elif kind is TransactionType.DEPOSIT:
        if destination_account_id is None:
            raise InvalidAccountConfiguration(
                "A deposit requires a destination account",
                field="destination_account_id",
                reason="missing",
            )
        if source_account_id is not None:
            raise InvalidAccountConfiguration(
                "A deposit cannot have a source account",
                field="source_account_id",
                reason="unexpected",
            )
    else:
        if source_account_id is None:
            raise InvalidAccountConfiguration(
                "A transfer requires a source account",
                field="source_account_id",
                reason="missing",
            )
        if destination_account_id is None:
            raise InvalidAccountConfiguration(
                "A transfer requires a destination account",
                field="destination_account_id",
                reason="missing",
            )
        if source_account_id == destination_account_id:
            raise InvalidAccountConfiguration(
                "A transfer cannot use the same account as source and destination",
                field="destination_account_id",
                reason="duplicated",
            )
    return kind


@dataclass(frozen=True)
class Posting:
    """The balance-relevant part of a transaction."""

    amount: Money
    txn_type: TransactionType
    source_account_id: Optional[int] = None
    destination_account_id: Optional[int] = None

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "Posting":
        return cls(
            amount=transaction.amount,
            txn_type=TransactionType(transaction.txn_type),
            source_account_id=transaction.source_account_id,
            destination_account_id=transaction.destination_account_id,
        )

    @property
    def account_ids(self) -> tuple[int, ...]:
        ids = (self.source_account_id, self.destination_account_id)
        return tuple(account_id for account_id in ids if account_id is not None)

    def effects(self) -> dict[int, Money]:
        """Signed delta per account: the source loses the amount, the destination gains it."""
        deltas: dict[int, Money] = {}
        if self.source_account_id is not None:
            deltas[self.source_account_id] = self.amount.negate()
        if self.destination_account_id is not None:
            deltas[self.destination_account_id] = self.amount
        return deltas

    def effect_on(self, account_id: int) -> Money:
        return self.effects().get(account_id, Money.zero(self.amount.currency))


def compute_balance(opening_balance: Money, account_id: int, postings: Iterable[Posting]) -> Money:
    """Opening balance plus the signed effect of every posting touching ``account_id``."""

    balance = opening_balance
    for posting in postings:
        if account_id in posting.account_ids:
            balance = balance.add(posting.effect_on(account_id))
    return balance
