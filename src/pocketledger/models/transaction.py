"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from ..money import Money


class TransactionType(str, Enum):
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"
    TRANSFER = "transfer"


class PostingStatus(str, Enum):
    """Posting lifecycle: draft -> posted -> reversed.

    Editing a posted transaction keeps it posted and bumps ``revision``.
    """

    DRAFT = "draft"
    POSTED = "posted"
    REVERSED = "reversed"


class Transaction(SQLModel, table=True):
    """A withdrawal, deposit or transfer between the owner's accounts.

    ``amount_minor`` is always positive; direction comes from ``txn_type``.
    """

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    amount_minor: int = Field(nullable=False)
    currency: str = Field(default="EUR", nullable=False, max_length=3, description="ISO-4217 currency code")
    description: str = Field(nullable=False, max_length=200)
    occurred_on: date = Field(nullable=False, index=True)
    txn_type: str = Field(nullable=False, max_length=16, index=True)
    source_account_id: Optional[int] = Field(default=None, foreign_key="account.id", index=True)
    destination_account_id: Optional[int] = Field(default=None, foreign_key="account.id", index=True)
    category_id: Optional[int] = Field(default=None, foreign_key="category.id", index=True)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    notes: Optional[str] = Field(default=None, max_length=1000)
    reconciled: bool = Field(default=False, nullable=False)
    status: str = Field(default=PostingStatus.DRAFT.value, nullable=False, max_length=16, index=True)
    revision: int = Field(default=0, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Optional[datetime] = Field(default=None)

    @property
    def type(self) -> TransactionType:
        return TransactionType(self.txn_type)

    @property
    def posting_status(self) -> PostingStatus:
        return PostingStatus(self.status)

    @property
    def amount(self) -> Money:
        return Money.from_minor(self.amount_minor, self.currency)

    @property
    def is_posted(self) -> bool:
        return self.status == PostingStatus.POSTED.value
