"""Account model holding an opening balance and a cached running balance."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ..money import Money


class AccountType(str, Enum):
    """Kinds of financial account.

    - ASSET: cash, checking, savings
    - LIABILITY: credit cards, loans
    - EXPENSE / REVENUE: counterpart accounts for spending and income
    - INITIAL_BALANCE: system account backing opening balances
    """

    ASSET = "asset"
    LIABILITY = "liability"
    EXPENSE = "expense"
    REVENUE = "revenue"
    INITIAL_BALANCE = "initial-balance"


class Account(SQLModel, table=True):
    """A typed financial account owned by one user.

    ``balance_minor`` is a cache of ``opening_balance_minor`` plus the signed
    sum of posted transactions; only the posting path writes it.
    """

    __tablename__: ClassVar[str] = "account"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=100, index=True)
    account_type: str = Field(default=AccountType.ASSET.value, nullable=False, max_length=32)
    currency: str = Field(default="EUR", nullable=False, max_length=3)
    opening_balance_minor: int = Field(default=0, nullable=False)
    opening_balance_date: Optional[date] = Field(default=None)
    balance_minor: int = Field(default=0, nullable=False)
    notes: Optional[str] = Field(default=None, max_length=500)
    active: bool = Field(default=True, nullable=False, index=True)
    include_net_worth: bool = Field(default=True, nullable=False)
    sort_order: int = Field(default=1, nullable=False)
    # Optimistic lock counter, bumped on every balance write
    version: int = Field(default=1, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def type(self) -> AccountType:
        return AccountType(self.account_type)

    @property
    def balance(self) -> Money:
        return Money.from_minor(self.balance_minor, self.currency)

    @property
    def opening_balance(self) -> Money:
        return Money.from_minor(self.opening_balance_minor, self.currency)
