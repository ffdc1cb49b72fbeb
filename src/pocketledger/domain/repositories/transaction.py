"""Transaction repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.transaction import Transaction


class TransactionRepository(Protocol):
    """Read access for transaction entities.

    Writes go through the posting service so balances stay consistent.
    """

    def get_by_id(self, transaction_id: int, *, user_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        ...

    def list_all(self, *, user_id: int, limit: int = 100, offset: int = 0) -> list[Transaction]:
        """List all transactions with pagination."""
        ...

    def filter_by_account(
        self, account_id: int, *, user_id: int, status: Optional[str] = None
    ) -> list[Transaction]:
        """Get all transactions referencing an account as source or destination."""
        ...

    def filter_by_category(self, category_id: int, *, user_id: int) -> list[Transaction]:
        """Get all transactions for a specific category."""
        ...

    def search(
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
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """Advanced search with multiple filters."""
        ...
