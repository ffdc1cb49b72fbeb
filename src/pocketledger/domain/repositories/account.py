"""Account repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.account import Account


class AccountRepository(Protocol):
    """Read access for account entities; writes go through the account service."""

    def get_by_id(self, account_id: int, *, user_id: int) -> Optional[Account]:
        """Retrieve an account by ID."""
        ...

    def list_all(
        self,
        *,
        user_id: int,
        active: Optional[bool] = None,
        account_type: Optional[str] = None,
    ) -> list[Account]:
        """List accounts, optionally filtered by active flag and type."""
        ...
