"""Error taxonomy for ledger operations.

Every error is scoped to the single requested operation: raising one means
nothing was committed. Each class carries a stable ``code`` so an outer
transport can map it to a payload without string matching.
"""

from __future__ import annotations

from typing import Any, Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""

    code = "ledger_error"

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        """Return a structured payload for the caller."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field is not None:
            payload["field"] = self.field
        return payload


class ValidationError(LedgerError, ValueError):
    """A field failed its constraints (amount, description length, dates...)."""

    code = "validation_error"


class InvalidCurrency(ValidationError):
    code = "invalid_currency"

    def __init__(self, currency: object, *, field: str = "currency") -> None:
        super().__init__(
            f"Invalid currency code {currency!r}: expected 3 uppercase letters (e.g. EUR)",
            field=field,
        )
        self.currency = currency


class InvalidAccountConfiguration(ValidationError):
    """The account references do not match the transaction type."""

    code = "invalid_account_configuration"

    def __init__(self, message: str, *, field: str, reason: str) -> None:
        super().__init__(message, field=field)
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["reason"] = self.reason
        return payload


class InvalidTransition(ValidationError):
    """The transaction status does not allow the requested operation."""

    code = "invalid_transition"

    def __init__(self, current: str, action: str) -> None:
        super().__init__(f"Cannot {action} a transaction in status '{current}'", field="status")
        self.current = current
        self.action = action


class CurrencyMismatch(LedgerError, ValueError):
    code = "currency_mismatch"

    def __init__(self, left: str, right: str, *, field: Optional[str] = None) -> None:
        super().__init__(f"Currency mismatch: {left} vs {right}", field=field)
        self.left = left
        self.right = right


class DuplicateName(LedgerError):
    code = "duplicate_name"

    def __init__(self, entity: str, name: str) -> None:
        super().__init__(f"A {entity} named '{name}' already exists", field="name")
        self.entity = entity
        self.name = name


class CyclicParent(LedgerError):
    code = "cyclic_parent"

    def __init__(self, category_id: Optional[int], parent_id: int) -> None:
        super().__init__(
            f"Category {parent_id} cannot be the parent of {category_id}: "
            "the category would become its own ancestor",
            field="parent_id",
        )
        self.category_id = category_id
        self.parent_id = parent_id


class SelfParent(LedgerError):
    code = "self_parent"

    def __init__(self, category_id: int) -> None:
        super().__init__(f"Category {category_id} cannot be its own parent", field="parent_id")
        self.category_id = category_id


class CycleDetected(LedgerError):
    code = "cycle_detected"

    def __init__(self, category_id: int) -> None:
        super().__init__(f"Cycle detected in the ancestors of category {category_id}")
        self.category_id = category_id


class NotFound(LedgerError, LookupError):
    code = "not_found"

    def __init__(self, entity: str, entity_id: Any, *, field: Optional[str] = None) -> None:
        super().__init__(f"{entity.capitalize()} {entity_id} not found", field=field)
        self.entity = entity
        self.entity_id = entity_id


class AccountInUse(LedgerError):
    code = "account_in_use"

    def __init__(self, account_id: int, reference_count: int) -> None:
        super().__init__(
            f"Account {account_id} is referenced by {reference_count} transaction(s); "
            "deactivate it instead"
        )
        self.account_id = account_id
        self.reference_count = reference_count


class CategoryInUse(LedgerError):
    code = "category_in_use"

    def __init__(self, category_id: int, *, children: int, transactions: int) -> None:
        super().__init__(
            f"Category {category_id} has {children} subcategories and "
            f"{transactions} transaction(s) and cannot be deleted"
        )
        self.category_id = category_id
        self.children = children
        self.transactions = transactions


class ConcurrencyConflict(LedgerError):
    """A balance row changed underneath the operation, or its lock was held.

    Retry the whole operation; nothing was committed.
    """

    code = "concurrency_conflict"

    def __init__(self, account_id: Optional[int] = None) -> None:
        if account_id is None:
            message = "The ledger is locked by another operation; retry the operation"
        else:
            message = f"Account {account_id} was modified concurrently; retry the operation"
        super().__init__(message)
        self.account_id = account_id
