"""Service layer for PocketLedger."""

from .accounts import AccountService, BalanceDrift, balance_from_transactions
from .categories import CategoryService
from .health import check_health
from .ledger_validator import LedgerPlan, LedgerValidator, Mutation, MutationKind
from .reports import DateRange, ReportService, resolve_date_range
from .transactions import (
    CreateTransaction,
    DeleteTransaction,
    EditTransaction,
    PostTransaction,
    ReverseTransaction,
    TransactionService,
    validate_accounts_for_type,
)

__all__ = [
    "AccountService",
    "BalanceDrift",
    "CategoryService",
    "CreateTransaction",
    "DateRange",
    "DeleteTransaction",
    "EditTransaction",
    "LedgerPlan",
    "LedgerValidator",
    "Mutation",
    "MutationKind",
    "PostTransaction",
    "ReportService",
    "ReverseTransaction",
    "TransactionService",
    "balance_from_transactions",
    "check_health",
    "resolve_date_range",
    "validate_accounts_for_type",
]
