"""Repository protocol definitions for domain layer."""

from .account import AccountRepository
from .category import CategoryRepository
from .transaction import TransactionRepository

__all__ = [
    "AccountRepository",
    "CategoryRepository",
    "TransactionRepository",
]
