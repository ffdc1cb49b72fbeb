"""Concrete repository implementations using SQLModel."""

from .account import SQLModelAccountRepository
from .category import SQLModelCategoryRepository
from .transaction import SQLModelTransactionRepository

__all__ = [
    "SQLModelAccountRepository",
    "SQLModelCategoryRepository",
    "SQLModelTransactionRepository",
]
