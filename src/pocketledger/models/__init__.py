"""SQLModel table exports."""

from .account import Account, AccountType
from .category import Category
from .transaction import PostingStatus, Transaction, TransactionType
from .user import User

__all__ = [
    "Account",
    "AccountType",
    "Category",
    "PostingStatus",
    "Transaction",
    "TransactionType",
    "User",
]
