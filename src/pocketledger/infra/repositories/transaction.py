"""SQLModel implementation of Transaction repository."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlmodel import col, select

from ...models.transaction import Transaction
from ..database import SessionFactory


class SQLModelTransactionRepository:
    """SQLModel-based transaction repository implementation (read side)."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, transaction_id: int, *, user_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Transaction)
                .where(Transaction.id == transaction_id)
                .where(Transaction.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int, limit: int = 100, offset: int = 0) -> list[Transaction]:
        """List all transactions with pagination, newest first."""
        return self.search(user_id=user_id, limit=limit, offset=offset)

    def filter_by_account(
        self, account_id: int, *, user_id: int, status: Optional[str] = None
    ) -> list[Transaction]:
        """Get all transactions referencing an account as source or destination."""
        return self.search(user_id=user_id, account_id=account_id, status=status)

    def filter_by_category(self, category_id: int, *, user_id: int) -> list[Transaction]:
        """Get all transactions for a specific category."""
        return self.search(user_id=user_id, category_id=category_id)

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
        with self.session_factory() as session:
            statement = select(Transaction).where(Transaction.user_id == user_id)

            if start_date:
                statement = statement.where(Transaction.occurred_on >= start_date)
            if end_date:
                statement = statement.where(Transaction.occurred_on <= end_date)
            if account_id:
                statement = statement.where(
                    or_(
                        Transaction.source_account_id == account_id,
                        Transaction.destination_account_id == account_id,
                    )
                )
            if category_id:
                statement = statement.where(Transaction.category_id == category_id)
            if txn_type:
                statement = statement.where(Transaction.txn_type == txn_type)
            if status:
                statement = statement.where(Transaction.status == status)
            if text:
                statement = statement.where(col(Transaction.description).contains(text))

            statement = statement.order_by(
                col(Transaction.occurred_on).desc(), col(Transaction.id).desc()
            )
            if offset:
                statement = statement.offset(offset)
            if limit is not None:
                statement = statement.limit(limit)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows
