"""SQLModel implementation of Category repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, col, select

from ...models.category import Category
from ...models.transaction import Transaction
from ..database import SessionFactory


class SQLModelCategoryRepository:
    """SQLModel-based category repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, category_id: int, *, user_id: int) -> Optional[Category]:
        """Retrieve a category by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Category).where(Category.id == category_id, Category.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int) -> list[Category]:
        """List all categories."""
        with self.session_factory() as session:
            rows = load_categories(session, user_id=user_id)
            session.expunge_all()
            return rows


def load_categories(session: Session, *, user_id: int) -> list[Category]:
    statement = (
        select(Category)
        .where(Category.user_id == user_id)
        .order_by(col(Category.sort_order), col(Category.name))
    )
    return list(session.exec(statement).all())


def count_category_transactions(session: Session, category_id: int, *, user_id: int) -> int:
    statement = (
        select(func.count())
        .select_from(Transaction)
        .where(Transaction.user_id == user_id)
        .where(Transaction.category_id == category_id)
    )
    return int(session.exec(statement).one())
