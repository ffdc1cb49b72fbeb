"""Ledger category definitions."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Category(SQLModel, table=True):
    """Transaction category; ``parent_id`` links a node to its parent.

    The hierarchy is kept as parent pointers only. Walk it through
    ``pocketledger.domain.category_index.CategoryIndex``.
    """

    __tablename__: ClassVar[str] = "category"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(index=True, nullable=False, max_length=100)
    icon: Optional[str] = Field(default=None, max_length=50)
    color: Optional[str] = Field(default=None, max_length=7)
    parent_id: Optional[int] = Field(default=None, foreign_key="category.id", index=True)
    sort_order: int = Field(default=0, nullable=False)
    active: bool = Field(default=True, nullable=False)
