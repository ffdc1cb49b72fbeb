"""Category hierarchy management.

Deletion policy: a category that still has subcategories or is referenced
by transactions is rejected with ``CategoryInUse``. Callers move or delete
the children and recategorize the transactions first.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlmodel import Session

from ..constants.categories import DEFAULT_CATEGORY_TREE, FULL_NAME_SEPARATOR
from ..domain.category_index import AncestorPath, CategoryIndex
from ..domain.repositories import CategoryRepository, TransactionRepository
from ..errors import (
    CategoryInUse,
    CyclicParent,
    DuplicateName,
    NotFound,
    SelfParent,
    ValidationError,
)
from ..infra.database import SessionFactory
from ..infra.repositories.category import (
    SQLModelCategoryRepository,
    count_category_transactions,
    load_categories,
)
from ..infra.repositories.transaction import SQLModelTransactionRepository
from ..logging_config import get_logger
from ..models.category import Category
from ..schemas import CategoryCreate, CategoryUpdate, validate_input
from .reports import category_stats

logger = get_logger(__name__)


def _load_index(session: Session, user_id: int) -> CategoryIndex:
    return CategoryIndex(load_categories(session, user_id=user_id))


def _ensure_unique_sibling(
    index: CategoryIndex,
    name: str,
    parent_id: Optional[int],
    category_id: Optional[int] = None,
) -> None:
    wanted = name.casefold()
    for sibling in index.children_of(parent_id):
        if sibling.id != category_id and sibling.name.casefold() == wanted:
            raise DuplicateName("category", name)


class CategoryService:
    def __init__(
        self,
        session_factory: SessionFactory,
        repository: Optional[CategoryRepository] = None,
        transactions: Optional[TransactionRepository] = None,
    ) -> None:
        self.session_factory = session_factory
        self.repository = repository or SQLModelCategoryRepository(session_factory)
        self.transactions = transactions or SQLModelTransactionRepository(session_factory)

    def get(self, category_id: int, *, user_id: int) -> Category:
        category = self.repository.get_by_id(category_id, user_id=user_id)
        if category is None:
            raise NotFound("category", category_id)
        return category

    def list(self, *, user_id: int) -> list[Category]:
        return self.repository.list_all(user_id=user_id)

    def index(self, *, user_id: int) -> CategoryIndex:
        """Snapshot of the owner's hierarchy."""
        return CategoryIndex(self.repository.list_all(user_id=user_id))

    def create(self, *, user_id: int, **fields: Any) -> Category:
        data = validate_input(CategoryCreate, fields)
        with self.session_factory() as session:
            index = _load_index(session, user_id)
            if data.parent_id is not None:
                if data.parent_id not in index:
                    raise NotFound("category", data.parent_id, field="parent_id")
                if index.would_create_cycle(None, data.parent_id):
                    raise CyclicParent(None, data.parent_id)
            _ensure_unique_sibling(index, data.name, data.parent_id)
            category = Category(user_id=user_id, **data.model_dump())
            session.add(category)
            session.flush()
            session.refresh(category)
        logger.info(
            "Category created",
            extra={"user_id": user_id, "category_id": category.id, "parent_id": category.parent_id},
        )
        return category

    def move(self, category_id: int, new_parent_id: Optional[int] = None, *, user_id: int) -> Category:
        """Re-parent a category; ``None`` makes it a root."""

        if new_parent_id is not None and category_id == new_parent_id:
            raise SelfParent(category_id)
        with self.session_factory() as session:
            index = _load_index(session, user_id)
            category = index.get(category_id)
            if new_parent_id is not None:
                if new_parent_id not in index:
                    raise NotFound("category", new_parent_id, field="parent_id")
                if index.would_create_cycle(category_id, new_parent_id):
                    logger.warning(
                        "Category move rejected",
                        extra={
                            "user_id": user_id,
                            "category_id": category_id,
                            "parent_id": new_parent_id,
                        },
                    )
                    raise CyclicParent(category_id, new_parent_id)
            _ensure_unique_sibling(index, category.name, new_parent_id, category_id)
            category.parent_id = new_parent_id
            session.add(category)
            session.flush()
            session.refresh(category)
        return category

    def update(self, category_id: int, *, user_id: int, **changes: Any) -> Category:
        data = validate_input(CategoryUpdate, changes)
        updates = data.model_dump(exclude_unset=True)
        if "name" in updates and updates["name"] is None:
            raise ValidationError("Name is required", field="name")
        if "sort_order" in updates and updates["sort_order"] is None:
            raise ValidationError("sort_order cannot be empty", field="sort_order")
        with self.session_factory() as session:
            index = _load_index(session, user_id)
            category = index.get(category_id)
            if "name" in updates:
                _ensure_unique_sibling(index, updates["name"], category.parent_id, category_id)
            for field_name, value in updates.items():
                setattr(category, field_name, value)
            session.add(category)
            session.flush()
            session.refresh(category)
        return category

    def delete(self, category_id: int, *, user_id: int) -> None:
        with self.session_factory() as session:
            index = _load_index(session, user_id)
            category = index.get(category_id)
            children = len(index.children_of(category_id))
            transactions = count_category_transactions(session, category_id, user_id=user_id)
            if children or transactions:
                logger.warning(
                    "Category delete rejected",
                    extra={
                        "user_id": user_id,
                        "category_id": category_id,
                        "children": children,
                        "transactions": transactions,
                    },
                )
                raise CategoryInUse(category_id, children=children, transactions=transactions)
            session.delete(category)
        logger.info("Category deleted", extra={"user_id": user_id, "category_id": category_id})

    def iter_ancestors(self, category_id: int, *, user_id: int) -> AncestorPath:
        """Restartable root-to-leaf path ending at ``category_id``."""
        return self.index(user_id=user_id).path(category_id)

    def compute_full_name(
        self, category_id: int, *, user_id: int, separator: str = FULL_NAME_SEPARATOR
    ) -> str:
        return self.index(user_id=user_id).full_name(category_id, separator)

    def tree(self, *, user_id: int) -> list[dict[str, Any]]:
        return self.index(user_id=user_id).tree()

    def reorder(self, orders: Mapping[int, int], *, user_id: int) -> list[Category]:
        """Set ``sort_order`` for several categories at once."""

        for category_id, order in orders.items():
            if isinstance(order, bool) or not isinstance(order, int) or order < 0:
                raise ValidationError(
                    f"Invalid order {order!r} for category {category_id}", field="sort_order"
                )
        with self.session_factory() as session:
            index = _load_index(session, user_id)
            updated = []
            for category_id, order in sorted(orders.items()):
                category = index.get(category_id)
                category.sort_order = order
                session.add(category)
                updated.append(category)
            session.flush()
        return updated

    def stats(self, category_id: int, *, user_id: int) -> dict[str, Any]:
        index = self.index(user_id=user_id)
        index.get(category_id)
        transactions = self.transactions.filter_by_category(category_id, user_id=user_id)
        return category_stats(index, category_id, transactions)

    def seed_defaults(self, *, user_id: int) -> list[Category]:
        """Create the default hierarchy for an owner without categories."""

        created: list[Category] = []
        with self.session_factory() as session:
            if load_categories(session, user_id=user_id):
                return created
            for position, (parent_name, children) in enumerate(DEFAULT_CATEGORY_TREE.items()):
                parent = Category(user_id=user_id, name=parent_name, sort_order=position)
                session.add(parent)
                session.flush()
                created.append(parent)
                for child_position, child_name in enumerate(children):
                    child = Category(
                        user_id=user_id,
                        name=child_name,
                        parent_id=parent.id,
                        sort_order=child_position,
                    )
                    session.add(child)
                    created.append(child)
            session.flush()
        logger.info("Seeded default categories", extra={"user_id": user_id, "count": len(created)})
        return created
