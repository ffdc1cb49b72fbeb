"""In-memory index over a user's categories.

The hierarchy is a map from id to node plus parent-id lookups. Nothing here
owns children; trees are built on demand as read models.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Iterable, Iterator, Optional, Union, overload

from ..constants.categories import FULL_NAME_SEPARATOR
from ..errors import CycleDetected, NotFound
from ..models.category import Category


class AncestorPath(Sequence[Category]):
    """Root-to-leaf path of a category, as a read-only sequence.

    Nothing is walked when the path is created. Every iteration, ``len`` or
    index walks the parent pointers again, so the path is restartable and
    always reflects the current index. Root-first order means the upward walk
    has to reach the root before the first node is produced. The walk is
    bounded by the number of indexed nodes; revisiting a node raises
    CycleDetected.
    """

    def __init__(self, index: "CategoryIndex", category_id: int) -> None:
        self._index = index
        self._category_id = category_id

    def _walk(self) -> list[Category]:
        chain = list(self._index.iter_ancestors(self._category_id, include_self=True))
        chain.reverse()
        return chain

    def __iter__(self) -> Iterator[Category]:
        return iter(self._walk())

    def __len__(self) -> int:
        return len(self._walk())

    @overload
    def __getitem__(self, position: int) -> Category: ...

    @overload
    def __getitem__(self, position: slice) -> list[Category]: ...

    def __getitem__(self, position: Union[int, slice]) -> Union[Category, list[Category]]:
        return self._walk()[position]

    def names(self) -> list[str]:
        return [node.name for node in self]


class CategoryIndex:
    """Id -> category lookups with cycle-aware ancestor walks."""

    def __init__(self, categories: Iterable[Category]) -> None:
        self._nodes: dict[int, Category] = {}
        for category in categories:
            if category.id is not None:
                self._nodes[category.id] = category

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, category_id: int) -> Category:
        try:
            return self._nodes[category_id]
        except KeyError as exc:
            raise NotFound("category", category_id) from exc

    def children_of(self, parent_id: Optional[int]) -> list[Category]:
        children = [node for node in self._nodes.values() if node.parent_id == parent_id]
        return sorted(children, key=lambda node: (node.sort_order, node.name.casefold()))

    def iter_ancestors(self, category_id: int, *, include_self: bool = False) -> Iterator[Category]:
        """Yield nodes from ``category_id`` upward to the root (leaf first)."""

        node = self.get(category_id)
        seen: set[int] = set()
        if include_self:
            yield node
        seen.add(category_id)
        parent_id = node.parent_id
        while parent_id is not None:
            if parent_id in seen:
                raise CycleDetected(category_id)
            seen.add(parent_id)
            parent = self.get(parent_id)
            yield parent
            parent_id = parent.parent_id

    def path(self, category_id: int) -> AncestorPath:
        return AncestorPath(self, category_id)

    def full_name(self, category_id: int, separator: str = FULL_NAME_SEPARATOR) -> str:
        return separator.join(self.path(category_id).names())

    def would_create_cycle(self, category_id: Optional[int], new_parent_id: int) -> bool:
        """True when ``category_id`` appears in the ancestry of ``new_parent_id``."""

        if category_id is not None and category_id == new_parent_id:
            return True
        try:
            for ancestor in self.iter_ancestors(new_parent_id, include_self=True):
                if category_id is not None and ancestor.id == category_id:
                    return True
        except CycleDetected:
            return True
        return False

    def tree(self, parent_id: Optional[int] = None) -> list[dict[str, Any]]:
        """Nested read model sorted by ``sort_order`` then name."""

        return [self._node_payload(child) for child in self.children_of(parent_id)]

    def _node_payload(self, node: Category, _visited: Optional[set[int]] = None) -> dict[str, Any]:
        visited = set() if _visited is None else _visited
        if node.id in visited:
            raise CycleDetected(node.id)
        visited.add(node.id)
        return {
            "id": node.id,
            "name": node.name,
            "full_name": self.full_name(node.id),
            "icon": node.icon,
            "color": node.color,
            "order": node.sort_order,
            "parent_id": node.parent_id,
            "children": [
                self._node_payload(child, visited) for child in self.children_of(node.id)
            ],
        }
