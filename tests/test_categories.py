"""Category hierarchy: cycles, full names, deletion policy and ordering."""

from __future__ import annotations

import pytest

from pocketledger.domain.category_index import CategoryIndex
from pocketledger.errors import (
    CategoryInUse,
    CycleDetected,
    CyclicParent,
    DuplicateName,
    NotFound,
    SelfParent,
    ValidationError,
)
from pocketledger.models.category import Category


def test_cycle_check_on_move(category_factory, category_service, user):
    c1 = category_factory("C1")
    c2 = category_factory("C2", parent_id=c1.id)

    with pytest.raises(CyclicParent):
        category_service.move(c1.id, c2.id, user_id=user.id)


def test_deep_cycle_check(category_factory, category_service, user):
    root = category_factory("Root")
    middle = category_factory("Middle", parent_id=root.id)
    leaf = category_factory("Leaf", parent_id=middle.id)

    with pytest.raises(CyclicParent):
        category_service.move(root.id, leaf.id, user_id=user.id)


def test_self_parent(category_factory, category_service, user):
    c1 = category_factory("C1")

    with pytest.raises(SelfParent):
        category_service.move(c1.id, c1.id, user_id=user.id)


def test_unknown_parent(category_factory, category_service, user):
    with pytest.raises(NotFound) as exc_info:
        category_factory("Orphan", parent_id=424242)
    assert exc_info.value.field == "parent_id"

    c1 = category_factory("C1")
    with pytest.raises(NotFound):
        category_service.move(c1.id, 424242, user_id=user.id)


def test_move_to_root_and_full_name(category_factory, category_service, user):
    food = category_factory("Food")
    groceries = category_factory("Groceries", parent_id=food.id)
    organic = category_factory("Organic", parent_id=groceries.id)

    assert category_service.compute_full_name(organic.id, user_id=user.id) == "Food > Groceries > Organic"

    category_service.move(groceries.id, None, user_id=user.id)

    assert category_service.compute_full_name(organic.id, user_id=user.id) == "Groceries > Organic"


def test_ancestor_path_is_restartable(category_factory, category_service, user):
    food = category_factory("Food")
    groceries = category_factory("Groceries", parent_id=food.id)

    path = category_service.iter_ancestors(groceries.id, user_id=user.id)

    assert [node.name for node in path] == ["Food", "Groceries"]
    assert [node.name for node in path] == ["Food", "Groceries"]


def test_ancestor_path_is_a_sequence():
    food = Category(id=1, user_id=1, name="Food")
    groceries = Category(id=2, user_id=1, name="Groceries", parent_id=1)
    organic = Category(id=3, user_id=1, name="Organic", parent_id=2)
    index = CategoryIndex([food, groceries, organic])

    path = index.path(3)

    assert len(path) == 3
    assert path[0] is food
    assert path[-1] is organic
    assert [node.name for node in path[1:]] == ["Groceries", "Organic"]
    assert groceries in path
    assert list(reversed(path)) == [organic, groceries, food]

    # The path reflects the index at the time it is read
    organic.parent_id = None
    assert path.names() == ["Organic"]


def test_index_detects_corrupt_cycle():
    a = Category(id=1, user_id=1, name="A", parent_id=2)
    b = Category(id=2, user_id=1, name="B", parent_id=1)
    index = CategoryIndex([a, b])

    path = index.path(1)  # nothing is walked yet
    with pytest.raises(CycleDetected):
        list(path)
    with pytest.raises(CycleDetected):
        len(path)
    assert index.would_create_cycle(None, 1) is True


def test_sibling_names_are_unique(category_factory, category_service, user):
    food = category_factory("Food")
    category_factory("Coffee", parent_id=food.id)
    category_factory("coffee")

    with pytest.raises(DuplicateName):
        category_factory("COFFEE", parent_id=food.id)

    standalone = category_factory("Snacks")
    with pytest.raises(DuplicateName):
        category_service.update(standalone.id, user_id=user.id, name="Coffee")


def test_icon_and_color_validation(category_factory):
    category = category_factory("Transport", icon="Car", color="#EF4444")
    assert category.color == "#ef4444"

    with pytest.raises(ValidationError) as exc_info:
        category_factory("Bad icon", icon="Rocket")
    assert exc_info.value.field == "icon"

    with pytest.raises(ValidationError) as exc_info:
        category_factory("Bad color", color="#123456")
    assert exc_info.value.field == "color"


def test_delete_policy_rejects_children_and_references(
    category_factory, category_service, account_factory, transaction_factory, user
):
    food = category_factory("Food")
    groceries = category_factory("Groceries", parent_id=food.id)
    checking = account_factory("Checking", opening_balance="10.00")
    transaction_factory("1.00", source=checking, category_id=groceries.id)

    with pytest.raises(CategoryInUse) as exc_info:
        category_service.delete(food.id, user_id=user.id)
    assert exc_info.value.children == 1

    with pytest.raises(CategoryInUse) as exc_info:
        category_service.delete(groceries.id, user_id=user.id)
    assert exc_info.value.transactions == 1

    empty = category_factory("Empty")
    category_service.delete(empty.id, user_id=user.id)
    with pytest.raises(NotFound):
        category_service.get(empty.id, user_id=user.id)


def test_tree_and_reorder(category_factory, category_service, user):
    food = category_factory("Food", sort_order=1)
    home = category_factory("Home", sort_order=0)
    category_factory("Rent", parent_id=home.id)

    tree = category_service.tree(user_id=user.id)
    assert [node["name"] for node in tree] == ["Home", "Food"]
    assert tree[0]["children"][0]["full_name"] == "Home > Rent"

    category_service.reorder({food.id: 0, home.id: 5}, user_id=user.id)
    assert [node["name"] for node in category_service.tree(user_id=user.id)] == ["Food", "Home"]

    with pytest.raises(ValidationError):
        category_service.reorder({food.id: -1}, user_id=user.id)


def test_stats(category_factory, category_service, account_factory, transaction_factory, user):
    food = category_factory("Food")
    category_factory("Groceries", parent_id=food.id)
    checking = account_factory("Checking", opening_balance="100.00")
    transaction_factory("4.50", source=checking, category_id=food.id)
    transaction_factory("5.50", source=checking, category_id=food.id)

    stats = category_service.stats(food.id, user_id=user.id)

    assert stats["transaction_count"] == 2
    assert stats["total_amount"] == {"EUR": "10.00"}
    assert stats["subcategory_count"] == 1


def test_seed_defaults_runs_once(category_service, user):
    created = category_service.seed_defaults(user_id=user.id)

    assert created
    assert category_service.seed_defaults(user_id=user.id) == []
    assert category_service.compute_full_name(created[1].id, user_id=user.id) == "Income > Salary"
