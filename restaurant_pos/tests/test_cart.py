from decimal import Decimal

from restaurant_pos.core.cart import find_group, group_items, remove_one
from restaurant_pos.core.enums import TableStatus
from restaurant_pos.core.table_state import can_delete, derive_status


def _item(menu_item_id, price, instance_id, name="Item"):
    return {
        "menu_item_id": menu_item_id,
        "name": name,
        "category": "Cat",
        "price": price,
        "instance_id": instance_id,
    }


ITEMS = [
    _item("1", 5000, "a"),
    _item("9", 7500, "b"),
    _item("1", 5000, "c"),
    _item("99", 12000, "d", name="Especial"),
    _item("99", 8000, "e", name="Especial"),
    _item("1", 5000.0, "f"),
]


def test_groups_by_item_and_price_in_first_appearance_order():
    groups = group_items(ITEMS)
    assert [(g.menu_item_id, g.price) for g in groups] == [
        ("1", Decimal("5000")),
        ("9", Decimal("7500")),
        ("99", Decimal("12000")),
        ("99", Decimal("8000")),
    ]
    first = groups[0]
    assert first.qty == 3
    assert first.instance_ids == ["a", "c", "f"]
    assert first.line_total == Decimal("15000")


def test_group_quantities_add_up():
    groups = group_items(ITEMS)
    assert sum(g.qty for g in groups) == len(ITEMS)
    for g in groups:
        assert len(g.instance_ids) == g.qty


def test_variable_price_item_splits_groups():
    groups = [g for g in group_items(ITEMS) if g.menu_item_id == "99"]
    assert [g.qty for g in groups] == [1, 1]


def test_remove_one_takes_oldest_instance():
    group = group_items(ITEMS)[0]
    remaining = remove_one(ITEMS, group)
    assert len(remaining) == len(ITEMS) - 1
    assert "a" not in [i["instance_id"] for i in remaining]

    regrouped = find_group(remaining, "1", 5000)
    assert regrouped.qty == group.qty - 1
    assert regrouped.instance_ids == ["c", "f"]


def test_remove_one_does_not_mutate_input():
    group = group_items(ITEMS)[0]
    remove_one(ITEMS, group)
    assert len(ITEMS) == 6


def test_find_group_missing():
    assert find_group(ITEMS, "1", 4000) is None
    assert find_group([], "1", 5000) is None


def test_status_derivation():
    assert derive_status([]) == TableStatus.free
    assert derive_status(None) == TableStatus.free
    assert derive_status(ITEMS[:1]) == TableStatus.occupied
    assert can_delete([]) is True
    assert can_delete(ITEMS[:1]) is False
