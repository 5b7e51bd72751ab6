"""
Agrupación visual del carrito de una mesa.

Los items se agrupan por (menu_item_id, precio); dos items del mismo producto
con precios distintos (p.ej. un especial de precio variable) quedan en grupos
separados. Los grupos se recalculan en cada lectura y nunca se persisten.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Tuple

from restaurant_pos.core.billing import to_amount


@dataclass
class CartGroup:
    menu_item_id: str
    name: str
    category: str
    price: Decimal
    qty: int = 0
    instance_ids: List[str] = field(default_factory=list)

    @property
    def key(self) -> Tuple[str, Decimal]:
        return (self.menu_item_id, self.price)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.qty


def group_key(item: Mapping[str, Any]) -> Tuple[str, Decimal]:
    return (str(item.get("menu_item_id")), to_amount(item.get("price")))


def group_items(items: List[Mapping[str, Any]]) -> List[CartGroup]:
    """Agrupa items conservando el orden de primera aparición."""
    groups: Dict[Tuple[str, Decimal], CartGroup] = {}
    for item in items or []:
        key = group_key(item)
        group = groups.get(key)
        if group is None:
            group = CartGroup(
                menu_item_id=key[0],
                name=item.get("name") or "",
                category=item.get("category") or "",
                price=key[1],
            )
            groups[key] = group
        group.qty += 1
        group.instance_ids.append(item.get("instance_id"))
    return list(groups.values())


def find_group(items: List[Mapping[str, Any]], menu_item_id: str, price: Any) -> CartGroup | None:
    wanted = (str(menu_item_id), to_amount(price))
    for group in group_items(items):
        if group.key == wanted:
            return group
    return None


def remove_one(items: List[Mapping[str, Any]], group: CartGroup) -> List[Mapping[str, Any]]:
    """
    Quita exactamente una instancia del grupo: la primera agregada
    (group.instance_ids[0]). Devuelve una lista nueva.
    """
    if not group.instance_ids:
        return list(items)
    target = group.instance_ids[0]
    result = []
    removed = False
    for item in items:
        if not removed and item.get("instance_id") == target:
            removed = True
            continue
        result.append(item)
    return result
