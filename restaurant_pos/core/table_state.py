"""
Reglas de estado de las mesas.

Regla general: el estado de una mesa se deriva SIEMPRE de su lista de items.
  - items vacíos     -> free
  - items no vacíos  -> occupied
Nunca se asigna el estado de forma independiente.
"""
from typing import Any, Optional, Sequence

from restaurant_pos.core.enums import TableStatus


def derive_status(items: Optional[Sequence[Any]]) -> TableStatus:
    """Calcula el estado de la mesa a partir de sus items actuales."""
    return TableStatus.occupied if items else TableStatus.free


def can_delete(items: Optional[Sequence[Any]]) -> bool:
    """Una mesa con pedido activo no se puede eliminar."""
    return not items
