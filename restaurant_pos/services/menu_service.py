"""
Servicio del menú.
Importación CSV (reemplazo total y atómico), consultas y exportación.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from io import StringIO
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from restaurant_pos.core.billing import ZERO, to_amount
from restaurant_pos.core.errors import StoreUnavailable, ValidationError
from restaurant_pos.core.feeds import FeedHub
from restaurant_pos.core.serialization_helpers import amount_to_str, serialize_datetime, serialize_decimal
from restaurant_pos.models.menu_item import MenuItem

logger = logging.getLogger(__name__)

CSV_SEPARATOR = ";"
CSV_COLUMNS = ["id", "name", "category", "price"]

SAMPLE_MENU_CSV = """id;nombre;categoria;precio
1;Ensalada César con pollo;Ensaladas;5000
99;Producto Especial (Tablas);Especial;0"""


@dataclass(frozen=True)
class MenuItemData:
    id: str
    name: str
    category: str
    price: Decimal


def _clean_text(value: Any) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def _parse_price(value: Any) -> Decimal:
    text = _clean_text(value)
    try:
        price = float(text)
    except ValueError:
        return ZERO
    amount = to_amount(price)
    # Precios negativos no son válidos en el menú
    return amount if amount > 0 else ZERO


def parse_menu_csv(text: str) -> List[MenuItemData]:
    """
    Parsea el CSV del menú: encabezado + filas `id;nombre;categoria;precio`.

    Las columnas se leen por posición, así que el encabezado puede estar en
    inglés o en español. Filas sin id se descartan; precio inválido = 0.

    Raises:
        ValidationError: si el CSV está vacío, mal formado o sin filas válidas
    """
    if not text or not text.strip():
        raise ValidationError("CSV inválido")

    try:
        df = pd.read_csv(
            StringIO(text.strip()),
            sep=CSV_SEPARATOR,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ValidationError(f"CSV inválido: {e}")

    if df.empty:
        raise ValidationError("CSV inválido")

    # Completar columnas faltantes y normalizar nombres por posición
    df = df.iloc[:, :len(CSV_COLUMNS)].copy()
    for idx in range(df.shape[1], len(CSV_COLUMNS)):
        df[f"_missing_{idx}"] = ""
    df.columns = CSV_COLUMNS

    items: List[MenuItemData] = []
    for _, row in df.iterrows():
        item_id = _clean_text(row["id"])
        if not item_id:
            continue
        items.append(MenuItemData(
            id=item_id,
            name=_clean_text(row["name"]),
            category=_clean_text(row["category"]),
            price=_parse_price(row["price"]),
        ))

    if not items:
        raise ValidationError("CSV inválido")
    return items


def _sort_key(item: MenuItem):
    # Orden numérico por id; ids no numéricos al final
    try:
        return (0, float(item.id), item.id)
    except ValueError:
        return (1, 0.0, item.id)


def serialize_menu_item(item: MenuItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "category": item.category,
        "price": serialize_decimal(item.price),
        "created_at": serialize_datetime(item.created_at),
    }


def list_menu(db: Session, search: Optional[str] = None, category: Optional[str] = None) -> List[MenuItem]:
    if search:
        return search_menu(db, search)
    items = sorted(db.query(MenuItem).all(), key=_sort_key)
    if category:
        return [i for i in items if i.category == category]
    return items


def search_menu(db: Session, text: str) -> List[MenuItem]:
    """Busca por nombre, sin distinguir mayúsculas."""
    needle = (text or "").strip().lower()
    items = sorted(db.query(MenuItem).all(), key=_sort_key)
    return [i for i in items if needle in (i.name or "").lower()]


def list_categories(db: Session) -> List[str]:
    categories: List[str] = []
    for item in list_menu(db):
        if item.category not in categories:
            categories.append(item.category)
    return categories


def get_menu_item(db: Session, menu_item_id: str) -> Optional[MenuItem]:
    return db.query(MenuItem).filter(MenuItem.id == str(menu_item_id)).first()


def menu_snapshot(db: Session) -> List[Dict[str, Any]]:
    return [serialize_menu_item(i) for i in list_menu(db)]


def publish_menu(db: Session, feeds: Optional[FeedHub]) -> None:
    if feeds is None:
        return
    feeds.publish("menu", menu_snapshot(db))


def replace_menu(db: Session, items: List[MenuItemData], feeds: Optional[FeedHub] = None) -> int:
    """
    Reemplaza el menú completo en una sola transacción.
    Los lectores ven el menú anterior completo o el nuevo completo, nunca una mezcla.

    Returns:
        Número de items importados
    """
    if not items:
        raise ValidationError("CSV inválido")

    try:
        db.query(MenuItem).delete(synchronize_session=False)
        for data in items:
            db.add(MenuItem(
                id=data.id,
                name=data.name,
                category=data.category,
                price=data.price,
            ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("replace_menu failed")
        raise StoreUnavailable(f"No se pudo actualizar el menú: {e}")

    logger.info("menu replaced items=%s", len(items))
    publish_menu(db, feeds)
    return len(items)


def import_menu_csv(db: Session, text: str, feeds: Optional[FeedHub] = None) -> int:
    return replace_menu(db, parse_menu_csv(text), feeds=feeds)


def export_menu_csv(db: Session) -> str:
    """Exporta el menú en el mismo formato que acepta la importación."""
    df = pd.DataFrame(
        [[item.id, item.name, item.category, amount_to_str(item.price)] for item in list_menu(db)],
        columns=CSV_COLUMNS,
    )
    # pandas pone entre comillas los campos que contienen `;`
    return df.to_csv(sep=CSV_SEPARATOR, index=False, lineterminator="\n").rstrip("\n")


def seed_menu(db: Session) -> None:
    """Carga el menú de ejemplo si el menú está vacío."""
    if db.query(MenuItem).first():
        return
    replace_menu(db, parse_menu_csv(SAMPLE_MENU_CSV))
