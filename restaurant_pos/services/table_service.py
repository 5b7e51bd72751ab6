"""
Servicio de mesas: ciclo de vida del pedido.

Cada mutación de items recalcula el estado con derive_status(). Las
escrituras normales son last-write-wins (sin control de versión); solo el
cierre de cuenta usa compare-and-swap sobre `version`, con reintentos.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from restaurant_pos.core.billing import Totals, compute_totals, to_amount
from restaurant_pos.core.cart import find_group, group_items, remove_one
from restaurant_pos.core.config import settings
from restaurant_pos.core.enums import DEFAULT_PAYMENT, PaymentMethod, TableStatus
from restaurant_pos.core.errors import (
    NotFound,
    PreconditionFailed,
    StoreUnavailable,
    TransactionConflict,
    ValidationError,
)
from restaurant_pos.core.feeds import FeedHub
from restaurant_pos.core.id_service import IdGenerator, default_ids
from restaurant_pos.core.serialization_helpers import serialize_datetime, serialize_decimal
from restaurant_pos.core.table_state import can_delete, derive_status
from restaurant_pos.models.base import utcnow
from restaurant_pos.models.dining_table import DiningTable
from restaurant_pos.models.sale_record import SaleRecord
from restaurant_pos.services import menu_service, sales_service

logger = logging.getLogger(__name__)


def serialize_table(table: DiningTable) -> Dict[str, Any]:
    return {
        "id": table.id,
        "name": table.name,
        "status": table.status,
        "items": list(table.items or []),
        "payment": table.payment,
        "created_at": serialize_datetime(table.created_at),
        "last_updated_at": serialize_datetime(table.last_updated_at),
    }


def list_tables(db: Session) -> List[DiningTable]:
    return db.query(DiningTable).order_by(DiningTable.created_at.asc(), DiningTable.id.asc()).all()


def get_table(db: Session, table_id: str) -> DiningTable:
    table = db.query(DiningTable).filter(DiningTable.id == table_id).first()
    if not table:
        raise NotFound("Mesa no existe")
    return table


def tables_snapshot(db: Session) -> List[Dict[str, Any]]:
    return [serialize_table(t) for t in list_tables(db)]


def publish_tables(db: Session, feeds: Optional[FeedHub]) -> None:
    if feeds is None:
        return
    feeds.publish("tables", tables_snapshot(db))


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("%s failed", action)
        raise StoreUnavailable(f"Error guardando la mesa: {e}")


def _save_items(db: Session, table: DiningTable, items: List[Dict[str, Any]]) -> None:
    # Siempre una lista nueva para que el ORM detecte el cambio en la columna JSON
    table.items = list(items)
    table.status = derive_status(table.items).value
    table.last_updated_at = utcnow()
    table.version = (table.version or 0) + 1


def create_table(
    db: Session,
    name: Optional[str],
    ids: IdGenerator = default_ids,
    feeds: Optional[FeedHub] = None,
) -> DiningTable:
    clean_name = (name or "").strip()
    if not clean_name:
        logger.warning("create_table rejected: empty name")
        raise ValidationError("El nombre de la mesa es requerido")

    now = utcnow()
    table = DiningTable(
        id=ids.new_id(),
        name=clean_name,
        status=TableStatus.free.value,
        items=[],
        payment=DEFAULT_PAYMENT.value,
        created_at=now,
        last_updated_at=now,
        version=1,
    )
    db.add(table)
    _commit(db, "create_table")
    db.refresh(table)
    logger.info("table created id=%s name=%s", table.id, table.name)
    publish_tables(db, feeds)
    return table


def delete_table(db: Session, table_id: str, feeds: Optional[FeedHub] = None) -> None:
    table = get_table(db, table_id)
    if not can_delete(table.items):
        logger.warning("delete_table rejected: table %s has %s items", table_id, len(table.items))
        raise PreconditionFailed("La mesa tiene pedidos activos.")
    db.delete(table)
    _commit(db, "delete_table")
    logger.info("table deleted id=%s", table_id)
    publish_tables(db, feeds)


def add_item(
    db: Session,
    table_id: str,
    menu_item_id: str,
    override_price: Optional[Any] = None,
    ids: IdGenerator = default_ids,
    feeds: Optional[FeedHub] = None,
) -> DiningTable:
    """
    Agrega una instancia de un item del menú a la mesa.

    Para items de precio variable (precio 0 en el menú) el llamador debe
    enviar el precio ya resuelto en `override_price`; sin él la operación se
    rechaza antes de tocar la mesa.
    """
    table = get_table(db, table_id)
    menu_item = menu_service.get_menu_item(db, menu_item_id)
    if not menu_item:
        raise NotFound(f"Item de menú no existe: {menu_item_id}")

    price = to_amount(menu_item.price)
    if price == 0:
        if override_price is None or str(override_price).strip() == "":
            logger.warning("add_item rejected: no price for variable item %s", menu_item_id)
            raise ValidationError("Precio requerido para item de precio variable")
        try:
            price = Decimal(str(override_price).strip())
        except InvalidOperation:
            raise ValidationError(f"Precio inválido: {override_price}")
        if not price.is_finite() or price < 0:
            raise ValidationError(f"Precio inválido: {override_price}")

    line_item = {
        "menu_item_id": menu_item.id,
        "name": menu_item.name,
        "category": menu_item.category,
        "price": serialize_decimal(price),
        "instance_id": ids.new_id(),
    }
    _save_items(db, table, list(table.items or []) + [line_item])
    _commit(db, "add_item")
    db.refresh(table)
    logger.info("item added table=%s menu_item=%s price=%s", table_id, menu_item.id, price)
    publish_tables(db, feeds)
    return table


def remove_item(
    db: Session,
    table_id: str,
    instance_id: str,
    feeds: Optional[FeedHub] = None,
) -> DiningTable:
    table = get_table(db, table_id)
    items = list(table.items or [])
    remaining = [item for item in items if item.get("instance_id") != instance_id]
    if len(remaining) == len(items):
        # No existe esa instancia: no hay nada que escribir
        return table

    _save_items(db, table, remaining)
    _commit(db, "remove_item")
    db.refresh(table)
    logger.info("item removed table=%s instance=%s", table_id, instance_id)
    publish_tables(db, feeds)
    return table


def remove_one_from_group(
    db: Session,
    table_id: str,
    menu_item_id: str,
    price: Any,
    feeds: Optional[FeedHub] = None,
) -> DiningTable:
    """Quita la instancia más antigua del grupo (menu_item_id, precio)."""
    table = get_table(db, table_id)
    group = find_group(list(table.items or []), menu_item_id, price)
    if group is None:
        return table

    _save_items(db, table, remove_one(list(table.items or []), group))
    _commit(db, "remove_one_from_group")
    db.refresh(table)
    logger.info("item removed table=%s instance=%s", table_id, group.instance_ids[0])
    publish_tables(db, feeds)
    return table


def set_payment_method(
    db: Session,
    table_id: str,
    method: Union[PaymentMethod, str],
    feeds: Optional[FeedHub] = None,
) -> DiningTable:
    try:
        method = PaymentMethod(getattr(method, "value", method))
    except ValueError:
        raise ValidationError(f"Medio de pago inválido: {method}")

    table = get_table(db, table_id)
    table.payment = method.value
    table.last_updated_at = utcnow()
    table.version = (table.version or 0) + 1
    _commit(db, "set_payment_method")
    db.refresh(table)
    publish_tables(db, feeds)
    return table


def get_cart(db: Session, table_id: str) -> Dict[str, Any]:
    table = get_table(db, table_id)
    items = list(table.items or [])
    return {
        "table": table,
        "groups": group_items(items),
        "totals": compute_totals(items, table.payment),
    }


# --- Cierre de cuenta ---

def _archive_sale(db: Session, table: DiningTable, totals: Totals, ids: IdGenerator) -> SaleRecord:
    now = utcnow()
    sale = SaleRecord(
        id=ids.new_id(),
        timestamp=now,
        table_id=table.id,
        table_name=table.name,
        items=list(table.items or []),
        subtotal=totals.subtotal,
        card_tax=totals.tax,
        total=totals.total,
        payment_method=table.payment or DEFAULT_PAYMENT.value,
        created_at=now,
    )
    db.add(sale)
    return sale


def _reset_table(db: Session, table_id: str, expected_version: int) -> bool:
    """
    Limpia la mesa solo si nadie la modificó desde que se leyó.
    Devuelve False si la versión cambió (conflicto).
    """
    result = db.execute(
        update(DiningTable)
        .where(DiningTable.id == table_id, DiningTable.version == expected_version)
        .values(
            items=[],
            status=TableStatus.free.value,
            payment=DEFAULT_PAYMENT.value,
            last_updated_at=utcnow(),
            version=expected_version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _close_once(db: Session, table_id: str, ids: IdGenerator) -> SaleRecord:
    # Releer el estado persistido: no confiar en el carrito en memoria
    db.expire_all()
    table = db.query(DiningTable).filter(DiningTable.id == table_id).first()
    if not table:
        raise NotFound("Mesa no existe")

    totals = compute_totals(table.items or [], table.payment)
    sale = _archive_sale(db, table, totals, ids)
    db.flush()

    if not _reset_table(db, table_id, table.version):
        raise TransactionConflict("La mesa fue modificada por otra terminal")

    db.commit()
    return sale


def close_order(
    db: Session,
    table_id: str,
    ids: IdGenerator = default_ids,
    feeds: Optional[FeedHub] = None,
    max_attempts: Optional[int] = None,
) -> SaleRecord:
    """
    Cierra la cuenta de una mesa de forma atómica.

    En una sola transacción:
      - registra la venta con snapshot de items, subtotal, recargo y total
      - deja la mesa vacía, libre y con pago en Efectivo
    O ambas cosas suceden o ninguna. Si otra escritura gana la carrera se
    reintenta releyendo y recalculando.

    Raises:
        NotFound: si la mesa ya no existe
        TransactionConflict: si se agotan los reintentos
        StoreUnavailable: si falla el almacenamiento
    """
    attempts = max(1, max_attempts or settings.close_order_max_attempts)
    last_conflict: Optional[TransactionConflict] = None

    for attempt in range(1, attempts + 1):
        try:
            sale = _close_once(db, table_id, ids)
        except TransactionConflict as e:
            db.rollback()
            last_conflict = e
            logger.warning("close_order conflict table=%s attempt=%s/%s", table_id, attempt, attempts)
            continue
        except NotFound:
            db.rollback()
            logger.warning("close_order rejected: table %s not found", table_id)
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("close_order failed table=%s", table_id)
            raise StoreUnavailable(f"Error cerrando la cuenta: {e}")

        db.refresh(sale)
        logger.info(
            "order closed table=%s sale=%s total=%s payment=%s",
            table_id, sale.id, sale.total, sale.payment_method,
        )
        publish_tables(db, feeds)
        sales_service.publish_sales(db, feeds)
        return sale

    raise last_conflict
