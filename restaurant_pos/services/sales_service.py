"""
Historial de ventas (archivo append-only de cuentas cerradas).
Lectura ordenada, ventana reciente, resumen diario y exportación CSV.
"""
import json
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import pandas as pd
from sqlalchemy.orm import Session

from restaurant_pos.core.billing import ZERO, quantize, to_amount
from restaurant_pos.core.config import settings
from restaurant_pos.core.enums import PaymentMethod
from restaurant_pos.core.errors import NotFound
from restaurant_pos.core.feeds import FeedHub
from restaurant_pos.core.serialization_helpers import amount_to_str, serialize_decimal
from restaurant_pos.models.sale_record import SaleRecord


CSV_SEPARATOR = ";"
CSV_HEADER = ["timestamp", "tableName", "items", "subtotal", "cardTax", "total", "paymentMethod"]


def _tz() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def to_utc_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(_tz())


def local_today() -> date:
    return datetime.now(_tz()).date()


def serialize_sale(sale: SaleRecord) -> Dict[str, Any]:
    return {
        "id": sale.id,
        "timestamp": to_utc_iso(sale.timestamp),
        "table_id": sale.table_id,
        "table_name": sale.table_name,
        "items": list(sale.items or []),
        "subtotal": serialize_decimal(sale.subtotal),
        "card_tax": serialize_decimal(sale.card_tax),
        "total": serialize_decimal(sale.total),
        "payment_method": sale.payment_method,
        "created_at": to_utc_iso(sale.created_at),
    }


def list_sales(db: Session, limit: Optional[int] = None) -> List[SaleRecord]:
    query = db.query(SaleRecord).order_by(SaleRecord.timestamp.desc(), SaleRecord.created_at.desc())
    if limit is not None:
        query = query.limit(max(0, limit))
    return query.all()


def recent_sales(db: Session, limit: Optional[int] = None) -> List[SaleRecord]:
    """Ventana acotada del historial (por defecto settings.recent_sales_limit)."""
    return list_sales(db, limit=limit if limit is not None else settings.recent_sales_limit)


def sales_snapshot(db: Session) -> List[Dict[str, Any]]:
    return [serialize_sale(s) for s in recent_sales(db)]


def publish_sales(db: Session, feeds: Optional[FeedHub]) -> None:
    if feeds is None:
        return
    feeds.publish("sales", sales_snapshot(db))


def is_same_day_and_month(sale: SaleRecord, today: date) -> bool:
    # Compara día y mes, no el año
    local = to_local(sale.timestamp)
    return local.day == today.day and local.month == today.month


def sale_to_csv_row(sale: SaleRecord) -> List[str]:
    return [
        to_utc_iso(sale.timestamp),
        sale.table_name or "",
        json.dumps(list(sale.items or []), ensure_ascii=False),
        amount_to_str(sale.subtotal),
        amount_to_str(sale.card_tax),
        amount_to_str(sale.total),
        sale.payment_method or "",
    ]


def export_sales_csv(db: Session, only_today: bool = False, today: Optional[date] = None) -> str:
    """
    Exporta el historial a CSV separado por `;`, una fila por venta.

    Raises:
        NotFound: si no hay ventas que exportar
    """
    sales = list_sales(db)
    if not sales:
        raise NotFound("No hay historial cargado")

    if only_today:
        today = today or local_today()
        sales = [s for s in sales if is_same_day_and_month(s, today)]
        if not sales:
            raise NotFound("No hay ventas hoy.")

    df = pd.DataFrame([sale_to_csv_row(s) for s in sales], columns=CSV_HEADER)
    return df.to_csv(sep=CSV_SEPARATOR, index=False, lineterminator="\n").rstrip("\n")


def daily_summary(db: Session, day: Optional[date] = None) -> Dict[str, Any]:
    """
    Resumen de ventas de un día local: cantidad y montos por medio de pago.
    """
    day = day or local_today()
    by_method: Dict[str, Dict[str, Any]] = {
        m.value: {"count": 0, "subtotal": ZERO, "card_tax": ZERO, "total": ZERO} for m in PaymentMethod
    }
    count = 0
    subtotal = card_tax = total = ZERO

    for sale in list_sales(db):
        if to_local(sale.timestamp).date() != day:
            continue
        bucket = by_method.setdefault(
            sale.payment_method, {"count": 0, "subtotal": ZERO, "card_tax": ZERO, "total": ZERO}
        )
        bucket["count"] += 1
        bucket["subtotal"] += to_amount(sale.subtotal)
        bucket["card_tax"] += to_amount(sale.card_tax)
        bucket["total"] += to_amount(sale.total)
        count += 1
        subtotal += to_amount(sale.subtotal)
        card_tax += to_amount(sale.card_tax)
        total += to_amount(sale.total)

    def _money(value: Decimal) -> float:
        return serialize_decimal(quantize(value))

    return {
        "date": day.isoformat(),
        "count": count,
        "subtotal": _money(subtotal),
        "card_tax": _money(card_tax),
        "total": _money(total),
        "by_payment_method": {
            method: {
                "count": data["count"],
                "subtotal": _money(data["subtotal"]),
                "card_tax": _money(data["card_tax"]),
                "total": _money(data["total"]),
            }
            for method, data in by_method.items()
        },
    }
