"""
Cálculo de totales de una cuenta.

El recargo del 13% es un cargo por procesamiento de tarjeta, no un impuesto de
ventas: solo se aplica cuando el medio de pago es Tarjeta.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional, Union

from restaurant_pos.core.config import settings
from restaurant_pos.core.enums import PaymentMethod


CENT = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def to_amount(value: Any) -> Decimal:
    """
    Convierte un precio a Decimal.
    Valores faltantes, no numéricos o no finitos cuentan como 0 (nunca lanza).
    """
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _item_price(item: Any) -> Any:
    if isinstance(item, Mapping):
        return item.get("price")
    return getattr(item, "price", None)


def is_card(payment_method: Union[PaymentMethod, str, None]) -> bool:
    if payment_method is None:
        return False
    return getattr(payment_method, "value", payment_method) == PaymentMethod.card.value


def compute_totals(
    items: Optional[Iterable[Any]],
    payment_method: Union[PaymentMethod, str, None],
    surcharge_rate: Optional[Decimal] = None,
) -> Totals:
    """
    Calcula subtotal, recargo por tarjeta y total.

    Args:
        items: Items de la mesa (dicts o objetos con `price`)
        payment_method: Medio de pago de la mesa
        surcharge_rate: Tasa del recargo (por defecto settings.card_surcharge_rate)

    Returns:
        Totals con montos redondeados a 2 decimales (mitad lejos de cero)
    """
    subtotal = sum((to_amount(_item_price(item)) for item in (items or [])), ZERO)

    if is_card(payment_method):
        rate = surcharge_rate if surcharge_rate is not None else to_amount(settings.card_surcharge_rate)
        tax = quantize(subtotal * rate)
    else:
        tax = ZERO

    subtotal_val = quantize(subtotal)
    tax_val = quantize(tax)
    return Totals(subtotal=subtotal_val, tax=tax_val, total=quantize(subtotal_val + tax_val))


def tax_share(totals: Totals) -> Decimal:
    """Porcentaje del total que corresponde al recargo (0 si el total es 0)."""
    if totals.total <= 0:
        return ZERO
    return quantize(totals.tax / totals.total * 100)
