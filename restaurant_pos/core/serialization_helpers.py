"""
Helpers genéricos de serialización y formato.
NO contiene lógica de negocio, solo utilidades de formato.
"""
from decimal import Decimal

from restaurant_pos.core.billing import quantize, to_amount


CURRENCY_SYMBOL = "₡"
GROUP_SEPARATOR = " "


def serialize_decimal(value):
    """Convierte Decimal a float para serialización JSON"""
    if value is None:
        return None
    return float(value)


def serialize_datetime(value):
    """Convierte datetime a string ISO para serialización JSON"""
    if value is None:
        return None
    return value.isoformat()


def format_colones(value) -> str:
    """
    Formatea un monto en colones al estilo es-CR.
    Sin decimales si el monto es entero, con 2 decimales si no lo es.

    Ejemplos: 17500 -> '₡17 500', 1234.565 -> '₡1 234,57'
    """
    amount = quantize(to_amount(value))
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    if amount == amount.to_integral_value():
        text = f"{amount:,.0f}"
    else:
        text = f"{amount:,.2f}"
    text = text.replace(",", GROUP_SEPARATOR).replace(".", ",")
    return f"{sign}{CURRENCY_SYMBOL}{text}"


def amount_to_str(value: Decimal) -> str:
    """Monto para CSV: '17500' si es entero, '2275.5' si no."""
    amount = to_amount(value)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount.normalize(), "f")
