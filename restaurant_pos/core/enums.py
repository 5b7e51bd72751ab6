from enum import Enum


class TableStatus(str, Enum):
    free = "free"
    occupied = "occupied"


class PaymentMethod(str, Enum):
    cash = "Efectivo"
    sinpe = "SINPE"
    card = "Tarjeta"


DEFAULT_PAYMENT = PaymentMethod.cash
