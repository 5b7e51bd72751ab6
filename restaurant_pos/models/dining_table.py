from sqlalchemy import Column, Integer, String, DateTime, JSON

from restaurant_pos.core.enums import TableStatus, DEFAULT_PAYMENT
from restaurant_pos.models.base import Base, utcnow


class DiningTable(Base):
    __tablename__ = "tables"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=TableStatus.free.value, index=True)
    items = Column(JSON, nullable=False, default=list)  # Lista de LineItem (dicts)
    payment = Column(String(20), nullable=False, default=DEFAULT_PAYMENT.value)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    last_updated_at = Column(DateTime, nullable=True)
    # Se incrementa en cada escritura; el cierre de cuenta lo usa como compare-and-swap
    version = Column(Integer, nullable=False, default=1)
