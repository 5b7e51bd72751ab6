from sqlalchemy import Column, String, Numeric, DateTime, JSON

from restaurant_pos.models.base import Base, utcnow


class SaleRecord(Base):
    __tablename__ = "sales"

    id = Column(String(64), primary_key=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    table_id = Column(String(64), nullable=False, index=True)  # Sin FK: la mesa puede borrarse después
    table_name = Column(String(255), nullable=False)
    items = Column(JSON, nullable=False, default=list)  # Snapshot de los items cobrados
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    card_tax = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    payment_method = Column(String(20), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
