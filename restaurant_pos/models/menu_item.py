from sqlalchemy import Column, Integer, String, Numeric, DateTime

from restaurant_pos.models.base import Base, utcnow


class MenuItem(Base):
    __tablename__ = "menu"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(100), nullable=False, index=True)  # Código del CSV
    name = Column(String(255), nullable=False, default="")
    category = Column(String(100), nullable=False, default="", index=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)  # 0 = precio variable
    created_at = Column(DateTime, nullable=False, default=utcnow)
