from datetime import date, datetime
from io import BytesIO
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from restaurant_pos.core.database import get_db
from restaurant_pos.services import sales_service


router = APIRouter()


class SaleItemOut(BaseModel):
    menu_item_id: str
    name: str
    category: str
    price: float
    instance_id: str


class SaleOut(BaseModel):
    id: str
    timestamp: datetime
    table_id: str
    table_name: str
    items: List[SaleItemOut]
    subtotal: float
    card_tax: float
    total: float
    payment_method: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.get("/", response_model=List[SaleOut])
def list_sales(
    limit: Optional[int] = Query(None, ge=1),
    full: bool = Query(False, alias="all"),
    db: Session = Depends(get_db),
):
    """
    Historial de ventas, más recientes primero.
    Por defecto devuelve la ventana reciente (settings.recent_sales_limit);
    all=true devuelve el historial completo.
    """
    if full:
        return sales_service.list_sales(db, limit=limit)
    return sales_service.recent_sales(db, limit=limit)


@router.get("/summary")
def sales_summary(day: Optional[date] = Query(None), db: Session = Depends(get_db)):
    return sales_service.daily_summary(db, day)


@router.get("/export")
def export_sales(today: bool = Query(False), db: Session = Depends(get_db)):
    """Export closed sales as `;`-separated CSV (all history or today only)"""
    csv_text = sales_service.export_sales_csv(db, only_today=today)
    filename = f"ventas_{'hoy' if today else 'historial'}.csv"
    return StreamingResponse(
        BytesIO(csv_text.encode("utf-8")),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
