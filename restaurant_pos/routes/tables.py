from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from restaurant_pos.core.billing import tax_share
from restaurant_pos.core.database import get_db
from restaurant_pos.core.deps import get_feeds, get_id_generator, require_confirmation
from restaurant_pos.core.enums import PaymentMethod
from restaurant_pos.core.feeds import FeedHub
from restaurant_pos.core.id_service import IdGenerator
from restaurant_pos.core.serialization_helpers import format_colones
from restaurant_pos.routes.sales import SaleOut
from restaurant_pos.services import table_service


router = APIRouter()


class LineItemOut(BaseModel):
    menu_item_id: str
    name: str
    category: str
    price: float
    instance_id: str


class TableCreate(BaseModel):
    name: Optional[str] = None


class TableOut(BaseModel):
    id: str
    name: str
    status: str
    items: List[LineItemOut]
    payment: str
    created_at: datetime | None = None
    last_updated_at: datetime | None = None

    class Config:
        from_attributes = True


class AddItemIn(BaseModel):
    menu_item_id: str
    # Precio ya resuelto por la UI para items de precio variable
    price: Optional[Decimal] = None


class RemoveOneIn(BaseModel):
    menu_item_id: str
    price: Decimal


class PaymentIn(BaseModel):
    method: PaymentMethod


class CartGroupOut(BaseModel):
    menu_item_id: str
    name: str
    category: str
    price: float
    qty: int
    instance_ids: List[str]
    line_total: float

    class Config:
        from_attributes = True


class CartOut(BaseModel):
    table: TableOut
    groups: List[CartGroupOut]
    subtotal: float
    tax: float
    total: float
    tax_share_pct: float
    formatted: dict


@router.get("/", response_model=List[TableOut])
def list_tables(db: Session = Depends(get_db)):
    return table_service.list_tables(db)


@router.post("/", response_model=TableOut)
def create_table(
    data: TableCreate,
    db: Session = Depends(get_db),
    ids: IdGenerator = Depends(get_id_generator),
    feeds: FeedHub = Depends(get_feeds),
):
    return table_service.create_table(db, data.name, ids=ids, feeds=feeds)


@router.get("/{table_id}", response_model=TableOut)
def get_table(table_id: str, db: Session = Depends(get_db)):
    return table_service.get_table(db, table_id)


@router.delete("/{table_id}", dependencies=[Depends(require_confirmation)])
def delete_table(
    table_id: str,
    db: Session = Depends(get_db),
    feeds: FeedHub = Depends(get_feeds),
):
    table_service.delete_table(db, table_id, feeds=feeds)
    return {"deleted": True, "id": table_id}


@router.get("/{table_id}/cart", response_model=CartOut)
def get_cart(table_id: str, db: Session = Depends(get_db)):
    """Items agrupados por (producto, precio) y totales recalculados en cada lectura."""
    cart = table_service.get_cart(db, table_id)
    totals = cart["totals"]
    return CartOut(
        table=TableOut.model_validate(cart["table"]),
        groups=[CartGroupOut.model_validate(g) for g in cart["groups"]],
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
        tax_share_pct=tax_share(totals),
        formatted={
            "subtotal": format_colones(totals.subtotal),
            "tax": format_colones(totals.tax),
            "total": format_colones(totals.total),
        },
    )


@router.post("/{table_id}/items", response_model=TableOut)
def add_item(
    table_id: str,
    data: AddItemIn,
    db: Session = Depends(get_db),
    ids: IdGenerator = Depends(get_id_generator),
    feeds: FeedHub = Depends(get_feeds),
):
    return table_service.add_item(
        db, table_id, data.menu_item_id, override_price=data.price, ids=ids, feeds=feeds
    )


@router.delete("/{table_id}/items/{instance_id}", response_model=TableOut)
def remove_item(
    table_id: str,
    instance_id: str,
    db: Session = Depends(get_db),
    feeds: FeedHub = Depends(get_feeds),
):
    return table_service.remove_item(db, table_id, instance_id, feeds=feeds)


@router.post("/{table_id}/cart/remove-one", response_model=TableOut)
def remove_one(
    table_id: str,
    data: RemoveOneIn,
    db: Session = Depends(get_db),
    feeds: FeedHub = Depends(get_feeds),
):
    return table_service.remove_one_from_group(db, table_id, data.menu_item_id, data.price, feeds=feeds)


@router.put("/{table_id}/payment", response_model=TableOut)
def set_payment(
    table_id: str,
    data: PaymentIn,
    db: Session = Depends(get_db),
    feeds: FeedHub = Depends(get_feeds),
):
    return table_service.set_payment_method(db, table_id, data.method, feeds=feeds)


@router.post("/{table_id}/close", response_model=SaleOut, dependencies=[Depends(require_confirmation)])
def close_order(
    table_id: str,
    db: Session = Depends(get_db),
    ids: IdGenerator = Depends(get_id_generator),
    feeds: FeedHub = Depends(get_feeds),
):
    return table_service.close_order(db, table_id, ids=ids, feeds=feeds)
