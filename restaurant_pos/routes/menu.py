from io import BytesIO
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from restaurant_pos.core.database import get_db
from restaurant_pos.core.deps import get_feeds
from restaurant_pos.core.feeds import FeedHub
from restaurant_pos.services import menu_service


router = APIRouter()


class MenuItemOut(BaseModel):
    id: str
    name: str
    category: str
    price: float

    class Config:
        from_attributes = True


class MenuImportResult(BaseModel):
    success: bool
    imported: int


@router.get("/", response_model=List[MenuItemOut])
def list_menu(
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return menu_service.list_menu(db, search=q, category=category)


@router.get("/categories", response_model=List[str])
def list_categories(db: Session = Depends(get_db)):
    return menu_service.list_categories(db)


@router.post("/import", response_model=MenuImportResult)
async def import_menu(
    file: UploadFile = File(...),
    confirm: bool = Form(False),
    db: Session = Depends(get_db),
    feeds: FeedHub = Depends(get_feeds),
):
    """
    Reemplaza el menú completo con un CSV `id;nombre;categoria;precio`.
    Es destructivo: requiere confirm=true.
    """
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="El archivo debe ser CSV (.csv)")

    contents = await file.read()
    try:
        text = contents.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="El archivo debe estar en UTF-8")

    # Validar antes de pedir confirmación para informar cuántos items se importarían
    items = menu_service.parse_menu_csv(text)
    if not confirm:
        raise HTTPException(
            status_code=400,
            detail=f"¿Reemplazar menú con {len(items)} items? Reenviar con confirm=true",
        )

    imported = menu_service.replace_menu(db, items, feeds=feeds)
    return MenuImportResult(success=True, imported=imported)


@router.get("/export")
def export_menu(db: Session = Depends(get_db)):
    """Export the menu in the same CSV format used by the import"""
    output = BytesIO(menu_service.export_menu_csv(db).encode("utf-8"))
    return StreamingResponse(
        output,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=menu.csv"},
    )
