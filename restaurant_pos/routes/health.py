from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from restaurant_pos.core.database import get_db
from restaurant_pos.core.errors import StoreUnavailable

router = APIRouter()


@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise StoreUnavailable(f"Base de datos no disponible: {e}")
    return {"status": "ok"}
