from sqlalchemy.orm import Session

from restaurant_pos.services import menu_service, table_service
from restaurant_pos.models.dining_table import DiningTable


def seed_demo(db: Session):
    menu_service.seed_menu(db)
    if db.query(DiningTable).first():
        return
    for name in ("Mesa 1", "Mesa 2", "Barra"):
        table_service.create_table(db, name)
