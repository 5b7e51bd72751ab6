from .base import Base
from .menu_item import MenuItem
from .dining_table import DiningTable
from .sale_record import SaleRecord

__all__ = ["Base", "MenuItem", "DiningTable", "SaleRecord"]
