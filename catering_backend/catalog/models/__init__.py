# catalog/models/__init__.py

from .customer import Customer
from .menu_item import MenuItem

__all__ = ["Customer", "MenuItem"]
