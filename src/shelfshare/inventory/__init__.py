"""Book inventory module.

Provides functionality for:
- Cataloguing books by ISBN
- Moving books between members
- Recording requests for a book
"""

from .manager import InventoryManager
from .models import InventoryBook

__all__ = ["InventoryManager", "InventoryBook"]
