from .catalog import Category, Product
from .sales import Sale, SaleItem
from .inventory import InventoryProduct

__all__ = [
    'Category', 'Product',
    'Sale', 'SaleItem',
    'InventoryProduct',
]
