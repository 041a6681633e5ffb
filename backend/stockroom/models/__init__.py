from .catalog import Location, Supplier, Product
from .inventory import InventoryTransaction, StockAlert
from .sales import Sale, Invoice
from .auth import User, SessionToken

__all__ = [
    'Location', 'Supplier', 'Product',
    'InventoryTransaction', 'StockAlert',
    'Sale', 'Invoice',
    'User', 'SessionToken',
]
