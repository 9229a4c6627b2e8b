from .inventory import InventoryItem, Issuance
from .orders import Order
from .auth import User, SessionToken
from .suppliers import Supplier, Purchase

__all__ = [
    'InventoryItem', 'Issuance',
    'Order',
    'User', 'SessionToken',
    'Supplier', 'Purchase',
]
