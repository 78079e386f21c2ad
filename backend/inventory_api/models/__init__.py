from .inventory import Product, Transaction
from .auth import User

__all__ = [
    'Product', 'Transaction',
    'User',
]
