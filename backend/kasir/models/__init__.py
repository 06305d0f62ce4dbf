from .enums import UserRole, ProductType, PaymentMethod, StockMovementType, CashDrawerEntryType
from .auth import User
from .inventory import Product, DigitalBalance, StockMovement
from .sales import Transaction, TransactionItem
from .registers import CashDrawerEntry

__all__ = [
    'UserRole', 'ProductType', 'PaymentMethod', 'StockMovementType', 'CashDrawerEntryType',
    'User',
    'Product', 'DigitalBalance', 'StockMovement',
    'Transaction', 'TransactionItem',
    'CashDrawerEntry',
]
