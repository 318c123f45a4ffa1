from .auth import User, SessionToken
from .materials import Material
from .production import ProductionBatch, ProductionItem
from .warungs import Warung, Transaction
from .expenses import Expense

__all__ = [
    'User', 'SessionToken',
    'Material',
    'ProductionBatch', 'ProductionItem',
    'Warung', 'Transaction',
    'Expense',
]
