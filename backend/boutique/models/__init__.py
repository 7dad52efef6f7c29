from .catalog import Shop, StockGroup, ColorVariant, SizeQuantity, WholesaleTier
from .customers import Customer
from .sales import Transaction, TransactionItem, Refund, RefundItem, TransactionSequence, SavedCart
from .expenses import Expense, ExpenseCategory, SpendingMenu
from .settings import BusinessSettings

__all__ = [
    'Shop', 'StockGroup', 'ColorVariant', 'SizeQuantity', 'WholesaleTier',
    'Customer',
    'Transaction', 'TransactionItem', 'Refund', 'RefundItem', 'TransactionSequence', 'SavedCart',
    'Expense', 'ExpenseCategory', 'SpendingMenu',
    'BusinessSettings',
]
