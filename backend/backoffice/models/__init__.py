from .catalog import Customer, Product
from .sales import Sale, SaleLine, Installment
from .cash import CashEntry
from .auth import SessionToken

__all__ = [
    'Customer', 'Product',
    'Sale', 'SaleLine', 'Installment',
    'CashEntry',
    'SessionToken',
]
