from src.extensions import db

# Import all models so migrations can detect them
from medicines.medicine import Medicine
from stock_transactions.stock_transaction import StockTransaction, StockDirection
from patients.patient import Patient
from sales.sales_transaction import SalesTransaction, SalesTransactionItem, PaymentMethod, TransactionStatus
from settings.setting import Setting


__all__ = [
    "db",
    "Medicine",
    "StockTransaction",
    "StockDirection",
    "Patient",
    "SalesTransaction",
    "SalesTransactionItem",
    "PaymentMethod",
    "TransactionStatus",
    "Setting",
]
