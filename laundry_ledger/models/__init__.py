from laundry_ledger.models.audit_log import AuditLog
from laundry_ledger.models.bill import Bill
from laundry_ledger.models.client import Client
from laundry_ledger.models.order import Order
from laundry_ledger.models.payment import Payment
from laundry_ledger.models.product import Product
from laundry_ledger.models.transaction import Transaction
from laundry_ledger.models.user import Role, User

__all__ = [
    "AuditLog",
    "Bill",
    "Client",
    "Order",
    "Payment",
    "Product",
    "Role",
    "Transaction",
    "User",
]
