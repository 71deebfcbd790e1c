from cellkom.models.audit_log import AuditLog
from cellkom.models.customer import Customer
from cellkom.models.document_counter import DocumentCounter
from cellkom.models.installment import Installment, InstallmentPayment
from cellkom.models.product import Product
from cellkom.models.sales import SalesTransaction, SalesTransactionItem
from cellkom.models.service import ServiceEntry, ServiceTransaction, ServiceTransactionPart
from cellkom.models.supplier import Supplier

__all__ = [
    "AuditLog",
    "Customer",
    "DocumentCounter",
    "Installment",
    "InstallmentPayment",
    "Product",
    "SalesTransaction",
    "SalesTransactionItem",
    "ServiceEntry",
    "ServiceTransaction",
    "ServiceTransactionPart",
    "Supplier",
]
