from __future__ import annotations

from sqlalchemy import Enum

from cellkom.core.enums import CustomerType, DocumentType, PaymentMethod, ServiceStatus
from cellkom.ledger.types import LedgerKind, LedgerStatus

customer_type_enum = Enum(CustomerType, name="customer_type")
payment_method_enum = Enum(PaymentMethod, name="payment_method")

service_status_enum = Enum(ServiceStatus, name="service_status")

installment_kind_enum = Enum(LedgerKind, name="installment_kind")
installment_status_enum = Enum(LedgerStatus, name="installment_status")

document_type_enum = Enum(DocumentType, name="document_type")
