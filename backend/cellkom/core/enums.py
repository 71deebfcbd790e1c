from __future__ import annotations

from enum import StrEnum


class CustomerType(StrEnum):
    UMUM = "UMUM"
    RESELLER = "RESELLER"


class PaymentMethod(StrEnum):
    CASH = "CASH"
    INSTALLMENT = "INSTALLMENT"


class ServiceStatus(StrEnum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    PICKED_UP = "PICKED_UP"


class DocumentType(StrEnum):
    SALES_TRANSACTION = "SALES_TRANSACTION"
    SERVICE_TRANSACTION = "SERVICE_TRANSACTION"
