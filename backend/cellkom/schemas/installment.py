from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cellkom.ledger.types import LedgerKind, LedgerStatus
from cellkom.services.money import MAX_AMOUNT


class ManualInstallmentCreate(BaseModel):
    customer_id: UUID
    amount: int = Field(gt=0, le=MAX_AMOUNT)
    description: str = Field(default="", max_length=2000)


class InstallmentPaymentCreate(BaseModel):
    # Non-positive amounts are rejected by the ledger with INVALID_AMOUNT, not by schema validation.
    amount: int = Field(le=MAX_AMOUNT)


class InstallmentPaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    seq: int
    amount: int
    paid_at: datetime
    received_by: str


class InstallmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: LedgerKind
    customer_id: UUID | None
    customer_name: str
    transaction_number: str | None
    transaction_date: datetime
    total_amount: int
    paid_amount: int
    remaining_amount: int
    status: LedgerStatus
    details: str
    created_at: datetime
    updated_at: datetime


class InstallmentDetailOut(InstallmentOut):
    payments: list[InstallmentPaymentOut]
