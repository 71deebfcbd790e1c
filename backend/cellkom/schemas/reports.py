from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from cellkom.ledger.types import LedgerKind


class DateRangeParams(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_order(self) -> "DateRangeParams":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SalesReportItemOut(BaseModel):
    product_name: str
    quantity: int
    sale_price_at_sale: int
    buy_price_at_sale: int
    profit: int


class SalesReportRowOut(BaseModel):
    id: UUID
    created_at: datetime
    transaction_number: str
    customer_name: str
    total: int
    discount: int
    total_profit: int
    items: list[SalesReportItemOut]


class SalesReportOut(BaseModel):
    start_date: date
    end_date: date
    transaction_count: int
    revenue: int
    profit: int
    rows: list[SalesReportRowOut]


class ServiceReportRowOut(BaseModel):
    id: UUID
    created_at: datetime
    transaction_number: str
    customer_name: str
    device_type: str | None
    service_fee: int
    parts_total: int
    total: int
    remaining_amount: int


class ServiceReportOut(BaseModel):
    start_date: date
    end_date: date
    transaction_count: int
    revenue: int
    service_fees: int
    rows: list[ServiceReportRowOut]


class InstallmentReportRowOut(BaseModel):
    id: str
    kind: LedgerKind
    customer_name: str
    transaction_date: datetime
    total_amount: int
    paid_amount: int
    remaining_amount: int
    payment_count: int


class InstallmentReportOut(BaseModel):
    open_count: int
    outstanding_amount: int
    rows: list[InstallmentReportRowOut]


class TodayReportOut(BaseModel):
    day: date
    sales_count: int
    sales_revenue: int
    sales_profit: int
    service_count: int
    service_revenue: int
    installment_payments_count: int
    installment_payments_amount: int
    new_service_entries: int = Field(ge=0)
