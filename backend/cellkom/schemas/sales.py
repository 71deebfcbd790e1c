from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cellkom.core.enums import CustomerType, PaymentMethod
from cellkom.services.money import MAX_AMOUNT, MAX_QUANTITY


class SaleItemCreate(BaseModel):
    product_id: UUID
    quantity: int = Field(gt=0, le=MAX_QUANTITY)


class SaleCreate(BaseModel):
    customer_id: UUID | None = None
    customer_name: str | None = Field(default=None, max_length=200)
    customer_type: CustomerType = CustomerType.UMUM
    items: list[SaleItemCreate] = Field(min_length=1)
    discount: int = Field(default=0, ge=0, le=MAX_AMOUNT)
    payment_method: PaymentMethod
    payment_amount: int = Field(ge=0, le=MAX_AMOUNT)


class SaleItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID | None
    product_name: str
    quantity: int
    buy_price_at_sale: int
    sale_price_at_sale: int


class SaleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    transaction_number: str
    cashier: str
    customer_id: UUID | None
    customer_name: str
    customer_type: CustomerType
    subtotal: int
    discount: int
    total: int
    profit: int
    payment_method: PaymentMethod
    payment_amount: int
    change: int
    remaining_amount: int
    created_at: datetime
    items: list[SaleItemOut]
