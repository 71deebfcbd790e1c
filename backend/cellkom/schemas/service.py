from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cellkom.core.enums import ServiceStatus
from cellkom.services.money import MAX_AMOUNT, MAX_QUANTITY


class ServiceEntryCreate(BaseModel):
    customer_id: UUID
    entry_date: date | None = None
    category: str | None = Field(default=None, max_length=100)
    device_type: str | None = Field(default=None, max_length=200)
    damage_type: str | None = Field(default=None, max_length=200)
    description: str | None = None
    equipment_received: str | None = None
    technician: str | None = Field(default=None, max_length=200)


class ServiceEntryUpdate(BaseModel):
    category: str | None = Field(default=None, max_length=100)
    device_type: str | None = Field(default=None, max_length=200)
    damage_type: str | None = Field(default=None, max_length=200)
    description: str | None = None
    equipment_received: str | None = None
    technician: str | None = Field(default=None, max_length=200)
    service_info: str | None = None
    info_date: date | None = None


class ServiceStatusChange(BaseModel):
    status: ServiceStatus
    service_info: str | None = None


class ServiceEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entry_date: date
    received_by: str
    customer_id: UUID
    category: str | None
    device_type: str | None
    damage_type: str | None
    description: str | None
    equipment_received: str | None
    technician: str | None
    status: ServiceStatus
    service_info: str | None
    info_date: date | None
    created_at: datetime
    updated_at: datetime


class ServiceStatusPublicOut(BaseModel):
    id: UUID
    entry_date: date
    created_at: datetime
    customer_name: str
    category: str | None
    device_type: str | None
    damage_type: str | None
    description: str | None
    status: ServiceStatus
    service_info: str | None
    info_date: date | None


class UsedPartCreate(BaseModel):
    product_id: UUID
    quantity: int = Field(gt=0, le=MAX_QUANTITY)


class ServiceTransactionCreate(BaseModel):
    used_parts: list[UsedPartCreate] = Field(default_factory=list)
    service_fee: int = Field(ge=0, le=MAX_AMOUNT)
    payment_amount: int = Field(ge=0, le=MAX_AMOUNT)
    description: str | None = None


class ServicePartOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID | None
    product_name: str
    quantity: int
    buy_price: int
    retail_price: int


class ServiceTransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    transaction_number: str
    service_entry_id: UUID
    cashier: str
    customer_name: str
    description: str | None
    service_fee: int
    parts_total: int
    total: int
    payment_amount: int
    change: int
    remaining_amount: int
    created_at: datetime
    parts: list[ServicePartOut]
