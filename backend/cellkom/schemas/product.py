from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cellkom.services.money import MAX_AMOUNT, MAX_QUANTITY


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category: str = Field(default="Lainnya", min_length=1, max_length=100)
    description: str | None = None
    stock: int = Field(default=0, ge=0, le=MAX_QUANTITY)
    buy_price: int = Field(ge=0, le=MAX_AMOUNT)
    retail_price: int = Field(ge=0, le=MAX_AMOUNT)
    reseller_price: int = Field(ge=0, le=MAX_AMOUNT)
    barcode: str | None = Field(default=None, max_length=64)
    image_url: str | None = Field(default=None, max_length=500)
    entry_date: date | None = None
    supplier_id: UUID | None = None


class ProductUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category: str = Field(min_length=1, max_length=100)
    description: str | None = None
    buy_price: int = Field(ge=0, le=MAX_AMOUNT)
    retail_price: int = Field(ge=0, le=MAX_AMOUNT)
    reseller_price: int = Field(ge=0, le=MAX_AMOUNT)
    barcode: str | None = Field(default=None, max_length=64)
    image_url: str | None = Field(default=None, max_length=500)
    supplier_id: UUID | None = None


class ProductRestock(BaseModel):
    quantity: int = Field(gt=0, le=MAX_QUANTITY)


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    category: str
    description: str | None
    stock: int
    buy_price: int
    retail_price: int
    reseller_price: int
    barcode: str | None
    image_url: str | None
    entry_date: date
    supplier_id: UUID | None
    created_at: datetime
    updated_at: datetime
