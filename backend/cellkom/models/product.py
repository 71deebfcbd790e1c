from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import BigInteger, CheckConstraint, Date, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from cellkom.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock >= 0", name="stock_non_negative"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="Lainnya")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Prices in whole Rupiah.
    buy_price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    retail_price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    reseller_price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    barcode: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)

    supplier_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("suppliers.id"), nullable=True
    )
