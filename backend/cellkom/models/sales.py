from __future__ import annotations

import uuid

from sqlalchemy import BigInteger, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cellkom.core.enums import CustomerType, PaymentMethod
from cellkom.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from cellkom.models.sql_enums import customer_type_enum, payment_method_enum


class SalesTransaction(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "sales_transactions"

    transaction_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    cashier: Mapped[str] = mapped_column(String(200), nullable=False)

    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True
    )
    # Snapshot; the customer row may be renamed or deleted later.
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_type: Mapped[CustomerType] = mapped_column(customer_type_enum, nullable=False)

    subtotal: Mapped[int] = mapped_column(BigInteger, nullable=False)
    discount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total: Mapped[int] = mapped_column(BigInteger, nullable=False)
    profit: Mapped[int] = mapped_column(BigInteger, nullable=False)

    payment_method: Mapped[PaymentMethod] = mapped_column(payment_method_enum, nullable=False)
    payment_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    change: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    remaining_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    items: Mapped[list["SalesTransactionItem"]] = relationship(
        back_populates="transaction", cascade="all, delete-orphan"
    )


class SalesTransactionItem(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "sales_transaction_items"

    transaction_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("sales_transactions.id"), nullable=False
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    buy_price_at_sale: Mapped[int] = mapped_column(BigInteger, nullable=False)
    sale_price_at_sale: Mapped[int] = mapped_column(BigInteger, nullable=False)

    transaction: Mapped[SalesTransaction] = relationship(back_populates="items")

    @property
    def line_total(self) -> int:
        return self.sale_price_at_sale * self.quantity

    @property
    def profit(self) -> int:
        return (self.sale_price_at_sale - self.buy_price_at_sale) * self.quantity
