from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import BigInteger, Date, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cellkom.core.enums import ServiceStatus
from cellkom.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from cellkom.models.customer import Customer
from cellkom.models.sql_enums import service_status_enum


class ServiceEntry(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "service_entries"

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    received_by: Mapped[str] = mapped_column(String(200), nullable=False)

    customer_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False)

    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    device_type: Mapped[str | None] = mapped_column(String(200), nullable=True)
    damage_type: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    equipment_received: Mapped[str | None] = mapped_column(Text, nullable=True)
    technician: Mapped[str | None] = mapped_column(String(200), nullable=True)

    status: Mapped[ServiceStatus] = mapped_column(service_status_enum, nullable=False, default=ServiceStatus.PENDING)

    # Free-text progress note shown to the customer on the tracking page.
    service_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    info_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    customer: Mapped[Customer] = relationship(lazy="joined", innerjoin=True)
    transaction: Mapped[Optional["ServiceTransaction"]] = relationship(back_populates="entry", uselist=False)


class ServiceTransaction(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "service_transactions"

    transaction_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    service_entry_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("service_entries.id"), nullable=False, unique=True
    )
    cashier: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    service_fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    parts_total: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payment_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    change: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    remaining_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    entry: Mapped[ServiceEntry] = relationship(back_populates="transaction")
    parts: Mapped[list["ServiceTransactionPart"]] = relationship(
        back_populates="transaction", cascade="all, delete-orphan"
    )


class ServiceTransactionPart(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "service_transaction_parts"

    transaction_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("service_transactions.id"), nullable=False
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    buy_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    retail_price: Mapped[int] = mapped_column(BigInteger, nullable=False)

    transaction: Mapped[ServiceTransaction] = relationship(back_populates="parts")

    @property
    def line_total(self) -> int:
        return self.retail_price * self.quantity
