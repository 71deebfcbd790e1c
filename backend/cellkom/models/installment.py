from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cellkom.ledger.types import LedgerKind, LedgerStatus
from cellkom.models.base import Base, TimestampMixin
from cellkom.models.sql_enums import installment_kind_enum, installment_status_enum


class Installment(TimestampMixin, Base):
    __tablename__ = "installments"

    # Same id as the originating sale/service transaction; random for manual entries.
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    kind: Mapped[LedgerKind] = mapped_column(installment_kind_enum, nullable=False)

    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True
    )
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    transaction_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    total_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    paid_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    remaining_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[LedgerStatus] = mapped_column(installment_status_enum, nullable=False, index=True)

    details: Mapped[str] = mapped_column(Text, nullable=False, default="")

    payments: Mapped[list["InstallmentPayment"]] = relationship(
        back_populates="installment",
        cascade="all, delete-orphan",
        order_by="InstallmentPayment.seq.asc()",
    )


class InstallmentPayment(Base):
    __tablename__ = "installment_payments"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    installment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("installments.id"), nullable=False, index=True
    )
    # Position in the payment history; timestamps alone can tie.
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    received_by: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    installment: Mapped[Installment] = relationship(back_populates="payments")
