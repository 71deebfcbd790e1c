from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cellkom.ledger.entry import apply_payment, create_ledger_entry
from cellkom.ledger.exceptions import EntryNotFound, InvalidAmount
from cellkom.ledger.types import LedgerEntry, LedgerKind, LedgerStatus, NewLedgerEntry, Payment
from cellkom.models.customer import Customer
from cellkom.models.installment import Installment, InstallmentPayment
from cellkom.services.audit import audit_log


logger = logging.getLogger(__name__)


def _as_uuid(value: str | uuid.UUID) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(value)
    except ValueError as e:
        raise EntryNotFound(value) from e


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def to_ledger_entry(row: Installment) -> LedgerEntry:
    """Convert a persisted installment (with `payments` loaded) into the immutable ledger value."""
    return LedgerEntry(
        id=str(row.id),
        kind=row.kind,
        customer_name=row.customer_name,
        transaction_date=_aware(row.transaction_date),
        total_amount=row.total_amount,
        paid_amount=row.paid_amount,
        remaining_amount=row.remaining_amount,
        status=row.status,
        payment_history=tuple(Payment(date=_aware(p.paid_at), amount=p.amount) for p in row.payments),
        details=row.details,
    )


def _write_back(row: Installment, entry: LedgerEntry) -> None:
    row.paid_amount = entry.paid_amount
    row.remaining_amount = entry.remaining_amount
    row.status = entry.status


async def _load(session: AsyncSession, installment_id: uuid.UUID, *, for_update: bool = False) -> Installment | None:
    stmt = select(Installment).where(Installment.id == installment_id).options(selectinload(Installment.payments))
    if for_update:
        stmt = stmt.with_for_update()
    return (await session.execute(stmt)).scalar_one_or_none()


async def create_installment(
    session: AsyncSession,
    *,
    actor: str,
    data: NewLedgerEntry,
    customer_id: uuid.UUID | None = None,
    transaction_number: str | None = None,
) -> tuple[Installment, bool]:
    """
    Persist a new installment unless one with the same id exists.

    Returns `(row, created)`. The initial payment is always written as the first
    history row, also when it is 0.
    """
    installment_id = _as_uuid(data.id)
    existing = await _load(session, installment_id)
    if existing is not None:
        return existing, False

    entry = create_ledger_entry(data)
    row = Installment(
        id=installment_id,
        kind=entry.kind,
        customer_id=customer_id,
        customer_name=entry.customer_name,
        transaction_number=transaction_number,
        transaction_date=entry.transaction_date,
        total_amount=entry.total_amount,
        details=entry.details,
        payments=[],
    )
    _write_back(row, entry)
    first = entry.payment_history[0]
    row.payments.append(InstallmentPayment(seq=0, amount=first.amount, paid_at=first.date, received_by=actor))
    session.add(row)
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="installment",
        entity_id=row.id,
        action="create",
        after={
            "kind": row.kind,
            "customer_name": row.customer_name,
            "total_amount": row.total_amount,
            "paid_amount": row.paid_amount,
            "remaining_amount": row.remaining_amount,
            "status": row.status,
        },
    )
    logger.info(
        "Installment created",
        extra={"installment_id": str(row.id), "kind": row.kind.value, "remaining_amount": row.remaining_amount},
    )
    return row, True


async def create_manual_installment(
    session: AsyncSession,
    *,
    actor: str,
    customer_id: uuid.UUID,
    amount: int,
    description: str = "",
) -> Installment:
    if amount <= 0:
        raise InvalidAmount("total_amount", amount, "must be > 0")
    customer = await session.get(Customer, customer_id)
    if customer is None:
        raise ValueError("Customer not found")

    row, _ = await create_installment(
        session,
        actor=actor,
        data=NewLedgerEntry(
            id=str(uuid.uuid4()),
            kind=LedgerKind.MANUAL,
            customer_name=customer.name,
            transaction_date=datetime.now(timezone.utc),
            total_amount=amount,
            initial_payment=0,
            details=description.strip(),
        ),
        customer_id=customer.id,
    )
    return row


async def add_installment_payment(
    session: AsyncSession,
    *,
    actor: str,
    installment_id: str | uuid.UUID,
    amount: int,
    allow_overpayment: bool = True,
) -> Installment:
    """
    Apply one payment to an installment.

    The row is locked for the whole read-modify-write, so two cashiers paying the
    same debt concurrently serialize instead of losing a payment. The balance
    update and the history row are flushed together; the caller's transaction
    makes them atomic.

    Raises:
        EntryNotFound: unknown installment id.
        InvalidAmount: amount <= 0, or above the remaining balance when
            `allow_overpayment` is False.
    """
    row = await _load(session, _as_uuid(installment_id), for_update=True)
    if row is None:
        raise EntryNotFound(str(installment_id))

    current = to_ledger_entry(row)
    if not allow_overpayment and amount > current.remaining_amount:
        raise InvalidAmount(
            "payment_amount",
            amount,
            f"exceeds remaining amount {current.remaining_amount}",
            details={"entry_id": current.id, "remaining_amount": current.remaining_amount},
        )
    updated = apply_payment(current, amount)

    before = {"paid_amount": row.paid_amount, "remaining_amount": row.remaining_amount, "status": row.status}
    _write_back(row, updated)
    paid_at = updated.payment_history[-1].date
    row.payments.append(
        InstallmentPayment(seq=len(row.payments), amount=amount, paid_at=paid_at, received_by=actor)
    )
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="installment",
        entity_id=row.id,
        action="payment",
        before=before,
        after={
            "amount": amount,
            "paid_amount": row.paid_amount,
            "remaining_amount": row.remaining_amount,
            "status": row.status,
        },
    )
    if updated.is_settled and not current.is_settled:
        logger.info("Installment settled", extra={"installment_id": str(row.id)})
    if updated.overpaid_amount:
        logger.warning(
            "Installment overpaid by %s",
            updated.overpaid_amount,
            extra={"installment_id": str(row.id)},
        )
    return row


async def get_installment(session: AsyncSession, installment_id: str | uuid.UUID) -> Installment:
    row = await _load(session, _as_uuid(installment_id))
    if row is None:
        raise EntryNotFound(str(installment_id))
    return row


async def list_installments(
    session: AsyncSession,
    *,
    status: LedgerStatus | None = None,
    customer_id: uuid.UUID | None = None,
) -> list[Installment]:
    stmt = select(Installment).options(selectinload(Installment.payments))
    if status is not None:
        stmt = stmt.where(Installment.status == status)
    if customer_id is not None:
        stmt = stmt.where(Installment.customer_id == customer_id)
    stmt = stmt.order_by(Installment.transaction_date.desc())
    return list((await session.execute(stmt)).scalars().all())


async def get_payment_history(session: AsyncSession, installment_id: str | uuid.UUID) -> list[InstallmentPayment]:
    row = await get_installment(session, installment_id)
    return list(row.payments)
