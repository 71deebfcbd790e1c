from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cellkom.core.config import get_settings
from cellkom.core.enums import DocumentType, ServiceStatus
from cellkom.ledger.types import LedgerKind, NewLedgerEntry
from cellkom.models.customer import Customer
from cellkom.models.service import ServiceEntry, ServiceTransaction, ServiceTransactionPart
from cellkom.schemas.service import ServiceEntryCreate, ServiceEntryUpdate, ServiceTransactionCreate
from cellkom.services.audit import audit_log, snapshot
from cellkom.services.documents import next_document_number
from cellkom.services.installments import create_installment
from cellkom.services.money import clamp_non_negative
from cellkom.services.products import decrement_stock, lock_products, require_quantities


logger = logging.getLogger(__name__)

_FIELDS = (
    "customer_id",
    "category",
    "device_type",
    "damage_type",
    "description",
    "equipment_received",
    "technician",
    "status",
    "service_info",
    "info_date",
)

ALLOWED_TRANSITIONS: dict[ServiceStatus, frozenset[ServiceStatus]] = {
    ServiceStatus.PENDING: frozenset({ServiceStatus.IN_PROGRESS, ServiceStatus.CANCELLED}),
    ServiceStatus.IN_PROGRESS: frozenset({ServiceStatus.COMPLETED, ServiceStatus.CANCELLED}),
    ServiceStatus.COMPLETED: frozenset({ServiceStatus.PICKED_UP}),
    ServiceStatus.CANCELLED: frozenset({ServiceStatus.PICKED_UP}),
    ServiceStatus.PICKED_UP: frozenset(),
}


def can_transition(current: ServiceStatus, new: ServiceStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


async def get_service_entry(session: AsyncSession, entry_id: uuid.UUID) -> ServiceEntry:
    entry = await session.get(ServiceEntry, entry_id)
    if entry is None:
        raise ValueError("Service entry not found")
    return entry


async def list_service_entries(
    session: AsyncSession,
    *,
    status: ServiceStatus | None = None,
    customer_id: uuid.UUID | None = None,
) -> list[ServiceEntry]:
    stmt = select(ServiceEntry)
    if status is not None:
        stmt = stmt.where(ServiceEntry.status == status)
    if customer_id is not None:
        stmt = stmt.where(ServiceEntry.customer_id == customer_id)
    stmt = stmt.order_by(ServiceEntry.entry_date.desc(), ServiceEntry.created_at.desc())
    return list((await session.execute(stmt)).scalars().all())


async def list_in_progress(session: AsyncSession) -> list[ServiceEntry]:
    return await list_service_entries(session, status=ServiceStatus.IN_PROGRESS)


async def create_service_entry(session: AsyncSession, *, actor: str, data: ServiceEntryCreate) -> ServiceEntry:
    customer = await session.get(Customer, data.customer_id)
    if customer is None:
        raise ValueError("Customer not found")

    entry = ServiceEntry(
        entry_date=data.entry_date or date.today(),
        received_by=actor,
        customer=customer,
        category=data.category,
        device_type=data.device_type,
        damage_type=data.damage_type,
        description=data.description,
        equipment_received=data.equipment_received,
        technician=data.technician,
        status=ServiceStatus.PENDING,
    )
    session.add(entry)
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="service_entry",
        entity_id=entry.id,
        action="create",
        after=snapshot(entry, _FIELDS),
    )
    return entry


async def update_service_entry(
    session: AsyncSession, *, actor: str, entry_id: uuid.UUID, data: ServiceEntryUpdate
) -> ServiceEntry:
    entry = await get_service_entry(session, entry_id)
    before = snapshot(entry, _FIELDS)

    entry.category = data.category
    entry.device_type = data.device_type
    entry.damage_type = data.damage_type
    entry.description = data.description
    entry.equipment_received = data.equipment_received
    entry.technician = data.technician
    if data.service_info != entry.service_info:
        entry.service_info = data.service_info
        entry.info_date = data.info_date or date.today()
    elif data.info_date is not None:
        entry.info_date = data.info_date
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="service_entry",
        entity_id=entry.id,
        action="update",
        before=before,
        after=snapshot(entry, _FIELDS),
    )
    return entry


async def change_service_status(
    session: AsyncSession,
    *,
    actor: str,
    entry_id: uuid.UUID,
    new_status: ServiceStatus,
    service_info: str | None = None,
) -> ServiceEntry:
    entry = await get_service_entry(session, entry_id)
    if entry.status == new_status:
        return entry
    if not can_transition(entry.status, new_status):
        raise ValueError(f"Invalid status transition: {entry.status} -> {new_status}")

    before = {"status": entry.status, "service_info": entry.service_info}
    entry.status = new_status
    if service_info is not None:
        entry.service_info = service_info
        entry.info_date = date.today()
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="service_entry",
        entity_id=entry.id,
        action="status_change",
        before=before,
        after={"status": entry.status, "service_info": entry.service_info},
    )
    return entry


async def delete_service_entry(session: AsyncSession, *, actor: str, entry_id: uuid.UUID) -> None:
    entry = await get_service_entry(session, entry_id)
    has_transaction = (
        await session.execute(select(ServiceTransaction.id).where(ServiceTransaction.service_entry_id == entry.id))
    ).first()
    if has_transaction is not None:
        raise ValueError("Service entry has a service transaction and cannot be deleted")

    before = snapshot(entry, _FIELDS)
    await session.delete(entry)
    await session.flush()
    await audit_log(
        session, actor=actor, entity_type="service_entry", entity_id=entry_id, action="delete", before=before
    )


async def get_public_status(session: AsyncSession, entry_id: uuid.UUID) -> ServiceEntry | None:
    """Entry with its customer loaded, for the unauthenticated tracking page."""
    return (
        await session.execute(select(ServiceEntry).where(ServiceEntry.id == entry_id))
    ).unique().scalar_one_or_none()


async def create_service_transaction(
    session: AsyncSession,
    *,
    actor: str,
    entry_id: uuid.UUID,
    data: ServiceTransactionCreate,
) -> ServiceTransaction:
    """
    Bill a service entry: parts at retail price plus the service fee.

    The entry must be IN_PROGRESS or COMPLETED. Decrements part stock, marks
    the entry COMPLETED and, when the payment does not cover the total, opens a
    SERVICE installment under the transaction id.
    """
    settings = get_settings()
    entry = (
        await session.execute(select(ServiceEntry).where(ServiceEntry.id == entry_id).with_for_update(of=ServiceEntry))
    ).unique().scalar_one_or_none()
    if entry is None:
        raise ValueError("Service entry not found")
    # Only IN_PROGRESS entries (or COMPLETED ones without a bill) can be billed.
    if entry.status != ServiceStatus.COMPLETED and not can_transition(entry.status, ServiceStatus.COMPLETED):
        raise ValueError(f"Invalid status transition: {entry.status} -> {ServiceStatus.COMPLETED}")
    existing = (
        await session.execute(select(ServiceTransaction.id).where(ServiceTransaction.service_entry_id == entry.id))
    ).first()
    if existing is not None:
        raise ValueError("Service entry already has a service transaction")

    products = await lock_products(session, [p.product_id for p in data.used_parts])
    quantities = require_quantities(products, [(p.product_id, p.quantity) for p in data.used_parts])

    parts_total = sum(products[p.product_id].retail_price * p.quantity for p in data.used_parts)
    total = parts_total + data.service_fee

    now = datetime.now(timezone.utc)
    number = await next_document_number(session, doc_type=DocumentType.SERVICE_TRANSACTION, issue_date=now.date())

    trx = ServiceTransaction(
        id=uuid.uuid4(),
        transaction_number=number,
        service_entry_id=entry.id,
        cashier=actor,
        customer_name=entry.customer.name,
        description=data.description,
        service_fee=data.service_fee,
        parts_total=parts_total,
        total=total,
        payment_amount=data.payment_amount,
        change=clamp_non_negative(data.payment_amount - total),
        remaining_amount=clamp_non_negative(total - data.payment_amount),
    )
    for part in data.used_parts:
        product = products[part.product_id]
        trx.parts.append(
            ServiceTransactionPart(
                product_id=product.id,
                product_name=product.name,
                quantity=part.quantity,
                buy_price=product.buy_price,
                retail_price=product.retail_price,
            )
        )
    session.add(trx)
    await session.flush()

    await decrement_stock(
        session,
        actor=actor,
        products=products,
        quantities=quantities,
        reason=number,
        low_stock_threshold=settings.low_stock_threshold,
    )

    before_status = entry.status
    entry.status = ServiceStatus.COMPLETED

    if trx.remaining_amount > 0:
        await create_installment(
            session,
            actor=actor,
            data=NewLedgerEntry(
                id=str(trx.id),
                kind=LedgerKind.SERVICE,
                customer_name=trx.customer_name,
                transaction_date=now,
                total_amount=total,
                initial_payment=data.payment_amount,
                details=" ".join(x for x in (entry.device_type, entry.damage_type) if x) or "Service",
            ),
            customer_id=entry.customer_id,
            transaction_number=number,
        )

    await audit_log(
        session,
        actor=actor,
        entity_type="service_transaction",
        entity_id=trx.id,
        action="create",
        after={
            "transaction_number": number,
            "service_entry_id": entry.id,
            "status_before": before_status,
            "total": total,
            "payment_amount": trx.payment_amount,
            "remaining_amount": trx.remaining_amount,
        },
    )
    logger.info(
        "Service transaction recorded: %s",
        number,
        extra={"service_entry_id": str(entry.id), "total": total, "remaining_amount": trx.remaining_amount},
    )
    return trx


async def get_service_transaction(session: AsyncSession, entry_id: uuid.UUID) -> ServiceTransaction:
    trx = (
        await session.execute(
            select(ServiceTransaction)
            .where(ServiceTransaction.service_entry_id == entry_id)
            .options(selectinload(ServiceTransaction.parts), selectinload(ServiceTransaction.entry))
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if trx is None:
        raise ValueError("Service transaction not found")
    return trx
