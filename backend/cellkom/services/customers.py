from __future__ import annotations

import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.models.customer import Customer
from cellkom.models.installment import Installment
from cellkom.models.sales import SalesTransaction
from cellkom.models.service import ServiceEntry
from cellkom.schemas.customer import CustomerCreate, CustomerUpdate
from cellkom.services.audit import audit_log, snapshot


_FIELDS = ("name", "phone", "address", "email")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


async def get_customer(session: AsyncSession, customer_id: uuid.UUID) -> Customer:
    customer = await session.get(Customer, customer_id)
    if customer is None:
        raise ValueError("Customer not found")
    return customer


async def list_customers(session: AsyncSession, *, q: str | None = None) -> list[Customer]:
    stmt = select(Customer)
    if q and q.strip():
        pattern = f"%{q.strip().lower()}%"
        stmt = stmt.where(or_(func.lower(Customer.name).like(pattern), Customer.phone.like(pattern)))
    return list((await session.execute(stmt.order_by(Customer.name.asc()))).scalars().all())


async def create_customer(session: AsyncSession, *, actor: str, data: CustomerCreate) -> Customer:
    customer = Customer(
        name=data.name.strip(),
        phone=_clean(data.phone),
        address=_clean(data.address),
        email=_clean(data.email),
    )
    session.add(customer)
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="customer",
        entity_id=customer.id,
        action="create",
        after=snapshot(customer, _FIELDS),
    )
    return customer


async def update_customer(
    session: AsyncSession, *, actor: str, customer_id: uuid.UUID, data: CustomerUpdate
) -> Customer:
    customer = await get_customer(session, customer_id)
    before = snapshot(customer, _FIELDS)

    customer.name = data.name.strip()
    customer.phone = _clean(data.phone)
    customer.address = _clean(data.address)
    customer.email = _clean(data.email)
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="customer",
        entity_id=customer.id,
        action="update",
        before=before,
        after=snapshot(customer, _FIELDS),
    )
    return customer


async def delete_customer(session: AsyncSession, *, actor: str, customer_id: uuid.UUID) -> None:
    customer = await get_customer(session, customer_id)

    # Customers with sales, service or installment history are kept.
    for model, column in (
        (Installment, Installment.customer_id),
        (SalesTransaction, SalesTransaction.customer_id),
        (ServiceEntry, ServiceEntry.customer_id),
    ):
        in_use = (await session.execute(select(func.count()).select_from(model).where(column == customer_id))).scalar_one()
        if in_use:
            raise ValueError(f"Customer is referenced by {model.__tablename__} and cannot be deleted")

    before = snapshot(customer, _FIELDS)
    await session.delete(customer)
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="customer",
        entity_id=customer_id,
        action="delete",
        before=before,
    )
