from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.models.product import Product
from cellkom.models.supplier import Supplier
from cellkom.schemas.supplier import SupplierCreate, SupplierUpdate
from cellkom.services.audit import audit_log, snapshot


_FIELDS = ("name", "phone", "address")


async def get_supplier(session: AsyncSession, supplier_id: uuid.UUID) -> Supplier:
    supplier = await session.get(Supplier, supplier_id)
    if supplier is None:
        raise ValueError("Supplier not found")
    return supplier


async def list_suppliers(session: AsyncSession) -> list[Supplier]:
    return list((await session.execute(select(Supplier).order_by(Supplier.name.asc()))).scalars().all())


async def create_supplier(session: AsyncSession, *, actor: str, data: SupplierCreate) -> Supplier:
    supplier = Supplier(
        name=data.name.strip(),
        phone=(data.phone or "").strip() or None,
        address=(data.address or "").strip() or None,
    )
    session.add(supplier)
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="supplier",
        entity_id=supplier.id,
        action="create",
        after=snapshot(supplier, _FIELDS),
    )
    return supplier


async def update_supplier(
    session: AsyncSession, *, actor: str, supplier_id: uuid.UUID, data: SupplierUpdate
) -> Supplier:
    supplier = await get_supplier(session, supplier_id)
    before = snapshot(supplier, _FIELDS)

    supplier.name = data.name.strip()
    supplier.phone = (data.phone or "").strip() or None
    supplier.address = (data.address or "").strip() or None
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="supplier",
        entity_id=supplier.id,
        action="update",
        before=before,
        after=snapshot(supplier, _FIELDS),
    )
    return supplier


async def delete_supplier(session: AsyncSession, *, actor: str, supplier_id: uuid.UUID) -> None:
    supplier = await get_supplier(session, supplier_id)

    product_count = (
        await session.execute(select(func.count()).select_from(Product).where(Product.supplier_id == supplier_id))
    ).scalar_one()
    if product_count:
        raise ValueError(f"Supplier still has {product_count} product(s)")

    before = snapshot(supplier, _FIELDS)
    await session.delete(supplier)
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="supplier",
        entity_id=supplier_id,
        action="delete",
        before=before,
    )
