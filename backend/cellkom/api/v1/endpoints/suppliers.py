from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.core.db import get_session
from cellkom.core.security import require_basic_auth
from cellkom.schemas.supplier import SupplierCreate, SupplierOut, SupplierUpdate
from cellkom.services.suppliers import create_supplier, delete_supplier, get_supplier, list_suppliers, update_supplier


router = APIRouter()


@router.post("", response_model=SupplierOut)
async def create_supplier_endpoint(
    data: SupplierCreate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> SupplierOut:
    async with session.begin():
        supplier = await create_supplier(session, actor=actor, data=data)
    await session.refresh(supplier)
    return SupplierOut.model_validate(supplier)


@router.get("", response_model=list[SupplierOut])
async def list_suppliers_endpoint(session: AsyncSession = Depends(get_session)) -> list[SupplierOut]:
    return [SupplierOut.model_validate(s) for s in await list_suppliers(session)]


@router.get("/{supplier_id}", response_model=SupplierOut)
async def get_supplier_endpoint(supplier_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> SupplierOut:
    try:
        supplier = await get_supplier(session, supplier_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail="Not found") from e
    return SupplierOut.model_validate(supplier)


@router.put("/{supplier_id}", response_model=SupplierOut)
async def update_supplier_endpoint(
    supplier_id: uuid.UUID,
    data: SupplierUpdate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> SupplierOut:
    try:
        async with session.begin():
            supplier = await update_supplier(session, actor=actor, supplier_id=supplier_id, data=data)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await session.refresh(supplier)
    return SupplierOut.model_validate(supplier)


@router.delete("/{supplier_id}", status_code=204)
async def delete_supplier_endpoint(
    supplier_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> None:
    try:
        async with session.begin():
            await delete_supplier(session, actor=actor, supplier_id=supplier_id)
    except ValueError as e:
        raise HTTPException(status_code=404 if str(e) == "Supplier not found" else 409, detail=str(e)) from e
