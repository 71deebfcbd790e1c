from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.core.db import get_session
from cellkom.core.security import require_basic_auth
from cellkom.schemas.customer import CustomerCreate, CustomerOut, CustomerUpdate
from cellkom.schemas.installment import InstallmentOut
from cellkom.services.customers import create_customer, delete_customer, get_customer, list_customers, update_customer
from cellkom.services.installments import list_installments


router = APIRouter()


@router.post("", response_model=CustomerOut)
async def create_customer_endpoint(
    data: CustomerCreate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> CustomerOut:
    async with session.begin():
        customer = await create_customer(session, actor=actor, data=data)
    await session.refresh(customer)
    return CustomerOut.model_validate(customer)


@router.get("", response_model=list[CustomerOut])
async def list_customers_endpoint(q: str | None = None, session: AsyncSession = Depends(get_session)) -> list[CustomerOut]:
    return [CustomerOut.model_validate(c) for c in await list_customers(session, q=q)]


@router.get("/{customer_id}", response_model=CustomerOut)
async def get_customer_endpoint(customer_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> CustomerOut:
    try:
        customer = await get_customer(session, customer_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail="Not found") from e
    return CustomerOut.model_validate(customer)


@router.get("/{customer_id}/installments", response_model=list[InstallmentOut])
async def list_customer_installments(
    customer_id: uuid.UUID, session: AsyncSession = Depends(get_session)
) -> list[InstallmentOut]:
    rows = await list_installments(session, customer_id=customer_id)
    return [InstallmentOut.model_validate(r) for r in rows]


@router.put("/{customer_id}", response_model=CustomerOut)
async def update_customer_endpoint(
    customer_id: uuid.UUID,
    data: CustomerUpdate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> CustomerOut:
    try:
        async with session.begin():
            customer = await update_customer(session, actor=actor, customer_id=customer_id, data=data)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await session.refresh(customer)
    return CustomerOut.model_validate(customer)


@router.delete("/{customer_id}", status_code=204)
async def delete_customer_endpoint(
    customer_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> None:
    try:
        async with session.begin():
            await delete_customer(session, actor=actor, customer_id=customer_id)
    except ValueError as e:
        raise HTTPException(status_code=404 if str(e) == "Customer not found" else 409, detail=str(e)) from e
