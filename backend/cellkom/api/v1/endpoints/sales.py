from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.core.db import get_session
from cellkom.core.security import require_basic_auth
from cellkom.schemas.sales import SaleCreate, SaleOut
from cellkom.services.receipts import render_sales_receipt
from cellkom.services.sales import create_sale_transaction, get_sale_transaction, list_sale_transactions


router = APIRouter()


@router.post("", response_model=SaleOut)
async def create_sale_endpoint(
    data: SaleCreate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> SaleOut:
    try:
        async with session.begin():
            trx = await create_sale_transaction(session, actor=actor, data=data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    trx = await get_sale_transaction(session, trx.id)
    return SaleOut.model_validate(trx)


@router.get("", response_model=list[SaleOut])
async def list_sales(limit: int | None = None, session: AsyncSession = Depends(get_session)) -> list[SaleOut]:
    return [SaleOut.model_validate(t) for t in await list_sale_transactions(session, limit=limit)]


@router.get("/{transaction_id}", response_model=SaleOut)
async def get_sale(transaction_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> SaleOut:
    try:
        trx = await get_sale_transaction(session, transaction_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail="Not found") from e
    return SaleOut.model_validate(trx)


@router.get("/{transaction_id}/receipt", response_class=HTMLResponse)
async def get_sale_receipt(transaction_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> HTMLResponse:
    try:
        trx = await get_sale_transaction(session, transaction_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail="Not found") from e
    return HTMLResponse(render_sales_receipt(trx))
