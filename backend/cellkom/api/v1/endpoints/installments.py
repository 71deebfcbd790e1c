from __future__ import annotations

import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.core.db import get_session
from cellkom.core.security import require_basic_auth
from cellkom.ledger.exceptions import EntryNotFound, InvalidAmount
from cellkom.ledger.types import LedgerStatus
from cellkom.schemas.installment import (
    InstallmentDetailOut,
    InstallmentOut,
    InstallmentPaymentCreate,
    InstallmentPaymentOut,
    ManualInstallmentCreate,
)
from cellkom.services.installments import (
    add_installment_payment,
    create_manual_installment,
    get_installment,
    get_payment_history,
    list_installments,
)
from cellkom.services.receipts import render_installment_statement


router = APIRouter()


async def _detail(session: AsyncSession, installment_id: uuid.UUID) -> InstallmentDetailOut:
    # The payment insert leaves the row partly expired; read it back fresh.
    session.expire_all()
    row = await get_installment(session, installment_id)
    return InstallmentDetailOut.model_validate(row)


@router.get("", response_model=list[InstallmentOut])
async def list_installments_endpoint(
    status: LedgerStatus | None = None,
    customer_id: uuid.UUID | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[InstallmentOut]:
    rows = await list_installments(session, status=status, customer_id=customer_id)
    return [InstallmentOut.model_validate(r) for r in rows]


@router.post("/manual", response_model=InstallmentDetailOut)
async def create_manual_installment_endpoint(
    data: ManualInstallmentCreate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> InstallmentDetailOut:
    try:
        async with session.begin():
            row = await create_manual_installment(
                session, actor=actor, customer_id=data.customer_id, amount=data.amount, description=data.description
            )
    except InvalidAmount as e:
        raise HTTPException(status_code=422, detail=e.to_dict()) from e
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return await _detail(session, row.id)


@router.get("/{installment_id}", response_model=InstallmentDetailOut)
async def get_installment_endpoint(
    installment_id: uuid.UUID, session: AsyncSession = Depends(get_session)
) -> InstallmentDetailOut:
    try:
        row = await get_installment(session, installment_id)
    except EntryNotFound as e:
        raise HTTPException(status_code=404, detail=e.to_dict()) from e
    return InstallmentDetailOut.model_validate(row)


@router.get("/{installment_id}/payments", response_model=list[InstallmentPaymentOut])
async def list_installment_payments(
    installment_id: uuid.UUID, session: AsyncSession = Depends(get_session)
) -> list[InstallmentPaymentOut]:
    try:
        payments = await get_payment_history(session, installment_id)
    except EntryNotFound as e:
        raise HTTPException(status_code=404, detail=e.to_dict()) from e
    return [InstallmentPaymentOut.model_validate(p) for p in payments]


@router.post("/{installment_id}/payments", response_model=InstallmentDetailOut)
async def add_installment_payment_endpoint(
    installment_id: uuid.UUID,
    data: InstallmentPaymentCreate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> InstallmentDetailOut:
    try:
        async with session.begin():
            await add_installment_payment(
                session, actor=actor, installment_id=installment_id, amount=data.amount, allow_overpayment=False
            )
    except EntryNotFound as e:
        raise HTTPException(status_code=404, detail=e.to_dict()) from e
    except InvalidAmount as e:
        raise HTTPException(status_code=422, detail=e.to_dict()) from e
    return await _detail(session, installment_id)


@router.get("/{installment_id}/statement", response_class=HTMLResponse)
async def get_installment_statement(
    installment_id: uuid.UUID, session: AsyncSession = Depends(get_session)
) -> HTMLResponse:
    try:
        row = await get_installment(session, installment_id)
    except EntryNotFound as e:
        raise HTTPException(status_code=404, detail=e.to_dict()) from e
    return HTMLResponse(render_installment_statement(row, printed_at=datetime.now(timezone.utc)))
