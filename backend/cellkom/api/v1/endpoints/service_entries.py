from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.core.db import get_session
from cellkom.core.enums import ServiceStatus
from cellkom.core.security import require_basic_auth
from cellkom.schemas.service import (
    ServiceEntryCreate,
    ServiceEntryOut,
    ServiceEntryUpdate,
    ServiceStatusChange,
    ServiceTransactionCreate,
    ServiceTransactionOut,
)
from cellkom.services.receipts import render_service_receipt
from cellkom.services.service_desk import (
    change_service_status,
    create_service_entry,
    create_service_transaction,
    delete_service_entry,
    get_service_entry,
    get_service_transaction,
    list_in_progress,
    list_service_entries,
    update_service_entry,
)


router = APIRouter()


def _status_code(e: ValueError) -> int:
    return 404 if str(e) in {"Service entry not found", "Service transaction not found"} else 409


@router.post("", response_model=ServiceEntryOut)
async def create_service_entry_endpoint(
    data: ServiceEntryCreate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> ServiceEntryOut:
    try:
        async with session.begin():
            entry = await create_service_entry(session, actor=actor, data=data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    await session.refresh(entry)
    return ServiceEntryOut.model_validate(entry)


@router.get("", response_model=list[ServiceEntryOut])
async def list_service_entries_endpoint(
    status: ServiceStatus | None = None,
    customer_id: uuid.UUID | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[ServiceEntryOut]:
    rows = await list_service_entries(session, status=status, customer_id=customer_id)
    return [ServiceEntryOut.model_validate(r) for r in rows]


@router.get("/in-progress", response_model=list[ServiceEntryOut])
async def list_in_progress_endpoint(session: AsyncSession = Depends(get_session)) -> list[ServiceEntryOut]:
    return [ServiceEntryOut.model_validate(r) for r in await list_in_progress(session)]


@router.get("/{entry_id}", response_model=ServiceEntryOut)
async def get_service_entry_endpoint(entry_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> ServiceEntryOut:
    try:
        entry = await get_service_entry(session, entry_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail="Not found") from e
    return ServiceEntryOut.model_validate(entry)


@router.put("/{entry_id}", response_model=ServiceEntryOut)
async def update_service_entry_endpoint(
    entry_id: uuid.UUID,
    data: ServiceEntryUpdate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> ServiceEntryOut:
    try:
        async with session.begin():
            entry = await update_service_entry(session, actor=actor, entry_id=entry_id, data=data)
    except ValueError as e:
        raise HTTPException(status_code=_status_code(e), detail=str(e)) from e
    await session.refresh(entry)
    return ServiceEntryOut.model_validate(entry)


@router.post("/{entry_id}/status", response_model=ServiceEntryOut)
async def change_service_status_endpoint(
    entry_id: uuid.UUID,
    data: ServiceStatusChange,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> ServiceEntryOut:
    try:
        async with session.begin():
            entry = await change_service_status(
                session, actor=actor, entry_id=entry_id, new_status=data.status, service_info=data.service_info
            )
    except ValueError as e:
        raise HTTPException(status_code=_status_code(e), detail=str(e)) from e
    await session.refresh(entry)
    return ServiceEntryOut.model_validate(entry)


@router.delete("/{entry_id}", status_code=204)
async def delete_service_entry_endpoint(
    entry_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> None:
    try:
        async with session.begin():
            await delete_service_entry(session, actor=actor, entry_id=entry_id)
    except ValueError as e:
        raise HTTPException(status_code=_status_code(e), detail=str(e)) from e


@router.post("/{entry_id}/transaction", response_model=ServiceTransactionOut)
async def create_service_transaction_endpoint(
    entry_id: uuid.UUID,
    data: ServiceTransactionCreate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> ServiceTransactionOut:
    try:
        async with session.begin():
            await create_service_transaction(session, actor=actor, entry_id=entry_id, data=data)
    except ValueError as e:
        raise HTTPException(status_code=_status_code(e), detail=str(e)) from e

    trx = await get_service_transaction(session, entry_id)
    return ServiceTransactionOut.model_validate(trx)


@router.get("/{entry_id}/transaction", response_model=ServiceTransactionOut)
async def get_service_transaction_endpoint(
    entry_id: uuid.UUID, session: AsyncSession = Depends(get_session)
) -> ServiceTransactionOut:
    try:
        trx = await get_service_transaction(session, entry_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail="Not found") from e
    return ServiceTransactionOut.model_validate(trx)


@router.get("/{entry_id}/receipt", response_class=HTMLResponse)
async def get_service_receipt(entry_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> HTMLResponse:
    try:
        trx = await get_service_transaction(session, entry_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail="Not found") from e
    return HTMLResponse(render_service_receipt(trx))
