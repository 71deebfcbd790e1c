from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.core.db import get_session
from cellkom.schemas.service import ServiceStatusPublicOut
from cellkom.services.service_desk import get_public_status


# Mounted without auth: customers track their repair by entry id.
router = APIRouter()


@router.get("/service-status/{entry_id}", response_model=ServiceStatusPublicOut)
async def public_service_status(entry_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> ServiceStatusPublicOut:
    entry = await get_public_status(session, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Not found")
    return ServiceStatusPublicOut(
        id=entry.id,
        entry_date=entry.entry_date,
        created_at=entry.created_at,
        customer_name=entry.customer.name,
        category=entry.category,
        device_type=entry.device_type,
        damage_type=entry.damage_type,
        description=entry.description,
        status=entry.status,
        service_info=entry.service_info,
        info_date=entry.info_date,
    )
