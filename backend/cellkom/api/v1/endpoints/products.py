from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.core.config import get_settings
from cellkom.core.db import get_session
from cellkom.core.security import require_basic_auth
from cellkom.schemas.product import ProductCreate, ProductOut, ProductRestock, ProductUpdate
from cellkom.services.products import (
    add_stock,
    create_product,
    delete_product,
    get_product,
    get_product_by_barcode,
    list_low_stock,
    list_products,
    update_product,
)


router = APIRouter()


@router.post("", response_model=ProductOut)
async def create_product_endpoint(
    data: ProductCreate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> ProductOut:
    try:
        async with session.begin():
            product = await create_product(session, actor=actor, data=data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    await session.refresh(product)
    return ProductOut.model_validate(product)


@router.get("", response_model=list[ProductOut])
async def list_products_endpoint(
    category: str | None = None,
    q: str | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[ProductOut]:
    return [ProductOut.model_validate(p) for p in await list_products(session, category=category, q=q)]


@router.get("/low-stock", response_model=list[ProductOut])
async def list_low_stock_endpoint(
    threshold: int | None = None, session: AsyncSession = Depends(get_session)
) -> list[ProductOut]:
    limit = get_settings().low_stock_threshold if threshold is None else threshold
    return [ProductOut.model_validate(p) for p in await list_low_stock(session, threshold=limit)]


@router.get("/barcode/{code}", response_model=ProductOut)
async def get_product_by_barcode_endpoint(code: str, session: AsyncSession = Depends(get_session)) -> ProductOut:
    product = await get_product_by_barcode(session, code)
    if product is None:
        raise HTTPException(status_code=404, detail="Not found")
    return ProductOut.model_validate(product)


@router.get("/{product_id}", response_model=ProductOut)
async def get_product_endpoint(product_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> ProductOut:
    try:
        product = await get_product(session, product_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail="Not found") from e
    return ProductOut.model_validate(product)


@router.put("/{product_id}", response_model=ProductOut)
async def update_product_endpoint(
    product_id: uuid.UUID,
    data: ProductUpdate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> ProductOut:
    try:
        async with session.begin():
            product = await update_product(session, actor=actor, product_id=product_id, data=data)
    except ValueError as e:
        raise HTTPException(status_code=404 if str(e) == "Product not found" else 409, detail=str(e)) from e
    await session.refresh(product)
    return ProductOut.model_validate(product)


@router.post("/{product_id}/restock", response_model=ProductOut)
async def restock_product_endpoint(
    product_id: uuid.UUID,
    data: ProductRestock,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> ProductOut:
    try:
        async with session.begin():
            product = await add_stock(session, actor=actor, product_id=product_id, quantity=data.quantity)
    except ValueError as e:
        raise HTTPException(status_code=404 if str(e) == "Product not found" else 409, detail=str(e)) from e
    await session.refresh(product)
    return ProductOut.model_validate(product)


@router.delete("/{product_id}", status_code=204)
async def delete_product_endpoint(
    product_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
) -> None:
    try:
        async with session.begin():
            await delete_product(session, actor=actor, product_id=product_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
