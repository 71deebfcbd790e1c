from __future__ import annotations

import logging
import uuid
from datetime import date

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.core.enums import CustomerType
from cellkom.models.product import Product
from cellkom.models.supplier import Supplier
from cellkom.schemas.product import ProductCreate, ProductUpdate
from cellkom.services.audit import audit_log, snapshot


logger = logging.getLogger(__name__)

_FIELDS = (
    "name",
    "category",
    "description",
    "stock",
    "buy_price",
    "retail_price",
    "reseller_price",
    "barcode",
    "image_url",
    "supplier_id",
)


def price_for(product: Product, customer_type: CustomerType) -> int:
    if customer_type == CustomerType.RESELLER:
        return product.reseller_price
    return product.retail_price


def _normalize_barcode(barcode: str | None) -> str | None:
    if barcode is None:
        return None
    barcode = barcode.strip()
    return barcode or None


async def _ensure_supplier(session: AsyncSession, supplier_id: uuid.UUID | None) -> None:
    if supplier_id is not None and await session.get(Supplier, supplier_id) is None:
        raise ValueError("Supplier not found")


async def _ensure_barcode_free(session: AsyncSession, barcode: str | None, *, exclude_id: uuid.UUID | None = None) -> None:
    if barcode is None:
        return
    stmt = select(Product.id).where(Product.barcode == barcode)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    if (await session.execute(stmt)).first() is not None:
        raise ValueError(f"Barcode already in use: {barcode}")


async def get_product(session: AsyncSession, product_id: uuid.UUID) -> Product:
    product = await session.get(Product, product_id)
    if product is None:
        raise ValueError("Product not found")
    return product


async def get_product_by_barcode(session: AsyncSession, barcode: str) -> Product | None:
    return (await session.execute(select(Product).where(Product.barcode == barcode.strip()))).scalar_one_or_none()


async def list_products(
    session: AsyncSession,
    *,
    category: str | None = None,
    q: str | None = None,
) -> list[Product]:
    stmt = select(Product)
    if category:
        stmt = stmt.where(Product.category == category)
    if q and q.strip():
        pattern = f"%{q.strip().lower()}%"
        stmt = stmt.where(or_(func.lower(Product.name).like(pattern), Product.barcode.like(pattern)))
    return list((await session.execute(stmt.order_by(Product.name.asc()))).scalars().all())


async def list_low_stock(session: AsyncSession, *, threshold: int) -> list[Product]:
    stmt = select(Product).where(Product.stock <= threshold).order_by(Product.stock.asc(), Product.name.asc())
    return list((await session.execute(stmt)).scalars().all())


async def create_product(session: AsyncSession, *, actor: str, data: ProductCreate) -> Product:
    barcode = _normalize_barcode(data.barcode)
    await _ensure_supplier(session, data.supplier_id)
    await _ensure_barcode_free(session, barcode)

    product = Product(
        name=data.name.strip(),
        category=data.category.strip(),
        description=data.description,
        stock=data.stock,
        buy_price=data.buy_price,
        retail_price=data.retail_price,
        reseller_price=data.reseller_price,
        barcode=barcode,
        image_url=data.image_url,
        entry_date=data.entry_date or date.today(),
        supplier_id=data.supplier_id,
    )
    session.add(product)
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="product",
        entity_id=product.id,
        action="create",
        after=snapshot(product, _FIELDS),
    )
    return product


async def update_product(session: AsyncSession, *, actor: str, product_id: uuid.UUID, data: ProductUpdate) -> Product:
    product = await get_product(session, product_id)
    barcode = _normalize_barcode(data.barcode)
    await _ensure_supplier(session, data.supplier_id)
    await _ensure_barcode_free(session, barcode, exclude_id=product.id)

    before = snapshot(product, _FIELDS)
    product.name = data.name.strip()
    product.category = data.category.strip()
    product.description = data.description
    product.buy_price = data.buy_price
    product.retail_price = data.retail_price
    product.reseller_price = data.reseller_price
    product.barcode = barcode
    product.image_url = data.image_url
    product.supplier_id = data.supplier_id
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="product",
        entity_id=product.id,
        action="update",
        before=before,
        after=snapshot(product, _FIELDS),
    )
    return product


async def delete_product(session: AsyncSession, *, actor: str, product_id: uuid.UUID) -> None:
    product = await get_product(session, product_id)
    before = snapshot(product, _FIELDS)
    await session.delete(product)
    await session.flush()
    await audit_log(session, actor=actor, entity_type="product", entity_id=product_id, action="delete", before=before)


async def add_stock(session: AsyncSession, *, actor: str, product_id: uuid.UUID, quantity: int) -> Product:
    if quantity <= 0:
        raise ValueError("Restock quantity must be > 0")
    product = (
        await session.execute(select(Product).where(Product.id == product_id).with_for_update())
    ).scalar_one_or_none()
    if product is None:
        raise ValueError("Product not found")

    before = {"stock": product.stock}
    product.stock = product.stock + quantity
    await session.flush()

    await audit_log(
        session,
        actor=actor,
        entity_type="product",
        entity_id=product.id,
        action="restock",
        before=before,
        after={"stock": product.stock, "quantity": quantity},
    )
    return product


async def lock_products(session: AsyncSession, product_ids: list[uuid.UUID]) -> dict[uuid.UUID, Product]:
    if not product_ids:
        return {}
    rows = (
        await session.execute(
            select(Product).where(Product.id.in_(set(product_ids))).order_by(Product.id).with_for_update()
        )
    ).scalars().all()
    return {p.id: p for p in rows}


def require_quantities(
    products: dict[uuid.UUID, Product], wanted: list[tuple[uuid.UUID, int]]
) -> dict[uuid.UUID, int]:
    """
    Check that every product exists and has stock for the summed quantities.

    Returns the quantity per product id.
    """
    totals: dict[uuid.UUID, int] = {}
    for product_id, quantity in wanted:
        totals[product_id] = totals.get(product_id, 0) + quantity

    for product_id, quantity in totals.items():
        product = products.get(product_id)
        if product is None:
            raise ValueError(f"Product not found: {product_id}")
        if product.stock < quantity:
            raise ValueError(f"Insufficient stock for product: {product.name}")
    return totals


async def decrement_stock(
    session: AsyncSession,
    *,
    actor: str,
    products: dict[uuid.UUID, Product],
    quantities: dict[uuid.UUID, int],
    reason: str,
    low_stock_threshold: int,
) -> None:
    for product_id, quantity in quantities.items():
        product = products[product_id]
        before = {"stock": product.stock}
        product.stock = product.stock - quantity
        await audit_log(
            session,
            actor=actor,
            entity_type="product",
            entity_id=product.id,
            action="stock_out",
            before=before,
            after={"stock": product.stock, "quantity": quantity, "reason": reason},
        )
        if product.stock <= low_stock_threshold:
            logger.warning(
                "Low stock after %s: %s (%s left)",
                reason,
                product.name,
                product.stock,
                extra={"product_id": str(product.id)},
            )
    await session.flush()
