from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cellkom.core.config import get_settings
from cellkom.core.enums import DocumentType, PaymentMethod
from cellkom.ledger.types import LedgerKind, NewLedgerEntry
from cellkom.models.customer import Customer
from cellkom.models.sales import SalesTransaction, SalesTransactionItem
from cellkom.schemas.sales import SaleCreate
from cellkom.services.audit import audit_log
from cellkom.services.documents import next_document_number
from cellkom.services.installments import create_installment
from cellkom.services.money import clamp_non_negative
from cellkom.services.products import decrement_stock, lock_products, price_for, require_quantities


logger = logging.getLogger(__name__)


def sale_totals(*, lines: list[tuple[int, int, int]], discount: int, payment_amount: int) -> dict[str, int]:
    """
    Totals of a sale from `(quantity, buy_price, sale_price)` lines.

    The discount lowers both total and profit; the total never drops below 0.
    """
    subtotal = sum(qty * sale for qty, _, sale in lines)
    total = clamp_non_negative(subtotal - discount)
    profit = sum((sale - buy) * qty for qty, buy, sale in lines) - discount
    return {
        "subtotal": subtotal,
        "total": total,
        "profit": profit,
        "change": clamp_non_negative(payment_amount - total),
        "remaining_amount": clamp_non_negative(total - payment_amount),
    }


async def _resolve_customer(session: AsyncSession, data: SaleCreate) -> tuple[Customer | None, str]:
    customer = None
    if data.customer_id is not None:
        customer = await session.get(Customer, data.customer_id)
        if customer is None:
            raise ValueError("Customer not found")

    name = (data.customer_name or "").strip()
    if not name and customer is not None:
        name = customer.name
    return customer, name or get_settings().walk_in_customer_name


async def create_sale_transaction(session: AsyncSession, *, actor: str, data: SaleCreate) -> SalesTransaction:
    """
    Record a sale with its items, stock movements and (for unpaid installment
    sales) the installment, all inside the caller's transaction.
    """
    settings = get_settings()
    customer, customer_name = await _resolve_customer(session, data)

    products = await lock_products(session, [i.product_id for i in data.items])
    quantities = require_quantities(products, [(i.product_id, i.quantity) for i in data.items])

    lines: list[tuple[int, int, int]] = []
    for item in data.items:
        product = products[item.product_id]
        lines.append((item.quantity, product.buy_price, price_for(product, data.customer_type)))
    totals = sale_totals(lines=lines, discount=data.discount, payment_amount=data.payment_amount)

    if data.payment_method == PaymentMethod.CASH and data.payment_amount < totals["total"]:
        raise ValueError("Payment amount is less than the total for a cash sale")

    now = datetime.now(timezone.utc)
    number = await next_document_number(session, doc_type=DocumentType.SALES_TRANSACTION, issue_date=now.date())

    trx = SalesTransaction(
        id=uuid.uuid4(),
        transaction_number=number,
        cashier=actor,
        customer_id=customer.id if customer is not None else None,
        customer_name=customer_name,
        customer_type=data.customer_type,
        discount=data.discount,
        payment_method=data.payment_method,
        payment_amount=data.payment_amount,
        **totals,
    )
    for item, (quantity, buy_price, sale_price) in zip(data.items, lines, strict=True):
        trx.items.append(
            SalesTransactionItem(
                product_id=item.product_id,
                product_name=products[item.product_id].name,
                quantity=quantity,
                buy_price_at_sale=buy_price,
                sale_price_at_sale=sale_price,
            )
        )
    session.add(trx)
    await session.flush()

    await decrement_stock(
        session,
        actor=actor,
        products=products,
        quantities=quantities,
        reason=number,
        low_stock_threshold=settings.low_stock_threshold,
    )

    if data.payment_method == PaymentMethod.INSTALLMENT and trx.remaining_amount > 0:
        await create_installment(
            session,
            actor=actor,
            data=NewLedgerEntry(
                id=str(trx.id),
                kind=LedgerKind.SALE,
                customer_name=customer_name,
                transaction_date=now,
                total_amount=trx.total,
                initial_payment=data.payment_amount,
                details=f"{len(data.items)} item(s)",
            ),
            customer_id=trx.customer_id,
            transaction_number=number,
        )

    await audit_log(
        session,
        actor=actor,
        entity_type="sale",
        entity_id=trx.id,
        action="create",
        after={
            "transaction_number": number,
            "customer_name": customer_name,
            "total": trx.total,
            "payment_method": trx.payment_method,
            "payment_amount": trx.payment_amount,
            "remaining_amount": trx.remaining_amount,
        },
    )
    logger.info(
        "Sale recorded: %s",
        number,
        extra={"transaction_id": str(trx.id), "total": trx.total, "remaining_amount": trx.remaining_amount},
    )
    return trx


async def get_sale_transaction(session: AsyncSession, transaction_id: uuid.UUID) -> SalesTransaction:
    trx = (
        await session.execute(
            select(SalesTransaction)
            .where(SalesTransaction.id == transaction_id)
            .options(selectinload(SalesTransaction.items))
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if trx is None:
        raise ValueError("Sales transaction not found")
    return trx


async def list_sale_transactions(session: AsyncSession, *, limit: int | None = None) -> list[SalesTransaction]:
    stmt = (
        select(SalesTransaction)
        .options(selectinload(SalesTransaction.items))
        .order_by(SalesTransaction.created_at.desc(), SalesTransaction.transaction_number.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return list((await session.execute(stmt)).scalars().all())
