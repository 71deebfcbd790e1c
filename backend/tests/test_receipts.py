from __future__ import annotations

from datetime import datetime, timezone

import pytest

from cellkom.core.enums import PaymentMethod, ServiceStatus
from cellkom.schemas.customer import CustomerCreate
from cellkom.schemas.product import ProductCreate
from cellkom.schemas.sales import SaleCreate, SaleItemCreate
from cellkom.schemas.service import ServiceEntryCreate, ServiceTransactionCreate, UsedPartCreate
from cellkom.services.customers import create_customer
from cellkom.services.installments import add_installment_payment, get_installment
from cellkom.services.products import create_product
from cellkom.services.receipts import (
    render_installment_statement,
    render_sales_receipt,
    render_service_receipt,
)
from cellkom.services.sales import create_sale_transaction, get_sale_transaction
from cellkom.services.service_desk import (
    change_service_status,
    create_service_entry,
    create_service_transaction,
    get_service_transaction,
)


ACTOR = "kasir"


@pytest.mark.asyncio
async def test_sales_receipt_shows_store_identity_and_amounts(db_session) -> None:
    async with db_session.begin():
        product = await create_product(
            db_session,
            actor=ACTOR,
            data=ProductCreate(name="Tempered <Glass>", stock=5, buy_price=5_000, retail_price=15_000, reseller_price=10_000),
        )
        trx = await create_sale_transaction(
            db_session,
            actor=ACTOR,
            data=SaleCreate(
                customer_name="Andi",
                items=[SaleItemCreate(product_id=product.id, quantity=2)],
                discount=2_000,
                payment_method=PaymentMethod.INSTALLMENT,
                payment_amount=10_000,
            ),
        )

    html = render_sales_receipt(await get_sale_transaction(db_session, trx.id))

    assert "CELLKOM TEST" in html
    assert "Pusat Service Hp dan Komputer" in html
    assert trx.transaction_number in html
    assert "Tempered &lt;Glass&gt;" in html
    assert "15k" in html
    assert "30k" in html
    assert "-Rp 2.000" in html
    assert "Rp 28.000" in html
    assert "Cicilan" in html
    assert "Sisa:" in html
    assert "Rp 18.000" in html
    assert "Kembali:" not in html
    assert "Barang yang sudah dibeli tidak dapat dikembalikan." in html


@pytest.mark.asyncio
async def test_service_receipt_and_installment_statement(db_session) -> None:
    async with db_session.begin():
        customer = await create_customer(db_session, actor=ACTOR, data=CustomerCreate(name="Rina"))
        part = await create_product(
            db_session,
            actor=ACTOR,
            data=ProductCreate(name="Baterai BL-5C", stock=4, buy_price=30_000, retail_price=60_000, reseller_price=50_000),
        )
        entry = await create_service_entry(
            db_session,
            actor=ACTOR,
            data=ServiceEntryCreate(customer_id=customer.id, device_type="Nokia 105", damage_type="Baterai drop"),
        )
        await change_service_status(db_session, actor=ACTOR, entry_id=entry.id, new_status=ServiceStatus.IN_PROGRESS)
        trx = await create_service_transaction(
            db_session,
            actor=ACTOR,
            entry_id=entry.id,
            data=ServiceTransactionCreate(
                used_parts=[UsedPartCreate(product_id=part.id, quantity=1)], service_fee=25_000, payment_amount=35_000
            ),
        )
    entry_id, trx_id = entry.id, trx.id

    html = render_service_receipt(await get_service_transaction(db_session, entry_id))
    assert "Nokia 105" in html
    assert "Baterai BL-5C" in html
    assert "Rp 25.000" in html
    assert "Rp 85.000" in html
    assert "Rp 50.000" in html
    await db_session.rollback()

    async with db_session.begin():
        await add_installment_payment(db_session, actor=ACTOR, installment_id=trx_id, amount=50_000)

    statement = render_installment_statement(
        await get_installment(db_session, trx_id), printed_at=datetime(2026, 3, 1, 10, 30, tzinfo=timezone.utc)
    )
    assert "Rina" in statement
    assert "SERVICE" in statement
    assert "Rp 35.000" in statement
    assert "Rp 85.000" in statement
    assert "LUNAS" in statement
    assert "BELUM LUNAS" not in statement
    assert "01/03/26 10:30" in statement
