from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from cellkom.core.enums import CustomerType, PaymentMethod
from cellkom.ledger.types import LedgerKind, LedgerStatus
from cellkom.models.installment import Installment
from cellkom.models.product import Product
from cellkom.models.sales import SalesTransaction
from cellkom.schemas.customer import CustomerCreate
from cellkom.schemas.product import ProductCreate
from cellkom.schemas.sales import SaleCreate, SaleItemCreate
from cellkom.services.customers import create_customer
from cellkom.services.installments import get_installment
from cellkom.services.money import MAX_AMOUNT, MAX_QUANTITY
from cellkom.services.products import create_product
from cellkom.services.sales import create_sale_transaction, get_sale_transaction, list_sale_transactions, sale_totals


ACTOR = "kasir"


async def _product(session, *, name: str, stock: int, buy: int, retail: int, reseller: int) -> uuid.UUID:
    product = await create_product(
        session,
        actor=ACTOR,
        data=ProductCreate(
            name=name, category="Aksesoris", stock=stock, buy_price=buy, retail_price=retail, reseller_price=reseller
        ),
    )
    return product.id


async def _stock(session, product_id: uuid.UUID) -> int:
    return (await session.execute(select(Product.stock).where(Product.id == product_id))).scalar_one()


def test_sale_totals_clamps_total_and_subtracts_discount_from_profit() -> None:
    totals = sale_totals(lines=[(2, 10_000, 15_000), (1, 40_000, 50_000)], discount=5_000, payment_amount=100_000)

    assert totals == {
        "subtotal": 80_000,
        "total": 75_000,
        "profit": 2 * 5_000 + 10_000 - 5_000,
        "change": 25_000,
        "remaining_amount": 0,
    }

    huge_discount = sale_totals(lines=[(1, 1_000, 2_000)], discount=5_000, payment_amount=0)
    assert huge_discount["total"] == 0
    assert huge_discount["profit"] == -4_000


@pytest.mark.asyncio
async def test_cash_sale_uses_retail_prices_and_decrements_stock(db_session) -> None:
    async with db_session.begin():
        charger = await _product(db_session, name="Charger 2A", stock=10, buy=20_000, retail=35_000, reseller=28_000)
        cable = await _product(db_session, name="Kabel USB-C", stock=5, buy=8_000, retail=15_000, reseller=11_000)

    async with db_session.begin():
        trx = await create_sale_transaction(
            db_session,
            actor=ACTOR,
            data=SaleCreate(
                items=[SaleItemCreate(product_id=charger, quantity=2), SaleItemCreate(product_id=cable, quantity=1)],
                discount=5_000,
                payment_method=PaymentMethod.CASH,
                payment_amount=100_000,
            ),
        )

    assert trx.transaction_number == f"TRX-{datetime.now(timezone.utc).year}-000001"
    assert trx.customer_name == "Pelanggan Umum"
    assert trx.cashier == ACTOR
    assert trx.subtotal == 85_000
    assert trx.total == 80_000
    assert trx.profit == 2 * 15_000 + 7_000 - 5_000
    assert trx.change == 20_000
    assert trx.remaining_amount == 0

    assert await _stock(db_session, charger) == 8
    assert await _stock(db_session, cable) == 4

    loaded = await get_sale_transaction(db_session, trx.id)
    assert sorted((i.product_name, i.quantity, i.sale_price_at_sale) for i in loaded.items) == [
        ("Charger 2A", 2, 35_000),
        ("Kabel USB-C", 1, 15_000),
    ]
    assert (await db_session.execute(select(func.count(Installment.id)))).scalar_one() == 0


@pytest.mark.asyncio
async def test_reseller_sale_uses_reseller_price(db_session) -> None:
    async with db_session.begin():
        charger = await _product(db_session, name="Charger 2A", stock=10, buy=20_000, retail=35_000, reseller=28_000)
        trx = await create_sale_transaction(
            db_session,
            actor=ACTOR,
            data=SaleCreate(
                customer_type=CustomerType.RESELLER,
                items=[SaleItemCreate(product_id=charger, quantity=3)],
                payment_method=PaymentMethod.CASH,
                payment_amount=84_000,
            ),
        )

    assert trx.total == 84_000
    assert trx.profit == 3 * 8_000
    assert trx.change == 0


@pytest.mark.asyncio
async def test_installment_sale_creates_installment_with_transaction_id(db_session) -> None:
    async with db_session.begin():
        customer = await create_customer(db_session, actor=ACTOR, data=CustomerCreate(name="Budi Santoso"))
        phone = await _product(db_session, name="Redmi 13", stock=2, buy=1_500_000, retail=1_800_000, reseller=1_700_000)
        case = await _product(db_session, name="Softcase", stock=10, buy=10_000, retail=25_000, reseller=20_000)

    async with db_session.begin():
        trx = await create_sale_transaction(
            db_session,
            actor=ACTOR,
            data=SaleCreate(
                customer_id=customer.id,
                items=[SaleItemCreate(product_id=phone, quantity=1), SaleItemCreate(product_id=case, quantity=1)],
                payment_method=PaymentMethod.INSTALLMENT,
                payment_amount=500_000,
            ),
        )

    assert trx.customer_name == "Budi Santoso"
    assert trx.remaining_amount == 1_325_000
    assert trx.change == 0

    installment = await get_installment(db_session, trx.id)
    assert installment.kind == LedgerKind.SALE
    assert installment.customer_id == customer.id
    assert installment.transaction_number == trx.transaction_number
    assert installment.total_amount == 1_825_000
    assert installment.paid_amount == 500_000
    assert installment.remaining_amount == 1_325_000
    assert installment.status == LedgerStatus.UNSETTLED
    assert installment.details == "2 item(s)"
    assert [p.amount for p in installment.payments] == [500_000]


@pytest.mark.asyncio
async def test_fully_paid_installment_sale_creates_no_installment(db_session) -> None:
    async with db_session.begin():
        case = await _product(db_session, name="Softcase", stock=10, buy=10_000, retail=25_000, reseller=20_000)
        await create_sale_transaction(
            db_session,
            actor=ACTOR,
            data=SaleCreate(
                customer_name="Andi",
                items=[SaleItemCreate(product_id=case, quantity=1)],
                payment_method=PaymentMethod.INSTALLMENT,
                payment_amount=25_000,
            ),
        )

    assert (await db_session.execute(select(func.count(Installment.id)))).scalar_one() == 0


@pytest.mark.asyncio
async def test_cash_sale_must_cover_total(db_session) -> None:
    async with db_session.begin():
        case = await _product(db_session, name="Softcase", stock=10, buy=10_000, retail=25_000, reseller=20_000)

    with pytest.raises(ValueError, match="less than the total"):
        async with db_session.begin():
            await create_sale_transaction(
                db_session,
                actor=ACTOR,
                data=SaleCreate(
                    items=[SaleItemCreate(product_id=case, quantity=1)],
                    payment_method=PaymentMethod.CASH,
                    payment_amount=20_000,
                ),
            )

    assert await _stock(db_session, case) == 10


@pytest.mark.asyncio
async def test_insufficient_stock_rolls_back_everything(db_session) -> None:
    async with db_session.begin():
        charger = await _product(db_session, name="Charger 2A", stock=10, buy=20_000, retail=35_000, reseller=28_000)
        cable = await _product(db_session, name="Kabel USB-C", stock=1, buy=8_000, retail=15_000, reseller=11_000)

    with pytest.raises(ValueError, match="Insufficient stock for product: Kabel USB-C"):
        async with db_session.begin():
            await create_sale_transaction(
                db_session,
                actor=ACTOR,
                data=SaleCreate(
                    items=[
                        SaleItemCreate(product_id=charger, quantity=1),
                        # Same product twice: the summed quantity exceeds stock.
                        SaleItemCreate(product_id=cable, quantity=1),
                        SaleItemCreate(product_id=cable, quantity=1),
                    ],
                    payment_method=PaymentMethod.INSTALLMENT,
                    payment_amount=0,
                ),
            )

    assert await _stock(db_session, charger) == 10
    assert await _stock(db_session, cable) == 1
    assert (await db_session.execute(select(func.count(SalesTransaction.id)))).scalar_one() == 0
    assert (await db_session.execute(select(func.count(Installment.id)))).scalar_one() == 0


@pytest.mark.asyncio
async def test_unknown_product_is_rejected(db_session) -> None:
    with pytest.raises(ValueError, match="Product not found"):
        async with db_session.begin():
            await create_sale_transaction(
                db_session,
                actor=ACTOR,
                data=SaleCreate(
                    items=[SaleItemCreate(product_id=uuid.uuid4(), quantity=1)],
                    payment_method=PaymentMethod.CASH,
                    payment_amount=0,
                ),
            )


@pytest.mark.asyncio
async def test_sale_numbers_are_sequential(db_session) -> None:
    async with db_session.begin():
        case = await _product(db_session, name="Softcase", stock=10, buy=10_000, retail=25_000, reseller=20_000)

    numbers = []
    for _ in range(3):
        async with db_session.begin():
            trx = await create_sale_transaction(
                db_session,
                actor=ACTOR,
                data=SaleCreate(
                    items=[SaleItemCreate(product_id=case, quantity=1)],
                    payment_method=PaymentMethod.CASH,
                    payment_amount=25_000,
                ),
            )
        numbers.append(trx.transaction_number)

    assert [n.rsplit("-", 1)[1] for n in numbers] == ["000001", "000002", "000003"]
    assert len(await list_sale_transactions(db_session)) == 3
    assert await _stock(db_session, case) == 7


@pytest.mark.asyncio
async def test_amounts_above_32_bit_are_stored_exactly(db_session) -> None:
    async with db_session.begin():
        server = await _product(
            db_session, name="Server Rack", stock=2, buy=2_400_000_000, retail=2_600_000_000, reseller=2_500_000_000
        )
        trx = await create_sale_transaction(
            db_session,
            actor=ACTOR,
            data=SaleCreate(
                items=[SaleItemCreate(product_id=server, quantity=1)],
                payment_method=PaymentMethod.INSTALLMENT,
                payment_amount=100_000_000,
            ),
        )
    trx_id = trx.id

    loaded = await get_sale_transaction(db_session, trx_id)
    assert loaded.total == 2_600_000_000
    assert loaded.remaining_amount == 2_500_000_000

    installment = await get_installment(db_session, trx_id)
    assert installment.total_amount == 2_600_000_000
    assert installment.remaining_amount == 2_500_000_000


def test_sale_input_rejects_amounts_above_limits() -> None:
    item = SaleItemCreate(product_id=uuid.uuid4(), quantity=1)
    SaleCreate(items=[item], payment_method=PaymentMethod.CASH, payment_amount=MAX_AMOUNT)

    with pytest.raises(ValidationError):
        SaleCreate(items=[item], payment_method=PaymentMethod.CASH, payment_amount=MAX_AMOUNT + 1)
    with pytest.raises(ValidationError):
        SaleCreate(items=[item], discount=MAX_AMOUNT + 1, payment_method=PaymentMethod.CASH, payment_amount=0)
    with pytest.raises(ValidationError):
        SaleItemCreate(product_id=uuid.uuid4(), quantity=MAX_QUANTITY + 1)
