from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from cellkom.ledger.exceptions import EntryNotFound, InvalidAmount
from cellkom.ledger.types import LedgerKind, LedgerStatus, NewLedgerEntry
from cellkom.models.installment import Installment, InstallmentPayment
from cellkom.schemas.customer import CustomerCreate
from cellkom.services.audit import audit_trail
from cellkom.services.customers import create_customer
from cellkom.services.installments import (
    add_installment_payment,
    create_installment,
    create_manual_installment,
    get_installment,
    get_payment_history,
    list_installments,
    to_ledger_entry,
)


ACTOR = "kasir"


def _new(entry_id: uuid.UUID, *, total: int = 850_000, initial: int = 300_000) -> NewLedgerEntry:
    return NewLedgerEntry(
        id=str(entry_id),
        kind=LedgerKind.SALE,
        customer_name="Budi Santoso",
        transaction_date=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc),
        total_amount=total,
        initial_payment=initial,
        details="1 item(s)",
    )


@pytest.mark.asyncio
async def test_create_installment_is_idempotent(db_session) -> None:
    entry_id = uuid.uuid4()
    async with db_session.begin():
        row, created = await create_installment(db_session, actor=ACTOR, data=_new(entry_id))
        again, created_again = await create_installment(
            db_session, actor=ACTOR, data=_new(entry_id, total=1, initial=1)
        )

    assert created is True
    assert created_again is False
    assert again is row
    assert row.total_amount == 850_000
    assert row.remaining_amount == 550_000
    assert row.status == LedgerStatus.UNSETTLED

    count = (await db_session.execute(select(func.count(Installment.id)))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_zero_initial_payment_writes_history_row(db_session) -> None:
    entry_id = uuid.uuid4()
    async with db_session.begin():
        await create_installment(db_session, actor=ACTOR, data=_new(entry_id, total=500_000, initial=0))

    payments = await get_payment_history(db_session, entry_id)
    assert [(p.seq, p.amount, p.received_by) for p in payments] == [(0, 0, ACTOR)]


@pytest.mark.asyncio
async def test_payments_settle_the_installment(db_session) -> None:
    entry_id = uuid.uuid4()
    async with db_session.begin():
        await create_installment(db_session, actor=ACTOR, data=_new(entry_id))

    async with db_session.begin():
        row = await add_installment_payment(db_session, actor=ACTOR, installment_id=entry_id, amount=200_000)
    assert row.paid_amount == 500_000
    assert row.remaining_amount == 350_000
    assert row.status == LedgerStatus.UNSETTLED

    async with db_session.begin():
        row = await add_installment_payment(db_session, actor=ACTOR, installment_id=str(entry_id), amount=350_000)
    assert row.remaining_amount == 0
    assert row.status == LedgerStatus.SETTLED

    row = await get_installment(db_session, entry_id)
    entry = to_ledger_entry(row)
    assert [p.amount for p in entry.payment_history] == [300_000, 200_000, 350_000]
    assert sum(p.amount for p in entry.payment_history) == entry.paid_amount == 850_000
    assert entry.id == str(entry_id)

    trail = await audit_trail(db_session, entity_type="installment", entity_id=entry_id)
    assert sorted(a.action for a in trail) == ["create", "payment", "payment"]
    assert {a.actor for a in trail} == {ACTOR}
    assert max(a.after["paid_amount"] for a in trail) == 850_000


@pytest.mark.asyncio
async def test_overpayment_is_accepted_by_default(db_session) -> None:
    entry_id = uuid.uuid4()
    async with db_session.begin():
        await create_installment(db_session, actor=ACTOR, data=_new(entry_id, total=100_000, initial=0))
        row = await add_installment_payment(db_session, actor=ACTOR, installment_id=entry_id, amount=150_000)

    assert row.paid_amount == 150_000
    assert row.remaining_amount == 0
    assert row.status == LedgerStatus.SETTLED
    assert [p.amount for p in row.payments] == [0, 150_000]


@pytest.mark.asyncio
async def test_strict_mode_rejects_overpayment_and_keeps_state(db_session) -> None:
    entry_id = uuid.uuid4()
    async with db_session.begin():
        await create_installment(db_session, actor=ACTOR, data=_new(entry_id))

    with pytest.raises(InvalidAmount) as exc:
        async with db_session.begin():
            await add_installment_payment(
                db_session, actor=ACTOR, installment_id=entry_id, amount=550_001, allow_overpayment=False
            )
    assert exc.value.details["remaining_amount"] == 550_000

    row = await get_installment(db_session, entry_id)
    assert row.paid_amount == 300_000
    assert len(row.payments) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -500])
async def test_non_positive_payment_is_rejected(db_session, amount: int) -> None:
    entry_id = uuid.uuid4()
    async with db_session.begin():
        await create_installment(db_session, actor=ACTOR, data=_new(entry_id))

    with pytest.raises(InvalidAmount):
        async with db_session.begin():
            await add_installment_payment(db_session, actor=ACTOR, installment_id=entry_id, amount=amount)

    count = (
        await db_session.execute(
            select(func.count(InstallmentPayment.id)).where(InstallmentPayment.installment_id == entry_id)
        )
    ).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_unknown_installment_raises_entry_not_found(db_session) -> None:
    with pytest.raises(EntryNotFound):
        async with db_session.begin():
            await add_installment_payment(db_session, actor=ACTOR, installment_id=uuid.uuid4(), amount=1000)

    with pytest.raises(EntryNotFound):
        await get_installment(db_session, "not-a-uuid")


@pytest.mark.asyncio
async def test_manual_installment(db_session) -> None:
    async with db_session.begin():
        customer = await create_customer(db_session, actor=ACTOR, data=CustomerCreate(name="Siti", phone="0812"))
        row = await create_manual_installment(
            db_session, actor=ACTOR, customer_id=customer.id, amount=250_000, description="  Pinjaman pulsa "
        )

    assert row.kind == LedgerKind.MANUAL
    assert row.customer_id == customer.id
    assert row.customer_name == "Siti"
    assert row.paid_amount == 0
    assert row.remaining_amount == 250_000
    assert row.details == "Pinjaman pulsa"
    assert [p.amount for p in row.payments] == [0]


@pytest.mark.asyncio
async def test_manual_installment_validation(db_session) -> None:
    with pytest.raises(InvalidAmount):
        async with db_session.begin():
            await create_manual_installment(db_session, actor=ACTOR, customer_id=uuid.uuid4(), amount=0)

    with pytest.raises(ValueError, match="Customer not found"):
        async with db_session.begin():
            await create_manual_installment(db_session, actor=ACTOR, customer_id=uuid.uuid4(), amount=1000)


@pytest.mark.asyncio
async def test_list_installments_filters_by_status(db_session) -> None:
    open_id, settled_id = uuid.uuid4(), uuid.uuid4()
    async with db_session.begin():
        await create_installment(db_session, actor=ACTOR, data=_new(open_id))
        await create_installment(db_session, actor=ACTOR, data=_new(settled_id, total=100_000, initial=0))
        await add_installment_payment(db_session, actor=ACTOR, installment_id=settled_id, amount=100_000)

    unsettled = await list_installments(db_session, status=LedgerStatus.UNSETTLED)
    settled = await list_installments(db_session, status=LedgerStatus.SETTLED)

    assert [r.id for r in unsettled] == [open_id]
    assert [r.id for r in settled] == [settled_id]
    assert len(await list_installments(db_session)) == 2
