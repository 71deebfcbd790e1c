from __future__ import annotations

import dataclasses
from datetime import datetime, timezone

import pytest

from cellkom.ledger import (
    InvalidAmount,
    LedgerKind,
    LedgerStatus,
    NewLedgerEntry,
    apply_payment,
    check_invariants,
    create_ledger_entry,
    derive_balance,
)


T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
T1 = datetime(2026, 3, 8, 9, 0, tzinfo=timezone.utc)


def _new(total: int = 850_000, initial: int = 300_000, **kw) -> NewLedgerEntry:
    return NewLedgerEntry(
        id=kw.pop("id", "trx-1"),
        kind=kw.pop("kind", LedgerKind.SALE),
        customer_name=kw.pop("customer_name", "Budi Santoso"),
        transaction_date=T0,
        total_amount=total,
        initial_payment=initial,
        **kw,
    )


@pytest.mark.parametrize(
    ("total", "paid", "remaining", "status"),
    [
        (1000, 0, 1000, LedgerStatus.UNSETTLED),
        (1000, 999, 1, LedgerStatus.UNSETTLED),
        (1000, 1000, 0, LedgerStatus.SETTLED),
        (1000, 1500, 0, LedgerStatus.SETTLED),
        (0, 0, 0, LedgerStatus.SETTLED),
    ],
)
def test_derive_balance(total: int, paid: int, remaining: int, status: LedgerStatus) -> None:
    assert derive_balance(total_amount=total, paid_amount=paid) == (remaining, status)


def test_create_ledger_entry_records_initial_payment() -> None:
    entry = create_ledger_entry(_new(details="2 item(s)"), now=T0)

    assert entry.paid_amount == 300_000
    assert entry.remaining_amount == 550_000
    assert entry.status == LedgerStatus.UNSETTLED
    assert [(p.date, p.amount) for p in entry.payment_history] == [(T0, 300_000)]
    assert entry.details == "2 item(s)"
    assert check_invariants(entry) == []


def test_zero_initial_payment_is_still_in_history() -> None:
    entry = create_ledger_entry(_new(total=500_000, initial=0), now=T0)

    assert entry.paid_amount == 0
    assert entry.remaining_amount == 500_000
    assert len(entry.payment_history) == 1
    assert entry.payment_history[0].amount == 0


def test_overpaid_initial_payment_settles_and_clamps() -> None:
    entry = create_ledger_entry(_new(total=100_000, initial=150_000), now=T0)

    assert entry.status == LedgerStatus.SETTLED
    assert entry.remaining_amount == 0
    assert entry.paid_amount == 150_000
    assert entry.overpaid_amount == 50_000
    assert check_invariants(entry) == []


@pytest.mark.parametrize(("total", "initial", "field"), [(-1, 0, "total_amount"), (1000, -5, "initial_payment")])
def test_create_ledger_entry_rejects_negative_amounts(total: int, initial: int, field: str) -> None:
    with pytest.raises(InvalidAmount) as exc:
        create_ledger_entry(_new(total=total, initial=initial))
    assert exc.value.field == field
    assert exc.value.to_dict()["error_code"] == "INVALID_AMOUNT"


def test_apply_payment_appends_history_and_settles() -> None:
    entry = create_ledger_entry(_new(), now=T0)

    partial = apply_payment(entry, 200_000, now=T1)
    assert partial.paid_amount == 500_000
    assert partial.remaining_amount == 350_000
    assert partial.status == LedgerStatus.UNSETTLED

    settled = apply_payment(partial, 350_000, now=T1)
    assert settled.status == LedgerStatus.SETTLED
    assert settled.remaining_amount == 0
    assert [p.amount for p in settled.payment_history] == [300_000, 200_000, 350_000]
    assert sum(p.amount for p in settled.payment_history) == settled.paid_amount

    # The input value is untouched.
    assert entry.paid_amount == 300_000
    assert len(entry.payment_history) == 1


def test_apply_payment_overpayment_keeps_full_amount_in_history() -> None:
    entry = create_ledger_entry(_new(total=100_000, initial=90_000), now=T0)

    updated = apply_payment(entry, 50_000, now=T1)

    assert updated.remaining_amount == 0
    assert updated.paid_amount == 140_000
    assert updated.payment_history[-1].amount == 50_000
    assert check_invariants(updated) == []


@pytest.mark.parametrize("amount", [0, -1, -100_000])
def test_apply_payment_rejects_non_positive_amounts(amount: int) -> None:
    entry = create_ledger_entry(_new(), now=T0)

    with pytest.raises(InvalidAmount) as exc:
        apply_payment(entry, amount)

    assert exc.value.details["entry_id"] == "trx-1"
    assert exc.value.amount == amount


def test_apply_payment_keeps_total_and_identity() -> None:
    entry = create_ledger_entry(_new(kind=LedgerKind.SERVICE), now=T0)
    updated = apply_payment(entry, 1)

    assert (updated.id, updated.kind, updated.customer_name, updated.total_amount, updated.transaction_date) == (
        entry.id,
        entry.kind,
        entry.customer_name,
        entry.total_amount,
        entry.transaction_date,
    )


def test_ledger_entries_are_frozen() -> None:
    entry = create_ledger_entry(_new(), now=T0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.paid_amount = 0  # type: ignore[misc]


def test_check_invariants_reports_inconsistent_values() -> None:
    entry = create_ledger_entry(_new(), now=T0)
    broken = dataclasses.replace(entry, remaining_amount=1, payment_history=())

    problems = check_invariants(broken)

    assert any("remaining_amount" in p for p in problems)
    assert "payment_history is empty" in problems
