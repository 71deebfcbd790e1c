from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from cellkom.ledger.exceptions import InvalidAmount
from cellkom.ledger.types import LedgerEntry, LedgerStatus, NewLedgerEntry, Payment


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def derive_balance(*, total_amount: int, paid_amount: int) -> tuple[int, LedgerStatus]:
    """
    Remaining amount and status for a debt.

    Overpayment clamps the remaining amount at 0 instead of going negative.
    """
    remaining = max(total_amount - paid_amount, 0)
    status = LedgerStatus.SETTLED if remaining <= 0 else LedgerStatus.UNSETTLED
    return remaining, status


def create_ledger_entry(data: NewLedgerEntry, *, now: datetime | None = None) -> LedgerEntry:
    if data.total_amount < 0:
        raise InvalidAmount("total_amount", data.total_amount, "must be >= 0")
    if data.initial_payment < 0:
        raise InvalidAmount("initial_payment", data.initial_payment, "must be >= 0")

    remaining, status = derive_balance(total_amount=data.total_amount, paid_amount=data.initial_payment)
    return LedgerEntry(
        id=data.id,
        kind=data.kind,
        customer_name=data.customer_name,
        transaction_date=data.transaction_date,
        total_amount=data.total_amount,
        paid_amount=data.initial_payment,
        remaining_amount=remaining,
        status=status,
        # A zero initial payment is still recorded as the creation audit row.
        payment_history=(Payment(date=now or _utcnow(), amount=data.initial_payment),),
        details=data.details,
    )


def apply_payment(entry: LedgerEntry, amount: int, *, now: datetime | None = None) -> LedgerEntry:
    if amount <= 0:
        raise InvalidAmount("payment_amount", amount, "must be > 0", details={"entry_id": entry.id})

    paid = entry.paid_amount + amount
    remaining, status = derive_balance(total_amount=entry.total_amount, paid_amount=paid)
    return replace(
        entry,
        paid_amount=paid,
        remaining_amount=remaining,
        status=status,
        payment_history=entry.payment_history + (Payment(date=now or _utcnow(), amount=amount),),
    )


def check_invariants(entry: LedgerEntry) -> list[str]:
    """Return human-readable violations; an empty list means the entry is consistent."""
    problems: list[str] = []
    remaining, status = derive_balance(total_amount=entry.total_amount, paid_amount=entry.paid_amount)
    if entry.remaining_amount != remaining:
        problems.append(f"remaining_amount={entry.remaining_amount}, expected {remaining}")
    if entry.status != status:
        problems.append(f"status={entry.status}, expected {status}")
    if not entry.payment_history:
        problems.append("payment_history is empty")
    history_sum = sum(p.amount for p in entry.payment_history)
    if history_sum != entry.paid_amount:
        problems.append(f"payment_history sums to {history_sum}, paid_amount={entry.paid_amount}")
    return problems
