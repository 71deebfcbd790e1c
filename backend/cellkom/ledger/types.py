"""
Value types of the installment ledger.

A ledger entry tracks one debt (a sale or a service transaction that was not
paid in full) and the payments applied to it. Entries are frozen: every change
produces a new value through `cellkom.ledger.entry`, which keeps the derived
fields consistent.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class LedgerKind(StrEnum):
    SALE = "SALE"
    SERVICE = "SERVICE"
    # Receivables recorded by hand, not backed by a sale or service.
    MANUAL = "MANUAL"


class LedgerStatus(StrEnum):
    UNSETTLED = "UNSETTLED"
    SETTLED = "SETTLED"


@dataclass(frozen=True)
class Payment:
    date: datetime
    amount: int


@dataclass(frozen=True)
class NewLedgerEntry:
    """Creation payload supplied by the sale/service workflow."""

    id: str
    kind: LedgerKind
    customer_name: str
    transaction_date: datetime
    total_amount: int
    initial_payment: int
    details: str = ""


@dataclass(frozen=True)
class LedgerEntry:
    """
    One installment debt.

    Attributes:
        id: Id of the originating transaction; unique within a store.
        total_amount: Original debt, immutable.
        paid_amount: Sum of all payments, including overpayment.
        remaining_amount: max(total_amount - paid_amount, 0).
        status: SETTLED iff remaining_amount == 0.
        payment_history: Chronological, append-only.
    """

    id: str
    kind: LedgerKind
    customer_name: str
    transaction_date: datetime
    total_amount: int
    paid_amount: int
    remaining_amount: int
    status: LedgerStatus
    payment_history: tuple[Payment, ...]
    details: str = ""

    @property
    def is_settled(self) -> bool:
        return self.status == LedgerStatus.SETTLED

    @property
    def overpaid_amount(self) -> int:
        return max(self.paid_amount - self.total_amount, 0)
