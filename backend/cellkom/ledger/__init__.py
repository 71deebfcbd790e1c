"""
Installment ledger: debts from sales or service transactions and the partial
payments applied to them.

Usage:
    from cellkom.ledger import LedgerKind, LedgerStore, NewLedgerEntry

    store = LedgerStore()
    store.add(NewLedgerEntry(
        id="trx-1",
        kind=LedgerKind.SALE,
        customer_name="Budi Santoso",
        transaction_date=now,
        total_amount=850_000,
        initial_payment=300_000,
    ))
    result = store.add_payment("trx-1", 550_000)
    assert result.ok and result.entry.is_settled
"""

from cellkom.ledger.entry import apply_payment, check_invariants, create_ledger_entry, derive_balance
from cellkom.ledger.exceptions import EntryNotFound, InvalidAmount, LedgerError
from cellkom.ledger.store import LedgerObserver, LedgerResult, LedgerStore
from cellkom.ledger.types import LedgerEntry, LedgerKind, LedgerStatus, NewLedgerEntry, Payment

__all__ = [
    "EntryNotFound",
    "InvalidAmount",
    "LedgerEntry",
    "LedgerError",
    "LedgerKind",
    "LedgerObserver",
    "LedgerResult",
    "LedgerStatus",
    "LedgerStore",
    "NewLedgerEntry",
    "Payment",
    "apply_payment",
    "check_invariants",
    "create_ledger_entry",
    "derive_balance",
]
