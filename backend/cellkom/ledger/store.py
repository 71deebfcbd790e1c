from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from cellkom.ledger.entry import apply_payment, create_ledger_entry
from cellkom.ledger.exceptions import EntryNotFound, LedgerError
from cellkom.ledger.types import LedgerEntry, NewLedgerEntry


logger = logging.getLogger(__name__)


@runtime_checkable
class LedgerObserver(Protocol):
    def on_change(self, snapshot: list[LedgerEntry]) -> None: ...


@dataclass(frozen=True)
class LedgerResult:
    ok: bool
    entry: LedgerEntry | None = None
    error: LedgerError | None = None
    # False when `add` hit an existing id.
    created: bool = False


class LedgerStore:
    """
    In-process collection of ledger entries.

    Mutations go through `add` / `add_payment`, which never raise for expected
    failures (unknown id, bad amount) but return a failed `LedgerResult`.
    Each successful mutation notifies every subscribed observer with a fresh
    snapshot. The read-modify-write cycle and the notification run under one
    store-wide lock, so concurrent payments from several threads are not lost.

    Build one store per application (or per test); nothing here is global.
    """

    def __init__(self, entries: list[LedgerEntry] | None = None) -> None:
        self._lock = threading.RLock()
        self._entries: dict[str, LedgerEntry] = {}
        self._observers: list[LedgerObserver] = []
        for entry in entries or []:
            self._entries.setdefault(entry.id, entry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_all(self) -> list[LedgerEntry]:
        with self._lock:
            return list(self._entries.values())

    def get_by_id(self, entry_id: str) -> LedgerEntry | None:
        with self._lock:
            return self._entries.get(entry_id)

    def add(self, data: NewLedgerEntry) -> LedgerResult:
        with self._lock:
            existing = self._entries.get(data.id)
            if existing is not None:
                return LedgerResult(ok=True, entry=existing, created=False)
            try:
                entry = create_ledger_entry(data)
            except LedgerError as e:
                return LedgerResult(ok=False, error=e)

            self._entries[entry.id] = entry
            logger.info("Ledger entry created", extra={"entry_id": entry.id, "status": entry.status.value})
            self._notify()
            return LedgerResult(ok=True, entry=entry, created=True)

    def add_payment(self, entry_id: str, amount: int) -> LedgerResult:
        with self._lock:
            current = self._entries.get(entry_id)
            if current is None:
                return LedgerResult(ok=False, error=EntryNotFound(entry_id))
            try:
                updated = apply_payment(current, amount)
            except LedgerError as e:
                return LedgerResult(ok=False, entry=current, error=e)

            self._entries[entry_id] = updated
            if updated.is_settled and not current.is_settled:
                logger.info("Ledger entry settled", extra={"entry_id": entry_id})
            self._notify()
            return LedgerResult(ok=True, entry=updated)

    def subscribe(self, observer: LedgerObserver) -> Callable[[], None]:
        """Register `observer` once; the returned callable removes it again (idempotent)."""
        with self._lock:
            if observer not in self._observers:
                self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = list(self._entries.values())
        for observer in list(self._observers):
            try:
                observer.on_change(list(snapshot))
            except Exception:
                logger.exception("Ledger observer %r failed", observer)
