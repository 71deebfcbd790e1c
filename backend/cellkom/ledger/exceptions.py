"""
Ledger exceptions.

Exception Hierarchy:
    LedgerError (base)
    ├── InvalidAmount - amount violates the non-negative / positive precondition
    └── EntryNotFound - referenced ledger entry does not exist

Creating an entry whose id already exists is not an error; it is a no-op.
"""

from __future__ import annotations

from typing import Any


class LedgerError(Exception):
    default_error_code: str = "LEDGER_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error_code": self.error_code, "message": self.message, "details": self.details}


class InvalidAmount(LedgerError):
    default_error_code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, amount: int, reason: str, details: dict[str, Any] | None = None):
        self.field = field
        self.amount = amount
        full_details: dict[str, Any] = {"field": field, "amount": amount}
        if details:
            full_details.update(details)
        super().__init__(f"Invalid {field}: {amount} ({reason})", details=full_details)


class EntryNotFound(LedgerError):
    default_error_code: str = "NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Ledger entry {entry_id} not found", details={"entry_id": entry_id})
