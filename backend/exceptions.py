"""
Ledger errors.

Every failure the ledger core can report is one of these. `reason` is a stable
machine-readable code the dashboard switches on; `message` is for humans.
"""

from decimal import Decimal
from typing import Optional


class LedgerError(Exception):
    """Base exception for all ledger failures."""

    status_code = 400
    default_reason = "ledger_error"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason or self.default_reason

    def to_dict(self) -> dict:
        return {"success": False, "reason": self.reason, "message": self.message}


class ValidationError(LedgerError):
    """Missing or malformed input, detected before anything is written."""

    status_code = 422
    default_reason = "validation_error"


class IntegrityError(LedgerError):
    """A referenced account, currency or parent does not exist or is inactive."""

    status_code = 400
    default_reason = "integrity_error"


class NotFoundError(IntegrityError):
    """The record an operation targets does not exist."""

    status_code = 404
    default_reason = "not_found"


class ConflictError(LedgerError):
    """The operation would break a uniqueness or usage invariant."""

    status_code = 409
    default_reason = "conflict"


class DuplicateCeiling(ConflictError):
    default_reason = "duplicate_ceiling"


class UnbalancedEntry(LedgerError):
    """Debits and credits of a journal group do not agree."""

    status_code = 500
    default_reason = "unbalanced_entry"


class InvalidLine(LedgerError):
    """A journal line, or the shape of the line set, is malformed."""

    status_code = 500
    default_reason = "invalid_line"


class CeilingExceeded(LedgerError):
    """A posting would push an account past its configured ceiling."""

    status_code = 409
    default_reason = "ceiling_exceeded"

    def __init__(self, message: str, limit: Decimal, attempted: Decimal, balance: Decimal, account_id: int):
        super().__init__(message)
        self.limit = limit
        self.attempted = attempted
        self.balance = balance
        self.account_id = account_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            account_id=self.account_id,
            limit=str(self.limit),
            attempted=str(self.attempted),
            balance=str(self.balance),
        )
        return data
