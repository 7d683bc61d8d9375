"""
Exception types for TransportLedger
"""
from __future__ import annotations
from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger errors"""


class ValidationError(LedgerError):
    """Malformed transaction or filter input"""

    def __init__(self, message: str, transaction_id: Optional[str] = None):
        self.transaction_id = transaction_id
        if transaction_id is not None:
            message = f"transaction {transaction_id}: {message}"
        super().__init__(message)


class TransitionError(LedgerError):
    """Illegal transaction status change"""


class NotFoundError(LedgerError, KeyError):
    """Unknown account or transaction id"""

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0]) if self.args else ""
