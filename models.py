"""
Data models for TransportLedger

Sign convention: balance = debits - credits. A positive balance means we owe
the account holder, a negative balance means they owe us.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union


class TransactionType(str, Enum):
    """Debit raises the amount owed, credit lowers it"""
    DEBIT = "debit"    # a cost incurred, e.g. a freight charge
    CREDIT = "credit"  # a payment made


class TransactionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class Account:
    """Counterparty that owns a transaction history (a transporter)"""
    id: str
    name: str
    phone: str = ""
    vehicle_number: str = ""
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Transaction:
    """Single financial event for one account"""
    id: str
    account_id: str
    date: Union[str, date]  # YYYY-MM-DD
    type: TransactionType
    amount: Decimal
    description: str = ""
    status: TransactionStatus = TransactionStatus.PENDING
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class LedgerFilter:
    """Query window and predicates; None means no restriction"""
    date_from: Union[str, date, None] = None
    date_to: Union[str, date, None] = None
    type: Optional[TransactionType] = None
    status: Optional[TransactionStatus] = None


@dataclass(frozen=True)
class BalanceSnapshot:
    total_debits: Decimal
    total_credits: Decimal
    balance: Decimal


@dataclass(frozen=True)
class LedgerRow:
    """Transaction plus the balance after applying it"""
    transaction: Transaction
    running_balance: Decimal


@dataclass(frozen=True)
class LedgerStatement:
    """Output of build_ledger for one account and window"""
    opening_balance: Decimal
    rows: List[LedgerRow]
    closing_balance: Decimal
    filter: LedgerFilter = field(default_factory=LedgerFilter)


@dataclass
class Ledger:
    """Complete book containing all accounts and their transactions"""
    accounts: List[Account]
    transactions: List[Transaction]
    version: int = 1
