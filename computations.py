"""
Balance computations for TransportLedger

Every function here is pure: inputs are read, never mutated, and the whole
input is validated before anything is summed.
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Union

from exceptions import ValidationError
from logging_setup import get_logger
from models import (
    BalanceSnapshot,
    LedgerFilter,
    LedgerRow,
    LedgerStatement,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from utils import parse_amount, parse_date, parse_status, parse_type

logger = get_logger("transport_ledger.computations")

ZERO = Decimal("0")


def validate_transaction(t: Transaction) -> None:
    """Raise ValidationError if amount, date, type or status is malformed"""
    tid = getattr(t, "id", None)
    if t.date is None or t.date == "":
        raise ValidationError("missing date", tid)
    try:
        parse_date(t.date)
    except ValueError:
        raise ValidationError(f"unparseable date {t.date!r}", tid)
    if t.amount is None:
        raise ValidationError("missing amount", tid)
    try:
        parse_amount(t.amount)
    except ValueError:
        raise ValidationError(f"invalid amount {t.amount!r}", tid)
    try:
        parse_type(t.type)
    except ValueError:
        raise ValidationError(f"unknown type {t.type!r}", tid)
    try:
        parse_status(t.status)
    except ValueError:
        raise ValidationError(f"unknown status {t.status!r}", tid)


def validate_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Validate in input order, stopping at the first bad record"""
    out = list(transactions)
    for t in out:
        validate_transaction(t)
    return out


def signed_amount(t: Transaction) -> Decimal:
    """Effect of one transaction on the balance (zero unless approved)"""
    if parse_status(t.status) != TransactionStatus.APPROVED:
        return ZERO
    amount = parse_amount(t.amount)
    return amount if parse_type(t.type) == TransactionType.DEBIT else -amount


def _filter_date(value: Union[str, date, None], name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationError(f"unparseable {name} {value!r}")


def compute_account_balance(transactions: Iterable[Transaction]) -> BalanceSnapshot:
    """
    Totals over approved transactions, regardless of date.
    Returns BalanceSnapshot(total_debits, total_credits, balance).
    """
    txns = validate_transactions(transactions)
    debits = ZERO
    credits = ZERO
    for t in txns:
        if parse_status(t.status) != TransactionStatus.APPROVED:
            continue
        if parse_type(t.type) == TransactionType.DEBIT:
            debits += parse_amount(t.amount)
        else:
            credits += parse_amount(t.amount)
    return BalanceSnapshot(total_debits=debits, total_credits=credits, balance=debits - credits)


def compute_opening_balance(
    transactions: Iterable[Transaction],
    window_start: Union[str, date, None],
) -> Decimal:
    """Net of approved transactions strictly before window_start (0 when unset)"""
    txns = validate_transactions(transactions)
    start = _filter_date(window_start, "window start")
    if start is None:
        return ZERO
    return sum((signed_amount(t) for t in txns if parse_date(t.date) < start), ZERO)


def filter_transactions(
    transactions: Iterable[Transaction],
    ledger_filter: Optional[LedgerFilter] = None,
) -> List[Transaction]:
    """Apply date range (inclusive), type and status predicates"""
    txns = validate_transactions(transactions)
    f = ledger_filter or LedgerFilter()
    start = _filter_date(f.date_from, "date_from")
    end = _filter_date(f.date_to, "date_to")
    try:
        want_type = parse_type(f.type) if f.type else None
        want_status = parse_status(f.status) if f.status else None
    except ValueError as exc:
        raise ValidationError(f"bad filter: {exc}")

    out = []
    for t in txns:
        d = parse_date(t.date)
        if start and d < start:
            continue
        if end and d > end:
            continue
        if want_type and parse_type(t.type) != want_type:
            continue
        if want_status and parse_status(t.status) != want_status:
            continue
        out.append(t)
    return out


def sort_chronologically(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Ascending by date; same-day entries keep their input order"""
    return sorted(transactions, key=lambda t: parse_date(t.date))


def build_ledger(
    transactions: Iterable[Transaction],
    ledger_filter: Optional[LedgerFilter] = None,
) -> LedgerStatement:
    """
    Build the running-balance statement for one account.

    Opening balance comes from approved entries before date_from. Rows are the
    filtered entries in date order; each row's running balance is the total
    after that entry. Pending and rejected rows are listed but carry the
    previous total unchanged.
    """
    txns = validate_transactions(transactions)
    f = ledger_filter or LedgerFilter()

    opening = compute_opening_balance(txns, f.date_from)
    window = sort_chronologically(filter_transactions(txns, f))

    running = opening
    rows = []
    for t in window:
        running += signed_amount(t)
        rows.append(LedgerRow(transaction=t, running_balance=running))

    logger.debug(
        "ledger built: %d of %d transactions in window, opening=%s closing=%s",
        len(rows), len(txns), opening, running,
    )
    return LedgerStatement(opening_balance=opening, rows=rows, closing_balance=running, filter=f)
