"""
Utility functions for TransportLedger application
"""
from __future__ import annotations
import os
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from models import TransactionStatus, TransactionType

TWO_PLACES = Decimal("0.01")

# Names used by older records
_TYPE_ALIASES = {
    "cost": TransactionType.DEBIT,
    "payment": TransactionType.CREDIT,
}


def today_str() -> str:
    """Get today's date as ISO string"""
    return date.today().isoformat()


def now_iso() -> str:
    """Current UTC timestamp as ISO string"""
    return datetime.now(timezone.utc).isoformat()


def parse_date(s: Union[str, date]) -> date:
    """Parse YYYY-MM-DD date string; ISO timestamps are cut to their date"""
    if isinstance(s, datetime):
        return s.date()
    if isinstance(s, date):
        return s
    if not isinstance(s, str):
        raise ValueError(f"not a date: {s!r}")
    s = s.strip()
    if "T" in s:
        s = s.split("T", 1)[0]
    return datetime.strptime(s, "%Y-%m-%d").date()


def parse_amount(x: Union[str, int, float, Decimal]) -> Decimal:
    """Convert to a finite, non-negative Decimal; raises ValueError otherwise"""
    if isinstance(x, bool):
        raise ValueError(f"not an amount: {x!r}")
    try:
        value = x if isinstance(x, Decimal) else Decimal(str(x).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"not an amount: {x!r}")
    if not value.is_finite():
        raise ValueError(f"amount is not finite: {x!r}")
    if value < 0:
        raise ValueError(f"amount is negative: {x!r}")
    return value


def parse_type(x: Union[str, TransactionType]) -> TransactionType:
    """Parse transaction type, accepting the legacy cost/payment names"""
    if isinstance(x, TransactionType):
        return x
    key = str(x).strip().lower()
    if key in _TYPE_ALIASES:
        return _TYPE_ALIASES[key]
    return TransactionType(key)


def parse_status(x: Union[str, TransactionStatus]) -> TransactionStatus:
    if isinstance(x, TransactionStatus):
        return x
    return TransactionStatus(str(x).strip().lower())


def format_amount(amount: Decimal) -> str:
    """Two decimals, no thousands separator (CSV safe)"""
    return str(Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def format_currency(amount: Decimal, symbol: str = "₹") -> str:
    """
    Format with Indian digit grouping (12,34,567.5) and at most two decimals.
    Sign is kept; callers pass abs() when showing a labelled balance.
    """
    value = Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, frac = f"{abs(value):.2f}".split(".")
    frac = frac.rstrip("0")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{symbol}{whole}" + (f".{frac}" if frac else "")


def balance_label(balance: Decimal) -> str:
    """Who owes whom for a balance (positive -> we owe)"""
    if balance > 0:
        return "We owe"
    if balance < 0:
        return "They owe"
    return "Settled"


def app_dir() -> str:
    """
    Get application data directory: ~/Library/Application Support/TransportLedger,
    or $TRANSPORT_LEDGER_HOME when set. Creates directory if it doesn't exist.
    """
    path = os.environ.get("TRANSPORT_LEDGER_HOME")
    if not path:
        base = os.path.expanduser("~/Library/Application Support")
        path = os.path.join(base, "TransportLedger")
    os.makedirs(path, exist_ok=True)
    return path
