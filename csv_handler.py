"""
CSV export and import functionality for TransportLedger

Ledger CSV columns: Date, Description, Debit, Credit, Balance, Status.
A transaction row fills exactly one of Debit/Credit; the other cell is blank,
never "0.00".
"""
from __future__ import annotations
import csv
import re
import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional

from config import dict_to_transaction
from exceptions import ValidationError
from models import LedgerFilter, LedgerStatement, Transaction, TransactionType
from utils import format_amount, parse_date, parse_status, parse_type

LEDGER_COLUMNS = ["Date", "Description", "Debit", "Credit", "Balance", "Status"]


def _balance_record(day: str, label: str, amount: Decimal) -> List[str]:
    """Opening/closing line: positive in Debit, negative in Credit, zero in neither"""
    return [
        day,
        label,
        format_amount(amount) if amount > 0 else "",
        format_amount(abs(amount)) if amount < 0 else "",
        format_amount(amount),
        "Balance",
    ]


def ledger_rows_to_records(statement: LedgerStatement, today: Optional[date] = None) -> List[List[str]]:
    """
    Flatten a statement into display rows (without header).
    Opening and closing lines are added only when the window has a start date.
    """
    f = statement.filter
    records = []
    if f.date_from:
        records.append(_balance_record(
            parse_date(f.date_from).isoformat(), "Opening Balance", statement.opening_balance))

    for row in statement.rows:
        t = row.transaction
        is_debit = parse_type(t.type) == TransactionType.DEBIT
        amount = format_amount(t.amount)
        records.append([
            parse_date(t.date).isoformat(),
            t.description,
            amount if is_debit else "",
            "" if is_debit else amount,
            format_amount(row.running_balance),
            parse_status(t.status).value.capitalize(),
        ])

    if f.date_from:
        end = parse_date(f.date_to) if f.date_to else (today or date.today())
        records.append(_balance_record(end.isoformat(), "Closing Balance", statement.closing_balance))
    return records


def export_ledger_to_csv(statement: LedgerStatement, filepath: str, today: Optional[date] = None) -> None:
    """Write a ledger statement to a CSV file"""
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(LEDGER_COLUMNS)
        writer.writerows(ledger_rows_to_records(statement, today))


def import_transactions_from_csv(filepath: str, account_id: str) -> List[Transaction]:
    """
    Import transactions for one account from a CSV file.
    CSV columns: id, date, type, amount, description, status
    Rows without an id get a new one; any malformed row raises ValidationError.
    Nothing is added to a ledger here, see TransactionStore.import_transactions.
    """
    transactions = []

    with open(filepath, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)
        missing = [c for c in ("date", "type", "amount") if c not in (reader.fieldnames or [])]
        if missing:
            raise ValidationError(f"CSV is missing columns: {', '.join(missing)}")

        for row in reader:
            record = {k: (v or "").strip() for k, v in row.items() if k}
            record["id"] = record.get("id") or str(uuid.uuid4())
            record["account_id"] = account_id
            transactions.append(dict_to_transaction(record))

    return transactions


def ledger_filename(account_name: str, ledger_filter: LedgerFilter, ext: str = "csv",
                    today: Optional[date] = None) -> str:
    """<name>_ledger[_<from>_to_<to|current>]_<today>.<ext>"""
    safe = re.sub(r"[^\w.-]+", "_", account_name.strip()) or "account"
    date_range = ""
    if ledger_filter.date_from:
        to = parse_date(ledger_filter.date_to).isoformat() if ledger_filter.date_to else "current"
        date_range = f"_{parse_date(ledger_filter.date_from).isoformat()}_to_{to}"
    return f"{safe}_ledger{date_range}_{(today or date.today()).isoformat()}.{ext}"
