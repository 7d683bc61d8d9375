"""
TransportLedger
- Keep a running ledger per transporter: costs (debits) and payments (credits).
- Payments wait for approval; only approved entries move a balance.
- Print or export a statement with opening/closing balances for any date range.

Run:
  transport-ledger --help

Dependencies:
  pip install openpyxl
"""
from __future__ import annotations
import argparse
import os
import sys
from typing import List, Optional

from computations import build_ledger
from config import default_ledger_path, default_settings_path, load_ledger, load_settings, save_ledger
from csv_handler import (
    LEDGER_COLUMNS,
    export_ledger_to_csv,
    import_transactions_from_csv,
    ledger_filename,
    ledger_rows_to_records,
)
from excel_export import export_balances_excel, export_ledger_excel
from exceptions import LedgerError, ValidationError
from logging_setup import configure_logging, get_logger
from models import Account, LedgerFilter, TransactionStatus
from store import TransactionStore
from utils import balance_label, format_currency, parse_status, parse_type, today_str

logger = get_logger("transport_ledger.cli")


def _find_account(store: TransactionStore, ref: str) -> Account:
    """Resolve an account by id or (case-insensitive) name"""
    for a in store.ledger.accounts:
        if a.id == ref:
            return a
    matches = [a for a in store.ledger.accounts if a.name.lower() == ref.strip().lower()]
    if len(matches) > 1:
        raise ValidationError(f"{len(matches)} accounts are named {ref!r}; use the account id")
    if matches:
        return matches[0]
    return store.get_account(ref)


def _print_table(headers: List[str], rows: List[List[str]]) -> None:
    widths = [len(h) for h in headers]
    for r in rows:
        widths = [max(w, len(str(v))) for w, v in zip(widths, r)]
    print("  ".join(h.ljust(w) for h, w in zip(headers, widths)))
    print("  ".join("-" * w for w in widths))
    for r in rows:
        print("  ".join(str(v).ljust(w) for v, w in zip(r, widths)))


# ---------- Commands ----------
def cmd_accounts(store, args, settings) -> bool:
    rows = []
    for account, snap in store.accounts_with_balances():
        rows.append([
            account.name,
            account.vehicle_number,
            format_currency(abs(snap.balance), settings.currency_symbol),
            balance_label(snap.balance),
            account.id,
        ])
    _print_table(["Name", "Vehicle", "Balance", "Position", "Id"], rows)
    if args.xlsx:
        export_balances_excel(store.accounts_with_balances(), args.xlsx)
        print(f"wrote {args.xlsx}")
    return False


def cmd_add_account(store, args, settings) -> bool:
    account = store.add_account(args.name, phone=args.phone, vehicle_number=args.vehicle)
    print(account.id)
    return True


def cmd_add(store, args, settings) -> bool:
    account = _find_account(store, args.account)
    t = store.add_transaction(account.id, args.date, args.type, args.amount, args.description)
    print(f"{t.id} {t.status.value}")
    return True


def cmd_import(store, args, settings) -> bool:
    account = _find_account(store, args.account)
    txns = store.import_transactions(account.id, import_transactions_from_csv(args.csv, account.id))
    pending = sum(1 for t in txns if t.status == TransactionStatus.PENDING)
    print(f"imported {len(txns)} transactions ({pending} awaiting approval)")
    return True


def cmd_approve(store, args, settings) -> bool:
    account = _find_account(store, args.account)
    store.approve_transaction(account.id, args.transaction, args.by)
    return True


def cmd_reject(store, args, settings) -> bool:
    account = _find_account(store, args.account)
    store.reject_transaction(account.id, args.transaction, args.by, args.reason)
    return True


def cmd_pending(store, args, settings) -> bool:
    rows = [
        [t.created_at[:10], account.name, t.description,
         format_currency(t.amount, settings.currency_symbol), t.id]
        for account, t in store.pending_payments()
    ]
    _print_table(["Requested", "Account", "Description", "Amount", "Id"], rows)
    return False


def cmd_balance(store, args, settings) -> bool:
    account = _find_account(store, args.account)
    snap = store.account_balance(account.id)
    sym = settings.currency_symbol
    print(f"{account.name}")
    print(f"  Total debits:  {format_currency(snap.total_debits, sym)}")
    print(f"  Total credits: {format_currency(snap.total_credits, sym)}")
    print(f"  Balance:       {format_currency(abs(snap.balance), sym)} ({balance_label(snap.balance)})")
    return False


def cmd_ledger(store, args, settings) -> bool:
    account = _find_account(store, args.account)
    ledger_filter = LedgerFilter(
        date_from=args.date_from,
        date_to=args.date_to,
        type=parse_type(args.type) if args.type else None,
        status=parse_status(args.status) if args.status else None,
    )
    statement = build_ledger(store.get_transactions_for_account(account.id), ledger_filter)
    _print_table(LEDGER_COLUMNS, ledger_rows_to_records(statement))
    if args.csv:
        path = _export_path(args.csv, account, ledger_filter, "csv")
        export_ledger_to_csv(statement, path)
        print(f"wrote {path}")
    if args.xlsx:
        path = _export_path(args.xlsx, account, ledger_filter, "xlsx")
        export_ledger_excel(account, statement, path, settings.currency_symbol)
        print(f"wrote {path}")
    return False


def _export_path(target: str, account: Account, ledger_filter: LedgerFilter, ext: str) -> str:
    """A directory target gets the standard <name>_ledger_... file name"""
    if os.path.isdir(target):
        return os.path.join(target, ledger_filename(account.name, ledger_filter, ext))
    return target


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="transport-ledger", description="Transporter running-balance ledger")
    parser.add_argument("--ledger", default=None, help="ledger JSON file (default: app data dir)")
    parser.add_argument("--settings", default=None, help="settings JSON file (default: app data dir)")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("accounts", help="list accounts with balances")
    p.add_argument("--xlsx", help="also export balances to this .xlsx file")
    p.set_defaults(func=cmd_accounts)

    p = sub.add_parser("add-account", help="create an account")
    p.add_argument("name")
    p.add_argument("--phone", default="")
    p.add_argument("--vehicle", default="")
    p.set_defaults(func=cmd_add_account)

    p = sub.add_parser("add", help="record a debit (cost) or credit (payment)")
    p.add_argument("account", help="account id or name")
    p.add_argument("type", help="debit/cost or credit/payment")
    p.add_argument("amount")
    p.add_argument("description", nargs="?", default="")
    p.add_argument("--date", default=today_str())
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("import", help="import transactions from CSV")
    p.add_argument("account", help="account id or name")
    p.add_argument("csv")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("approve", help="approve a pending transaction")
    p.add_argument("account")
    p.add_argument("transaction")
    p.add_argument("--by", required=True)
    p.set_defaults(func=cmd_approve)

    p = sub.add_parser("reject", help="reject a pending transaction")
    p.add_argument("account")
    p.add_argument("transaction")
    p.add_argument("--by", required=True)
    p.add_argument("--reason", required=True)
    p.set_defaults(func=cmd_reject)

    p = sub.add_parser("pending", help="list payments awaiting approval")
    p.set_defaults(func=cmd_pending)

    p = sub.add_parser("balance", help="show an account's approved balance")
    p.add_argument("account")
    p.set_defaults(func=cmd_balance)

    p = sub.add_parser("ledger", help="print a running-balance statement")
    p.add_argument("account")
    p.add_argument("--from", dest="date_from")
    p.add_argument("--to", dest="date_to")
    p.add_argument("--type")
    p.add_argument("--status")
    p.add_argument("--csv", help="also export to this .csv file (or directory)")
    p.add_argument("--xlsx", help="also export to this .xlsx file (or directory)")
    p.set_defaults(func=cmd_ledger)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application"""
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args.settings or default_settings_path())
        configure_logging(args.log_level, settings.log_level)
        ledger_path = args.ledger or default_ledger_path()
        store = TransactionStore(load_ledger(ledger_path), settings.approval_required)
        if args.func(store, args, settings):
            save_ledger(store.ledger, ledger_path)
    except (LedgerError, ValueError) as exc:
        logger.debug("command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
