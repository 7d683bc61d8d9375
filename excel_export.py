"""
Excel export functionality for TransportLedger
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from computations import compute_account_balance
from csv_handler import LEDGER_COLUMNS, ledger_rows_to_records
from models import Account, BalanceSnapshot, LedgerStatement
from utils import balance_label, format_currency, parse_date

AMOUNT_FORMAT = "#,##0.00"


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            v = cell.value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _cell_value(text: str):
    """Amount cells go in as numbers, blanks stay empty"""
    if text == "":
        return None
    return float(Decimal(text))


def export_ledger_excel(
    account: Account,
    statement: LedgerStatement,
    filepath: str,
    currency_symbol: str = "₹",
    today: Optional[date] = None,
) -> None:
    """
    Export one account's statement to an Excel file with two sheets:
    - Ledger: same rows as the CSV export, opening/closing lines in bold
    - Summary: totals over the approved transactions in the statement
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Ledger"

    ws.append(LEDGER_COLUMNS)
    _style_header(ws, 1)
    ws.freeze_panes = "A2"

    for rec in ledger_rows_to_records(statement, today):
        day, description, debit, credit, balance, status = rec
        ws.append([parse_date(day), description, _cell_value(debit), _cell_value(credit),
                   _cell_value(balance), status])
        r = ws.max_row
        ws.cell(r, 1).number_format = "DD-MMM-YYYY"
        for c in (3, 4, 5):
            ws.cell(r, c).number_format = AMOUNT_FORMAT
        if status == "Balance":
            for c in range(1, len(LEDGER_COLUMNS) + 1):
                ws.cell(r, c).font = Font(bold=True)
                ws.cell(r, c).fill = PatternFill("solid", fgColor="D9E1F2")
    _autosize_columns(ws)

    ws = wb.create_sheet("Summary")
    snap = compute_account_balance([row.transaction for row in statement.rows])
    ws.append(["Account", account.name])
    ws.append(["Phone", account.phone])
    ws.append(["Vehicle", account.vehicle_number])
    ws.append([])
    ws.append(["Opening Balance", float(statement.opening_balance)])
    ws.append(["Total Debits", float(snap.total_debits)])
    ws.append(["Total Credits", float(snap.total_credits)])
    ws.append(["Closing Balance", float(statement.closing_balance)])
    ws.append(["Position", f"{format_currency(abs(statement.closing_balance), currency_symbol)} "
                           f"({balance_label(statement.closing_balance)})"])
    for r in range(1, ws.max_row + 1):
        ws.cell(r, 1).font = Font(bold=True)
    for r in range(5, 9):
        ws.cell(r, 2).number_format = AMOUNT_FORMAT
    _autosize_columns(ws)

    wb.save(filepath)


def export_balances_excel(rows: List[Tuple[Account, BalanceSnapshot]], filepath: str) -> None:
    """Export every account with its all-time approved balance"""
    wb = Workbook()
    ws = wb.active
    ws.title = "Balances"
    ws.append(["Account", "Phone", "Vehicle", "Total Debits", "Total Credits", "Balance", "Position"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for account, snap in rows:
        ws.append([
            account.name,
            account.phone,
            account.vehicle_number,
            float(snap.total_debits),
            float(snap.total_credits),
            float(snap.balance),
            balance_label(snap.balance),
        ])
    for r in range(2, ws.max_row + 1):
        for c in range(4, 7):
            ws.cell(r, c).number_format = AMOUNT_FORMAT
    _autosize_columns(ws)
    wb.save(filepath)
