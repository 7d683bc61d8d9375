"""
Configuration and data loading/saving for TransportLedger
"""
from __future__ import annotations
import json
import os
import tempfile
from dataclasses import asdict, dataclass, field
from typing import List

from exceptions import ValidationError
from logging_setup import get_logger
from models import Account, Ledger, Transaction, TransactionStatus, TransactionType
from utils import app_dir, parse_amount, parse_date, parse_status, parse_type

logger = get_logger("transport_ledger.config")

LEDGER_FILENAME = "ledger.json"
SETTINGS_FILENAME = "settings.json"


@dataclass
class Settings:
    """User settings stored in settings.json"""
    currency_symbol: str = "₹"
    # types entered as pending; everything else is approved on entry
    approval_required: List[TransactionType] = field(
        default_factory=lambda: [TransactionType.CREDIT]
    )
    log_level: str = "INFO"


def load_settings(path: str) -> Settings:
    """Load settings from JSON file, falling back to defaults"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return Settings()

    defaults = Settings()
    try:
        approval = [parse_type(t) for t in data.get("approval_required", defaults.approval_required)]
    except ValueError as exc:
        raise ValidationError(f"settings: {exc}")
    return Settings(
        currency_symbol=str(data.get("currency_symbol", defaults.currency_symbol)),
        approval_required=approval,
        log_level=str(data.get("log_level", defaults.log_level)),
    )


def default_ledger_path() -> str:
    return os.path.join(app_dir(), LEDGER_FILENAME)


def default_settings_path() -> str:
    return os.path.join(app_dir(), SETTINGS_FILENAME)


def transaction_to_dict(t: Transaction) -> dict:
    d = asdict(t)
    d["date"] = parse_date(t.date).isoformat()
    d["type"] = parse_type(t.type).value
    d["status"] = parse_status(t.status).value
    d["amount"] = str(t.amount)
    return d


def dict_to_transaction(d: dict) -> Transaction:
    """Build a Transaction from its JSON form, rejecting malformed records"""
    tid = d.get("id") if isinstance(d, dict) else None
    if not tid:
        raise ValidationError("transaction record without id")
    try:
        amount = parse_amount(d.get("amount"))
    except ValueError:
        raise ValidationError(f"invalid amount {d.get('amount')!r}", tid)
    try:
        day = parse_date(d.get("date"))
    except ValueError:
        raise ValidationError(f"unparseable date {d.get('date')!r}", tid)
    try:
        ttype = parse_type(d.get("type", ""))
        # records written before the approval workflow have no status
        status = parse_status(d.get("status") or TransactionStatus.APPROVED)
    except ValueError as exc:
        raise ValidationError(str(exc), tid)

    return Transaction(
        id=tid,
        account_id=d.get("account_id", ""),
        date=day.isoformat(),
        type=ttype,
        amount=amount,
        description=d.get("description", ""),
        status=status,
        approved_by=d.get("approved_by"),
        approved_at=d.get("approved_at"),
        rejected_by=d.get("rejected_by"),
        rejected_at=d.get("rejected_at"),
        rejection_reason=d.get("rejection_reason"),
        created_at=d.get("created_at", ""),
        updated_at=d.get("updated_at") or d.get("created_at", ""),
    )


_ACCOUNT_FIELDS = ("phone", "vehicle_number", "notes", "created_at", "updated_at")


def dict_to_account(d: dict) -> Account:
    """Build an Account from its JSON form; unknown keys are ignored"""
    if not isinstance(d, dict) or not d.get("id"):
        raise ValidationError("account record without id")
    name = d.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"account {d['id']} has no name")
    extra = {k: str(d[k]) for k in _ACCOUNT_FIELDS if d.get(k) is not None}
    return Account(id=str(d["id"]), name=name.strip(), **extra)


def ledger_to_dict(ledger: Ledger) -> dict:
    """Convert Ledger object to dictionary for JSON serialization"""
    return {
        "version": ledger.version,
        "accounts": [asdict(a) for a in ledger.accounts],
        "transactions": [transaction_to_dict(t) for t in ledger.transactions],
    }


def dict_to_ledger(d: dict) -> Ledger:
    """Convert dictionary from JSON to Ledger object"""
    if not isinstance(d, dict):
        raise ValidationError("ledger data must be a JSON object")
    accounts = [dict_to_account(a) for a in d.get("accounts", [])]
    seen = set()
    for a in accounts:
        if a.id in seen:
            raise ValidationError(f"duplicate account id {a.id}")
        seen.add(a.id)
    txns = [dict_to_transaction(t) for t in d.get("transactions", [])]

    return Ledger(
        version=d.get("version", 1),
        accounts=accounts,
        transactions=txns,
    )


def load_ledger(path: str) -> Ledger:
    """Load ledger from JSON file; a missing file gives an empty ledger"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.info("no ledger at %s, starting empty", path)
        return Ledger(accounts=[], transactions=[])
    ledger = dict_to_ledger(data)
    logger.debug("loaded %d accounts, %d transactions from %s",
                 len(ledger.accounts), len(ledger.transactions), path)
    return ledger


def save_ledger(ledger: Ledger, path: str) -> None:
    """Write ledger JSON atomically (temp file + replace)"""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=directory, prefix=".ledger-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(ledger_to_dict(ledger), f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)
    except BaseException:
        os.unlink(tmp)
        raise
    logger.debug("saved ledger to %s", path)
