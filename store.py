"""
In-memory transaction store and approval workflow for TransportLedger

The store owns the status state machine:

    pending --approve--> approved   (terminal)
    pending --reject---> rejected   (terminal)

Balances are always recomputed from the full transaction list.
"""
from __future__ import annotations
import uuid
from typing import Iterable, List, Optional, Tuple

from computations import compute_account_balance, validate_transaction, validate_transactions
from exceptions import NotFoundError, TransitionError, ValidationError
from logging_setup import get_logger
from models import (
    Account,
    BalanceSnapshot,
    Ledger,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from utils import now_iso, parse_amount, parse_date, parse_status, parse_type

logger = get_logger("transport_ledger.store")

_EDITABLE_FIELDS = ("date", "type", "amount", "description")


class TransactionStore:
    """Accounts and transactions backed by a Ledger object"""

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        approval_required: Iterable[TransactionType] = (TransactionType.CREDIT,),
    ):
        self.ledger = ledger if ledger is not None else Ledger(accounts=[], transactions=[])
        self.approval_required = {parse_type(t) for t in approval_required}

    # ---------- Accounts ----------
    def add_account(self, name: str, phone: str = "", vehicle_number: str = "", notes: str = "") -> Account:
        """Create an account; name is required"""
        if not name or not name.strip():
            raise ValidationError("account name is required")
        self._require_unique_name(name)
        now = now_iso()
        account = Account(
            id=str(uuid.uuid4()),
            name=name.strip(),
            phone=phone.strip(),
            vehicle_number=vehicle_number.strip(),
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        self.ledger.accounts.append(account)
        logger.info("account %s created (%s)", account.id, account.name)
        return account

    def _require_unique_name(self, name: str, account_id: Optional[str] = None) -> None:
        wanted = name.strip().lower()
        for a in self.ledger.accounts:
            if a.id != account_id and a.name.lower() == wanted:
                raise ValidationError(f"an account named {a.name!r} already exists")

    def get_account(self, account_id: str) -> Account:
        for a in self.ledger.accounts:
            if a.id == account_id:
                return a
        raise NotFoundError(f"unknown account {account_id}")

    def list_accounts(self) -> List[Account]:
        """Accounts ordered by name"""
        return sorted(self.ledger.accounts, key=lambda a: a.name.lower())

    def update_account(self, account_id: str, **changes) -> Account:
        account = self.get_account(account_id)
        for key in changes:
            if key in ("id", "created_at") or not hasattr(account, key):
                raise ValidationError(f"cannot update account field {key!r}")
        if "name" in changes:
            name = changes["name"]
            if not name or not name.strip():
                raise ValidationError("account name is required")
            self._require_unique_name(name, account_id)
            changes["name"] = name.strip()
        for key, value in changes.items():
            setattr(account, key, value)
        account.updated_at = now_iso()
        logger.info("account %s updated: %s", account_id, ", ".join(sorted(changes)))
        return account

    def delete_account(self, account_id: str) -> None:
        """Remove the account and every transaction it owns"""
        self.get_account(account_id)
        self.ledger.accounts = [a for a in self.ledger.accounts if a.id != account_id]
        before = len(self.ledger.transactions)
        self.ledger.transactions = [t for t in self.ledger.transactions if t.account_id != account_id]
        logger.info("account %s deleted with %d transactions",
                    account_id, before - len(self.ledger.transactions))

    # ---------- Transactions ----------
    def get_transactions_for_account(self, account_id: str) -> List[Transaction]:
        """Complete history of one account, in insertion order"""
        self.get_account(account_id)
        return [t for t in self.ledger.transactions if t.account_id == account_id]

    def get_transaction(self, account_id: str, transaction_id: str) -> Transaction:
        for t in self.ledger.transactions:
            if t.id == transaction_id and t.account_id == account_id:
                return t
        raise NotFoundError(f"unknown transaction {transaction_id} for account {account_id}")

    def add_transaction(
        self,
        account_id: str,
        date: str,
        type: TransactionType,
        amount,
        description: str = "",
    ) -> Transaction:
        """
        Record a transaction. Types listed in approval_required start out
        pending; all others are approved immediately.
        """
        self.get_account(account_id)
        ttype = parse_type(type)
        now = now_iso()
        status = (TransactionStatus.PENDING if ttype in self.approval_required
                  else TransactionStatus.APPROVED)
        t = Transaction(
            id=str(uuid.uuid4()),
            account_id=account_id,
            date=date,
            type=ttype,
            amount=amount,
            description=description,
            status=status,
            created_at=now,
            updated_at=now,
        )
        validate_transaction(t)
        t.date = parse_date(t.date).isoformat()
        t.amount = parse_amount(t.amount)
        if t.amount == 0:
            raise ValidationError("amount must be greater than zero", t.id)
        self.ledger.transactions.append(t)
        logger.info("transaction %s added to %s: %s %s (%s)",
                    t.id, account_id, ttype.value, t.amount, status.value)
        return t

    def import_transactions(self, account_id: str, txns: Iterable[Transaction]) -> List[Transaction]:
        """
        Append externally sourced transactions to an account, all or nothing.

        Ids must be unique within the batch and the ledger, and amounts must
        be greater than zero. An entry whose type needs approval cannot arrive
        approved: it is reset to pending and goes through approve_transaction
        like any other.
        """
        self.get_account(account_id)
        batch = validate_transactions(txns)
        seen = {t.id for t in self.ledger.transactions}
        for t in batch:
            if not t.id:
                raise ValidationError("imported transaction without id")
            if t.id in seen:
                raise ValidationError("duplicate transaction id", t.id)
            seen.add(t.id)
            if parse_amount(t.amount) == 0:
                raise ValidationError("amount must be greater than zero", t.id)

        now = now_iso()
        reset = 0
        for t in batch:
            t.account_id = account_id
            t.date = parse_date(t.date).isoformat()
            t.amount = parse_amount(t.amount)
            t.type = parse_type(t.type)
            t.status = parse_status(t.status)
            if t.type in self.approval_required and t.status == TransactionStatus.APPROVED:
                t.status = TransactionStatus.PENDING
                t.approved_by = t.approved_at = None
                reset += 1
            t.created_at = t.created_at or now
            t.updated_at = t.updated_at or t.created_at
        self.ledger.transactions.extend(batch)
        logger.info("imported %d transactions into %s (%d set back to pending)",
                    len(batch), account_id, reset)
        return batch

    def update_transaction(self, account_id: str, transaction_id: str, **changes) -> Transaction:
        """Edit a pending transaction's date, type, amount or description"""
        t = self.get_transaction(account_id, transaction_id)
        if t.status != TransactionStatus.PENDING:
            raise TransitionError(f"transaction {transaction_id} is {t.status.value} and can no longer be edited")
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"cannot update fields {sorted(unknown)}", transaction_id)

        candidate = Transaction(**{**t.__dict__, **changes})
        validate_transaction(candidate)
        if "amount" in changes and parse_amount(candidate.amount) == 0:
            raise ValidationError("amount must be greater than zero", transaction_id)
        for key in changes:
            value = getattr(candidate, key)
            if key == "date":
                value = parse_date(value).isoformat()
            elif key == "type":
                value = parse_type(value)
            elif key == "amount":
                value = parse_amount(value)
            setattr(t, key, value)
        t.updated_at = now_iso()
        logger.info("transaction %s updated: %s", transaction_id, ", ".join(sorted(changes)))
        return t

    def delete_transaction(self, account_id: str, transaction_id: str) -> None:
        self.get_transaction(account_id, transaction_id)
        self.ledger.transactions = [
            t for t in self.ledger.transactions
            if not (t.id == transaction_id and t.account_id == account_id)
        ]
        logger.info("transaction %s deleted from %s", transaction_id, account_id)

    # ---------- Workflow ----------
    def _require_pending(self, t: Transaction, action: str) -> None:
        if t.status != TransactionStatus.PENDING:
            raise TransitionError(f"cannot {action} transaction {t.id}: status is {t.status.value}")

    def approve_transaction(self, account_id: str, transaction_id: str, approved_by: str) -> Transaction:
        t = self.get_transaction(account_id, transaction_id)
        self._require_pending(t, "approve")
        now = now_iso()
        t.status = TransactionStatus.APPROVED
        t.approved_by = approved_by
        t.approved_at = now
        t.updated_at = now
        logger.info("transaction %s approved by %s", transaction_id, approved_by)
        return t

    def reject_transaction(self, account_id: str, transaction_id: str, rejected_by: str, reason: str) -> Transaction:
        """Reject a pending transaction; a reason is required"""
        if not reason or not reason.strip():
            raise ValidationError("a rejection reason is required", transaction_id)
        t = self.get_transaction(account_id, transaction_id)
        self._require_pending(t, "reject")
        now = now_iso()
        t.status = TransactionStatus.REJECTED
        t.rejected_by = rejected_by
        t.rejected_at = now
        t.rejection_reason = reason.strip()
        t.updated_at = now
        logger.info("transaction %s rejected by %s: %s", transaction_id, rejected_by, t.rejection_reason)
        return t

    # ---------- Queries ----------
    def pending_payments(self) -> List[Tuple[Account, Transaction]]:
        """Pending credits across all accounts, oldest first"""
        accounts = {a.id: a for a in self.ledger.accounts}
        out = [
            (accounts[t.account_id], t)
            for t in self.ledger.transactions
            if t.account_id in accounts
            and t.type == TransactionType.CREDIT
            and t.status == TransactionStatus.PENDING
        ]
        out.sort(key=lambda pair: pair[1].created_at)
        return out

    def account_balance(self, account_id: str) -> BalanceSnapshot:
        return compute_account_balance(self.get_transactions_for_account(account_id))

    def accounts_with_balances(self) -> List[Tuple[Account, BalanceSnapshot]]:
        return [(a, self.account_balance(a.id)) for a in self.list_accounts()]
