"""Transaction store: accounts, auto-approval, approve/reject state machine."""

from __future__ import annotations

from decimal import Decimal

import pytest

from exceptions import NotFoundError, TransitionError, ValidationError
from models import TransactionStatus, TransactionType
from store import TransactionStore


@pytest.fixture
def store() -> TransactionStore:
    return TransactionStore()


@pytest.fixture
def account(store):
    return store.add_account("Sharma Roadways", phone="9876543210", vehicle_number="MH12AB1234")


def test_costs_auto_approved_payments_pending(store, account) -> None:
    cost = store.add_transaction(account.id, "2024-01-05", TransactionType.DEBIT, "1000", "Freight Pune")
    payment = store.add_transaction(account.id, "2024-01-10", "payment", 400, "NEFT")
    assert cost.status == TransactionStatus.APPROVED
    assert payment.status == TransactionStatus.PENDING
    assert payment.type == TransactionType.CREDIT
    assert cost.amount == Decimal("1000")
    # only the approved cost counts until the payment is approved
    assert store.account_balance(account.id).balance == Decimal("1000")


def test_approval_rule_is_configurable() -> None:
    store = TransactionStore(approval_required=[])
    acc = store.add_account("Kumar Logistics")
    t = store.add_transaction(acc.id, "2024-01-01", TransactionType.CREDIT, 50)
    assert t.status == TransactionStatus.APPROVED


def test_approve_moves_balance(store, account) -> None:
    store.add_transaction(account.id, "2024-01-05", TransactionType.DEBIT, 1000)
    payment = store.add_transaction(account.id, "2024-01-10", TransactionType.CREDIT, 400)
    approved = store.approve_transaction(account.id, payment.id, "admin")
    assert approved.status == TransactionStatus.APPROVED
    assert approved.approved_by == "admin"
    assert approved.approved_at
    assert store.account_balance(account.id).balance == Decimal("600")


def test_reject_records_reason(store, account) -> None:
    payment = store.add_transaction(account.id, "2024-01-10", TransactionType.CREDIT, 400)
    rejected = store.reject_transaction(account.id, payment.id, "admin", "  duplicate entry ")
    assert rejected.status == TransactionStatus.REJECTED
    assert rejected.rejected_by == "admin"
    assert rejected.rejection_reason == "duplicate entry"
    assert store.account_balance(account.id).balance == 0


def test_reject_requires_reason(store, account) -> None:
    payment = store.add_transaction(account.id, "2024-01-10", TransactionType.CREDIT, 400)
    with pytest.raises(ValidationError):
        store.reject_transaction(account.id, payment.id, "admin", " ")
    assert payment.status == TransactionStatus.PENDING


@pytest.mark.parametrize("first", ["approve", "reject"])
def test_terminal_states(store, account, first) -> None:
    payment = store.add_transaction(account.id, "2024-01-10", TransactionType.CREDIT, 400)
    if first == "approve":
        store.approve_transaction(account.id, payment.id, "admin")
    else:
        store.reject_transaction(account.id, payment.id, "admin", "wrong account")
    with pytest.raises(TransitionError):
        store.approve_transaction(account.id, payment.id, "admin")
    with pytest.raises(TransitionError):
        store.reject_transaction(account.id, payment.id, "admin", "again")
    with pytest.raises(TransitionError):
        store.update_transaction(account.id, payment.id, amount="1")


def test_auto_approved_entry_cannot_be_approved_again(store, account) -> None:
    cost = store.add_transaction(account.id, "2024-01-05", TransactionType.DEBIT, 10)
    with pytest.raises(TransitionError):
        store.approve_transaction(account.id, cost.id, "admin")


def test_update_pending(store, account) -> None:
    payment = store.add_transaction(account.id, "2024-01-10", TransactionType.CREDIT, 400)
    store.update_transaction(account.id, payment.id, amount="450.50", date="2024-01-11T09:30:00Z")
    assert payment.amount == Decimal("450.50")
    assert payment.date == "2024-01-11"
    with pytest.raises(ValidationError):
        store.update_transaction(account.id, payment.id, status="approved")
    with pytest.raises(ValidationError):
        store.update_transaction(account.id, payment.id, amount="-3")
    assert payment.amount == Decimal("450.50")


@pytest.mark.parametrize("amount", ["abc", "-10", "0", None])
def test_add_rejects_bad_amount(store, account, amount) -> None:
    with pytest.raises(ValidationError):
        store.add_transaction(account.id, "2024-01-10", TransactionType.DEBIT, amount)
    assert store.get_transactions_for_account(account.id) == []


def test_add_rejects_bad_date(store, account) -> None:
    with pytest.raises(ValidationError):
        store.add_transaction(account.id, "10-01-2024", TransactionType.DEBIT, 5)


def test_unknown_ids(store, account) -> None:
    with pytest.raises(NotFoundError):
        store.add_transaction("nope", "2024-01-01", TransactionType.DEBIT, 5)
    with pytest.raises(NotFoundError):
        store.approve_transaction(account.id, "missing", "admin")
    with pytest.raises(KeyError):
        store.get_account("nope")


def test_delete_transaction_and_account(store, account) -> None:
    other = store.add_account("Other")
    t = store.add_transaction(account.id, "2024-01-05", TransactionType.DEBIT, 10)
    store.add_transaction(account.id, "2024-01-06", TransactionType.DEBIT, 20)
    keep = store.add_transaction(other.id, "2024-01-06", TransactionType.DEBIT, 30)

    store.delete_transaction(account.id, t.id)
    assert store.account_balance(account.id).balance == Decimal("20")
    with pytest.raises(NotFoundError):
        store.delete_transaction(account.id, t.id)

    store.delete_account(account.id)
    assert store.ledger.transactions == [keep]
    assert [a.name for a in store.list_accounts()] == ["Other"]


def test_update_account(store, account) -> None:
    store.update_account(account.id, phone="1111111111")
    assert store.get_account(account.id).phone == "1111111111"
    with pytest.raises(ValidationError):
        store.update_account(account.id, id="new-id")


def test_add_account_requires_name(store) -> None:
    with pytest.raises(ValidationError):
        store.add_account("   ")


def test_account_names_are_unique(store, account) -> None:
    with pytest.raises(ValidationError, match="already exists"):
        store.add_account("  sharma ROADWAYS ")
    other = store.add_account("Balaji Transport")
    with pytest.raises(ValidationError, match="already exists"):
        store.update_account(other.id, name="Sharma Roadways")
    # renaming an account to its own name in another case is fine
    store.update_account(account.id, name="SHARMA ROADWAYS")
    assert store.get_account(account.id).name == "SHARMA ROADWAYS"
    assert len(store.list_accounts()) == 2


def test_import_transactions(store, account, make_txn) -> None:
    batch = [
        make_txn("2024-01-05", TransactionType.DEBIT, 1000, id="i1"),
        make_txn("2024-01-10T09:30:00Z", TransactionType.CREDIT, 400, id="i2"),
        make_txn("2024-01-11", TransactionType.CREDIT, 50, TransactionStatus.REJECTED, id="i3"),
    ]
    imported = store.import_transactions(account.id, batch)

    assert [t.id for t in imported] == ["i1", "i2", "i3"]
    assert all(t.account_id == account.id for t in imported)
    assert imported[1].date == "2024-01-10"
    assert imported[0].created_at and imported[0].updated_at == imported[0].created_at
    # a payment cannot arrive already approved
    assert imported[1].status == TransactionStatus.PENDING
    assert imported[2].status == TransactionStatus.REJECTED
    assert store.account_balance(account.id).balance == Decimal("1000")

    store.approve_transaction(account.id, "i2", "admin")
    assert store.account_balance(account.id).balance == Decimal("600")


def test_import_keeps_approved_credit_when_no_approval_needed(make_txn) -> None:
    store = TransactionStore(approval_required=[])
    acc = store.add_account("Kumar Logistics")
    (t,) = store.import_transactions(acc.id, [make_txn("2024-01-10", TransactionType.CREDIT, 400)])
    assert t.status == TransactionStatus.APPROVED


@pytest.mark.parametrize("ids, amounts, bad_id", [
    (["d1", "d1"], ["10", "20"], "d1"),
    (["ok", "z1"], ["10", "0"], "z1"),
    (["seed"], ["10"], "seed"),
])
def test_import_is_all_or_nothing(store, account, make_txn, ids, amounts, bad_id) -> None:
    store.import_transactions(account.id, [make_txn("2023-12-31", id="seed")])
    batch = [make_txn("2024-01-05", amount=a, id=i) for i, a in zip(ids, amounts)]
    with pytest.raises(ValidationError) as exc:
        store.import_transactions(account.id, batch)
    assert exc.value.transaction_id == bad_id
    assert [t.id for t in store.get_transactions_for_account(account.id)] == ["seed"]


def test_import_into_unknown_account(store, make_txn) -> None:
    with pytest.raises(NotFoundError):
        store.import_transactions("nope", [make_txn("2024-01-05")])


def test_pending_payments_across_accounts(store, account) -> None:
    other = store.add_account("Balaji Transport")
    first = store.add_transaction(account.id, "2024-02-01", TransactionType.CREDIT, 100)
    store.add_transaction(account.id, "2024-02-01", TransactionType.DEBIT, 900)
    second = store.add_transaction(other.id, "2024-01-01", TransactionType.CREDIT, 200)
    first.created_at = "2024-02-01T10:00:00+00:00"
    second.created_at = "2024-02-02T10:00:00+00:00"

    pending = store.pending_payments()
    assert [(a.name, t.id) for a, t in pending] == [
        ("Sharma Roadways", first.id),
        ("Balaji Transport", second.id),
    ]


def test_accounts_with_balances_sorted_by_name(store, account) -> None:
    other = store.add_account("abc carriers")
    store.add_transaction(other.id, "2024-01-01", TransactionType.DEBIT, 75)
    rows = store.accounts_with_balances()
    assert [a.name for a, _ in rows] == ["abc carriers", "Sharma Roadways"]
    assert [s.balance for _, s in rows] == [Decimal("75"), 0]
