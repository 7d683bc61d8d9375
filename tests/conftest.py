"""Shared fixtures.

Every test gets its own data directory through ``TRANSPORT_LEDGER_HOME`` so
that nothing reads or writes the real application data folder.
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

import pytest

from models import Transaction, TransactionStatus, TransactionType


@pytest.fixture(autouse=True)
def _isolate_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "data"
    monkeypatch.setenv("TRANSPORT_LEDGER_HOME", os.fspath(home))
    monkeypatch.delenv("TRANSPORT_LEDGER_LOG_LEVEL", raising=False)
    return home


@pytest.fixture
def make_txn():
    """Factory for transactions with sensible defaults."""

    counter = {"n": 0}

    def _make(
        day: str,
        type: TransactionType = TransactionType.DEBIT,
        amount="100",
        status: TransactionStatus = TransactionStatus.APPROVED,
        description: str = "",
        id: str | None = None,
    ) -> Transaction:
        counter["n"] += 1
        return Transaction(
            id=id or f"t{counter['n']}",
            account_id="acc-1",
            date=day,
            type=type,
            amount=amount if isinstance(amount, Decimal) else Decimal(str(amount)),
            description=description or f"entry {counter['n']}",
            status=status,
        )

    return _make


@pytest.fixture
def example_txns(make_txn):
    """Approved debit 1000, approved credit 400, pending debit 200."""
    return [
        make_txn("2024-01-05", TransactionType.DEBIT, 1000, id="jan05"),
        make_txn("2024-01-10", TransactionType.CREDIT, 400, id="jan10"),
        make_txn("2024-01-12", TransactionType.DEBIT, 200, TransactionStatus.PENDING, id="jan12"),
    ]
