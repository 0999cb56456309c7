"""Tests for transaction loading, the in-memory store and the report repository."""

import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from finance_reports.models.report import ReportRecord
from finance_reports.models.transaction import Transaction, TransactionType
from finance_reports.storage.reports import ReportRepository
from finance_reports.storage.transactions import (
    InMemoryTransactionStore,
    TransactionLoadError,
    load_transactions,
)


def create_transaction(
    trans_date: datetime | None,
    amount: str = "10",
    user_id: str = "u1",
    transaction_type: TransactionType = TransactionType.EXPENSE,
) -> Transaction:
    """Helper to create a Transaction for testing."""
    return Transaction(type=transaction_type, amount=Decimal(amount), date=trans_date, user_id=user_id)


def create_record(name: str = "Report", user_id: str = "u1") -> ReportRecord:
    """Helper to create an unsaved ReportRecord."""
    return ReportRecord(
        user_id=user_id,
        name=name,
        period="Jun 2024",
        report_type="Cash Flow",
        format="CSV",
        period_key="current-month",
        start_date=datetime(2024, 6, 1),
        end_date=datetime(2024, 6, 30, 23, 59, 59, 999000),
        payload={"title": "Cash Flow Statement", "sections": []},
    )


class TestLoadTransactions:
    """Tests for load_transactions."""

    def test_load_csv(self, tmp_path: Path) -> None:
        """Test CSV rows are parsed and bad rows skipped."""
        csv_file = tmp_path / "txns.csv"
        csv_file.write_text(
            "Date,Type,Category,Amount,Description\n"
            "2024-06-01,income,Salary,\"3,200.00\",Payroll\n"
            "06/03/2024,Expense,Rent,$1200,June rent\n"
            ",,,,\n"
            "2024-06-04,expense,Food,,Missing amount\n"
            "2024-06-05,transfer,Misc,5,Unknown type\n",
            encoding="utf-8",
        )

        transactions = load_transactions(csv_file, user_id="u1")

        assert len(transactions) == 2
        assert transactions[0].type is TransactionType.INCOME
        assert transactions[0].amount == Decimal("3200.00")
        assert transactions[0].description == "Payroll"
        assert transactions[1].date == datetime(2024, 6, 3)
        assert transactions[1].amount == Decimal("1200")
        assert all(t.user_id == "u1" for t in transactions)

    def test_load_json(self, tmp_path: Path) -> None:
        """Test JSON arrays and wrapped objects are both accepted."""
        records = [
            {"type": "income", "amount": 100, "date": "2024-06-01", "category": "Gift", "user": "owner"},
            {"type": "expense", "amount": "42.50", "date": "2024-06-02"},
        ]
        as_list = tmp_path / "list.json"
        as_list.write_text(json.dumps(records), encoding="utf-8")
        wrapped = tmp_path / "wrapped.json"
        wrapped.write_text(json.dumps({"transactions": records}), encoding="utf-8")

        for path in (as_list, wrapped):
            transactions = load_transactions(path, user_id="fallback")
            assert [t.user_id for t in transactions] == ["owner", "fallback"]
            assert transactions[1].amount == Decimal("42.50")

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file raises TransactionLoadError."""
        with pytest.raises(TransactionLoadError, match="not found"):
            load_transactions(tmp_path / "nope.csv")

    def test_unsupported_suffix(self, tmp_path: Path) -> None:
        """Test only CSV and JSON files are accepted."""
        path = tmp_path / "txns.ofx"
        path.write_text("OFXHEADER:100", encoding="utf-8")

        with pytest.raises(TransactionLoadError, match="Unsupported transaction file type"):
            load_transactions(path)

    def test_invalid_json(self, tmp_path: Path) -> None:
        """Test malformed JSON is reported with the file path."""
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(TransactionLoadError) as exc_info:
            load_transactions(path)
        assert exc_info.value.file_path == path

    def test_json_must_be_a_list(self, tmp_path: Path) -> None:
        """Test a JSON scalar is rejected."""
        path = tmp_path / "scalar.json"
        path.write_text("42", encoding="utf-8")

        with pytest.raises(TransactionLoadError, match="Expected a JSON array"):
            load_transactions(path)

    def test_file_too_large(self, tmp_path: Path) -> None:
        """Test files above the size limit are refused."""
        path = tmp_path / "big.csv"
        path.write_text("date,type,amount\n", encoding="utf-8")

        with patch("finance_reports.storage.transactions.MAX_FILE_SIZE", 4):
            with pytest.raises(TransactionLoadError, match="File too large"):
                load_transactions(path)


class TestInMemoryTransactionStore:
    """Tests for InMemoryTransactionStore.fetch."""

    def test_inclusive_bounds_and_ordering(self) -> None:
        """Test both bounds are inclusive and results are date ordered."""
        store = InMemoryTransactionStore(
            [
                create_transaction(datetime(2024, 6, 30, 23, 59, 59, 999000), "3"),
                create_transaction(datetime(2024, 6, 1), "1"),
                create_transaction(datetime(2024, 5, 31, 23, 59, 59), "0"),
                create_transaction(datetime(2024, 7, 1), "4"),
            ]
        )

        result = store.fetch("u1", datetime(2024, 6, 1), datetime(2024, 6, 30, 23, 59, 59, 999000))

        assert [t.amount for t in result] == [Decimal("1"), Decimal("3")]

    def test_filters_by_user(self) -> None:
        """Test other users' transactions are never returned."""
        store = InMemoryTransactionStore([create_transaction(datetime(2024, 6, 1), user_id="other")])

        assert store.fetch("u1") == []
        assert len(store.fetch("other")) == 1

    def test_undated_only_in_open_window(self) -> None:
        """Test undated transactions appear last, and only without bounds."""
        store = InMemoryTransactionStore()
        store.add(create_transaction(None, "9"))
        store.add(create_transaction(datetime(2024, 6, 1), "1"))

        assert [t.amount for t in store.fetch("u1")] == [Decimal("1"), Decimal("9")]
        assert [t.amount for t in store.fetch("u1", end_date=datetime(2024, 12, 31))] == [Decimal("1")]
        assert len(store) == 2


class TestReportRepository:
    """Tests for ReportRepository."""

    def test_create_assigns_id_and_persists(self, tmp_path: Path) -> None:
        """Test saved records survive a new repository instance."""
        path = tmp_path / "store" / "reports.json"
        saved = ReportRepository(path).create(create_record())

        assert saved.id
        assert saved.created_at is not None

        loaded = ReportRepository(path).get("u1", saved.id)
        assert loaded is not None
        assert loaded.name == "Report"
        assert loaded.start_date == datetime(2024, 6, 1)
        assert loaded.end_date == datetime(2024, 6, 30, 23, 59, 59, 999000)
        assert loaded.payload == {"title": "Cash Flow Statement", "sections": []}
        assert json.loads(path.read_text(encoding="utf-8"))["reports"][0]["user"] == "u1"

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """Test a store that was never written has no reports."""
        repo = ReportRepository(tmp_path / "reports.json")

        assert repo.list_for_user("u1") == []
        assert repo.get("u1", "abc") is None
        assert repo.delete("u1", "abc") is False

    def test_list_newest_first_per_user(self, tmp_path: Path) -> None:
        """Test listing is scoped to the user and ordered newest first."""
        repo = ReportRepository(tmp_path / "reports.json")
        repo.create(create_record("first"))
        repo.create(create_record("theirs", user_id="u2"))
        repo.create(create_record("second"))

        assert [r.name for r in repo.list_for_user("u1")] == ["second", "first"]
        assert [r.name for r in repo.list_for_user("u2")] == ["theirs"]

    def test_get_is_scoped_to_user(self, tmp_path: Path) -> None:
        """Test a user cannot read another user's report."""
        repo = ReportRepository(tmp_path / "reports.json")
        saved = repo.create(create_record(user_id="u2"))

        assert repo.get("u1", saved.id) is None  # type: ignore[arg-type]

    def test_delete(self, tmp_path: Path) -> None:
        """Test deleting removes only the matching record."""
        repo = ReportRepository(tmp_path / "reports.json")
        keep = repo.create(create_record("keep"))
        drop = repo.create(create_record("drop"))

        assert repo.delete("u1", drop.id) is True  # type: ignore[arg-type]
        assert [r.id for r in repo.list_for_user("u1")] == [keep.id]
        assert not list(tmp_path.glob("*.tmp"))
