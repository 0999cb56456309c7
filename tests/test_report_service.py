"""Tests for the report service."""

from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

from finance_reports.config import Config, ReportsConfig
from finance_reports.models.report import CustomRangeInput, ReportType
from finance_reports.models.transaction import Transaction, TransactionType
from finance_reports.processing.normalizer import normalize_payload
from finance_reports.processing.periods import InvalidPeriodError
from finance_reports.processing.report_service import (
    ReportFilter,
    ReportRequest,
    ReportRequestError,
    ReportService,
)
from finance_reports.storage.reports import ReportRepository
from finance_reports.storage.transactions import InMemoryTransactionStore

NOW = datetime(2024, 6, 15, 9, 0)


def create_transaction(
    transaction_type: TransactionType,
    amount: str,
    trans_date: datetime,
    category: str = "General",
) -> Transaction:
    """Helper to create a Transaction for testing."""
    return Transaction(
        type=transaction_type,
        amount=Decimal(amount),
        date=trans_date,
        category=category,
        user_id="u1",
    )


def create_service(tmp_path: Path, config: Config | None = None) -> ReportService:
    """Create a service over a small May/June data set and a temp store."""
    store = InMemoryTransactionStore(
        [
            create_transaction(TransactionType.INCOME, "3000", datetime(2024, 5, 1), "Salary"),
            create_transaction(TransactionType.EXPENSE, "1200", datetime(2024, 5, 3), "Rent"),
            create_transaction(TransactionType.INCOME, "3200", datetime(2024, 6, 1), "Salary"),
        ]
    )
    return ReportService(
        store,
        ReportRepository(tmp_path / "reports.json"),
        config,
        clock=lambda: NOW,
    )


class TestCreateReport:
    """Tests for ReportService.create_report."""

    def test_saves_generated_report(self, tmp_path: Path) -> None:
        """Test the record gets defaults, an id and the generated payload."""
        service = create_service(tmp_path)
        record = service.create_report(
            "u1", ReportRequest(report_type=ReportType.INCOME_STATEMENT, format="csv", period_key="last-month")
        )

        assert record.id
        assert record.created_at is not None
        assert record.name == "Income Statement - May 2024"
        assert record.period == "May 2024"
        assert record.period_key == "last-month"
        assert record.format == "CSV"
        assert record.start_date == datetime(2024, 5, 1)
        assert record.payload is not None
        assert record.payload["title"] == "Income Statement"
        assert record.payload["summary"] == {"total_income": 3000, "total_expense": 1200, "net_income": 1800}

        stored = service.get_report("u1", record.id)
        assert stored is not None
        assert stored.name == record.name
        assert stored.payload == record.payload

    def test_uses_configured_default_period(self, tmp_path: Path) -> None:
        """Test a request without a period uses the configured default."""
        service = create_service(tmp_path, Config(reports=ReportsConfig(default_period="ytd")))
        record = service.create_report("u1", ReportRequest(report_type=ReportType.CASH_FLOW, format="PDF"))

        assert record.period == "Year to Date 2024"
        assert record.period_key == "ytd"

    def test_custom_period_and_explicit_labels(self, tmp_path: Path) -> None:
        """Test custom ranges and caller-provided name and period label."""
        service = create_service(tmp_path)
        record = service.create_report(
            "u1",
            ReportRequest(
                report_type=ReportType.EXPENSE_SUMMARY,
                format="xlsx",
                period_key="custom",
                period="Spring",
                custom_range=CustomRangeInput("2024-05-01", "2024-05-31"),
                name="Rent check",
            ),
        )

        assert record.name == "Rent check"
        assert record.period == "Spring"
        assert record.payload["subtitle"] == "May 1, 2024 – May 31, 2024"  # type: ignore[index]

    def test_notes_and_payload_override(self, tmp_path: Path) -> None:
        """Test notes are attached and override keys replace computed ones."""
        service = create_service(tmp_path)
        record = service.create_report(
            "u1",
            ReportRequest(
                report_type=ReportType.INCOME_STATEMENT,
                format="HTML",
                notes="Before tax",
                payload_override={"title": "Household P&L", "custom": True},
            ),
        )

        assert record.payload["title"] == "Household P&L"  # type: ignore[index]
        assert record.payload["custom"] is True  # type: ignore[index]
        assert record.payload["notes"] == "Before tax"  # type: ignore[index]
        assert record.payload["sections"]  # type: ignore[index]

    def test_camel_case_override_reaches_renderers(self, tmp_path: Path) -> None:
        """Test camelCase override keys replace the computed snake_case values."""
        service = create_service(tmp_path)
        record = service.prepare_report(
            "u1",
            ReportRequest(
                report_type=ReportType.INCOME_STATEMENT,
                format="PDF",
                payload_override={"generatedAt": "2020-01-01T00:00:00", "subtitle": "Custom sub"},
            ),
            datetime(2024, 6, 20),
        )

        assert "generatedAt" not in record.payload
        payload = normalize_payload(record.payload)
        assert payload.generated_at == "2020-01-01T00:00:00"
        assert payload.subtitle == "Custom sub"

    def test_export_sets_file_path(self, tmp_path: Path) -> None:
        """Test exporting on create stores where the file was written."""
        service = create_service(tmp_path)
        record = service.create_report(
            "u1",
            ReportRequest(report_type=ReportType.CASH_FLOW, format="csv", period_key="q2"),
            output_dir=tmp_path / "out",
            export=True,
        )

        assert record.file_path == str(tmp_path / "out" / "cash_flow_-_q2_2024.csv")
        assert Path(record.file_path).exists()
        assert service.get_report("u1", record.id).file_path == record.file_path  # type: ignore[arg-type, union-attr]

    @pytest.mark.parametrize(
        "request_kwargs,message",
        [
            ({"format": "csv"}, "Report type is required"),
            ({"report_type": "  ", "format": "csv"}, "Report type is required"),
            ({"report_type": ReportType.CASH_FLOW}, "Format is required"),
            ({"report_type": ReportType.CASH_FLOW, "format": "docx"}, "Unsupported export format"),
        ],
    )
    def test_invalid_requests(self, tmp_path: Path, request_kwargs: dict, message: str) -> None:
        """Test missing or invalid fields are rejected and nothing is saved."""
        service = create_service(tmp_path)

        with pytest.raises(ReportRequestError, match=message):
            service.create_report("u1", ReportRequest(**request_kwargs))
        assert service.list_reports("u1") == []

    def test_invalid_custom_period(self, tmp_path: Path) -> None:
        """Test a custom period without dates is rejected."""
        service = create_service(tmp_path)

        with pytest.raises(InvalidPeriodError):
            service.create_report(
                "u1", ReportRequest(report_type=ReportType.CASH_FLOW, format="csv", period_key="custom")
            )

    def test_unknown_report_type_saves_placeholder(self, tmp_path: Path) -> None:
        """Test report types without a builder are still saved."""
        service = create_service(tmp_path)
        record = service.create_report("u1", ReportRequest(report_type="Tax Summary", format="csv"))

        assert record.payload["title"] == "Tax Summary"  # type: ignore[index]
        assert record.payload["sections"][0]["type"] == "text"  # type: ignore[index]


class TestListReports:
    """Tests for ReportService.list_reports."""

    @pytest.fixture
    def service(self, tmp_path: Path) -> ReportService:
        service = create_service(tmp_path)
        service.create_report(
            "u1", ReportRequest(report_type=ReportType.INCOME_STATEMENT, format="CSV", period_key="last-month")
        )
        service.create_report("u1", ReportRequest(report_type=ReportType.CASH_FLOW, format="PDF", period_key="q1"))
        service.create_report(
            "u1",
            ReportRequest(
                report_type=ReportType.EXPENSE_SUMMARY,
                format="XLSX",
                period_key="custom",
                custom_range=CustomRangeInput("2024-01-01", "2024-01-31"),
            ),
        )
        service.create_report("u2", ReportRequest(report_type=ReportType.CASH_FLOW, format="CSV"))
        return service

    def test_newest_first_for_user(self, service: ReportService) -> None:
        """Test only the user's reports are listed, newest first."""
        records = service.list_reports("u1")

        assert [r.report_type for r in records] == [
            ReportType.EXPENSE_SUMMARY,
            ReportType.CASH_FLOW,
            ReportType.INCOME_STATEMENT,
        ]

    def test_filter_by_format_case_insensitive(self, service: ReportService) -> None:
        """Test the format filter ignores case."""
        records = service.list_reports("u1", ReportFilter(format="csv"))

        assert [r.report_type for r in records] == [ReportType.INCOME_STATEMENT]

    def test_filter_by_type_and_period(self, service: ReportService) -> None:
        """Test exact report type and period key filters."""
        assert len(service.list_reports("u1", ReportFilter(report_type=ReportType.CASH_FLOW))) == 1
        assert len(service.list_reports("u1", ReportFilter(period_key="q1"))) == 1
        assert service.list_reports("u1", ReportFilter(period_key="q3")) == []

    def test_search(self, service: ReportService) -> None:
        """Test search matches name, period or type case-insensitively."""
        assert [r.report_type for r in service.list_reports("u1", ReportFilter(search="CASH"))] == [
            ReportType.CASH_FLOW
        ]
        assert [r.period for r in service.list_reports("u1", ReportFilter(search="may"))] == ["May 2024"]

    def test_date_overlap(self, service: ReportService) -> None:
        """Test the date filter keeps reports whose window overlaps it."""
        records = service.list_reports("u1", ReportFilter(start_date="2024-05-10", end_date="2024-05-20"))
        assert [r.period for r in records] == ["May 2024"]

        records = service.list_reports("u1", ReportFilter(end_date="2024-01-31"))
        assert {r.report_type for r in records} == {ReportType.CASH_FLOW, ReportType.EXPENSE_SUMMARY}

        records = service.list_reports("u1", ReportFilter(start_date="2024-03-31"))
        assert {r.report_type for r in records} == {ReportType.CASH_FLOW, ReportType.INCOME_STATEMENT}


class TestDeleteAndExport:
    """Tests for deleting and re-exporting saved reports."""

    def test_delete(self, tmp_path: Path) -> None:
        """Test a report can be deleted once, and only by its owner."""
        service = create_service(tmp_path)
        record = service.create_report("u1", ReportRequest(report_type=ReportType.CASH_FLOW, format="csv"))

        assert service.delete_report("u2", record.id) is False  # type: ignore[arg-type]
        assert service.delete_report("u1", record.id) is True  # type: ignore[arg-type]
        assert service.delete_report("u1", record.id) is False  # type: ignore[arg-type]
        assert service.get_report("u1", record.id) is None  # type: ignore[arg-type]

    def test_export_in_another_format(self, tmp_path: Path) -> None:
        """Test a saved report can be exported in a different format."""
        service = create_service(tmp_path)
        record = service.create_report(
            "u1", ReportRequest(report_type=ReportType.INCOME_STATEMENT, format="csv", name="June")
        )

        path = service.export_report(record, tmp_path, "html")

        assert path == tmp_path / "june.html"
        assert "window.print()" in path.read_text(encoding="utf-8")
