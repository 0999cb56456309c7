"""Tests for the CSV, Excel, PDF and HTML exporters."""

import io
from decimal import Decimal
from pathlib import Path

import pytest
from openpyxl import load_workbook

from finance_reports.config import Config, OutputConfig
from finance_reports.models.report import (
    ExportFormat,
    MetricItem,
    MetricKind,
    MetricsSection,
    ReportPayload,
    ReportRecord,
    TableFooter,
    TableRow,
    TableSection,
    TextSection,
    ValueFormat,
)
from finance_reports.output import (
    CSVExporter,
    ExcelWriter,
    HTMLExporter,
    PDFWriter,
    get_exporter,
)


def create_payload(**overrides: object) -> ReportPayload:
    """Create a small payload with one section of each type."""
    values: dict[str, object] = {
        "title": "Income Statement",
        "subtitle": "Jun 2024",
        "generated_at": "2024-06-15T10:30:00",
        "notes": "Checked",
        "sections": [
            MetricsSection(
                title="Key Metrics",
                items=[
                    MetricItem("Total Income", Decimal("5000"), Decimal("25")),
                    MetricItem("Profit Margin", Decimal("70"), format=ValueFormat.PERCENTAGE),
                    MetricItem("Total Expenses", Decimal("1500"), kind=MetricKind.NEGATIVE),
                ],
            ),
            TableSection(
                title="Income by Category",
                headers=["Category", "Amount"],
                rows=[TableRow(["Salary", Decimal("5000")])],
                footer=TableFooter("Total Income", Decimal("5000")),
            ),
            TextSection(title="Comment", body='He said "hi"'),
        ],
    }
    values.update(overrides)
    return ReportPayload(**values)  # type: ignore[arg-type]


def create_record(payload: ReportPayload | dict | None = None, report_format: str = "CSV") -> ReportRecord:
    """Create a saved report carrying a payload dict."""
    if isinstance(payload, ReportPayload):
        payload = payload.to_dict()
    return ReportRecord(
        user_id="u1",
        name="June Income",
        period="Jun 2024",
        report_type="Income Statement",
        format=report_format,
        payload=payload,
    )


class TestCSVExporter:
    """Tests for CSVExporter."""

    def test_layout(self) -> None:
        """Test header lines, sections separated by blank rows and notes."""
        content = CSVExporter().render(create_record(create_payload()))

        assert content.splitlines() == [
            '"Income Statement"',
            '"Jun 2024"',
            '"Generated: 2024-06-15 10:30"',
            "",
            '"Key Metrics"',
            '"Metric","Value","Delta"',
            '"Total Income","5,000.00","25.0%"',
            '"Profit Margin","70.0%",""',
            '"Total Expenses","1,500.00",""',
            "",
            '"Income by Category"',
            '"Category","Amount"',
            '"Salary","5,000.00"',
            '"Total Income","5,000.00"',
            "",
            '"Comment"',
            '"He said ""hi"""',
            "",
            '"Notes"',
            '"Checked"',
        ]

    def test_untitled_section_and_no_notes(self) -> None:
        """Test untitled sections are numbered and notes are omitted when empty."""
        payload = create_payload(notes=None, sections=[TextSection(title="", body="x")])
        lines = CSVExporter().render(create_record(payload)).splitlines()

        assert lines[4] == '"Section 1"'
        assert '"Notes"' not in lines

    def test_formula_cells_are_neutralised(self) -> None:
        """Test text that looks like a formula is prefixed."""
        payload = create_payload(sections=[TextSection(title="Injected", body="=HYPERLINK(\"x\")")])
        content = CSVExporter().render(create_record(payload))

        assert '"\'=HYPERLINK(""x"")"' in content

    def test_empty_payload_uses_record_metadata(self) -> None:
        """Test a record without a payload still exports its title."""
        content = CSVExporter().render(create_record(None))

        assert content.splitlines()[0] == '"Income Statement"'
        assert content.splitlines()[1] == '"Jun 2024"'

    def test_export_writes_file(self, tmp_path: Path) -> None:
        """Test export writes a slugged file into the output directory."""
        path = CSVExporter().export(create_record(create_payload()), tmp_path)

        assert path == tmp_path / "june_income.csv"
        assert path.read_text(encoding="utf-8").startswith('"Income Statement"')


class TestExcelWriter:
    """Tests for ExcelWriter."""

    def test_one_sheet_per_section(self) -> None:
        """Test each section gets its own titled sheet."""
        content = ExcelWriter().render(create_record(create_payload(), "XLSX"))
        wb = load_workbook(io.BytesIO(content))

        assert wb.sheetnames == ["Key Metrics", "Income by Category", "Comment"]

        metrics = wb["Key Metrics"]
        assert metrics["A1"].value == "Key Metrics"
        assert metrics["A2"].value == "Metric"
        assert metrics["A3"].value == "Total Income"
        assert metrics["B3"].value == "5,000.00"
        assert metrics["C3"].value == "25.0%"
        assert metrics["A2"].font.bold

        table = wb["Income by Category"]
        assert table["A2"].value == "Category"
        assert table["A3"].value == "Salary"
        assert table["A4"].value == "Total Income"
        assert table["B4"].value == "5,000.00"
        assert table["A4"].font.bold

        assert wb["Comment"]["A2"].value == 'He said "hi"'

    def test_sheet_names_are_sanitized(self) -> None:
        """Test invalid sheet characters are stripped from section titles."""
        payload = create_payload(sections=[TextSection(title="Q1/Q2: [draft]", body="x")])
        wb = load_workbook(io.BytesIO(ExcelWriter().render(create_record(payload))))

        assert wb.sheetnames == ["Q1Q2 draft"]

    def test_no_sections_gives_summary_sheet(self) -> None:
        """Test an empty report still produces a readable workbook."""
        payload = create_payload(sections=[])
        wb = load_workbook(io.BytesIO(ExcelWriter().render(create_record(payload))))

        assert wb.sheetnames == ["Summary"]
        assert wb["Summary"]["A1"].value == "Income Statement"
        assert wb["Summary"]["A2"].value == "No data available"

    def test_export_uses_configured_directory(self, tmp_path: Path) -> None:
        """Test the configured output directory is used when none is given."""
        config = Config(output=OutputConfig(output_dir=str(tmp_path / "exports")))
        path = ExcelWriter(config).export(create_record(create_payload()))

        assert path == tmp_path / "exports" / "june_income.xlsx"
        assert path.exists()


class TestPDFWriter:
    """Tests for PDFWriter."""

    def test_renders_pdf_document(self) -> None:
        """Test the output is a PDF."""
        content = PDFWriter().render(create_record(create_payload(), "PDF"))

        assert content.startswith(b"%PDF")

    def test_empty_table_and_markup_in_text(self) -> None:
        """Test empty tables and text needing escaping still render."""
        payload = create_payload(
            sections=[
                TableSection(
                    title="Top Expenses",
                    headers=["Description", "Amount"],
                    empty_message="No high-value expenses recorded.",
                    footer=TableFooter("Total", Decimal("0")),
                ),
                TextSection(title="Notes & <things>", body="a < b\nnext line"),
            ]
        )

        assert PDFWriter().render(create_record(payload)).startswith(b"%PDF")

    def test_letter_page_size(self) -> None:
        """Test the configured page size is applied."""
        writer = PDFWriter(Config(output=OutputConfig(pdf_page_size="letter")))

        assert writer.page_size == (612.0, 792.0)


class TestHTMLExporter:
    """Tests for HTMLExporter."""

    def test_print_page(self) -> None:
        """Test the page shows formatted values and opens the print dialog."""
        html = HTMLExporter().render(create_record(create_payload(), "HTML"))

        assert html.startswith("<!DOCTYPE html>")
        assert "<title>June Income</title>" in html
        assert "Period: Jun 2024" in html
        assert "Generated: 2024-06-15 10:30" in html
        assert "5,000.00" in html
        assert "&Delta; 25.0%" in html
        assert 'class="metric negative"' in html
        assert "<h2>Notes</h2>" in html
        assert "<script>window.print();</script>" in html

    def test_text_is_escaped(self) -> None:
        """Test payload text cannot inject markup."""
        payload = create_payload(sections=[TextSection(title="<i>T</i>", body="<script>alert(1)</script>")])
        html = HTMLExporter().render(create_record(payload))

        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
        assert "<i>T</i>" not in html

    def test_empty_table_message(self) -> None:
        """Test a table without rows shows its empty message."""
        payload = create_payload(
            sections=[TableSection(title="Top Expenses", headers=["A", "B"], empty_message="Nothing here")]
        )
        html = HTMLExporter().render(create_record(payload))

        assert "Nothing here" in html
        assert "<table>" not in html


class TestGetExporter:
    """Tests for the exporter registry."""

    @pytest.mark.parametrize(
        "name,exporter_class",
        [("pdf", PDFWriter), ("CSV", CSVExporter), ("xlsx", ExcelWriter), (ExportFormat.HTML, HTMLExporter)],
    )
    def test_lookup(self, name: object, exporter_class: type) -> None:
        """Test formats resolve case-insensitively to their exporter."""
        assert isinstance(get_exporter(name), exporter_class)  # type: ignore[arg-type]

    def test_unknown_format(self) -> None:
        """Test an unsupported format is rejected."""
        with pytest.raises(ValueError, match="Unsupported export format"):
            get_exporter("docx")
