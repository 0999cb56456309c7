"""Report exporters for PDF, CSV, XLSX and printable HTML."""

from finance_reports.config import Config
from finance_reports.models.report import ExportFormat
from finance_reports.output.base import ReportExporter
from finance_reports.output.csv_exporter import CSVExporter
from finance_reports.output.excel_writer import ExcelWriter
from finance_reports.output.html_exporter import HTMLExporter
from finance_reports.output.pdf_writer import PDFWriter

EXPORTERS: dict[ExportFormat, type[ReportExporter]] = {
    ExportFormat.PDF: PDFWriter,
    ExportFormat.CSV: CSVExporter,
    ExportFormat.XLSX: ExcelWriter,
    ExportFormat.HTML: HTMLExporter,
}


def get_exporter(export_format: "ExportFormat | str", config: Config | None = None) -> ReportExporter:
    """Create the exporter for a format.

    Raises:
        ValueError: If the format is not supported.
    """
    return EXPORTERS[ExportFormat.parse(export_format)](config)


__all__ = [
    "CSVExporter",
    "ExcelWriter",
    "HTMLExporter",
    "PDFWriter",
    "ReportExporter",
    "EXPORTERS",
    "get_exporter",
]
