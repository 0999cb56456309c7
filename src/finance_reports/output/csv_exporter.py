"""CSV exporter for spreadsheet-friendly report downloads."""

import csv
import io

from finance_reports.models.report import ExportFormat, ReportRecord
from finance_reports.output.base import ReportExporter
from finance_reports.output.layout import header_rows, section_rows, section_title
from finance_reports.utils.logging_config import get_logger
from finance_reports.utils.sanitize import sanitize_for_csv

logger = get_logger(__name__)


class CSVExporter(ReportExporter):
    """Exports a report as a single CSV document.

    Layout:
    - Title, subtitle and "Generated" lines, then a blank row
    - Per section: its title, its rows, then a blank row
    - "Notes" and the notes text, when present

    Every cell is quoted.
    """

    export_format = ExportFormat.CSV

    def render(self, report: ReportRecord) -> str:
        payload = self.payload_for(report)

        lines: list[list[str]] = header_rows(payload, self.output_config.datetime_format)
        lines.append([])

        for index, section in enumerate(payload.sections):
            lines.append([section_title(section, index)])
            lines.extend(section_rows(section))
            lines.append([])

        if payload.notes:
            lines.append(["Notes"])
            lines.append([payload.notes])

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        for line in lines:
            writer.writerow([sanitize_for_csv(cell) for cell in line])

        logger.debug(f"Rendered CSV with {len(lines)} rows for {payload.title!r}")
        return buffer.getvalue()
