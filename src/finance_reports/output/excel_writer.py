"""Excel workbook writer for report downloads."""

import io

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from finance_reports.config import Config
from finance_reports.models.report import (
    ExportFormat,
    MetricsSection,
    ReportRecord,
    Section,
    TableSection,
)
from finance_reports.output.base import ReportExporter
from finance_reports.output.formatting import sanitize_sheet_name
from finance_reports.output.layout import section_rows, section_title
from finance_reports.utils.logging_config import get_logger
from finance_reports.utils.sanitize import sanitize_for_csv

logger = get_logger(__name__)

SUMMARY_SHEET = "Summary"
NO_DATA_MESSAGE = "No data available"


class ExcelWriter(ReportExporter):
    """Writes a report to an Excel workbook, one worksheet per section.

    Each sheet starts with the section title, followed by the section's
    header row (styled), its rows and, for tables, a bold footer row. A
    report without sections gets a single Summary sheet.
    """

    export_format = ExportFormat.XLSX

    def __init__(self, config: Config | None = None):
        super().__init__(config)

        # Style definitions
        self.title_font = Font(bold=True, size=14)
        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        self.footer_font = Font(bold=True)
        self.right_aligned = Alignment(horizontal="right")

    def render(self, report: ReportRecord) -> bytes:
        payload = self.payload_for(report)
        logger.info(f"Writing Excel workbook for {payload.title!r}")

        wb = Workbook()
        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)

        for index, section in enumerate(payload.sections):
            title = section_title(section, index)
            ws = wb.create_sheet(sanitize_sheet_name(section.title, title))
            self._write_section(ws, title, section)

        if not payload.sections:
            ws = wb.create_sheet(SUMMARY_SHEET)
            ws.cell(row=1, column=1, value=sanitize_for_csv(payload.title or "Report")).font = self.title_font
            ws.cell(row=2, column=1, value=NO_DATA_MESSAGE)
            ws.column_dimensions["A"].width = 40

        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    def _write_section(self, ws: Worksheet, title: str, section: Section) -> None:
        ws.cell(row=1, column=1, value=sanitize_for_csv(title)).font = self.title_font

        rows = section_rows(section)
        has_header = isinstance(section, MetricsSection) or (
            isinstance(section, TableSection) and bool(section.headers)
        )
        has_footer = isinstance(section, TableSection) and section.footer is not None

        for offset, values in enumerate(rows):
            row_num = offset + 2
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row_num, column=col, value=sanitize_for_csv(value))
                if col > 1:
                    cell.alignment = self.right_aligned
                if has_header and offset == 0:
                    cell.font = self.header_font
                    cell.fill = self.header_fill
                elif has_footer and offset == len(rows) - 1:
                    cell.font = self.footer_font

        # Adjust column widths
        width = max((len(r) for r in rows), default=1)
        ws.column_dimensions["A"].width = 40
        for i in range(2, width + 1):
            ws.column_dimensions[get_column_letter(i)].width = 18

        if has_header:
            ws.freeze_panes = "A3"
