"""PDF report writer built on reportlab platypus."""

import io
from xml.sax.saxutils import escape as xml_escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from finance_reports.config import Config
from finance_reports.models.report import (
    ExportFormat,
    MetricsSection,
    ReportRecord,
    TableSection,
    TextSection,
)
from finance_reports.output.base import ReportExporter
from finance_reports.output.formatting import format_delta, format_generated_at, format_value
from finance_reports.output.layout import footer_row, section_title, table_body_rows
from finance_reports.utils.logging_config import get_logger

logger = get_logger(__name__)

MARGIN = 48  # points
PAGE_SIZES = {"A4": A4, "letter": letter}

HEADER_BG = colors.HexColor("#4472C4")
GRID_COLOR = colors.HexColor("#D0D7E2")
MUTED = colors.HexColor("#6B7280")


def safe_text(value: object) -> str:
    return xml_escape("" if value is None else str(value)).replace("\n", "<br/>")


class PDFWriter(ReportExporter):
    """Renders a report as a paginated PDF document.

    Title, subtitle and generation time come first. Metrics are listed one
    per line with their delta underneath, tables are drawn as grids followed
    by their footer line, and text sections become paragraphs. Notes close
    the document.
    """

    export_format = ExportFormat.PDF

    def __init__(self, config: Config | None = None):
        super().__init__(config)
        self.page_size = PAGE_SIZES.get(self.output_config.pdf_page_size, A4)

        base = getSampleStyleSheet()
        self.styles = {
            "title": ParagraphStyle("RptTitle", parent=base["Heading1"], fontSize=18, leading=22, spaceAfter=4),
            "meta": ParagraphStyle("RptMeta", parent=base["Normal"], fontSize=12, leading=16),
            "generated": ParagraphStyle("RptGenerated", parent=base["Normal"], fontSize=10, textColor=MUTED),
            "section": ParagraphStyle("RptSection", parent=base["Heading2"], fontSize=14, leading=18, spaceBefore=12),
            "metric": ParagraphStyle("RptMetric", parent=base["Normal"], fontSize=11, leading=14),
            "delta": ParagraphStyle("RptDelta", parent=base["Normal"], fontSize=9, leading=12, leftIndent=12, textColor=MUTED),
            "body": ParagraphStyle("RptBody", parent=base["Normal"], fontSize=11, leading=14),
            "empty": ParagraphStyle("RptEmpty", parent=base["Normal"], fontSize=10, textColor=MUTED),
        }

    def render(self, report: ReportRecord) -> bytes:
        payload = self.payload_for(report)
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.page_size,
            leftMargin=MARGIN,
            rightMargin=MARGIN,
            topMargin=MARGIN,
            bottomMargin=MARGIN,
            title=payload.title or "Financial Report",
        )

        story: list = [Paragraph(safe_text(payload.title or "Financial Report"), self.styles["title"])]
        if payload.subtitle:
            story.append(Paragraph(safe_text(payload.subtitle), self.styles["meta"]))
        if payload.generated_at:
            generated = format_generated_at(payload.generated_at, self.output_config.datetime_format)
            story.append(Paragraph(safe_text(f"Generated: {generated}"), self.styles["generated"]))
        story.append(Spacer(1, 12))

        for index, section in enumerate(payload.sections):
            story.append(Paragraph(safe_text(section_title(section, index)), self.styles["section"]))
            if isinstance(section, MetricsSection):
                story.extend(self._metric_flowables(section))
            elif isinstance(section, TableSection):
                story.extend(self._table_flowables(section, doc.width))
            elif isinstance(section, TextSection):
                story.append(Paragraph(safe_text(section.body), self.styles["body"]))
            story.append(Spacer(1, 12))

        if payload.notes:
            story.append(Paragraph("Notes", self.styles["section"]))
            story.append(Paragraph(safe_text(payload.notes), self.styles["body"]))

        doc.build(story)
        logger.debug(f"Rendered PDF with {len(payload.sections)} sections for {payload.title!r}")
        return buffer.getvalue()

    def _metric_flowables(self, section: MetricsSection) -> list:
        flowables: list = []
        for item in section.items:
            line = f"{item.label}: {format_value(item.value, item.format)}"
            flowables.append(Paragraph(safe_text(line), self.styles["metric"]))
            delta = format_delta(item.delta)
            if delta:
                flowables.append(Paragraph(safe_text(f"Δ {delta}"), self.styles["delta"]))
        return flowables

    def _table_flowables(self, section: TableSection, available_width: float) -> list:
        body = table_body_rows(section)
        data: list[list[str]] = []
        if section.headers:
            data.append(list(section.headers))
        data.extend(body)

        flowables: list = []
        if data:
            columns = max(len(row) for row in data)
            data = [row + [""] * (columns - len(row)) for row in data]
            table = Table(
                data,
                colWidths=[available_width / columns] * columns,
                repeatRows=1 if section.headers else 0,
                hAlign="LEFT",
            )
            style = [
                ("FONTSIZE", (0, 0), (-1, -1), 10),
                ("GRID", (0, 0), (-1, -1), 0.5, GRID_COLOR),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
            if section.headers:
                style += [
                    ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ]
            table.setStyle(TableStyle(style))
            flowables.append(table)

        if not body and section.empty_message:
            flowables.append(Spacer(1, 4))
            flowables.append(Paragraph(safe_text(section.empty_message), self.styles["empty"]))

        footer = footer_row(section)
        if footer is not None:
            flowables.append(Spacer(1, 8))
            label = section.footer.label or "Total"  # type: ignore[union-attr]
            flowables.append(Paragraph(safe_text(f"{label}: {footer[-1]}"), self.styles["metric"]))
        return flowables
