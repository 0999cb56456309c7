"""Printable HTML exporter rendered through a Jinja2 template."""

from jinja2 import Environment, PackageLoader

from finance_reports.config import Config
from finance_reports.models.report import (
    ExportFormat,
    MetricsSection,
    ReportPayload,
    ReportRecord,
    TableSection,
    TextSection,
)
from finance_reports.output.base import ReportExporter
from finance_reports.output.formatting import format_delta, format_generated_at, format_value
from finance_reports.output.layout import footer_row, section_title, table_body_rows
from finance_reports.utils.logging_config import get_logger

logger = get_logger(__name__)

TEMPLATE_NAME = "report.html"


class HTMLExporter(ReportExporter):
    """Renders a self-contained HTML page that opens the print dialog on load.

    All values are formatted before they reach the template, so the template
    only lays out strings. Autoescaping is always on.
    """

    export_format = ExportFormat.HTML

    def __init__(self, config: Config | None = None):
        super().__init__(config)
        self.env = Environment(
            loader=PackageLoader("finance_reports", "output/templates"),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, report: ReportRecord) -> str:
        payload = self.payload_for(report)
        template = self.env.get_template(TEMPLATE_NAME)
        html = template.render(
            document_title=report.name or payload.title or "Financial Report",
            payload=payload,
            generated=format_generated_at(payload.generated_at, self.output_config.datetime_format),
            sections=self._view_sections(payload),
        )
        logger.debug(f"Rendered HTML with {len(payload.sections)} sections for {payload.title!r}")
        return html

    def _view_sections(self, payload: ReportPayload) -> list[dict[str, object]]:
        views: list[dict[str, object]] = []
        for index, section in enumerate(payload.sections):
            view: dict[str, object] = {"title": section_title(section, index)}
            if isinstance(section, MetricsSection):
                view["kind"] = "metrics"
                view["items"] = [
                    {
                        "label": item.label,
                        "value": format_value(item.value, item.format),
                        "delta": format_delta(item.delta),
                        "kind": item.kind.value if item.kind else None,
                    }
                    for item in section.items
                ]
            elif isinstance(section, TableSection):
                view["kind"] = "table"
                view["headers"] = section.headers
                view["rows"] = table_body_rows(section)
                view["footer"] = footer_row(section)
                view["empty_message"] = section.empty_message
            elif isinstance(section, TextSection):
                view["kind"] = "text"
                view["body"] = section.body
            views.append(view)
        return views
