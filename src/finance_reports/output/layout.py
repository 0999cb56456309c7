"""Logical row layout of a report, shared by the tabular exporters and the preview."""

from finance_reports.models.report import (
    MetricsSection,
    ReportPayload,
    Section,
    TableSection,
    TextSection,
)
from finance_reports.output.formatting import (
    DEFAULT_DATETIME_FORMAT,
    format_delta,
    format_generated_at,
    format_value,
)

METRIC_HEADERS = ["Metric", "Value", "Delta"]

Row = list[str]


def section_title(section: Section, index: int) -> str:
    """Section title, or "Section N" (1-based) when it has none."""
    return section.title or f"Section {index + 1}"


def header_rows(payload: ReportPayload, datetime_format: str = DEFAULT_DATETIME_FORMAT) -> list[Row]:
    """Title, optional subtitle and optional "Generated" line."""
    rows: list[Row] = [[payload.title or "Financial Report"]]
    if payload.subtitle:
        rows.append([payload.subtitle])
    if payload.generated_at:
        rows.append([f"Generated: {format_generated_at(payload.generated_at, datetime_format)}"])
    return rows


def footer_row(section: TableSection) -> Row | None:
    """Footer laid out under the table: label first, value in the last column."""
    if section.footer is None:
        return None
    width = max(len(section.headers), 2)
    row = [""] * width
    row[0] = section.footer.label
    row[-1] = format_value(section.footer.value, section.footer.format)
    return row


def metric_rows(section: MetricsSection) -> list[Row]:
    return [
        [item.label, format_value(item.value, item.format), format_delta(item.delta)]
        for item in section.items
    ]


def table_body_rows(section: TableSection) -> list[Row]:
    return [
        [format_value(cell, row.format_at(i)) for i, cell in enumerate(row.cells)]
        for row in section.rows
    ]


def section_rows(section: Section) -> list[Row]:
    """Formatted rows for one section's body, without its title.

    Metrics get a Metric/Value/Delta header. Tables get their headers, one row
    per table row and the footer. Text sections are a single row.
    """
    if isinstance(section, MetricsSection):
        return [list(METRIC_HEADERS), *metric_rows(section)]

    if isinstance(section, TableSection):
        rows: list[Row] = []
        if section.headers:
            rows.append(list(section.headers))
        rows.extend(table_body_rows(section))
        footer = footer_row(section)
        if footer is not None:
            rows.append(footer)
        return rows

    if isinstance(section, TextSection):
        return [[section.body]]

    return []
