"""Data models for transactions, date ranges, report payloads and saved reports."""

from finance_reports.models.report import (
    CustomRangeInput,
    DateRange,
    ExportFormat,
    InvalidRangeError,
    MetricItem,
    MetricKind,
    MetricsSection,
    PeriodKey,
    ReportError,
    ReportPayload,
    ReportRecord,
    ReportType,
    Section,
    SectionType,
    TableFooter,
    TableRow,
    TableSection,
    TextSection,
    ValueFormat,
    section_from_dict,
)
from finance_reports.models.transaction import Transaction, TransactionType

__all__ = [
    "CustomRangeInput",
    "DateRange",
    "ExportFormat",
    "InvalidRangeError",
    "MetricItem",
    "MetricKind",
    "MetricsSection",
    "PeriodKey",
    "ReportError",
    "ReportPayload",
    "ReportRecord",
    "ReportType",
    "Section",
    "SectionType",
    "TableFooter",
    "TableRow",
    "TableSection",
    "TextSection",
    "ValueFormat",
    "section_from_dict",
    "Transaction",
    "TransactionType",
]
