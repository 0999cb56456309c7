"""Report data models: date ranges, payload sections, and saved report records."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Union

from finance_reports.utils.date_utils import end_of_day, safe_parse_datetime, start_of_day
from finance_reports.utils.decimal_utils import is_number, safe_decimal, to_json_number
from finance_reports.utils.logging_config import get_logger

logger = get_logger(__name__)


class ReportError(Exception):
    """Base exception for report generation failures."""

    pass


class InvalidRangeError(ReportError):
    """Raised when a date range would end before it starts."""

    pass


class ReportType:
    """Report type names accepted by the builders."""

    INCOME_STATEMENT = "Income Statement"
    BALANCE_SHEET = "Balance Sheet"
    CASH_FLOW = "Cash Flow"
    EXPENSE_SUMMARY = "Expense Summary"

    ALL = (INCOME_STATEMENT, BALANCE_SHEET, CASH_FLOW, EXPENSE_SUMMARY)


class PeriodKey(str, Enum):
    """Symbolic reporting periods relative to a reference date."""

    CURRENT_MONTH = "current-month"
    LAST_MONTH = "last-month"
    Q1 = "q1"
    Q2 = "q2"
    Q3 = "q3"
    Q4 = "q4"
    YTD = "ytd"
    LAST_YEAR = "last-year"
    ROLLING_90 = "rolling-90"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: "str | PeriodKey | None") -> "PeriodKey | None":
        """Return the matching key, or None when the value is not recognised."""
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None

    @property
    def display_name(self) -> str:
        return _PERIOD_DISPLAY_NAMES[self]


_PERIOD_DISPLAY_NAMES = {
    PeriodKey.CURRENT_MONTH: "Current Month",
    PeriodKey.LAST_MONTH: "Last Month",
    PeriodKey.Q1: "Q1",
    PeriodKey.Q2: "Q2",
    PeriodKey.Q3: "Q3",
    PeriodKey.Q4: "Q4",
    PeriodKey.YTD: "Year to Date",
    PeriodKey.LAST_YEAR: "Last Year",
    PeriodKey.ROLLING_90: "Last 90 Days",
    PeriodKey.CUSTOM: "Custom Range",
}


class ExportFormat(Enum):
    """Output formats a report can be exported to."""

    PDF = "PDF"
    CSV = "CSV"
    XLSX = "XLSX"
    HTML = "HTML"

    @property
    def extension(self) -> str:
        return self.value.lower()

    @classmethod
    def parse(cls, value: "str | ExportFormat") -> "ExportFormat":
        """Parse a format name case-insensitively.

        Raises:
            ValueError: If the format is not supported.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported export format: {value!r}") from None


@dataclass
class CustomRangeInput:
    """Caller-supplied bounds for a custom period.

    Dates may be strings in any format the date parser accepts, dates,
    datetimes, or None.
    """

    start_date: object = None
    end_date: object = None
    label: str | None = None


@dataclass
class DateRange:
    """A concrete reporting window with a display label.

    Present bounds are clamped to the start and end of their calendar days.

    Raises:
        InvalidRangeError: If start falls after end.
    """

    start: datetime | None
    end: datetime | None
    label: str

    def __post_init__(self) -> None:
        if self.start is not None:
            self.start = start_of_day(self.start)
        if self.end is not None:
            self.end = end_of_day(self.end)
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidRangeError(
                f"Range start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    @property
    def duration(self) -> timedelta | None:
        """Length of the window, or None when either bound is open."""
        if self.start is None or self.end is None:
            return None
        return self.end - self.start


class SectionType(Enum):
    """Discriminant of the section union."""

    METRICS = "metrics"
    TABLE = "table"
    TEXT = "text"


class ValueFormat(Enum):
    """Display format tag for numeric values. Untagged values are currency-like."""

    PERCENTAGE = "percentage"

    @classmethod
    def parse(cls, value: object) -> "ValueFormat | None":
        if isinstance(value, cls):
            return value
        if value == cls.PERCENTAGE.value:
            return cls.PERCENTAGE
        return None


class MetricKind(Enum):
    """Emphasis hint for a metric."""

    NEGATIVE = "negative"
    WARNING = "warning"

    @classmethod
    def parse(cls, value: object) -> "MetricKind | None":
        if isinstance(value, cls):
            return value
        for member in cls:
            if value == member.value:
                return member
        return None


Cell = Union[str, Decimal, None]


def _cell_to_json(value: Cell) -> object:
    if isinstance(value, Decimal):
        return to_json_number(value)
    return value


def _cell_from_json(value: object) -> Cell:
    if value is None:
        return None
    if is_number(value):
        return safe_decimal(value)
    return str(value)


def _format_to_json(fmt: ValueFormat | None) -> str | None:
    return fmt.value if fmt else None


@dataclass
class MetricItem:
    """One labelled figure in a metrics grid.

    Attributes:
        label: Metric name.
        value: Metric value.
        delta: Percentage change against the previous window (None if unavailable).
        format: PERCENTAGE for ratios, None for amounts.
        kind: Optional emphasis hint.
    """

    label: str
    value: Decimal
    delta: Decimal | None = None
    format: ValueFormat | None = None
    kind: MetricKind | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "label": self.label,
            "value": to_json_number(self.value),
            "delta": to_json_number(self.delta) if self.delta is not None else None,
        }
        if self.format:
            data["format"] = self.format.value
        if self.kind:
            data["kind"] = self.kind.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "MetricItem":
        delta = data.get("delta")
        return cls(
            label=str(data.get("label") or ""),
            value=safe_decimal(data.get("value")),
            delta=safe_decimal(delta) if is_number(delta) else None,
            format=ValueFormat.parse(data.get("format")),
            kind=MetricKind.parse(data.get("kind")),
        )


@dataclass
class MetricsSection:
    """A titled grid of metrics."""

    section_type: ClassVar[SectionType] = SectionType.METRICS

    title: str
    items: list[MetricItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "type": self.section_type.value,
            "title": self.title,
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "MetricsSection":
        return cls(
            title=str(data.get("title") or ""),
            items=[MetricItem.from_dict(item) for item in data.get("items") or []],  # type: ignore[union-attr]
        )


@dataclass
class TableRow:
    """A table row; formats[i] tags cells[i] (missing entries mean untagged)."""

    cells: list[Cell]
    formats: list[ValueFormat | None] = field(default_factory=list)

    def format_at(self, index: int) -> ValueFormat | None:
        return self.formats[index] if index < len(self.formats) else None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"cells": [_cell_to_json(c) for c in self.cells]}
        if any(self.formats):
            data["formats"] = [_format_to_json(f) for f in self.formats]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "TableRow":
        return cls(
            cells=[_cell_from_json(c) for c in data.get("cells") or []],  # type: ignore[union-attr]
            formats=[ValueFormat.parse(f) for f in data.get("formats") or []],  # type: ignore[union-attr]
        )


@dataclass
class TableFooter:
    """Closing total row of a table."""

    label: str
    value: Decimal
    format: ValueFormat | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"label": self.label, "value": to_json_number(self.value)}
        if self.format:
            data["format"] = self.format.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "TableFooter":
        return cls(
            label=str(data.get("label") or ""),
            value=safe_decimal(data.get("value")),
            format=ValueFormat.parse(data.get("format")),
        )


@dataclass
class TableSection:
    """A titled data table with optional footer."""

    section_type: ClassVar[SectionType] = SectionType.TABLE

    title: str
    headers: list[str] = field(default_factory=list)
    rows: list[TableRow] = field(default_factory=list)
    footer: TableFooter | None = None
    empty_message: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "type": self.section_type.value,
            "title": self.title,
            "headers": list(self.headers),
            "rows": [row.to_dict() for row in self.rows],
            "footer": self.footer.to_dict() if self.footer else None,
            "empty_message": self.empty_message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "TableSection":
        footer = data.get("footer")
        return cls(
            title=str(data.get("title") or ""),
            headers=[str(h) for h in data.get("headers") or []],  # type: ignore[union-attr]
            rows=[TableRow.from_dict(row) for row in data.get("rows") or []],  # type: ignore[union-attr]
            footer=TableFooter.from_dict(footer) if isinstance(footer, dict) else None,
            empty_message=str(data.get("empty_message") or data.get("emptyMessage") or ""),
        )


@dataclass
class TextSection:
    """A titled paragraph of free text."""

    section_type: ClassVar[SectionType] = SectionType.TEXT

    title: str
    body: str = ""

    def to_dict(self) -> dict[str, object]:
        return {"type": self.section_type.value, "title": self.title, "body": self.body}

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "TextSection":
        return cls(title=str(data.get("title") or ""), body=str(data.get("body") or ""))


Section = Union[MetricsSection, TableSection, TextSection]

_SECTION_CLASSES: dict[SectionType, type] = {
    SectionType.METRICS: MetricsSection,
    SectionType.TABLE: TableSection,
    SectionType.TEXT: TextSection,
}


def section_from_dict(data: dict[str, object]) -> Section:
    """Build a section from its dict form, dispatching on the "type" tag.

    Raises:
        ValueError: If the type tag is missing or unknown.
    """
    try:
        section_type = SectionType(data.get("type"))
    except ValueError:
        raise ValueError(f"Unknown section type: {data.get('type')!r}") from None
    return _SECTION_CLASSES[section_type].from_dict(data)  # type: ignore[no-any-return]


def _summary_to_json(value: object) -> object:
    if isinstance(value, Decimal):
        return to_json_number(value)
    if isinstance(value, dict):
        return {k: _summary_to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_summary_to_json(v) for v in value]
    return value


@dataclass
class ReportPayload:
    """Renderer-agnostic content of a generated report.

    Attributes:
        title: Report title.
        subtitle: Period label or other subtitle.
        generated_at: ISO-8601 generation timestamp.
        start_date: Start of the reporting window, if bounded.
        end_date: End of the reporting window, if bounded.
        notes: Free-text notes appended after all sections.
        sections: Ordered content sections.
        summary: Report-specific scalar totals.
    """

    title: str
    subtitle: str
    generated_at: str
    start_date: datetime | None = None
    end_date: datetime | None = None
    notes: str | None = None
    sections: list[Section] = field(default_factory=list)
    summary: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "generated_at": self.generated_at,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "notes": self.notes,
            "sections": [section.to_dict() for section in self.sections],
            "summary": _summary_to_json(self.summary),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object], skip_invalid: bool = False) -> "ReportPayload":
        """Rebuild a payload from its dict form.

        Args:
            data: Payload dict (snake_case or camelCase keys).
            skip_invalid: Log and drop malformed sections instead of raising.

        Raises:
            ValueError: If a section is malformed and skip_invalid is False.
        """
        sections: list[Section] = []
        for raw_section in data.get("sections") or []:  # type: ignore[union-attr]
            try:
                if not isinstance(raw_section, dict):
                    raise ValueError(f"Section must be an object, got {type(raw_section).__name__}")
                sections.append(section_from_dict(raw_section))
            except ValueError as e:
                if not skip_invalid:
                    raise
                logger.warning(f"Skipping malformed report section: {e}")

        notes = data.get("notes")
        summary = data.get("summary")
        return cls(
            title=str(data.get("title") or ""),
            subtitle=str(data.get("subtitle") or ""),
            generated_at=str(data.get("generated_at") or data.get("generatedAt") or ""),
            start_date=safe_parse_datetime(data.get("start_date") or data.get("startDate")),  # type: ignore[arg-type]
            end_date=safe_parse_datetime(data.get("end_date") or data.get("endDate")),  # type: ignore[arg-type]
            notes=str(notes) if notes else None,
            sections=sections,
            summary=dict(summary) if isinstance(summary, dict) else {},
        )


@dataclass
class ReportRecord:
    """A saved report: request metadata plus the opaque payload JSON.

    Attributes:
        user_id: Owner of the report.
        name: Display name.
        period: Period label shown to the user.
        report_type: Report type name.
        format: Export format name (PDF, CSV, XLSX, HTML).
        period_key: Symbolic period the report was generated for.
        start_date: Start of the reporting window.
        end_date: End of the reporting window.
        file_path: Where the export was written, if it was.
        payload: Payload dict as persisted.
        id: Record identifier (assigned by the repository).
        created_at: Creation time (assigned by the repository).
    """

    user_id: str
    name: str
    period: str
    report_type: str
    format: str
    period_key: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    file_path: str | None = None
    payload: dict[str, object] | None = None
    id: str | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "user": self.user_id,
            "name": self.name,
            "period": self.period,
            "period_key": self.period_key,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "report_type": self.report_type,
            "format": self.format,
            "file_path": self.file_path,
            "payload": self.payload,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ReportRecord":
        payload = data.get("payload")
        period_key = data.get("period_key") or data.get("periodKey")
        file_path = data.get("file_path") or data.get("filePath")
        return cls(
            id=str(data["id"]) if data.get("id") else None,
            user_id=str(data.get("user") or ""),
            name=str(data.get("name") or ""),
            period=str(data.get("period") or ""),
            period_key=str(period_key) if period_key else None,
            start_date=safe_parse_datetime(data.get("start_date") or data.get("startDate")),  # type: ignore[arg-type]
            end_date=safe_parse_datetime(data.get("end_date") or data.get("endDate")),  # type: ignore[arg-type]
            report_type=str(data.get("report_type") or data.get("reportType") or ""),
            format=str(data.get("format") or ""),
            file_path=str(file_path) if file_path else None,
            payload=payload if isinstance(payload, dict) else None,
            created_at=safe_parse_datetime(data.get("created_at") or data.get("createdAt")),  # type: ignore[arg-type]
        )
