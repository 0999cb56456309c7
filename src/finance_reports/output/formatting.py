"""Display formatting shared by every exporter and the console preview."""

import re
from decimal import Decimal

from finance_reports.models.report import ValueFormat
from finance_reports.utils.date_utils import parse_datetime
from finance_reports.utils.decimal_utils import is_number, round_half_up

DEFAULT_DATETIME_FORMAT = "%Y-%m-%d %H:%M"

# Excel rejects these in sheet names
_SHEET_NAME_INVALID = re.compile(r"[/\\?*\[\]:]")
MAX_SHEET_NAME_LENGTH = 28

_FILENAME_INVALID = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")


def _rounded(value: object, places: int) -> Decimal:
    rounded = round_half_up(Decimal(str(value)), places)
    # Avoid "-0.00"
    return abs(rounded) if rounded == 0 else rounded


def _is_finite_number(value: object) -> bool:
    return is_number(value) and Decimal(str(value)).is_finite()


def format_amount(value: object) -> str:
    """Format a number as "1,234.56". Non-numeric values pass through as text."""
    if not _is_finite_number(value):
        return "" if value is None else str(value)
    return f"{_rounded(value, 2):,.2f}"


def format_percentage(value: object) -> str:
    """Format a number as "70.0%". Non-numeric values pass through as text."""
    if not _is_finite_number(value):
        return "" if value is None else str(value)
    return f"{_rounded(value, 1):,.1f}%".replace("%%", "%")


def format_value(value: object, value_format: ValueFormat | None = None) -> str:
    """Format a cell or metric value according to its format tag."""
    if value_format is ValueFormat.PERCENTAGE:
        return format_percentage(value)
    return format_amount(value)


def format_delta(delta: object) -> str:
    """Format a period-over-period delta, or "" when there is none."""
    if not _is_finite_number(delta):
        return ""
    return format_percentage(delta)


def format_generated_at(generated_at: str | None, datetime_format: str = DEFAULT_DATETIME_FORMAT) -> str:
    """Format an ISO timestamp for display, returning the raw text if it does not parse."""
    if not generated_at:
        return ""
    try:
        return parse_datetime(generated_at).strftime(datetime_format)
    except ValueError:
        return generated_at


def slugify_filename(name: str | None) -> str:
    """Turn a report name into a safe file stem.

    Examples:
        "Income Statement - Jun 2024" -> "income_statement_-_jun_2024"
        "!!!" -> "report"
    """
    trimmed = (name or "report").strip()
    slug = _WHITESPACE.sub("_", _FILENAME_INVALID.sub("", trimmed)).lower()
    return slug or "report"


def sanitize_sheet_name(title: str | None, fallback: str = "Sheet") -> str:
    """Worksheet name with Excel-invalid characters removed, at most 28 characters."""
    base = _SHEET_NAME_INVALID.sub("", title or fallback or "Sheet")[:MAX_SHEET_NAME_LENGTH]
    return base or "Sheet"
