"""Date parsing, day clamping and calendar arithmetic."""

import re
from datetime import date, datetime, time, timedelta

# Accepted input formats, tried in order.
#
# Slash-separated dates ("03/04/2024") are read as US (MM/DD/YYYY).
# Use ISO (2024-04-03) or period-separated (03.04.2024) for day-first input.
DATE_PATTERNS = [
    (r"^(\d{4})-(\d{1,2})-(\d{1,2})$", "%Y-%m-%d"),
    (r"^(\d{4})-(\d{1,2})-(\d{1,2})[T ](\d{2}):(\d{2}):(\d{2})$", "%Y-%m-%dT%H:%M:%S"),
    (r"^(\d{1,2})/(\d{1,2})/(\d{4})$", "%m/%d/%Y"),
    (r"^(\d{1,2})/(\d{1,2})/(\d{2})$", "%m/%d/%y"),
    (r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$", "%d.%m.%Y"),
    (r"^(\d{1,2})-(\w{3})-(\d{4})$", "%d-%b-%Y"),
    (r"^(\w{3})\s+(\d{1,2}),?\s+(\d{4})$", "%b %d, %Y"),
    (r"^(\w+)\s+(\d{1,2}),?\s+(\d{4})$", "%B %d, %Y"),
    (r"^(\d{4})(\d{2})(\d{2})$", "%Y%m%d"),
]

COMPILED_PATTERNS = [(re.compile(pattern), fmt) for pattern, fmt in DATE_PATTERNS]

ONE_MILLISECOND = timedelta(milliseconds=1)
END_OF_DAY = time(23, 59, 59, 999000)
NOON = time(12, 0)


def parse_datetime(raw: str | date | datetime) -> datetime:
    """Parse a date-like value into a naive local datetime.

    Handles:
    - datetime / date objects (dates become midnight)
    - ISO: 2024-01-15, 2024-01-15T09:30:00, full isoformat with offsets
    - US: 01/15/2024, 1/15/24
    - European: 15.01.2024
    - Text: 15-Jan-2024, Jan 15, 2024, January 15, 2024
    - Compact: 20240115

    Timezone-aware values are converted to local time and made naive.

    Args:
        raw: The value to parse.

    Returns:
        Parsed naive datetime.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(raw, datetime):
        return raw.astimezone().replace(tzinfo=None) if raw.tzinfo else raw
    if isinstance(raw, date):
        return datetime.combine(raw, time.min)
    if not raw:
        raise ValueError("Empty date string")

    date_str = str(raw).strip()
    if not date_str:
        raise ValueError("Empty date string after stripping whitespace")

    for pattern, fmt in COMPILED_PATTERNS:
        if pattern.match(date_str):
            try:
                return datetime.strptime(date_str.replace(" ", "T", 1) if "%H" in fmt else date_str, fmt)
            except ValueError:
                continue

    try:
        # "Z" suffix is not accepted by fromisoformat before 3.11
        parsed = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Cannot parse date: '{raw}'") from None
    return parsed.astimezone().replace(tzinfo=None) if parsed.tzinfo else parsed


def safe_parse_datetime(
    raw: str | date | datetime | None,
    default: datetime | None = None,
) -> datetime | None:
    """Parse a date-like value, returning default on failure.

    Args:
        raw: The value to parse.
        default: Value returned when raw is empty or unparseable.

    Returns:
        Parsed datetime or default.
    """
    if raw is None or raw == "":
        return default

    try:
        return parse_datetime(raw)
    except (ValueError, TypeError):
        return default


def start_of_day(moment: datetime) -> datetime:
    """Clamp a datetime to 00:00:00.000 of its calendar day."""
    return datetime.combine(moment.date(), time.min)


def end_of_day(moment: datetime) -> datetime:
    """Clamp a datetime to 23:59:59.999 of its calendar day."""
    return datetime.combine(moment.date(), END_OF_DAY)


def at_noon(moment: date | datetime) -> datetime:
    """Move a date or datetime to 12:00 on the same calendar day."""
    day = moment.date() if isinstance(moment, datetime) else moment
    return datetime.combine(day, NOON)


def month_start(year: int, month: int) -> date:
    """First day of a month, normalising month overflow in either direction.

    month_start(2024, 0) is December 2023; month_start(2024, 13) is January 2025.
    """
    carry, month_index = divmod(month - 1, 12)
    return date(year + carry, month_index + 1, 1)


def month_end(year: int, month: int) -> date:
    """Last day of a month, computed as the day before the next month starts."""
    return month_start(year, month + 1) - timedelta(days=1)


def format_day_label(d: date | datetime) -> str:
    """Format a day as "Jun 1, 2024"."""
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def format_month_label(d: date | datetime) -> str:
    """Format a month as "Jun 2024"."""
    return d.strftime("%b %Y")


def month_key(d: date | datetime) -> str:
    """Sortable month bucket key, "YYYY-MM"."""
    return f"{d.year:04d}-{d.month:02d}"
