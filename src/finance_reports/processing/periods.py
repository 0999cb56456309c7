"""Reporting period resolution and comparison-window derivation."""

from datetime import date, datetime, timedelta

from finance_reports.models.report import (
    CustomRangeInput,
    DateRange,
    InvalidRangeError,
    PeriodKey,
    ReportError,
)
from finance_reports.utils.date_utils import (
    ONE_MILLISECOND,
    at_noon,
    end_of_day,
    format_day_label,
    format_month_label,
    month_end,
    month_start,
    safe_parse_datetime,
    start_of_day,
)
from finance_reports.utils.logging_config import get_logger

logger = get_logger(__name__)

ROLLING_WINDOW_DAYS = 90

_QUARTERS = {PeriodKey.Q1: 1, PeriodKey.Q2: 2, PeriodKey.Q3: 3, PeriodKey.Q4: 4}


class InvalidPeriodError(ReportError):
    """Raised when a custom period has missing, unparseable or inverted dates."""

    pass


def format_range_label(start: datetime | None, end: datetime | None) -> str:
    """Human-readable label for a range that may be open on either side.

    Returns:
        "Jan 1, 2024 – Mar 31, 2024", "From ...", "Through ..." or "All Time".
    """
    if start is None and end is None:
        return "All Time"
    if start is not None and end is not None:
        return f"{format_day_label(start)} – {format_day_label(end)}"
    if start is not None:
        return f"From {format_day_label(start)}"
    return f"Through {format_day_label(end)}"  # type: ignore[arg-type]


def _day_range(start: date, end: date, label: str) -> DateRange:
    return DateRange(
        start=datetime.combine(start, datetime.min.time()),
        end=datetime.combine(end, datetime.min.time()),
        label=label,
    )


def _month_range(year: int, month: int) -> DateRange:
    first = month_start(year, month)
    return _day_range(first, month_end(first.year, first.month), format_month_label(first))


def _quarter_range(quarter: int, year: int) -> DateRange:
    first_month = (quarter - 1) * 3 + 1
    return _day_range(
        month_start(year, first_month),
        month_end(year, first_month + 2),
        f"Q{quarter} {year}",
    )


def _parse_bounds(custom_range: CustomRangeInput | None) -> tuple[datetime | None, datetime | None]:
    if custom_range is None:
        return None, None
    return (
        safe_parse_datetime(custom_range.start_date),  # type: ignore[arg-type]
        safe_parse_datetime(custom_range.end_date),  # type: ignore[arg-type]
    )


def _custom_range(custom_range: CustomRangeInput | None) -> DateRange:
    start_input, end_input = _parse_bounds(custom_range)
    if start_input is None or end_input is None:
        raise InvalidPeriodError("Custom period requires valid start and end dates")

    start = start_of_day(start_input)
    end = end_of_day(end_input)
    if start > end:
        raise InvalidPeriodError("Custom period start date must be before end date")

    label = (custom_range.label if custom_range else None) or format_range_label(start, end)
    return DateRange(start=start, end=end, label=label)


def resolve_period_range(
    period_key: "PeriodKey | str | None" = PeriodKey.CURRENT_MONTH,
    custom_range: CustomRangeInput | None = None,
    reference_date: date | datetime | None = None,
) -> DateRange:
    """Resolve a period key into a concrete, day-clamped date range.

    Boundaries are derived from the reference date's calendar day; its time
    of day is replaced with noon first so that clock shifts around midnight
    cannot move the day.

    An unrecognised key falls back to the custom range when both of its dates
    parse, and to the current month otherwise.

    Args:
        period_key: Symbolic period, or its string value.
        custom_range: Bounds for PeriodKey.CUSTOM (and for the fallback).
        reference_date: "Now" for relative periods. Defaults to the current time.

    Returns:
        The resolved DateRange.

    Raises:
        InvalidPeriodError: If a custom range is missing dates or is inverted.
    """
    now = at_noon(reference_date if reference_date is not None else datetime.now())
    year, month = now.year, now.month
    key = PeriodKey.parse(period_key)

    if key is PeriodKey.CURRENT_MONTH:
        return _month_range(year, month)
    if key is PeriodKey.LAST_MONTH:
        return _month_range(year, month - 1)
    if key in _QUARTERS:
        return _quarter_range(_QUARTERS[key], year)
    if key is PeriodKey.YTD:
        return _day_range(date(year, 1, 1), now.date(), f"Year to Date {year}")
    if key is PeriodKey.LAST_YEAR:
        return _day_range(date(year - 1, 1, 1), date(year - 1, 12, 31), str(year - 1))
    if key is PeriodKey.ROLLING_90:
        start = now.date() - timedelta(days=ROLLING_WINDOW_DAYS - 1)
        return _day_range(start, now.date(), "Last 90 Days")
    if key is PeriodKey.CUSTOM:
        return _custom_range(custom_range)

    start_input, end_input = _parse_bounds(custom_range)
    if start_input is not None and end_input is not None:
        logger.warning(f"Unknown period key {period_key!r}; using supplied custom dates")
        start = start_of_day(start_input)
        end = end_of_day(end_input)
        if start > end:
            raise InvalidPeriodError("Invalid period range")
        return DateRange(start=start, end=end, label=format_range_label(start, end))

    logger.warning(f"Unknown period key {period_key!r}; falling back to current month")
    return _month_range(year, month)


def derive_previous_range(date_range: DateRange) -> DateRange | None:
    """Compute the window immediately before a range, with the same duration.

    The previous window ends one millisecond before the current one starts
    and has the same length, so the two are contiguous and never overlap.

    Args:
        date_range: The current reporting window.

    Returns:
        The comparison window, or None when either bound is open.

    Raises:
        InvalidRangeError: If the range ends before it starts.
    """
    if date_range.start is None or date_range.end is None:
        return None
    if date_range.start > date_range.end:
        raise InvalidRangeError("Cannot derive a previous range from an inverted range")

    duration = date_range.end - date_range.start
    previous_end = end_of_day(date_range.start - ONE_MILLISECOND)
    previous_start = start_of_day(previous_end - duration)
    return DateRange(
        start=previous_start,
        end=previous_end,
        label=format_range_label(previous_start, previous_end),
    )
