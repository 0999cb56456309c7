"""Period resolution, aggregation, report building and payload normalization."""

from finance_reports.processing.normalizer import (
    PayloadNormalizer,
    PayloadShape,
    ReportFallback,
    normalize_payload,
)
from finance_reports.processing.periods import (
    InvalidPeriodError,
    derive_previous_range,
    resolve_period_range,
)
from finance_reports.processing.report_generator import (
    REPORT_BUILDERS,
    ReportContext,
    build_report,
    build_report_payload,
)

__all__ = [
    "PayloadNormalizer",
    "PayloadShape",
    "ReportFallback",
    "normalize_payload",
    "InvalidPeriodError",
    "derive_previous_range",
    "resolve_period_range",
    "REPORT_BUILDERS",
    "ReportContext",
    "build_report",
    "build_report_payload",
]
