"""Report service: request validation, generation, persistence and export.

This is the application-facing entry point. It ties period resolution, the
report builders, the saved-report repository and the exporters together.
"""

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Callable

from finance_reports.config import Config
from finance_reports.models.report import (
    CustomRangeInput,
    DateRange,
    ExportFormat,
    ReportError,
    ReportPayload,
    ReportRecord,
)
from finance_reports.output import get_exporter
from finance_reports.processing.periods import resolve_period_range
from finance_reports.processing.report_generator import build_report_payload
from finance_reports.storage.reports import ReportRepository
from finance_reports.storage.transactions import TransactionFetcher
from finance_reports.utils.date_utils import end_of_day, safe_parse_datetime, start_of_day
from finance_reports.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)

# Payload override keys accepted in camelCase, stored under their snake_case names
OVERRIDE_KEY_ALIASES = {
    "generatedAt": "generated_at",
    "startDate": "start_date",
    "endDate": "end_date",
}


class ReportRequestError(ReportError):
    """Raised when a report request is missing a required field or has an invalid one."""

    pass


@dataclass
class ReportRequest:
    """A request to generate and save a report.

    Attributes:
        report_type: Report type name (required).
        format: Export format name (required).
        period_key: Symbolic period; the configured default when None.
        period: Display label stored on the record instead of the range label.
        custom_range: Bounds for custom periods.
        name: Report name; defaults to "{report_type} - {period label}".
        notes: Free text appended to the payload.
        payload_override: Keys merged over the computed payload dict.
    """

    report_type: str | None = None
    format: str | None = None
    period_key: str | None = None
    period: str | None = None
    custom_range: CustomRangeInput | None = None
    name: str | None = None
    notes: str | None = None
    payload_override: dict[str, object] | None = None


@dataclass
class ReportFilter:
    """Filters for listing saved reports. Unset fields do not filter."""

    period_key: str | None = None
    report_type: str | None = None
    format: str | None = None
    search: str | None = None
    start_date: str | date | datetime | None = None
    end_date: str | date | datetime | None = None


def _overlaps(
    record: ReportRecord,
    window_start: datetime | None,
    window_end: datetime | None,
) -> bool:
    if window_start is not None and record.end_date is not None and record.end_date < window_start:
        return False
    if window_end is not None and record.start_date is not None and record.start_date > window_end:
        return False
    return True


def _matches_search(record: ReportRecord, search: str) -> bool:
    needle = search.lower()
    return any(needle in (value or "").lower() for value in (record.name, record.period, record.report_type))


class ReportService:
    """Generates, saves, lists, deletes and exports reports for a user."""

    def __init__(
        self,
        fetcher: TransactionFetcher,
        repository: ReportRepository,
        config: Config | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the service.

        Args:
            fetcher: Transaction source.
            repository: Saved-report store.
            config: Application configuration (defaults if None).
            clock: Returns "now"; used as the reference date for relative periods.
        """
        self.fetcher = fetcher
        self.repository = repository
        self.config = config or Config()
        self.clock = clock or datetime.now

    def generate_payload(
        self,
        user_id: str,
        report_type: str | None,
        date_range: DateRange,
        reference_date: datetime | None = None,
    ) -> ReportPayload:
        """Build a report payload for an already-resolved range."""
        return build_report_payload(
            self.fetcher,
            user_id,
            report_type,
            date_range,
            reference_date=reference_date or self.clock(),
            top_expenses_limit=self.config.reports.top_expenses_limit,
        )

    def resolve_range(self, request: ReportRequest, reference_date: datetime | None = None) -> DateRange:
        """Resolve a request's period into a date range.

        Raises:
            InvalidPeriodError: If a custom period is missing dates or inverted.
        """
        return resolve_period_range(
            request.period_key or self.config.reports.default_period,
            request.custom_range,
            reference_date or self.clock(),
        )

    def _validate(self, request: ReportRequest) -> ExportFormat:
        if not request.report_type or not request.report_type.strip():
            raise ReportRequestError("Report type is required")
        if not request.format:
            raise ReportRequestError("Format is required")
        try:
            return ExportFormat.parse(request.format)
        except ValueError as e:
            raise ReportRequestError(str(e)) from None

    def prepare_report(
        self,
        user_id: str,
        request: ReportRequest,
        reference_date: datetime | None = None,
    ) -> ReportRecord:
        """Validate a request and build its (unsaved) report record.

        Args:
            user_id: Report owner.
            request: The report request.
            reference_date: "Now" for relative periods (defaults to the clock).

        Returns:
            A ReportRecord with no id or creation time yet.

        Raises:
            ReportRequestError: If report_type or format is missing or invalid.
            InvalidPeriodError: If the period cannot be resolved.
        """
        export_format = self._validate(request)
        reference_date = reference_date or self.clock()
        date_range = self.resolve_range(request, reference_date)

        payload = self.generate_payload(user_id, request.report_type, date_range, reference_date)
        if request.notes:
            payload.notes = request.notes

        payload_dict = payload.to_dict()
        if request.payload_override:
            override = {OVERRIDE_KEY_ALIASES.get(k, k): v for k, v in request.payload_override.items()}
            payload_dict = {**payload_dict, **override}

        period_label = request.period or date_range.label
        key = request.period_key or self.config.reports.default_period
        return ReportRecord(
            user_id=user_id,
            name=request.name or f"{request.report_type} - {period_label}",
            period=period_label,
            period_key=str(getattr(key, "value", key)),
            start_date=date_range.start,
            end_date=date_range.end,
            report_type=request.report_type,  # type: ignore[arg-type]
            format=export_format.value,
            payload=payload_dict,
        )

    def create_report(
        self,
        user_id: str,
        request: ReportRequest,
        reference_date: datetime | None = None,
        output_dir: Path | str | None = None,
        export: bool = False,
    ) -> ReportRecord:
        """Generate a report and save it.

        Args:
            user_id: Report owner.
            request: The report request.
            reference_date: "Now" for relative periods (defaults to the clock).
            output_dir: Export directory when export is True.
            export: Also write the export file and store its path on the record.

        Returns:
            The saved ReportRecord.

        Raises:
            ReportRequestError: If report_type or format is missing or invalid.
            InvalidPeriodError: If the period cannot be resolved.
        """
        with LogContext(logger, "create_report", user=user_id, report_type=request.report_type):
            record = self.prepare_report(user_id, request, reference_date)
            if export:
                record.file_path = str(self.export_report(record, output_dir))
            saved = self.repository.create(record)

        logger.info(f"Created report {saved.id}: {saved.name}")
        return saved

    def list_reports(self, user_id: str, report_filter: ReportFilter | None = None) -> list[ReportRecord]:
        """List a user's saved reports, newest first, narrowed by a filter."""
        report_filter = report_filter or ReportFilter()
        records = self.repository.list_for_user(user_id)

        if report_filter.period_key:
            records = [r for r in records if r.period_key == report_filter.period_key]
        if report_filter.report_type:
            records = [r for r in records if r.report_type == report_filter.report_type]
        if report_filter.format:
            wanted = report_filter.format.upper()
            records = [r for r in records if r.format.upper() == wanted]
        if report_filter.search:
            records = [r for r in records if _matches_search(r, report_filter.search)]

        window_start = safe_parse_datetime(report_filter.start_date)
        window_end = safe_parse_datetime(report_filter.end_date)
        if window_start is not None or window_end is not None:
            window_start = start_of_day(window_start) if window_start else None
            window_end = end_of_day(window_end) if window_end else None
            records = [r for r in records if _overlaps(r, window_start, window_end)]

        logger.debug(f"Listed {len(records)} reports for user {user_id!r}")
        return records

    def get_report(self, user_id: str, report_id: str) -> ReportRecord | None:
        return self.repository.get(user_id, report_id)

    def delete_report(self, user_id: str, report_id: str) -> bool:
        """Delete a saved report. Returns False if the user has no such report."""
        deleted = self.repository.delete(user_id, report_id)
        if not deleted:
            logger.warning(f"Report {report_id} not found for user {user_id!r}")
        return deleted

    def export_report(
        self,
        record: ReportRecord,
        output_dir: Path | str | None = None,
        export_format: "ExportFormat | str | None" = None,
    ) -> Path:
        """Write a report in its own format, or in export_format when given."""
        exporter = get_exporter(export_format or record.format, self.config)
        return exporter.export(record, output_dir)
