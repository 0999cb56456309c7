"""Abstract base class for report exporters."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from finance_reports.config import Config
from finance_reports.models.report import ExportFormat, ReportPayload, ReportRecord
from finance_reports.output.formatting import slugify_filename
from finance_reports.processing.normalizer import ReportFallback, normalize_payload
from finance_reports.utils.logging_config import get_logger

logger = get_logger(__name__)


class ReportExporter(ABC):
    """Abstract base class for all report exporters.

    Subclasses must implement:
    - export_format: The ExportFormat they produce
    - render(): Turn a saved report into file content
    """

    export_format: ClassVar[ExportFormat]

    def __init__(self, config: Config | None = None):
        """Initialize exporter.

        Args:
            config: Application configuration (defaults if None).
        """
        self.config = config or Config()
        self.output_config = self.config.output

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def payload_for(self, report: ReportRecord) -> ReportPayload:
        """Normalize a report's stored payload, falling back to its own metadata."""
        return normalize_payload(report.payload, ReportFallback.from_record(report))

    @abstractmethod
    def render(self, report: ReportRecord) -> str | bytes:
        """Render a report to file content.

        Args:
            report: Saved report whose payload is rendered.

        Returns:
            Text for text formats, bytes for binary formats.
        """
        pass

    def filename(self, report: ReportRecord) -> str:
        """File name for a report, e.g. "income_statement_-_jun_2024.pdf"."""
        return f"{slugify_filename(report.name or report.report_type)}.{self.export_format.extension}"

    def export(self, report: ReportRecord, output_dir: Path | str | None = None) -> Path:
        """Render a report and write it to disk.

        Args:
            report: Saved report to export.
            output_dir: Target directory (defaults to output.output_dir).

        Returns:
            Path of the written file.
        """
        target_dir = Path(output_dir if output_dir is not None else self.output_config.output_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        output_path = target_dir / self.filename(report)

        content = self.render(report)
        if isinstance(content, bytes):
            output_path.write_bytes(content)
        else:
            output_path.write_text(content, encoding="utf-8")

        logger.info(f"{self.name} wrote {output_path}")
        return output_path
