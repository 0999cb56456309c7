"""Configuration loading and validation for the report generator."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from finance_reports.models.report import ExportFormat, PeriodKey, ReportType
from finance_reports.utils.logging_config import get_logger

logger = get_logger(__name__)

CONFIG_DIR_ENV = "FINANCE_REPORTS_CONFIG_DIR"
STORE_PATH_ENV = "FINANCE_REPORTS_STORE"

PDF_PAGE_SIZES = ("A4", "letter")


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


@dataclass
class OutputConfig:
    """Configuration for report export.

    Attributes:
        format: Default export format (pdf, csv, xlsx or html).
        output_dir: Directory exports are written to.
        datetime_format: strftime pattern for "Generated" lines.
        pdf_page_size: A4 or letter.
    """

    format: str = "pdf"
    output_dir: str = "reports"
    datetime_format: str = "%Y-%m-%d %H:%M"
    pdf_page_size: str = "A4"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "OutputConfig":
        """Create from dictionary."""
        fmt = str(data.get("format", "pdf"))
        try:
            ExportFormat.parse(fmt)
        except ValueError as e:
            raise ConfigError(f"output.format: {e}") from None

        page_size = str(data.get("pdf_page_size", "A4"))
        if page_size not in PDF_PAGE_SIZES:
            raise ConfigError(
                f"output.pdf_page_size must be one of {', '.join(PDF_PAGE_SIZES)}, got {page_size!r}"
            )

        return cls(
            format=fmt,
            output_dir=str(data.get("output_dir", "reports")),
            datetime_format=str(data.get("datetime_format", "%Y-%m-%d %H:%M")),
            pdf_page_size=page_size,
        )

    @property
    def export_format(self) -> ExportFormat:
        return ExportFormat.parse(self.format)


@dataclass
class ReportsConfig:
    """Defaults for report generation and the saved-report store.

    Attributes:
        default_period: Period key used when none is given.
        default_report_type: Report type used when none is given.
        top_expenses_limit: Rows in the Top Expenses table.
        store_path: JSON file holding saved reports.
    """

    default_period: str = PeriodKey.CURRENT_MONTH.value
    default_report_type: str = ReportType.INCOME_STATEMENT
    top_expenses_limit: int = 5
    store_path: str = "reports/reports.json"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ReportsConfig":
        """Create from dictionary."""
        period = str(data.get("default_period", PeriodKey.CURRENT_MONTH.value))
        if PeriodKey.parse(period) is None:
            raise ConfigError(f"reports.default_period is not a known period: {period!r}")

        try:
            limit = int(data.get("top_expenses_limit", 5))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise ConfigError("reports.top_expenses_limit must be an integer") from None
        if limit < 0:
            raise ConfigError("reports.top_expenses_limit must not be negative")

        return cls(
            default_period=period,
            default_report_type=str(data.get("default_report_type", ReportType.INCOME_STATEMENT)),
            top_expenses_limit=limit,
            store_path=str(data.get("store_path", "reports/reports.json")),
        )


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file.
    """

    level: str = "INFO"
    file: str = "finance_reports.log"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Create from dictionary."""
        return cls(
            level=str(data.get("level", "INFO")),
            file=str(data.get("file", "finance_reports.log")),
        )


@dataclass
class Config:
    """Main configuration container."""

    output: OutputConfig = field(default_factory=OutputConfig)
    reports: ReportsConfig = field(default_factory=ReportsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if content and not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(content).__name__}")
    return content if content else {}


def load_settings(path: Path) -> tuple[OutputConfig, ReportsConfig, LoggingConfig]:
    """Load settings from settings.yaml.

    Args:
        path: Path to settings.yaml.

    Returns:
        Tuple of (OutputConfig, ReportsConfig, LoggingConfig).
    """
    data = load_yaml_file(path)

    output = OutputConfig()
    if data.get("output"):
        output = OutputConfig.from_dict(data["output"])  # type: ignore[arg-type]

    reports = ReportsConfig()
    if data.get("reports"):
        reports = ReportsConfig.from_dict(data["reports"])  # type: ignore[arg-type]

    logging_config = LoggingConfig()
    if data.get("logging"):
        logging_config = LoggingConfig.from_dict(data["logging"])  # type: ignore[arg-type]

    return output, reports, logging_config


def load_config(
    settings_path: Optional[Path] = None,
    config_dir: Optional[Path] = None,
) -> Config:
    """Load configuration from settings.yaml and the environment.

    Args:
        settings_path: Path to settings.yaml (or None to use default).
        config_dir: Base config directory (default: $FINANCE_REPORTS_CONFIG_DIR
            or ./config).

    Returns:
        Complete Config object.

    Raises:
        ConfigError: If settings are present but invalid.
    """
    if config_dir is None:
        config_dir = Path(os.environ.get(CONFIG_DIR_ENV) or "config")

    if settings_path is None:
        settings_path = config_dir / "settings.yaml"

    config = Config()

    # Settings are optional - use defaults if missing
    if settings_path.exists():
        config.output, config.reports, config.logging = load_settings(settings_path)
        logger.info(f"Loaded settings from {settings_path}")
    else:
        logger.warning(f"Settings file not found: {settings_path}, using defaults")

    store_override = os.environ.get(STORE_PATH_ENV)
    if store_override:
        config.reports.store_path = store_override
        logger.debug(f"Report store overridden by {STORE_PATH_ENV}: {store_override}")

    return config
