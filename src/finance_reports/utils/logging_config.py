"""Logging setup for the report generator.

Every module logs through a child of the "finance_reports" logger, so one
call to setup_logging configures the whole package.
"""

import logging
import sys
import time
from pathlib import Path

DEFAULT_LOG_FILE = "finance_reports.log"

ROOT_LOGGER_NAME = "finance_reports"

# Context keys masked before they reach a log line
SENSITIVE_FIELDS = {'password', 'token', 'secret', 'api_key', 'jwt', 'email'}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _mask(context: dict[str, object]) -> dict[str, object]:
    return {k: '***' if k.lower() in SENSITIVE_FIELDS else v for k, v in context.items()}


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
) -> logging.Logger:
    """Attach file (and optionally stderr) handlers to the package logger.

    Calling it again replaces the previous handlers, which is how the CLI
    moves the log file once settings are loaded.

    Args:
        level: Level name; unknown names fall back to INFO.
        log_file: Log file path. Defaults to DEFAULT_LOG_FILE in the working directory.
        console_output: Also write records to stderr.

    Returns:
        The package logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(numeric_level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    log_path = Path(log_file or DEFAULT_LOG_FILE)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handlers: list[logging.Handler] = [logging.FileHandler(log_path, encoding="utf-8")]
    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, nested under the package logger.

    Names already inside the package ("finance_reports.cli") are used as-is;
    anything else is prefixed.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class LogContext:
    """Logs the start, duration and outcome of an operation.

    Exceptions are logged with their traceback and always re-raised.

    Example:
        with LogContext(logger, "build_report_payload", report_type="Cash Flow"):
            ...
    """

    def __init__(self, logger: logging.Logger, operation: str, **context: object):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.started_at = 0.0

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000

    def __enter__(self) -> "LogContext":
        details = ", ".join(f"{k}={v}" for k, v in _mask(self.context).items())
        self.logger.debug(f"Starting {self.operation}: {details}")
        self.started_at = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> bool:
        if exc_type is not None:
            self.logger.error(
                f"{self.operation} failed after {self.elapsed_ms:.0f} ms: {exc_type.__name__}: {exc_val}",
                exc_info=True,
            )
        else:
            self.logger.debug(f"Completed {self.operation} in {self.elapsed_ms:.0f} ms")
        return False
