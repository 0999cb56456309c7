"""Command-line interface for the report generator."""

import argparse
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from finance_reports import __version__
from finance_reports.config import Config, ConfigError, load_config
from finance_reports.models.report import (
    CustomRangeInput,
    MetricKind,
    MetricsSection,
    PeriodKey,
    ReportPayload,
    ReportType,
    TableSection,
    TextSection,
)
from finance_reports.output.formatting import format_generated_at
from finance_reports.output.layout import (
    METRIC_HEADERS,
    footer_row,
    metric_rows,
    section_title,
    table_body_rows,
)
from finance_reports.processing.periods import InvalidPeriodError
from finance_reports.processing.report_service import (
    ReportFilter,
    ReportRequest,
    ReportRequestError,
    ReportService,
)
from finance_reports.storage.reports import ReportRepository
from finance_reports.storage.transactions import (
    InMemoryTransactionStore,
    TransactionLoadError,
    load_transactions,
)
from finance_reports.utils.date_utils import parse_datetime
from finance_reports.utils.logging_config import DEFAULT_LOG_FILE, get_logger, setup_logging

# Load environment variables from .env file (if it exists)
load_dotenv()

console = Console()
logger = get_logger(__name__)

DEFAULT_USER = "local"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _datetime_arg(value: str) -> datetime:
    try:
        return parse_datetime(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _add_period_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-t", "--report-type",
        default=None,
        help=f"Report type: {', '.join(ReportType.ALL)} (default from settings)",
    )
    parser.add_argument(
        "-p", "--period",
        default=None,
        help=(
            "Period key: "
            + ", ".join(f"{k.value} ({k.display_name})" for k in PeriodKey)
            + " (default from settings)"
        ),
    )
    parser.add_argument("--start-date", default=None, help="Custom period start date")
    parser.add_argument("--end-date", default=None, help="Custom period end date")
    parser.add_argument("--label", default=None, help="Label for a custom period")
    parser.add_argument(
        "--reference-date",
        type=_datetime_arg,
        default=None,
        help="Treat this date as today when resolving relative periods",
    )


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--transactions",
        type=Path,
        required=True,
        metavar="FILE",
        help="CSV or JSON file with transactions",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="finance-reports",
        description="Generate, save and export personal finance reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s generate --transactions txns.csv -t "Income Statement" -p last-month
  %(prog)s generate --transactions txns.json -p custom --start-date 2024-01-01 --end-date 2024-03-31 -f xlsx
  %(prog)s preview --transactions txns.csv -t "Cash Flow" -p ytd
  %(prog)s list --search income
  %(prog)s export <id> -f html
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Base config directory (default: $FINANCE_REPORTS_CONFIG_DIR or ./config)",
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Saved-report store (default: reports.store_path from settings)",
    )
    parser.add_argument(
        "--user",
        default=DEFAULT_USER,
        help=f"User whose reports and transactions are used (default: {DEFAULT_USER})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for info, -vv for debug)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate, save and export a report")
    _add_source_arguments(generate)
    _add_period_arguments(generate)
    generate.add_argument("-f", "--format", default=None, help="pdf, csv, xlsx or html (default from settings)")
    generate.add_argument("-n", "--name", default=None, help="Report name")
    generate.add_argument("--notes", default=None, help="Notes appended to the report")
    generate.add_argument("-o", "--output-dir", type=Path, default=None, help="Export directory")
    generate.add_argument(
        "--no-save",
        action="store_true",
        help="Write the export without saving the report record",
    )

    preview = subparsers.add_parser("preview", help="Render a report in the terminal")
    _add_source_arguments(preview)
    _add_period_arguments(preview)

    list_parser = subparsers.add_parser("list", help="List saved reports")
    list_parser.add_argument("-p", "--period", default=None, help="Filter by period key")
    list_parser.add_argument("-t", "--report-type", default=None, help="Filter by report type")
    list_parser.add_argument("-f", "--format", default=None, help="Filter by format")
    list_parser.add_argument("-s", "--search", default=None, help="Substring of name, period or type")
    list_parser.add_argument("--start-date", default=None, help="Reports overlapping from this date")
    list_parser.add_argument("--end-date", default=None, help="Reports overlapping up to this date")

    delete = subparsers.add_parser("delete", help="Delete a saved report")
    delete.add_argument("report_id", help="Report id")

    export = subparsers.add_parser("export", help="Re-export a saved report")
    export.add_argument("report_id", help="Report id")
    export.add_argument("-f", "--format", default=None, help="Override the stored format")
    export.add_argument("-o", "--output-dir", type=Path, default=None, help="Export directory")

    return parser


def get_log_level(verbosity: int) -> str:
    """Convert verbosity count to log level.

    Args:
        verbosity: Number of -v flags.

    Returns:
        Log level string.
    """
    if verbosity >= 2:
        return "DEBUG"
    elif verbosity >= 1:
        return "INFO"
    else:
        return "WARNING"


def build_service(args: argparse.Namespace, config: Config) -> ReportService:
    """Wire the report service from CLI arguments and configuration."""
    transactions = []
    if getattr(args, "transactions", None) is not None:
        transactions = load_transactions(args.transactions, user_id=args.user)
    store_path = args.store or Path(config.reports.store_path)
    return ReportService(InMemoryTransactionStore(transactions), ReportRepository(store_path), config)


def build_request(args: argparse.Namespace, config: Config) -> ReportRequest:
    custom_range = None
    if args.start_date or args.end_date or args.label:
        custom_range = CustomRangeInput(start_date=args.start_date, end_date=args.end_date, label=args.label)
    return ReportRequest(
        report_type=args.report_type or config.reports.default_report_type,
        format=getattr(args, "format", None) or config.output.format,
        period_key=args.period or config.reports.default_period,
        custom_range=custom_range,
        name=getattr(args, "name", None),
        notes=getattr(args, "notes", None),
    )


def render_preview(payload: ReportPayload, datetime_format: str) -> None:
    """Print a payload to the console with rich tables."""
    console.print(f"[bold]{payload.title}[/bold]")
    if payload.subtitle:
        console.print(payload.subtitle)
    if payload.generated_at:
        console.print(f"[dim]Generated: {format_generated_at(payload.generated_at, datetime_format)}[/dim]")

    for index, section in enumerate(payload.sections):
        title = section_title(section, index)
        if isinstance(section, MetricsSection):
            table = Table(title=title, title_justify="left")
            table.add_column(METRIC_HEADERS[0])
            table.add_column(METRIC_HEADERS[1], justify="right")
            table.add_column(METRIC_HEADERS[2], justify="right")
            for item, row in zip(section.items, metric_rows(section)):
                style = {MetricKind.NEGATIVE: "red", MetricKind.WARNING: "yellow"}.get(item.kind)  # type: ignore[arg-type]
                table.add_row(*row, style=style)
            console.print(table)
        elif isinstance(section, TableSection):
            body = table_body_rows(section)
            if not body:
                console.print(f"\n[bold]{title}[/bold]")
                console.print(f"[dim]{section.empty_message or 'No data available'}[/dim]")
                continue
            table = Table(title=title, title_justify="left", show_footer=section.footer is not None)
            footer = footer_row(section) or []
            for i, header in enumerate(section.headers):
                table.add_column(
                    header,
                    footer=footer[i] if i < len(footer) else "",
                    justify="left" if i == 0 else "right",
                )
            for row in body:
                table.add_row(*row)
            console.print(table)
        elif isinstance(section, TextSection):
            console.print(f"\n[bold]{title}[/bold]")
            console.print(section.body)

    if payload.notes:
        console.print("\n[bold]Notes[/bold]")
        console.print(payload.notes)


def generate_command(args: argparse.Namespace, config: Config) -> int:
    service = build_service(args, config)
    request = build_request(args, config)

    if args.no_save:
        record = service.prepare_report(args.user, request, args.reference_date)
        path = service.export_report(record, args.output_dir)
        console.print(f"[green]Report written to {path}[/green]")
        return EXIT_OK

    record = service.create_report(
        args.user,
        request,
        args.reference_date,
        output_dir=args.output_dir,
        export=True,
    )
    console.print(f"[green]Saved report {record.id}: {record.name}[/green]")
    console.print(f"[green]Report written to {record.file_path}[/green]")
    return EXIT_OK


def preview_command(args: argparse.Namespace, config: Config) -> int:
    service = build_service(args, config)
    request = build_request(args, config)
    date_range = service.resolve_range(request, args.reference_date)
    payload = service.generate_payload(args.user, request.report_type, date_range, args.reference_date)
    render_preview(payload, config.output.datetime_format)
    return EXIT_OK


def list_command(args: argparse.Namespace, config: Config) -> int:
    service = build_service(args, config)
    records = service.list_reports(
        args.user,
        ReportFilter(
            period_key=args.period,
            report_type=args.report_type,
            format=args.format,
            search=args.search,
            start_date=args.start_date,
            end_date=args.end_date,
        ),
    )

    if not records:
        console.print("[yellow]No saved reports found.[/yellow]")
        return EXIT_OK

    table = Table(title=f"Saved reports ({len(records)})", title_justify="left")
    for column in ("ID", "Name", "Type", "Period", "Format", "Created"):
        table.add_column(column)
    for record in records:
        created = record.created_at.strftime(config.output.datetime_format) if record.created_at else ""
        table.add_row(record.id or "", record.name, record.report_type, record.period, record.format, created)
    console.print(table)
    return EXIT_OK


def delete_command(args: argparse.Namespace, config: Config) -> int:
    service = build_service(args, config)
    if not service.delete_report(args.user, args.report_id):
        console.print(f"[red]Error: Report not found: {args.report_id}[/red]")
        return EXIT_FAILURE
    console.print(f"[green]Deleted report {args.report_id}[/green]")
    return EXIT_OK


def export_command(args: argparse.Namespace, config: Config) -> int:
    service = build_service(args, config)
    record = service.get_report(args.user, args.report_id)
    if record is None:
        console.print(f"[red]Error: Report not found: {args.report_id}[/red]")
        return EXIT_FAILURE
    path = service.export_report(record, args.output_dir, args.format)
    console.print(f"[green]Report written to {path}[/green]")
    return EXIT_OK


COMMANDS = {
    "generate": generate_command,
    "preview": preview_command,
    "list": list_command,
    "delete": delete_command,
    "export": export_command,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Arguments to parse (defaults to sys.argv).

    Returns:
        Exit code (0 for success, 1 for failures, 2 for invalid requests).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Set up logging
    log_level = get_log_level(args.verbose)
    setup_logging(level=log_level, console_output=args.verbose > 0)

    try:
        config = load_config(config_dir=args.config_dir)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_FAILURE

    # Settings may move the log file; -v overrides the configured level
    configured_level = log_level if args.verbose else config.logging.level
    if config.logging.file != DEFAULT_LOG_FILE or configured_level != log_level:
        setup_logging(level=configured_level, log_file=config.logging.file, console_output=args.verbose > 0)

    try:
        return COMMANDS[args.command](args, config)
    except (InvalidPeriodError, ReportRequestError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_USAGE
    except (TransactionLoadError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_FAILURE
    except Exception:
        logger.exception(f"Command {args.command} failed")
        console.print("[red]Failed to generate report[/red]")
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
