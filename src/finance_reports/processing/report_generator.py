"""Report payload builders, one per report type.

Builders are pure: they receive already-fetched transaction lists and return
a ReportPayload. build_report_payload is the only function here that talks to
the transaction source.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable

from finance_reports.models.report import (
    DateRange,
    MetricItem,
    MetricKind,
    MetricsSection,
    ReportPayload,
    ReportType,
    TableFooter,
    TableRow,
    TableSection,
    TextSection,
    ValueFormat,
)
from finance_reports.models.transaction import Transaction, TransactionType
from finance_reports.processing.aggregators import (
    CategoryTotal,
    delta,
    filter_by_type,
    share,
    sum_by_category,
    sum_by_month,
    top_n,
    total_amount,
)
from finance_reports.processing.periods import derive_previous_range
from finance_reports.storage.transactions import TransactionFetcher
from finance_reports.utils.decimal_utils import ZERO
from finance_reports.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)

DEFAULT_TOP_EXPENSES = 5
LARGEST_SHARE_WARNING_THRESHOLD = Decimal("50")
PLACEHOLDER_BODY = "No generator is configured for this report yet."


@dataclass
class ReportContext:
    """Everything a builder needs, already fetched.

    Attributes:
        transactions: Transactions inside the reporting window.
        previous_transactions: Transactions in the comparison window, or None
            when the window is open-ended and has no comparison.
        cumulative_transactions: All transactions up to the window's end.
        period_label: Subtitle for the report.
        generated_at: ISO-8601 generation timestamp.
        start_date: Window start.
        end_date: Window end.
        report_type: Requested report type name.
        top_expenses_limit: Rows in the Top Expenses table.
    """

    transactions: list[Transaction]
    period_label: str
    generated_at: str
    previous_transactions: list[Transaction] | None = None
    cumulative_transactions: list[Transaction] = field(default_factory=list)
    start_date: datetime | None = None
    end_date: datetime | None = None
    report_type: str | None = None
    top_expenses_limit: int = DEFAULT_TOP_EXPENSES


def _payload(title: str, context: ReportContext, sections: list, summary: dict[str, object]) -> ReportPayload:
    return ReportPayload(
        title=title,
        subtitle=context.period_label,
        generated_at=context.generated_at,
        start_date=context.start_date,
        end_date=context.end_date,
        sections=sections,
        summary=summary,
    )


def _category_table(
    title: str,
    totals: list[CategoryTotal],
    footer_label: str,
    footer_value: Decimal,
    empty_message: str,
) -> TableSection:
    return TableSection(
        title=title,
        headers=["Category", "Amount"],
        rows=[TableRow(cells=[c.label, c.value]) for c in totals],
        footer=TableFooter(label=footer_label, value=footer_value),
        empty_message=empty_message,
    )


def _previous_total(
    transactions: list[Transaction] | None, transaction_type: TransactionType
) -> Decimal | None:
    if transactions is None:
        return None
    return total_amount(filter_by_type(transactions, transaction_type))


def build_income_statement(context: ReportContext) -> ReportPayload:
    """Income, expenses and net income with period-over-period deltas."""
    income_txns = filter_by_type(context.transactions, TransactionType.INCOME)
    expense_txns = filter_by_type(context.transactions, TransactionType.EXPENSE)

    total_income = total_amount(income_txns)
    total_expense = total_amount(expense_txns)
    net_income = total_income - total_expense

    previous_income = _previous_total(context.previous_transactions, TransactionType.INCOME)
    previous_expense = _previous_total(context.previous_transactions, TransactionType.EXPENSE)
    previous_net = (
        previous_income - previous_expense
        if previous_income is not None and previous_expense is not None
        else None
    )

    metrics = MetricsSection(
        title="Key Metrics",
        items=[
            MetricItem("Total Income", total_income, delta(total_income, previous_income)),
            MetricItem(
                "Total Expenses",
                total_expense,
                delta(total_expense, previous_expense),
                kind=MetricKind.NEGATIVE,
            ),
            MetricItem("Net Income", net_income, delta(net_income, previous_net)),
            MetricItem(
                "Profit Margin",
                share(net_income, total_income),
                format=ValueFormat.PERCENTAGE,
            ),
            MetricItem(
                "Expense Ratio",
                share(total_expense, total_income),
                format=ValueFormat.PERCENTAGE,
                kind=MetricKind.NEGATIVE,
            ),
        ],
    )

    sections = [
        metrics,
        _category_table(
            "Income by Category",
            sum_by_category(income_txns),
            "Total Income",
            total_income,
            "No income recorded for the selected period.",
        ),
        _category_table(
            "Expenses by Category",
            sum_by_category(expense_txns),
            "Total Expenses",
            total_expense,
            "No expenses recorded for the selected period.",
        ),
    ]

    return _payload(
        "Income Statement",
        context,
        sections,
        {"total_income": total_income, "total_expense": total_expense, "net_income": net_income},
    )


def build_expense_summary(context: ReportContext) -> ReportPayload:
    """Where the money went: category split, daily average and largest expenses."""
    expense_txns = filter_by_type(context.transactions, TransactionType.EXPENSE)
    total_expense = total_amount(expense_txns)
    by_category = sum_by_category(expense_txns)
    top_expenses = top_n(expense_txns, context.top_expenses_limit, TransactionType.EXPENSE)

    average_daily = ZERO
    if expense_txns:
        spend_days = {t.date.date() for t in expense_txns if t.date is not None}
        average_daily = total_expense / max(len(spend_days), 1)

    largest_share = ZERO
    if by_category:
        largest_share = share(by_category[0].value, total_expense)

    metrics = MetricsSection(
        title="Overview",
        items=[
            MetricItem("Total Expenses", total_expense, kind=MetricKind.NEGATIVE),
            MetricItem("Average Daily Spend", average_daily),
            MetricItem(
                "Largest Category Share",
                largest_share,
                format=ValueFormat.PERCENTAGE,
                kind=MetricKind.WARNING if largest_share > LARGEST_SHARE_WARNING_THRESHOLD else None,
            ),
        ],
    )

    spend_table = TableSection(
        title="Spend by Category",
        headers=["Category", "Amount", "Share"],
        rows=[
            TableRow(
                cells=[c.label, c.value, share(c.value, total_expense)],
                formats=[None, None, ValueFormat.PERCENTAGE],
            )
            for c in by_category
        ],
        footer=TableFooter(label="Total Spend", value=total_expense),
        empty_message="No expenses recorded for the selected period.",
    )

    top_table = TableSection(
        title="Top Expenses",
        headers=["Description", "Category", "Date", "Amount"],
        rows=[TableRow(cells=[e.label, e.category, e.date, e.value]) for e in top_expenses],
        empty_message="No high-value expenses recorded.",
    )

    return _payload(
        "Expense Summary",
        context,
        [metrics, spend_table, top_table],
        {
            "total_expense": total_expense,
            "top_categories": [c.to_dict() for c in by_category[:3]],
        },
    )


def build_cash_flow(context: ReportContext) -> ReportPayload:
    """Monthly inflow/outflow timeline for the window."""
    timeline = sum_by_month(context.transactions)
    income = sum((b.income for b in timeline), ZERO)
    expense = sum((b.expense for b in timeline), ZERO)
    net = income - expense

    metrics = MetricsSection(
        title="Summary",
        items=[
            MetricItem("Cash Inflows", income),
            MetricItem("Cash Outflows", expense, kind=MetricKind.NEGATIVE),
            MetricItem("Net Cash", net),
            MetricItem("Average Monthly Net", net / len(timeline) if timeline else ZERO),
        ],
    )

    table = TableSection(
        title="Monthly Cash Flow",
        headers=["Month", "Inflows", "Outflows", "Net"],
        rows=[TableRow(cells=[b.label, b.income, b.expense, b.net]) for b in timeline],
        footer=TableFooter(label="Totals", value=net),
        empty_message="No transactions available to build a cash flow timeline.",
    )

    return _payload(
        "Cash Flow Statement",
        context,
        [metrics, table],
        {"income": income, "expense": expense, "net": net},
    )


def build_balance_sheet(context: ReportContext) -> ReportPayload:
    """Point-in-time snapshot over every transaction up to the window's end.

    Income categories are presented as assets and expense categories as
    liabilities; this is a simplified view, not double-entry bookkeeping.
    """
    income_txns = filter_by_type(context.cumulative_transactions, TransactionType.INCOME)
    expense_txns = filter_by_type(context.cumulative_transactions, TransactionType.EXPENSE)

    total_assets = total_amount(income_txns)
    total_liabilities = total_amount(expense_txns)
    equity = total_assets - total_liabilities

    metrics = MetricsSection(
        title="Snapshot",
        items=[
            MetricItem("Total Assets", total_assets),
            MetricItem("Total Liabilities", total_liabilities, kind=MetricKind.NEGATIVE),
            MetricItem("Owner's Equity", equity),
            MetricItem(
                "Debt-to-Income Ratio",
                share(total_liabilities, total_assets),
                format=ValueFormat.PERCENTAGE,
                kind=MetricKind.NEGATIVE,
            ),
        ],
    )

    sections = [
        metrics,
        _category_table(
            "Assets",
            sum_by_category(income_txns),
            "Total Assets",
            total_assets,
            "No asset data available.",
        ),
        _category_table(
            "Liabilities",
            sum_by_category(expense_txns),
            "Total Liabilities",
            total_liabilities,
            "No liability data available.",
        ),
    ]

    return _payload(
        "Balance Sheet",
        context,
        sections,
        {"total_assets": total_assets, "total_liabilities": total_liabilities, "equity": equity},
    )


def build_placeholder(context: ReportContext) -> ReportPayload:
    """Minimal payload for report types without a builder."""
    return _payload(
        context.report_type or "Financial Report",
        context,
        [TextSection(title="Report", body=PLACEHOLDER_BODY)],
        {},
    )


REPORT_BUILDERS: dict[str, Callable[[ReportContext], ReportPayload]] = {
    ReportType.INCOME_STATEMENT: build_income_statement,
    ReportType.EXPENSE_SUMMARY: build_expense_summary,
    ReportType.CASH_FLOW: build_cash_flow,
    ReportType.BALANCE_SHEET: build_balance_sheet,
}


def build_report(report_type: str | None, context: ReportContext) -> ReportPayload:
    """Run the builder for a report type, or the placeholder for unknown types."""
    builder = REPORT_BUILDERS.get(report_type or "")
    if builder is None:
        logger.warning(f"No report builder for type {report_type!r}; returning placeholder")
        return build_placeholder(context)
    return builder(context)


def build_report_payload(
    fetcher: TransactionFetcher,
    user_id: str,
    report_type: str | None,
    date_range: DateRange,
    reference_date: datetime | None = None,
    top_expenses_limit: int = DEFAULT_TOP_EXPENSES,
) -> ReportPayload:
    """Fetch the windows a report needs and build its payload.

    The current, previous and (for balance sheets) cumulative windows are
    fetched concurrently; the builder runs once all of them are in. Fetch
    errors propagate unchanged.

    Args:
        fetcher: Transaction source.
        user_id: Owner whose transactions are reported.
        report_type: Report type name.
        date_range: Resolved reporting window.
        reference_date: Generation time. Defaults to now.
        top_expenses_limit: Rows in the Top Expenses table.

    Returns:
        The built ReportPayload.
    """
    generated_at = (reference_date or datetime.now()).isoformat()
    previous_range = derive_previous_range(date_range)
    needs_cumulative = report_type == ReportType.BALANCE_SHEET

    with LogContext(logger, "build_report_payload", report_type=report_type, period=date_range.label):
        with ThreadPoolExecutor(max_workers=3) as pool:
            current_future = pool.submit(fetcher.fetch, user_id, date_range.start, date_range.end)
            previous_future = (
                pool.submit(fetcher.fetch, user_id, previous_range.start, previous_range.end)
                if previous_range is not None
                else None
            )
            cumulative_future = (
                pool.submit(fetcher.fetch, user_id, None, date_range.end)
                if needs_cumulative
                else None
            )

            transactions = current_future.result()
            previous_transactions = previous_future.result() if previous_future else None
            cumulative_transactions = cumulative_future.result() if cumulative_future else []

        logger.debug(
            f"Fetched {len(transactions)} current, "
            f"{len(previous_transactions) if previous_transactions is not None else 0} previous, "
            f"{len(cumulative_transactions)} cumulative transactions"
        )

        context = ReportContext(
            transactions=transactions,
            previous_transactions=previous_transactions,
            cumulative_transactions=cumulative_transactions,
            period_label=date_range.label,
            generated_at=generated_at,
            start_date=date_range.start,
            end_date=date_range.end,
            report_type=report_type,
            top_expenses_limit=top_expenses_limit,
        )
        payload = build_report(report_type, context)

    logger.info(f"Built {payload.title} for {date_range.label} ({len(payload.sections)} sections)")
    return payload
