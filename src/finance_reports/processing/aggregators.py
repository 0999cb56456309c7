"""Pure aggregation helpers over in-memory transaction lists."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from finance_reports.models.transaction import Transaction, TransactionType
from finance_reports.utils.date_utils import format_day_label, format_month_label, month_key
from finance_reports.utils.decimal_utils import HUNDRED, ZERO

UNCATEGORIZED = "Uncategorized"
UNTITLED = "Untitled"


@dataclass
class CategoryTotal:
    """Summed amount for one category."""

    label: str
    value: Decimal

    def to_dict(self) -> dict[str, object]:
        return {"label": self.label, "value": self.value}


@dataclass
class MonthBucket:
    """Income and expense totals for one calendar month."""

    key: str
    label: str
    income: Decimal = ZERO
    expense: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


@dataclass
class TopTransaction:
    """A single large transaction, flattened for display."""

    label: str
    category: str
    date: str | None
    value: Decimal


def total_amount(transactions: list[Transaction]) -> Decimal:
    """Sum of amounts across transactions."""
    return sum((t.amount for t in transactions), ZERO)


def filter_by_type(
    transactions: list[Transaction], transaction_type: TransactionType
) -> list[Transaction]:
    """Transactions of one type, in their original order."""
    return [t for t in transactions if t.type is transaction_type]


def sum_by_category(transactions: list[Transaction]) -> list[CategoryTotal]:
    """Total amount per category, largest first.

    Empty categories are grouped as "Uncategorized". Categories with equal
    totals keep the order in which they were first seen.
    """
    totals: dict[str, Decimal] = {}
    for txn in transactions:
        label = txn.category or UNCATEGORIZED
        totals[label] = totals.get(label, ZERO) + txn.amount

    # sorted() is stable, so ties stay in first-seen order
    return sorted(
        (CategoryTotal(label=label, value=value) for label, value in totals.items()),
        key=lambda c: c.value,
        reverse=True,
    )


def sum_by_month(transactions: list[Transaction]) -> list[MonthBucket]:
    """Income and expense per calendar month, oldest month first.

    Transactions without a date are skipped.
    """
    buckets: dict[str, MonthBucket] = {}
    for txn in transactions:
        if not isinstance(txn.date, datetime):
            continue
        key = month_key(txn.date)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = MonthBucket(key=key, label=format_month_label(txn.date))
            buckets[key] = bucket
        if txn.type is TransactionType.INCOME:
            bucket.income += txn.amount
        elif txn.type is TransactionType.EXPENSE:
            bucket.expense += txn.amount

    return [buckets[key] for key in sorted(buckets)]


def top_n(
    transactions: list[Transaction],
    n: int = 5,
    transaction_type: TransactionType = TransactionType.EXPENSE,
) -> list[TopTransaction]:
    """The n largest transactions of one type, largest first."""
    matching = sorted(
        filter_by_type(transactions, transaction_type),
        key=lambda t: t.amount,
        reverse=True,
    )
    return [
        TopTransaction(
            label=txn.description or txn.category or UNTITLED,
            category=txn.category or UNCATEGORIZED,
            date=format_day_label(txn.date) if txn.date else None,
            value=txn.amount,
        )
        for txn in matching[: max(n, 0)]
    ]


def delta(current: Decimal, previous: Decimal | None) -> Decimal | None:
    """Percentage change from previous to current.

    Returns None when there is no previous figure. A previous figure of zero
    yields 0 if current is also zero and 100 otherwise.
    """
    if previous is None:
        return None
    if previous == 0:
        return ZERO if current == 0 else HUNDRED
    return (current - previous) / previous * HUNDRED


def share(part: Decimal, whole: Decimal) -> Decimal:
    """part as a percentage of whole, 0 when whole is zero."""
    if not whole:
        return ZERO
    return part / whole * HUNDRED
