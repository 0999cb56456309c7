"""Transaction sources and the saved-report store."""

from finance_reports.storage.reports import ReportRepository
from finance_reports.storage.transactions import (
    InMemoryTransactionStore,
    TransactionFetcher,
    TransactionLoadError,
    load_transactions,
)

__all__ = [
    "ReportRepository",
    "InMemoryTransactionStore",
    "TransactionFetcher",
    "TransactionLoadError",
    "load_transactions",
]
