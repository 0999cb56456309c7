"""Transaction sources: the fetcher protocol, an in-memory store and file loading."""

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Protocol

from finance_reports.models.report import ReportError
from finance_reports.models.transaction import Transaction
from finance_reports.utils.logging_config import get_logger

logger = get_logger(__name__)

# Maximum transaction file size to prevent memory exhaustion (50 MB)
MAX_FILE_SIZE = 50 * 1024 * 1024

SUPPORTED_SUFFIXES = (".csv", ".json")


class TransactionLoadError(ReportError):
    """Raised when a transaction file cannot be read."""

    def __init__(self, message: str, file_path: Path | None = None):
        self.file_path = file_path
        super().__init__(message)


class TransactionFetcher(Protocol):
    """Anything that can return a user's transactions for a window."""

    def fetch(
        self,
        user_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[Transaction]:
        """Return the user's transactions with start_date <= date <= end_date.

        A None bound is unbounded. Results are ordered by date ascending.
        """
        ...


def _sort_key(txn: Transaction) -> tuple[bool, datetime]:
    return (txn.date is None, txn.date or datetime.min)


class InMemoryTransactionStore:
    """TransactionFetcher over a list held in memory.

    Safe to share between threads; fetch never mutates the store.
    """

    def __init__(self, transactions: list[Transaction] | None = None):
        self._transactions = list(transactions or [])

    def __len__(self) -> int:
        return len(self._transactions)

    def add(self, transaction: Transaction) -> None:
        self._transactions.append(transaction)

    def fetch(
        self,
        user_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[Transaction]:
        """Return a user's transactions inside an inclusive window.

        Undated transactions only match a fully open window and sort last.
        """
        matches = []
        for txn in self._transactions:
            if txn.user_id != user_id:
                continue
            if txn.date is None:
                if start_date is None and end_date is None:
                    matches.append(txn)
                continue
            if start_date is not None and txn.date < start_date:
                continue
            if end_date is not None and txn.date > end_date:
                continue
            matches.append(txn)

        matches.sort(key=_sort_key)
        logger.debug(f"Fetched {len(matches)} transactions for user {user_id!r}")
        return matches


def _read_csv_records(file_path: Path) -> list[dict[str, object]]:
    with open(file_path, encoding="utf-8-sig", errors="replace", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            return []
        reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
        return [dict(row) for row in reader if any(isinstance(v, str) and v.strip() for v in row.values())]


def _read_json_records(file_path: Path) -> list[dict[str, object]]:
    with open(file_path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("transactions", [])
    if not isinstance(data, list):
        raise TransactionLoadError(
            f"Expected a JSON array of transactions in {file_path.name}", file_path
        )
    return data


def load_transactions(path: Path | str, user_id: str = "") -> list[Transaction]:
    """Load transactions from a CSV or JSON file.

    CSV files need a header row with date, type, category, amount and
    optionally description and notes. JSON files hold an array of objects
    with the same keys (or an object with a "transactions" array).

    Args:
        path: File to read.
        user_id: Owner assigned to records that carry no user field.

    Returns:
        Parsed transactions in file order. Rows that cannot be parsed are
        logged and skipped.

    Raises:
        TransactionLoadError: If the file is missing, too large, unreadable,
            or has an unsupported suffix.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise TransactionLoadError(f"Transaction file not found: {file_path}", file_path)

    suffix = file_path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise TransactionLoadError(
            f"Unsupported transaction file type {suffix or '(none)'}; "
            f"expected one of {', '.join(SUPPORTED_SUFFIXES)}",
            file_path,
        )

    file_size = file_path.stat().st_size
    if file_size > MAX_FILE_SIZE:
        raise TransactionLoadError(
            f"File too large ({file_size / 1024 / 1024:.1f} MB). "
            f"Maximum allowed is {MAX_FILE_SIZE / 1024 / 1024:.0f} MB",
            file_path,
        )

    try:
        records = _read_csv_records(file_path) if suffix == ".csv" else _read_json_records(file_path)
    except TransactionLoadError:
        raise
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, csv.Error) as e:
        raise TransactionLoadError(f"Failed to read {file_path.name}: {e}", file_path) from e

    transactions = []
    skipped_count = 0
    for row_num, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            logger.warning(f"Skipping record {row_num} in {file_path.name}: not an object")
            skipped_count += 1
            continue
        try:
            transactions.append(Transaction.from_dict(record, user_id=user_id))
        except ValueError as e:
            logger.warning(f"Error parsing record {row_num} in {file_path.name}: {e}")
            skipped_count += 1

    logger.info(
        f"Loaded {len(transactions)} transactions from {file_path.name} ({skipped_count} rows skipped)"
    )
    return transactions
