"""JSON-file store of saved report records."""

import json
import os
import tempfile
import threading
import uuid
from datetime import datetime
from pathlib import Path

from finance_reports.models.report import ReportRecord
from finance_reports.utils.logging_config import get_logger

logger = get_logger(__name__)


class ReportRepository:
    """Saved reports persisted as a single JSON document.

    The document is {"reports": [record, ...]}. Every write replaces the file
    atomically, so a crash never leaves a half-written store behind. A missing
    file is an empty store.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> list[dict[str, object]]:
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        reports = data.get("reports", []) if isinstance(data, dict) else []
        return [r for r in reports if isinstance(r, dict)]

    def _write(self, reports: list[dict[str, object]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"reports": reports}, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def create(self, record: ReportRecord) -> ReportRecord:
        """Persist a new record, assigning its id and creation time.

        Args:
            record: Record to save. Its id and created_at are overwritten.

        Returns:
            The same record, now carrying id and created_at.
        """
        record.id = uuid.uuid4().hex
        record.created_at = datetime.now()
        with self._lock:
            reports = self._read()
            reports.append(record.to_dict())
            self._write(reports)
        logger.info(f"Saved report {record.id} ({record.name!r}) to {self.path}")
        return record

    def list_for_user(self, user_id: str) -> list[ReportRecord]:
        """All of a user's records, newest first."""
        with self._lock:
            raw = self._read()
        records = [ReportRecord.from_dict(r) for r in reversed(raw) if r.get("user") == user_id]
        records.sort(key=lambda r: r.created_at or datetime.min, reverse=True)
        return records

    def get(self, user_id: str, report_id: str) -> ReportRecord | None:
        """Look up one of a user's records by id."""
        with self._lock:
            raw = self._read()
        for data in raw:
            if data.get("id") == report_id and data.get("user") == user_id:
                return ReportRecord.from_dict(data)
        return None

    def delete(self, user_id: str, report_id: str) -> bool:
        """Remove one of a user's records.

        Returns:
            True if a record was removed, False if none matched.
        """
        with self._lock:
            reports = self._read()
            kept = [
                r for r in reports if not (r.get("id") == report_id and r.get("user") == user_id)
            ]
            if len(kept) == len(reports):
                return False
            self._write(kept)
        logger.info(f"Deleted report {report_id} from {self.path}")
        return True
