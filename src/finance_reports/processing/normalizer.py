"""Payload normalizer for turning stored report payloads into ReportPayload objects."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from finance_reports.models.report import (
    ReportPayload,
    ReportRecord,
    TableRow,
    TableSection,
)
from finance_reports.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_TITLE = "Financial Report"


class PayloadShape(Enum):
    """Shapes a stored payload can take."""

    STRUCTURED = "structured"
    LEGACY_LINES = "legacy_lines"
    EMPTY = "empty"


def detect_shape(payload: object) -> PayloadShape:
    """Classify a stored payload.

    ReportPayload objects and dicts with a "sections" list are structured;
    dicts with a "lines" list are the older flat label/value shape; anything
    else is treated as empty.
    """
    if isinstance(payload, ReportPayload):
        return PayloadShape.STRUCTURED
    if isinstance(payload, dict):
        if isinstance(payload.get("sections"), list):
            return PayloadShape.STRUCTURED
        if isinstance(payload.get("lines"), list):
            return PayloadShape.LEGACY_LINES
    return PayloadShape.EMPTY


@dataclass
class ReportFallback:
    """Values used when a stored payload lacks its own title, period or timestamp."""

    title: str | None = None
    report_type: str | None = None
    period: str | None = None
    generated_at: str | None = None

    @classmethod
    def from_record(cls, record: ReportRecord) -> "ReportFallback":
        return cls(
            report_type=record.report_type or None,
            period=record.period or None,
            generated_at=record.created_at.isoformat() if record.created_at else None,
        )


class PayloadNormalizer:
    """Normalizes stored payloads of any known shape into a ReportPayload.

    The normalizer:
    - Passes ReportPayload objects through untouched
    - Parses structured dicts, skipping malformed sections
    - Converts legacy "lines" payloads into a single Details table
    - Seeds an empty payload from the fallback for anything else
    """

    def normalize(self, payload: object, fallback: ReportFallback | None = None) -> ReportPayload:
        """Normalize a payload.

        Normalizing an already-normalized payload returns it unchanged.

        Args:
            payload: ReportPayload, payload dict, or anything else.
            fallback: Defaults for missing title, subtitle and timestamp.

        Returns:
            A ReportPayload.
        """
        fallback = fallback or ReportFallback()
        shape = detect_shape(payload)

        if isinstance(payload, ReportPayload):
            return payload
        if shape is PayloadShape.STRUCTURED:
            return ReportPayload.from_dict(payload, skip_invalid=True)  # type: ignore[arg-type]
        if shape is PayloadShape.LEGACY_LINES:
            return self._from_lines(payload, fallback)  # type: ignore[arg-type]

        logger.debug("Payload has no sections or lines; using empty payload")
        return ReportPayload(
            title=fallback.title or fallback.report_type or DEFAULT_TITLE,
            subtitle=fallback.period or "",
            generated_at=fallback.generated_at or datetime.now().isoformat(),
        )

    def _from_lines(self, payload: dict[str, object], fallback: ReportFallback) -> ReportPayload:
        rows = []
        for entry in payload["lines"]:  # type: ignore[union-attr]
            if not isinstance(entry, dict):
                logger.warning(f"Skipping malformed legacy line: {entry!r}")
                continue
            rows.append(TableRow.from_dict({"cells": [entry.get("label"), entry.get("value")]}))

        logger.debug(f"Converted legacy payload with {len(rows)} lines")
        notes = payload.get("notes")
        return ReportPayload(
            title=str(payload.get("title") or fallback.report_type or DEFAULT_TITLE),
            subtitle=str(payload.get("period") or payload.get("subtitle") or fallback.period or ""),
            generated_at=str(
                payload.get("generatedAt")
                or payload.get("generated_at")
                or fallback.generated_at
                or datetime.now().isoformat()
            ),
            notes=str(notes) if notes else None,
            sections=[TableSection(title="Details", headers=["Label", "Value"], rows=rows)],
        )


def normalize_payload(payload: object, fallback: ReportFallback | None = None) -> ReportPayload:
    """Convenience function to normalize a stored payload.

    Args:
        payload: ReportPayload, payload dict, or anything else.
        fallback: Defaults for missing title, subtitle and timestamp.

    Returns:
        A ReportPayload.
    """
    return PayloadNormalizer().normalize(payload, fallback)
