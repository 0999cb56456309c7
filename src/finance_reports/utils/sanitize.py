"""Sanitization utilities for spreadsheet-bound text."""

from typing import Optional

# Characters that trigger formula execution in spreadsheet applications
# when they appear at the start of a cell value (| covers DDE payloads)
_FORMULA_CHARS = ("=", "+", "-", "@", "\t", "\r", "\n", "|")

# Formatted numbers legitimately start with "-" and must stay untouched
_NUMERIC_TEXT_CHARS = set("0123456789.,%-")


def sanitize_for_csv(value: Optional[str]) -> Optional[str]:
    """Neutralise a text cell that a spreadsheet would read as a formula.

    Values beginning with a formula-triggering character get a leading
    single quote. Strings that are already formatted numbers ("-1,200.00",
    "-12.5%") pass through unchanged.

    Args:
        value: Text cell value, or None.

    Returns:
        Sanitized string, or None if input was None.
    """
    if value is None or not value:
        return value

    if set(value) <= _NUMERIC_TEXT_CHARS and any(ch.isdigit() for ch in value):
        return value

    if value.startswith(_FORMULA_CHARS):
        return "'" + value

    return value
