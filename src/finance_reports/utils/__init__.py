"""Shared helpers for dates, amounts, logging and output sanitization."""
