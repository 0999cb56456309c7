"""Decimal utilities for report arithmetic.

All monetary values are carried as Decimal. Floats only appear at the JSON edge.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

ZERO = Decimal("0")
HUNDRED = Decimal("100")

CURRENCY_SYMBOLS = {"$", "€", "£", "¥", "₹"}

# ($1,234.56) or (1234.56)
PARENS_NEGATIVE_PATTERN = re.compile(r"^\s*\(\s*([^)]+)\s*\)\s*$")


def parse_amount(raw_amount: str | int | float | Decimal) -> Decimal:
    """Parse a transaction amount into a non-negative Decimal.

    Transaction amounts are stored unsigned; the income/expense type carries
    the direction. Accepts plain numbers, currency symbols, thousands
    separators and parenthesised negatives (the sign is dropped).

    Args:
        raw_amount: The raw amount value.

    Returns:
        Absolute amount as Decimal.

    Raises:
        ValueError: If the amount cannot be parsed or is not finite.
    """
    if isinstance(raw_amount, bool):
        raise ValueError(f"Cannot parse amount '{raw_amount}'")
    if isinstance(raw_amount, (int, float, Decimal)):
        amount = Decimal(str(raw_amount))
    else:
        if not raw_amount or not str(raw_amount).strip():
            raise ValueError("Empty amount string")

        amount_str = str(raw_amount).strip()
        parens_match = PARENS_NEGATIVE_PATTERN.match(amount_str)
        if parens_match:
            amount_str = parens_match.group(1).strip()
        amount_str = amount_str.lstrip("-").strip()

        for symbol in CURRENCY_SYMBOLS:
            amount_str = amount_str.replace(symbol, "")
        amount_str = amount_str.replace(",", "").replace(" ", "")

        try:
            amount = Decimal(amount_str)
        except InvalidOperation as e:
            raise ValueError(f"Cannot parse amount '{raw_amount}': {e}") from e

    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: '{raw_amount}'")
    return abs(amount)


def safe_decimal(value: object | None, default: Decimal = ZERO) -> Decimal:
    """Safely convert a value to Decimal.

    Args:
        value: Value to convert (string, int, float, Decimal, or None).
        default: Default value if conversion fails.

    Returns:
        Decimal value or default.
    """
    if value is None or isinstance(value, bool):
        return default

    try:
        if isinstance(value, Decimal):
            return value
        if isinstance(value, (int, float, str)):
            # str() first so floats keep their shortest repr
            return Decimal(str(value))
        return default
    except (InvalidOperation, ValueError):
        return default


def is_number(value: object) -> bool:
    """True for int, float and Decimal values; bools are not numbers here."""
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def round_half_up(amount: Decimal, places: int) -> Decimal:
    """Round to a fixed number of decimal places using ROUND_HALF_UP.

    Precision is widened to fit the result, so very large amounts do not
    raise InvalidOperation.
    """
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + places + 2)
        return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def to_json_number(value: Decimal) -> int | float:
    """Convert a Decimal for JSON output, keeping integral values as int."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)
