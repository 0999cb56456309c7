"""Transaction data model consumed by the report builders."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from finance_reports.utils.date_utils import safe_parse_datetime
from finance_reports.utils.decimal_utils import parse_amount


class TransactionType(Enum):
    """Direction of a transaction."""

    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def parse(cls, value: "str | TransactionType") -> "TransactionType":
        """Parse a type name case-insensitively.

        Raises:
            ValueError: If the value is not a known type.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown transaction type: {value!r}") from None


@dataclass
class Transaction:
    """A single income or expense record, read-only from the report's view.

    Attributes:
        type: Income or expense.
        amount: Non-negative amount; direction comes from type.
        date: When the transaction happened (None if the source date was unparseable).
        category: Free-text category name ("" when uncategorized).
        description: Merchant/payee or free-text description.
        notes: Optional notes.
        user_id: Owner of the transaction.
        id: Unique identifier.
    """

    type: TransactionType
    amount: Decimal
    date: datetime | None
    category: str = ""
    description: str = ""
    notes: str | None = None
    user_id: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_dict(cls, data: dict[str, object], user_id: str = "") -> "Transaction":
        """Create a Transaction from a JSON object or CSV row.

        Args:
            data: Mapping with type, amount, date, category, description, notes.
            user_id: Owner used when the record carries no user field.

        Returns:
            A new Transaction.

        Raises:
            ValueError: If type or amount is missing or invalid.
        """
        if "type" not in data or data["type"] in (None, ""):
            raise ValueError("Transaction is missing a type")
        if "amount" not in data or data["amount"] in (None, ""):
            raise ValueError("Transaction is missing an amount")

        notes = data.get("notes")
        kwargs: dict[str, object] = {}
        if data.get("id"):
            kwargs["id"] = str(data["id"])

        return cls(
            type=TransactionType.parse(str(data["type"])),
            amount=parse_amount(data["amount"]),  # type: ignore[arg-type]
            date=safe_parse_datetime(data.get("date")),  # type: ignore[arg-type]
            category=str(data.get("category") or "").strip(),
            description=str(data.get("description") or "").strip(),
            notes=str(notes) if notes else None,
            user_id=str(data.get("user") or data.get("user_id") or user_id),
            **kwargs,  # type: ignore[arg-type]
        )

    def __repr__(self) -> str:
        return (
            f"Transaction(date={self.date}, type={self.type.value}, "
            f"category={self.category!r}, amount={self.amount})"
        )
