from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Tuple

SUPPORTED_KINDS = {"income", "expense"}
UNCATEGORIZED = "Uncategorized"
ZERO = Decimal("0")


class InvalidTransactionError(ValueError):
    """Raised when a transaction cannot be placed on the timeline."""


@dataclass(frozen=True)
class Transaction:
    id: str
    kind: str
    amount: Decimal
    occurred_at: datetime
    category: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", _validate_kind(self.kind))
        object.__setattr__(self, "amount", _validate_amount(self.amount))
        object.__setattr__(self, "occurred_at", _coerce_timestamp(self.occurred_at))
        category = self.category.strip() if self.category else None
        object.__setattr__(self, "category", category or None)

    @property
    def is_income(self) -> bool:
        return self.kind == "income"

    @property
    def is_expense(self) -> bool:
        return self.kind == "expense"

    @property
    def category_label(self) -> str:
        return self.category or UNCATEGORIZED


def transaction_date_range(
    transactions: Iterable[Transaction],
) -> Optional[Tuple[datetime, datetime]]:
    min_date: Optional[datetime] = None
    max_date: Optional[datetime] = None
    for txn in transactions:
        if min_date is None or txn.occurred_at < min_date:
            min_date = txn.occurred_at
        if max_date is None or txn.occurred_at > max_date:
            max_date = txn.occurred_at
    if min_date is None or max_date is None:
        return None
    return min_date, max_date


def filter_transactions(
    transactions: Iterable[Transaction],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    categories: Optional[Iterable[str]] = None,
    search: Optional[str] = None,
) -> List[Transaction]:
    """Apply the report page filters.

    The date range is inclusive and compares calendar days. When only
    ``start_date`` is given the range covers that single day. ``categories``
    matches ``Transaction.category_label`` so "Uncategorized" selects
    transactions without a category. ``search`` is a case-insensitive
    substring match over description and category.
    """
    start = _as_date(start_date) if start_date is not None else None
    end = _as_date(end_date) if end_date is not None else start
    if start is not None and end is not None and start > end:
        raise ValueError("start_date must be on or before end_date.")
    selected = {name.strip() for name in categories} if categories else None
    needle = search.strip().lower() if search else ""

    filtered: List[Transaction] = []
    for txn in transactions:
        day = txn.occurred_at.date()
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        if selected is not None and txn.category_label not in selected:
            continue
        if needle and not _matches_search(txn, needle):
            continue
        filtered.append(txn)
    return filtered


def _matches_search(txn: Transaction, needle: str) -> bool:
    haystacks = (txn.description or "", txn.category or "")
    return any(needle in value.lower() for value in haystacks)


def _validate_kind(kind: str) -> str:
    if not isinstance(kind, str):
        raise InvalidTransactionError("Transaction kind must be 'income' or 'expense'.")
    normalized = kind.strip().lower()
    if normalized not in SUPPORTED_KINDS:
        raise InvalidTransactionError("Transaction kind must be 'income' or 'expense'.")
    return normalized


def _validate_amount(amount: Decimal | int | float | str) -> Decimal:
    try:
        coerced = _coerce_amount(amount)
    except (InvalidOperation, TypeError) as exc:
        raise InvalidTransactionError("Transaction amount must be a number.") from exc
    if not coerced.is_finite():
        raise InvalidTransactionError("Transaction amount must be a number.")
    if coerced < ZERO:
        raise InvalidTransactionError("Transaction amount must not be negative.")
    return coerced


def _coerce_amount(amount: Decimal | int | float | str) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def _coerce_timestamp(value: datetime | date | str | None) -> datetime:
    if value is None:
        raise InvalidTransactionError("Transaction date is required.")
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise InvalidTransactionError(f"Invalid transaction date: {value!r}") from exc
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise InvalidTransactionError(f"Invalid transaction date: {value!r}")


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
