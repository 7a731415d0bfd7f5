"""Expense form helpers: receipt prefill, list filtering, dashboard stats and storage paths."""
from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .ocr_extract import ScannedReceipt

DEFAULT_TITLE = "Receipt"
ITEM_DELIMITER = ", "

# Month-first, matching how receipt dates are printed in the US locale.
RECEIPT_DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%m-%d-%Y", "%m-%d-%y")


@dataclass
class ExpenseDraft:
    title: str
    amount: str
    date: str
    description: str
    category: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_receipt_date(raw: Optional[str]) -> Optional[dt.date]:
    if not raw:
        return None
    for fmt in RECEIPT_DATE_FORMATS:
        try:
            return dt.datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def prefill_from_receipt(receipt: ScannedReceipt, today: Optional[dt.date] = None) -> ExpenseDraft:
    """Map a scanned receipt onto the editable expense form.

    The date falls back to ``today`` when the receipt carried none or it could
    not be parsed.
    """

    parsed = parse_receipt_date(receipt.date)
    date_value = parsed or today or dt.date.today()
    return ExpenseDraft(
        title=receipt.merchant or DEFAULT_TITLE,
        amount=receipt.amount or "",
        date=date_value.isoformat(),
        description=ITEM_DELIMITER.join(receipt.items),
    )


SORT_KEYS = ("date", "amount", "title")
MONTHS_IN_STATS = 6


@dataclass
class ExpenseStats:
    total: float
    this_month: float
    average: float
    count: int
    monthly: List[Dict[str, Any]] = field(default_factory=list)
    by_category: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _amount_of(expense: Mapping[str, Any]) -> float:
    try:
        return float(expense.get("amount") or 0)
    except (TypeError, ValueError):
        return 0.0


def _date_of(expense: Mapping[str, Any]) -> Optional[dt.date]:
    raw = expense.get("date")
    if not isinstance(raw, str):
        return None
    try:
        return dt.date.fromisoformat(raw[:10])
    except ValueError:
        return None


def sort_expenses(expenses: Iterable[Mapping[str, Any]], sort_by: str = "date") -> List[Mapping[str, Any]]:
    """Order expenses newest first, by amount descending or by title.

    Rows without a readable date sort after every dated row.
    """

    rows = list(expenses)
    if sort_by == "amount":
        return sorted(rows, key=_amount_of, reverse=True)
    if sort_by == "title":
        return sorted(rows, key=lambda expense: str(expense.get("title") or "").casefold())
    if sort_by == "date":
        return sorted(rows, key=lambda expense: _date_of(expense) or dt.date.min, reverse=True)
    raise ValueError(f"unknown sort key: {sort_by}")


def filter_expenses(
    expenses: Iterable[Mapping[str, Any]],
    search: Optional[str] = None,
    category: Optional[str] = None,
    sort_by: Optional[str] = None,
) -> List[Mapping[str, Any]]:
    filtered = list(expenses)
    if search:
        needle = search.lower()
        filtered = [
            expense
            for expense in filtered
            if needle in str(expense.get("title") or "").lower()
            or needle in str(expense.get("description") or "").lower()
        ]
    if category:
        filtered = [expense for expense in filtered if expense.get("category") == category]
    if sort_by:
        filtered = sort_expenses(filtered, sort_by)
    return filtered


def expense_stats(expenses: Iterable[Mapping[str, Any]], today: Optional[dt.date] = None) -> ExpenseStats:
    """Summarise expenses for the dashboard.

    ``monthly`` holds the last six months that have spending, oldest first.
    ``by_category`` keeps the order in which categories first appear.
    """

    rows = list(expenses)
    today = today or dt.date.today()
    total = sum(_amount_of(expense) for expense in rows)

    this_month = 0.0
    months: Dict[str, Dict[str, Any]] = {}
    categories: Dict[str, float] = {}
    for expense in rows:
        amount = _amount_of(expense)
        spent_on = _date_of(expense)
        if spent_on is not None:
            if (spent_on.year, spent_on.month) == (today.year, today.month):
                this_month += amount
            key = f"{spent_on.year}-{spent_on.month:02d}"
            bucket = months.setdefault(
                key, {"month": key, "label": spent_on.strftime("%b %Y"), "amount": 0.0}
            )
            bucket["amount"] += amount
        name = str(expense.get("category") or "")
        categories[name] = categories.get(name, 0.0) + amount

    monthly = [months[key] for key in sorted(months)][-MONTHS_IN_STATS:]
    return ExpenseStats(
        total=total,
        this_month=this_month,
        average=total / len(rows) if rows else 0.0,
        count=len(rows),
        monthly=monthly,
        by_category=[{"name": name, "value": value} for name, value in categories.items()],
    )


def receipt_object_path(user_id: str, filename: str, now: Optional[dt.datetime] = None) -> str:
    """Build ``receipts/<user_id>/<epoch millis>.<ext>`` for an uploaded image."""

    moment = now or dt.datetime.now(dt.timezone.utc)
    millis = int(moment.timestamp() * 1000)
    extension = filename.rsplit(".", 1)[-1] if filename else ""
    return f"receipts/{user_id}/{millis}.{extension}"


__all__ = [
    "ExpenseDraft",
    "ExpenseStats",
    "SORT_KEYS",
    "expense_stats",
    "filter_expenses",
    "parse_receipt_date",
    "prefill_from_receipt",
    "receipt_object_path",
    "sort_expenses",
]
