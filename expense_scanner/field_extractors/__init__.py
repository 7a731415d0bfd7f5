"""Field extraction helpers for structured receipt data."""
from .amount import extract_amount
from .date import extract_date
from .items import MAX_ITEMS, extract_items
from .lines import split_lines
from .merchant import extract_merchant

__all__ = [
    "MAX_ITEMS",
    "extract_amount",
    "extract_date",
    "extract_items",
    "extract_merchant",
    "split_lines",
]
