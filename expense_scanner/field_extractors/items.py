"""Candidate line-item extraction."""
from __future__ import annotations

from typing import List, Optional, Sequence

from .lines import CURRENCY_GLYPHS, is_digits_only

MAX_ITEMS = 5


def _is_item_line(line: str, merchant_line: Optional[str]) -> bool:
    if len(line) <= 2:
        return False
    if is_digits_only(line):
        return False
    if line[0] in CURRENCY_GLYPHS:
        return False
    return line != merchant_line


def extract_items(
    lines: Sequence[str],
    merchant_line: Optional[str] = None,
    max_items: int = MAX_ITEMS,
) -> List[str]:
    """Keep lines that might name a purchased product, in receipt order."""

    items = [line for line in lines if _is_item_line(line, merchant_line)]
    return items[:max_items]


__all__ = ["MAX_ITEMS", "extract_items"]
