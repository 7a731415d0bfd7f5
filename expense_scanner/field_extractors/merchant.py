"""Merchant extraction using a printed-header heuristic."""
from __future__ import annotations

from typing import Optional, Sequence

from .lines import is_digits_only


def _looks_like_header(line: str) -> bool:
    # stylised headers are usually printed without lowercase letters
    return len(line) > 3 and line.upper() == line and not is_digits_only(line)


def select_merchant_line(lines: Sequence[str]) -> Optional[str]:
    """Return the untrimmed line chosen as merchant, or ``None`` without lines."""

    for line in lines:
        if _looks_like_header(line):
            return line
    return lines[0] if lines else None


def extract_merchant(lines: Sequence[str]) -> str:
    selected = select_merchant_line(lines)
    return selected.strip() if selected else ""


__all__ = ["extract_merchant", "select_merchant_line"]
