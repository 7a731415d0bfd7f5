"""Rule-based amount extraction utilities."""
from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import List, Optional

from .lines import CURRENCY_GLYPHS

AMOUNT_PATTERN = re.compile(
    r"[" + re.escape(CURRENCY_GLYPHS) + r"]?\s*([0-9]+(?:\.[0-9]+)?)"
)


def _collect_values(text: str) -> List[float]:
    values = [float(match.group(1)) for match in AMOUNT_PATTERN.finditer(text)]
    # digit runs too long for a float overflow to inf and carry no usable figure
    return [value for value in values if math.isfinite(value)]


def format_amount(value: float) -> str:
    """Render ``value`` as a plain decimal: ``10.0 -> "10"``, ``1e-07 -> "0.0000001"``."""

    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def extract_amount(text: str) -> Optional[str]:
    """Return the largest currency-like figure in ``text``.

    The grand total is usually the biggest number printed on a receipt, so the
    maximum of every numeric token wins regardless of the currency glyph in
    front of it.
    """

    values = _collect_values(text or "")
    if not values:
        return None
    return format_amount(max(values))


__all__ = ["AMOUNT_PATTERN", "extract_amount", "format_amount"]
