"""Line segmentation for raw OCR text."""
from __future__ import annotations

import re
from typing import List

CURRENCY_GLYPHS = "$€£¥"

_LINE_BREAK_PATTERN = re.compile(r"\r\n|\r")
_DIGITS_ONLY_PATTERN = re.compile(r"[0-9]+")


def split_lines(text: str) -> List[str]:
    """Split ``text`` on any line break, dropping blank lines.

    Lines are returned untouched; only the emptiness check looks at the
    trimmed value.
    """

    normalised = _LINE_BREAK_PATTERN.sub("\n", text or "")
    return [line for line in normalised.split("\n") if line.strip()]


def is_digits_only(line: str) -> bool:
    return _DIGITS_ONLY_PATTERN.fullmatch(line) is not None


__all__ = ["CURRENCY_GLYPHS", "is_digits_only", "split_lines"]
