"""Date extraction helpers."""
from __future__ import annotations

import re
from typing import Optional

DATE_PATTERN = re.compile(r"[0-9]{1,2}[/-][0-9]{1,2}[/-][0-9]{2,4}")


def extract_date(text: str) -> Optional[str]:
    """Return the first date-shaped token verbatim.

    No attempt is made to decide which number is the month; callers parse the
    raw token themselves.
    """

    match = DATE_PATTERN.search(text or "")
    if not match:
        return None
    return match.group(0)


__all__ = ["DATE_PATTERN", "extract_date"]
