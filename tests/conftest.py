from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from expense_scanner.settings import DEFAULT_CATEGORIES, Settings  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://project.supabase.co",
        supabase_key="anon-key",
        receipts_bucket="receipts",
        ocr_language="eng",
        categories=DEFAULT_CATEGORIES,
    )
