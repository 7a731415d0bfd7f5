"""Application settings management for the expense scanner service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from dotenv import find_dotenv, load_dotenv

DEFAULT_CATEGORIES = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Bills & Utilities",
    "Healthcare",
    "Education",
    "Travel",
    "Other",
)


@dataclass(frozen=True)
class Settings:
    supabase_url: str
    supabase_key: str
    receipts_bucket: str
    ocr_language: str
    categories: Tuple[str, ...]

    @staticmethod
    def _require_env(name: str) -> str:
        value = os.getenv(name)
        if value is None or not value.strip():
            raise RuntimeError(f"Environment variable {name} is required")
        return value.strip()

    @staticmethod
    def _optional_env(name: str, default: str) -> str:
        value = os.getenv(name)
        if value is None or not value.strip():
            return default
        return value.strip()

    @classmethod
    def load(cls) -> "Settings":
        _ensure_env_file_loaded()
        raw_url = cls._require_env("SUPABASE_URL")
        if not raw_url.startswith("https://"):
            raise RuntimeError("SUPABASE_URL must start with https://")
        # The client appends `/rest/v1` and `/storage/v1` itself, so accept the
        # project root with or without the REST suffix.
        base = raw_url.rstrip("/")
        if base.endswith("/rest/v1"):
            base = base[: -len("/rest/v1")]
        supabase_url = base.rstrip("/")

        supabase_key = cls._require_env("SUPABASE_ANON_KEY")
        receipts_bucket = cls._optional_env("RECEIPTS_BUCKET", "receipts")
        ocr_language = cls._optional_env("OCR_LANGUAGE", "eng")

        raw_categories = os.getenv("EXPENSE_CATEGORIES")
        if raw_categories and raw_categories.strip():
            categories = tuple(
                entry.strip() for entry in raw_categories.split(",") if entry.strip()
            )
        else:
            categories = DEFAULT_CATEGORIES

        return cls(
            supabase_url=supabase_url,
            supabase_key=supabase_key,
            receipts_bucket=receipts_bucket,
            ocr_language=ocr_language,
            categories=categories,
        )


ENV_FILE_VARIABLE = "EXPENSE_SCANNER_ENV_FILE"
PROJECT_ROOT = Path(__file__).resolve().parent.parent

_env_loaded = False


def _locate_env_file() -> Optional[Path]:
    """Pick the ``.env`` file to read, if any.

    An explicit ``EXPENSE_SCANNER_ENV_FILE`` wins, then the nearest ``.env``
    above the working directory, then the one next to ``pyproject.toml``.
    """

    explicit = os.getenv(ENV_FILE_VARIABLE)
    if explicit and explicit.strip():
        path = Path(explicit.strip()).expanduser()
        if not path.is_file():
            raise RuntimeError(f"{ENV_FILE_VARIABLE} points to a missing file: {path}")
        return path
    found = find_dotenv(usecwd=True)
    if found:
        return Path(found)
    fallback = PROJECT_ROOT / ".env"
    return fallback if fallback.is_file() else None


def _ensure_env_file_loaded() -> None:
    global _env_loaded
    if _env_loaded:
        return
    env_path = _locate_env_file()
    if env_path is not None:
        load_dotenv(dotenv_path=env_path, override=False)
    _env_loaded = True


@lru_cache()
def get_settings() -> Settings:
    return Settings.load()


def reset_settings_state() -> None:
    """Forget cached settings so the next load re-reads the environment (for tests)."""
    global _env_loaded
    _env_loaded = False
    get_settings.cache_clear()


__all__ = ["DEFAULT_CATEGORIES", "ENV_FILE_VARIABLE", "Settings", "get_settings", "reset_settings_state"]
