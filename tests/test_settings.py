from __future__ import annotations

import pytest

from expense_scanner import settings as settings_module
from expense_scanner.settings import DEFAULT_CATEGORIES, Settings


def _populate_env(monkeypatch):
    monkeypatch.delenv("EXPENSE_SCANNER_ENV_FILE", raising=False)
    monkeypatch.setenv("SUPABASE_ANON_KEY", "dummy")
    monkeypatch.delenv("RECEIPTS_BUCKET", raising=False)
    monkeypatch.delenv("OCR_LANGUAGE", raising=False)
    monkeypatch.delenv("EXPENSE_CATEGORIES", raising=False)


@pytest.mark.parametrize(
    "env_value,expected",
    [
        ("https://project.supabase.co", "https://project.supabase.co"),
        ("https://project.supabase.co/", "https://project.supabase.co"),
        ("https://project.supabase.co/rest/v1", "https://project.supabase.co"),
        ("https://project.supabase.co/rest/v1/", "https://project.supabase.co"),
    ],
)
def test_supabase_url_normalised(monkeypatch, env_value, expected):
    _populate_env(monkeypatch)
    monkeypatch.setenv("SUPABASE_URL", env_value)
    settings_module.reset_settings_state()
    settings = Settings.load()
    assert settings.supabase_url == expected


def test_defaults_applied(monkeypatch):
    _populate_env(monkeypatch)
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    settings_module.reset_settings_state()

    settings = Settings.load()

    assert settings.receipts_bucket == "receipts"
    assert settings.ocr_language == "eng"
    assert settings.categories == DEFAULT_CATEGORIES


def test_categories_from_env(monkeypatch):
    _populate_env(monkeypatch)
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("EXPENSE_CATEGORIES", "Food, Travel ,,Other")
    settings_module.reset_settings_state()

    settings = Settings.load()

    assert settings.categories == ("Food", "Travel", "Other")


def test_rejects_plain_http(monkeypatch):
    _populate_env(monkeypatch)
    monkeypatch.setenv("SUPABASE_URL", "http://project.supabase.co")
    settings_module.reset_settings_state()

    with pytest.raises(RuntimeError):
        Settings.load()


def test_missing_key_raises(monkeypatch, tmp_path):
    monkeypatch.delenv("EXPENSE_SCANNER_ENV_FILE", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "   ")
    settings_module.reset_settings_state()

    with pytest.raises(RuntimeError, match="SUPABASE_ANON_KEY"):
        Settings.load()


def test_loads_from_env_file(tmp_path, monkeypatch):
    env_content = (
        "SUPABASE_URL=https://project.supabase.co/rest/v1\n"
        "SUPABASE_ANON_KEY=test-key\n"
        "OCR_LANGUAGE=eng+fra\n"
    )
    env_file = tmp_path / ".env"
    env_file.write_text(env_content)
    monkeypatch.delenv("EXPENSE_SCANNER_ENV_FILE", raising=False)

    for name in [
        "SUPABASE_URL",
        "SUPABASE_ANON_KEY",
        "RECEIPTS_BUCKET",
        "OCR_LANGUAGE",
        "EXPENSE_CATEGORIES",
    ]:
        # setenv first so monkeypatch removes whatever load_dotenv writes
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)

    monkeypatch.chdir(tmp_path)
    settings_module.reset_settings_state()

    settings = Settings.load()

    assert settings.supabase_url == "https://project.supabase.co"
    assert settings.supabase_key == "test-key"
    assert settings.ocr_language == "eng+fra"


def test_explicit_env_file_wins(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    explicit = config_dir / "scanner.env"
    explicit.write_text(
        "SUPABASE_URL=https://explicit.supabase.co\n"
        "SUPABASE_ANON_KEY=explicit-key\n"
        "RECEIPTS_BUCKET=scans\n"
    )
    (tmp_path / ".env").write_text("SUPABASE_URL=https://cwd.supabase.co\nSUPABASE_ANON_KEY=cwd-key\n")

    for name in ["SUPABASE_URL", "SUPABASE_ANON_KEY", "RECEIPTS_BUCKET"]:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("EXPENSE_SCANNER_ENV_FILE", str(explicit))
    monkeypatch.chdir(tmp_path)
    settings_module.reset_settings_state()

    settings = Settings.load()

    assert settings.supabase_url == "https://explicit.supabase.co"
    assert settings.supabase_key == "explicit-key"
    assert settings.receipts_bucket == "scans"


def test_missing_explicit_env_file_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("EXPENSE_SCANNER_ENV_FILE", str(tmp_path / "absent.env"))
    settings_module.reset_settings_state()

    with pytest.raises(RuntimeError, match="EXPENSE_SCANNER_ENV_FILE"):
        Settings.load()
