"""
tests/test_config.py

Environment parsing for import settings and database URLs.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from app.config import DEFAULT_MAX_UPLOAD_BYTES, get_import_settings
from db.config import normalize_postgres_url, require_postgres_url


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_import_settings.cache_clear()
    yield
    get_import_settings.cache_clear()


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "IMPORT_BATCH_SIZE",
        "IMPORT_MAX_UPLOAD_BYTES",
        "IMPORT_STAGING_DIR",
        "IMPORT_PREVIEW_ROWS",
        "IMPORT_MAX_STORED_ERRORS",
        "IMPORT_LOG_VALIDATION_ERRORS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_import_settings()

    assert settings.batch_size == 500
    assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES
    assert settings.preview_rows == 3
    assert settings.max_stored_errors == 10000
    assert settings.log_validation_errors is True


def test_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("IMPORT_BATCH_SIZE", "50")
    monkeypatch.setenv("IMPORT_STAGING_DIR", str(tmp_path))
    monkeypatch.setenv("IMPORT_LOG_VALIDATION_ERRORS", "off")

    settings = get_import_settings()

    assert settings.batch_size == 50
    assert settings.staging_dir == tmp_path
    assert settings.log_validation_errors is False


@pytest.mark.parametrize(("raw", "expected"), [("abc", 500), ("0", 1), ("-3", 1), ("  ", 500)])
def test_bad_batch_size_values(monkeypatch: pytest.MonkeyPatch, raw: str, expected: int) -> None:
    monkeypatch.setenv("IMPORT_BATCH_SIZE", raw)

    assert get_import_settings().batch_size == expected


def test_postgres_urls_use_psycopg_driver() -> None:
    assert normalize_postgres_url("postgres://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
    assert normalize_postgres_url("postgresql://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
    assert normalize_postgres_url("postgresql+psycopg://h/db") == "postgresql+psycopg://h/db"


def test_non_postgres_url_is_rejected() -> None:
    with pytest.raises(RuntimeError):
        require_postgres_url("sqlite:///imports.db")
