"""
app/config.py

Import pipeline settings read from the environment (and `.env` files).
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from db.config import load_env_files

DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024
DEFAULT_STAGING_DIR = Path(tempfile.gettempdir()) / "uploads"


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()


def _env_value(name: str) -> str | None:
    """
    Stripped environment value, or None when unset or blank.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _positive_int_env(name: str, default: int) -> int:
    value = _env_value(name)
    if value is None:
        return default
    try:
        return max(1, int(value))
    except ValueError:
        return default


def _flag_env(name: str, default: bool) -> bool:
    value = _env_value(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ImportSettings:
    """
    Runtime settings for CSV upload, detection and loading.
    """

    batch_size: int = 500
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    staging_dir: Path = DEFAULT_STAGING_DIR
    detection_sample_rows: int = 5
    preview_rows: int = 3
    max_stored_errors: int = 10000
    log_validation_errors: bool = True


@lru_cache(maxsize=1)
def get_import_settings() -> ImportSettings:
    staging_dir = _env_value("IMPORT_STAGING_DIR")
    return ImportSettings(
        batch_size=_positive_int_env("IMPORT_BATCH_SIZE", 500),
        max_upload_bytes=_positive_int_env("IMPORT_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        staging_dir=Path(staging_dir) if staging_dir else DEFAULT_STAGING_DIR,
        detection_sample_rows=_positive_int_env("IMPORT_DETECTION_SAMPLE_ROWS", 5),
        preview_rows=_positive_int_env("IMPORT_PREVIEW_ROWS", 3),
        max_stored_errors=_positive_int_env("IMPORT_MAX_STORED_ERRORS", 10000),
        log_validation_errors=_flag_env("IMPORT_LOG_VALIDATION_ERRORS", True),
    )
