"""
app/main.py

FastAPI entry point for the affiliate data import API.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.schemas.imports import HealthResponse

logger = logging.getLogger(__name__)

_POSITIVE_INT_SETTINGS = (
    "IMPORT_BATCH_SIZE",
    "IMPORT_MAX_UPLOAD_BYTES",
    "IMPORT_DETECTION_SAMPLE_ROWS",
    "IMPORT_PREVIEW_ROWS",
    "IMPORT_MAX_STORED_ERRORS",
)

# NULLS NOT DISTINCT on the natural-key constraints needs PostgreSQL 15.
_MIN_SERVER_VERSION_NUM = 150000


def _startup_config_errors() -> list[str]:
    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []
    if not any(
        os.getenv(name, "").strip()
        for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
    ):
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL "
            "or LOCAL_DATABASE_URL."
        )

    for name in _POSITIVE_INT_SETTINGS:
        raw = os.getenv(name)
        if raw is None:
            continue
        try:
            valid = int(raw) >= 1
        except ValueError:
            valid = False
        if not valid:
            errors.append(f"{name}='{raw}' is not valid. Expected a positive integer.")

    return errors


def _validate_env() -> None:
    """
    Fail fast on missing or malformed settings, reporting all of them at once.
    """

    errors = _startup_config_errors()
    if errors:
        raise RuntimeError(
            "Startup validation failed. Missing or invalid environment variables:\n"
            + "\n".join(f"  - {error}" for error in errors)
        )


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _verify_database() -> None:
    """
    Check connectivity, server version and that every import table exists.

    Tables are never created here; run ``alembic upgrade head`` first.
    """

    from sqlalchemy import inspect as sa_inspect
    from sqlalchemy import text

    import db.models  # noqa: F401 (registers import tables on Base.metadata)
    from db.base import Base
    from db.session import get_engine

    try:
        with get_engine().connect() as connection:
            version_num = int(connection.execute(text("SHOW server_version_num")).scalar_one())
            existing = set(sa_inspect(connection).get_table_names())
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc

    if version_num < _MIN_SERVER_VERSION_NUM:
        raise RuntimeError(
            f"PostgreSQL 15 or newer is required (server_version_num={version_num})."
        )

    missing = sorted(set(Base.metadata.tables) - existing)
    if missing:
        logger.critical(
            "Import tables missing from the database: %s. Run 'alembic upgrade head' and restart.",
            ", ".join(missing),
        )
        raise RuntimeError(f"Import tables missing from the database: {', '.join(missing)}.")


def _prepare_staging_dir() -> None:
    from app.config import get_import_settings

    staging_dir = get_import_settings().staging_dir
    staging_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Upload staging directory ready at %s", staging_dir)


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _verify_database()
    logger.info("Database connectivity and import tables confirmed")
    _prepare_staging_dir()
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Affiliate Data Import API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import imports_router

    application.include_router(imports_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        return HealthResponse(status="ok", details={"service": "affiliate-data-import"})

    return application


app = create_app()
