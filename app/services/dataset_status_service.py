"""
app/services/dataset_status_service.py

Read-only overview of loaded data and recent imports for the admin data page.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import lru_cache

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.imports import DatasetStatus, DatasetTableStatus
from app.mappers.schema_definitions import SchemaKind
from app.repositories.target_record_repository import TargetRecordRepository
from app.services.import_orchestrator_service import build_status_view
from db.repositories.import_job_repository import ImportJobRepository

logger = logging.getLogger(__name__)

_RECENT_JOBS_LIMIT = 10


class DatasetStatusService:
    def __init__(
        self,
        *,
        job_repository_factory: Callable[[Session], ImportJobRepository] = ImportJobRepository,
        record_repository_factory: Callable[[Session], TargetRecordRepository] = TargetRecordRepository,
        recent_jobs_limit: int = _RECENT_JOBS_LIMIT,
    ) -> None:
        self._job_repository_factory = job_repository_factory
        self._record_repository_factory = record_repository_factory
        self._recent_jobs_limit = max(1, recent_jobs_limit)

    def get_status(self, *, db: Session) -> DatasetStatus:
        """
        Summarize stored rows per schema kind and the latest import jobs.

        An unreachable database yields ``connected=False`` with empty figures.
        """

        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Database connectivity check failed")
            db.rollback()
            return DatasetStatus(
                connected=False,
                tables=[],
                active_imports=0,
                last_import_at=None,
                recent_jobs=[],
            )

        record_repository = self._record_repository_factory(db)
        tables: list[DatasetTableStatus] = []
        for kind in SchemaKind.ALL:
            min_date, max_date = record_repository.date_range(kind)
            tables.append(
                DatasetTableStatus(
                    kind=kind,
                    count=record_repository.count_records(kind),
                    min_date=min_date,
                    max_date=max_date,
                )
            )

        job_repository = self._job_repository_factory(db)
        recent_jobs = job_repository.list_jobs(limit=self._recent_jobs_limit)
        return DatasetStatus(
            connected=True,
            tables=tables,
            active_imports=job_repository.count_active(),
            last_import_at=job_repository.latest_created_at(),
            recent_jobs=[build_status_view(job) for job in recent_jobs],
        )


@lru_cache(maxsize=1)
def get_dataset_status_service() -> DatasetStatusService:
    return DatasetStatusService()
