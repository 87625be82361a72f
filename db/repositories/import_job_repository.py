"""
Repository for import job lifecycle persistence and status lookup.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from db.base import utcnow
from db.models.import_job import ImportJob, ImportJobStatus


class ImportJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_job(
        self,
        *,
        user_id: str,
        filename: str,
        job_type: str | None,
        total_rows: int | None = None,
        file_size_bytes: int | None = None,
        job_id: uuid.UUID | None = None,
    ) -> ImportJob:
        job = ImportJob(
            id=job_id or uuid.uuid4(),
            user_id=user_id,
            filename=filename,
            type=job_type,
            status=ImportJobStatus.UPLOADING,
            total_rows=total_rows,
            processed_rows=0,
            errors=[],
            error_count=0,
            rows_inserted=0,
            rows_skipped_duplicates=0,
            rows_rejected=0,
            file_size_bytes=file_size_bytes,
        )
        self._session.add(job)
        self._session.flush()
        self._session.refresh(job)
        return job

    def get_job(self, job_id: uuid.UUID) -> ImportJob | None:
        return self._session.get(ImportJob, job_id)

    def list_jobs(
        self,
        *,
        limit: int = 100,
        job_type: str | None = None,
        status: str | None = None,
        user_id: str | None = None,
    ) -> list[ImportJob]:
        stmt: Select[tuple[ImportJob]] = select(ImportJob)

        if job_type:
            stmt = stmt.where(ImportJob.type == job_type)
        if status:
            stmt = stmt.where(ImportJob.status == status)
        if user_id:
            stmt = stmt.where(ImportJob.user_id == user_id)

        stmt = stmt.order_by(ImportJob.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def count_active(self) -> int:
        stmt = select(func.count()).select_from(ImportJob).where(
            ImportJob.status.in_(ImportJobStatus.ACTIVE)
        )
        return int(self._session.scalar(stmt) or 0)

    def latest_created_at(self) -> datetime | None:
        return self._session.scalar(select(func.max(ImportJob.created_at)))

    def get_job_for_update(self, job_id: uuid.UUID) -> ImportJob | None:
        return self._session.get(
            ImportJob,
            job_id,
            with_for_update=True,
            populate_existing=True,
        )

    def mark_processing(self, *, job_id: uuid.UUID) -> ImportJob | None:
        """
        Move an ``uploading`` job to ``processing`` under a row lock.

        The lock is held until the caller commits; a concurrent start of the
        same job blocks, then reads ``processing`` and raises
        ``ImportJobStateError``.
        """

        job = self.get_job_for_update(job_id)
        if job is None:
            return None
        job.transition_to(ImportJobStatus.PROCESSING)
        job.started_at = utcnow()
        job.completed_at = None
        return job

    def record_progress(
        self,
        *,
        job_id: uuid.UUID,
        processed_rows: int,
        rows_inserted: int,
        rows_skipped_duplicates: int,
        rows_rejected: int,
        error_count: int,
        new_errors: Sequence[dict[str, Any]] = (),
        max_stored_errors: int | None = None,
    ) -> ImportJob | None:
        """
        Overwrite the running counters and append newly seen errors.

        ``processed_rows`` may only grow and never passes ``total_rows``.
        Stored errors stop growing at ``max_stored_errors``; ``error_count``
        keeps the full total.
        """

        job = self.get_job(job_id)
        if job is None:
            return None

        if processed_rows < job.processed_rows:
            raise ValueError(
                f"processed_rows cannot decrease ({job.processed_rows} -> {processed_rows})."
            )
        if job.total_rows is not None and processed_rows > job.total_rows:
            raise ValueError(
                f"processed_rows ({processed_rows}) exceeds total_rows ({job.total_rows})."
            )

        job.processed_rows = processed_rows
        job.rows_inserted = rows_inserted
        job.rows_skipped_duplicates = rows_skipped_duplicates
        job.rows_rejected = rows_rejected
        job.error_count = error_count

        if new_errors:
            stored = list(job.errors or [])
            room = None if max_stored_errors is None else max(0, max_stored_errors - len(stored))
            to_add = list(new_errors) if room is None else list(new_errors)[:room]
            if to_add:
                # Reassign so the JSONB column is flagged dirty.
                job.errors = stored + to_add
        return job

    def mark_completed(self, *, job_id: uuid.UUID) -> ImportJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.transition_to(ImportJobStatus.COMPLETED)
        job.completed_at = utcnow()
        return job

    def mark_failed(
        self,
        *,
        job_id: uuid.UUID,
        error: dict[str, Any] | None = None,
    ) -> ImportJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.transition_to(ImportJobStatus.FAILED)
        job.completed_at = utcnow()
        if error is not None:
            job.errors = list(job.errors or []) + [error]
            job.error_count = (job.error_count or 0) + 1
        return job
