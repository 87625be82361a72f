"""
Orchestrator service for CSV import job creation, background execution and
status tracking.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Protocol

from fastapi import BackgroundTasks, UploadFile
from sqlalchemy.orm import Session

from app.config import get_import_settings
from app.domain.imports import ImportJobStatusView, ImportSummary, UploadReceipt
from app.repositories.target_record_repository import TargetRecordRepository
from app.services.csv_import_service import (
    CSVImportService,
    CSVUploadTooLargeError,
    get_csv_import_service,
)
from db.models.import_job import ImportJob, ImportJobStateError, ImportJobStatus
from db.repositories.errors import StagedFileError
from db.repositories.import_job_repository import ImportJobRepository
from db.repositories.storage import LocalStagingStore, StagingStore

logger = logging.getLogger(__name__)

_READ_CHUNK_BYTES = 1024 * 1024
_MAX_FATAL_MESSAGE_CHARS = 2000


class ImportJobNotFoundError(LookupError):
    def __init__(self, job_id: uuid.UUID) -> None:
        super().__init__(f"Import job not found: {job_id}")
        self.job_id = job_id


class ImportTaskExecutor(Protocol):
    def submit(self, task: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


class InlineTaskExecutor:
    """
    Runs the task immediately in the caller's thread.
    """

    def submit(self, task: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        task(*args, **kwargs)


def progress_percentage(processed_rows: int, total_rows: int | None) -> int:
    if not total_rows:
        return 0
    return int(math.floor(processed_rows / total_rows * 100 + 0.5))


def processing_time_seconds(job: ImportJob, *, now: datetime | None = None) -> int:
    if job.started_at is None:
        return 0
    end = job.completed_at or now or datetime.now(timezone.utc)
    return max(0, int((end - job.started_at).total_seconds()))


def build_status_view(job: ImportJob) -> ImportJobStatusView:
    return ImportJobStatusView(
        job_id=job.id,
        status=job.status,
        filename=job.filename,
        type=job.type,
        total_rows=job.total_rows,
        processed_rows=job.processed_rows,
        progress_percentage=progress_percentage(job.processed_rows, job.total_rows),
        is_active=job.is_active,
        error_count=job.error_count,
        errors=list(job.errors or []),
        processing_time_seconds=processing_time_seconds(job),
        user_id=job.user_id,
        rows_inserted=job.rows_inserted,
        rows_skipped_duplicates=job.rows_skipped_duplicates,
        rows_rejected=job.rows_rejected,
        created_at=job.created_at,
        updated_at=job.updated_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
    )


class ImportOrchestratorService:
    """
    Coordinates upload staging, job creation, background loading and status.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session] | None = None,
        import_service: CSVImportService | None = None,
        staging_store: StagingStore | None = None,
        job_repository_factory: Callable[[Session], ImportJobRepository] = ImportJobRepository,
        record_repository_factory: Callable[[Session], TargetRecordRepository] = TargetRecordRepository,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._import_service = import_service or get_csv_import_service()
        self._staging_store = staging_store or LocalStagingStore(get_import_settings().staging_dir)
        self._job_repository_factory = job_repository_factory
        self._record_repository_factory = record_repository_factory

    def receive_upload(
        self,
        *,
        db: Session,
        upload_file: UploadFile,
        user_id: str,
    ) -> UploadReceipt:
        content = self._read_upload(upload_file)
        return self.receive_content(
            db=db,
            content=content,
            filename=upload_file.filename or "upload.csv",
            user_id=user_id,
        )

    def receive_content(
        self,
        *,
        db: Session,
        content: bytes,
        filename: str,
        user_id: str,
    ) -> UploadReceipt:
        """
        Detect, stage and register an upload as an ``uploading`` job.

        Detection failures raise before anything is stored.
        """

        inspection = self._import_service.inspect_upload(content=content, filename=filename)

        job_id = uuid.uuid4()
        self._staging_store.save(job_id=job_id, content=content)

        repository = self._job_repository_factory(db)
        try:
            job = repository.create_job(
                job_id=job_id,
                user_id=user_id,
                filename=inspection.filename,
                job_type=inspection.kind,
                total_rows=inspection.total_rows,
                file_size_bytes=inspection.file_size_bytes,
            )
            db.commit()
        except Exception:
            db.rollback()
            self._delete_staged_quietly(job_id)
            raise

        logger.info(
            "Import job created id=%s type=%s filename=%r total_rows=%s user_id=%s",
            job.id,
            job.type,
            job.filename,
            job.total_rows,
            user_id,
        )
        return UploadReceipt(
            job_id=job.id,
            kind=inspection.kind,
            filename=inspection.filename,
            total_rows=inspection.total_rows,
            column_count=inspection.column_count,
            preview=inspection.preview,
        )

    def trigger_processing(
        self,
        *,
        db: Session,
        executor: ImportTaskExecutor,
        job_id: uuid.UUID,
    ) -> ImportJob:
        repository = self._job_repository_factory(db)
        job = repository.get_job(job_id)
        if job is None:
            raise ImportJobNotFoundError(job_id)
        if job.status != ImportJobStatus.UPLOADING:
            raise ImportJobStateError(
                job_id=job.id,
                current=job.status,
                requested=ImportJobStatus.PROCESSING,
            )

        executor.submit(self.run_import_job, job.id)
        return job

    def run_import_job(self, job_id: uuid.UUID) -> ImportSummary | None:
        """
        Load one staged upload to completion.

        Returns the run summary, or None when the job failed or could not be
        started.
        """

        with self._session_factory() as db:
            repository = self._job_repository_factory(db)
            try:
                job = repository.mark_processing(job_id=job_id)
                if job is None:
                    raise ImportJobNotFoundError(job_id)
                kind = job.type
                db.commit()
            except (ImportJobNotFoundError, ImportJobStateError):
                db.rollback()
                logger.exception("Import job could not be started id=%s", job_id)
                return None

            logger.info("Import job processing id=%s type=%s", job_id, kind)
            try:
                if kind is None:
                    raise RuntimeError(f"Import job {job_id} has no detected type.")

                record_repository = self._record_repository_factory(db)
                with self._staging_store.open_text(job_id=job_id) as text_stream:
                    summary = self._import_service.load_rows(
                        db=db,
                        job_id=job_id,
                        kind=kind,
                        text_stream=text_stream,
                        job_repository=repository,
                        record_repository=record_repository,
                    )

                completed_job = repository.mark_completed(job_id=job_id)
                if completed_job is None:
                    raise ImportJobNotFoundError(job_id)
                db.commit()
            except Exception as exc:
                self._mark_job_failed(db=db, job_id=job_id, exc=exc)
                return None
            finally:
                self._delete_staged_quietly(job_id)

        logger.info(
            "Import job completed id=%s processed=%s inserted=%s duplicates=%s rejected=%s errors=%s",
            job_id,
            summary.processed_rows,
            summary.rows_inserted,
            summary.rows_skipped_duplicates,
            summary.rows_rejected,
            summary.error_count,
        )
        return summary

    def get_job_status(self, *, db: Session, job_id: uuid.UUID) -> ImportJobStatusView:
        repository = self._job_repository_factory(db)
        job = repository.get_job(job_id)
        if job is None:
            raise ImportJobNotFoundError(job_id)
        return build_status_view(job)

    def list_jobs(
        self,
        *,
        db: Session,
        limit: int = 100,
        status: str | None = None,
        job_type: str | None = None,
        user_id: str | None = None,
    ) -> list[ImportJobStatusView]:
        repository = self._job_repository_factory(db)
        jobs = repository.list_jobs(
            limit=limit,
            job_type=job_type,
            status=status,
            user_id=user_id,
        )
        return [build_status_view(job) for job in jobs]

    def _mark_job_failed(self, *, db: Session, job_id: uuid.UUID, exc: Exception) -> None:
        repository = self._job_repository_factory(db)
        error_message = f"{type(exc).__name__}: {exc}"
        logger.exception("Import job failed id=%s error=%s", job_id, error_message)
        try:
            db.rollback()
            failed_job = repository.mark_failed(
                job_id=job_id,
                error={
                    "row": None,
                    "column": None,
                    "message": f"Import failed: {error_message}"[:_MAX_FATAL_MESSAGE_CHARS],
                    "value": None,
                    "severity": "error",
                },
            )
            if failed_job is None:
                logger.error("Unable to mark import job as failed because it was not found id=%s", job_id)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist failed import job state id=%s", job_id)

    def _read_upload(self, upload_file: UploadFile) -> bytes:
        max_bytes = self._import_service.max_upload_bytes
        upload_file.file.seek(0)
        buffer = bytearray()
        while True:
            chunk = upload_file.file.read(_READ_CHUNK_BYTES)
            if not chunk:
                break
            buffer.extend(chunk)
            if len(buffer) > max_bytes:
                raise CSVUploadTooLargeError(size_bytes=len(buffer), max_bytes=max_bytes)
        return bytes(buffer)

    def _delete_staged_quietly(self, job_id: uuid.UUID) -> None:
        try:
            self._staging_store.delete(job_id=job_id)
        except StagedFileError:
            logger.warning("Failed to delete staged file for import job id=%s", job_id)


@lru_cache(maxsize=1)
def get_import_orchestrator_service() -> ImportOrchestratorService:
    return ImportOrchestratorService()
