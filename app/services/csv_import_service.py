"""
app/services/csv_import_service.py

Service layer for CSV upload inspection and chunked row loading.

Inspection runs synchronously at upload time and never touches the database.
Loading streams a staged file row by row: each row is validated, rows with
errors are rejected, kept rows are transformed and inserted in chunks. Every
chunk is committed together with the job's progress counters, so a failure
mid-file keeps the chunks already loaded.
"""

from __future__ import annotations

import csv
import io
import logging
import uuid
from collections.abc import Iterable, Iterator
from functools import lru_cache
from typing import IO, Any, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_import_settings
from app.domain.imports import ImportSummary, RowValidationError, UploadInspection
from app.mappers.schema_detector import SchemaDetector
from app.repositories.target_record_repository import TargetRecordRepository
from app.transformers.row_transformer import RowTransformer
from app.validators.row_validator import RowValidator
from app.validators.value_parsers import is_blank
from db.repositories.import_job_repository import ImportJobRepository

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CSVUploadError(ValueError):
    """
    Raised when an upload is rejected before any job exists.
    """


class CSVUploadTooLargeError(CSVUploadError):
    def __init__(self, *, size_bytes: int, max_bytes: int) -> None:
        super().__init__(
            f"File too large: {size_bytes} bytes. Maximum allowed is {max_bytes} bytes."
        )
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes


class CSVFormatError(CSVUploadError):
    """
    Raised when the file is not a readable UTF-8 CSV with a header row.
    """


class CSVSchemaDetectionError(CSVUploadError):
    """
    Raised when the header row matches neither supported format.
    """

    def __init__(
        self,
        *,
        diagnostics: Sequence[str],
        headers: Sequence[str],
        column_count: int,
    ) -> None:
        super().__init__("Unable to detect CSV format")
        self.diagnostics = tuple(diagnostics)
        self.headers = tuple(headers)
        self.column_count = column_count

    def to_dict(self) -> dict[str, object]:
        return {
            "message": str(self),
            "details": list(self.diagnostics),
            "headers": list(self.headers),
            "column_count": self.column_count,
        }


class ImportPersistenceError(RuntimeError):
    """
    Raised when a chunk of valid rows cannot be persisted.
    """


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_blank_row(row: Sequence[Any]) -> bool:
    return all(is_blank(value) for value in row)


def iter_data_rows(reader: Iterable[list[str]]) -> Iterator[list[str]]:
    """
    Yield non-blank rows from a CSV reader.
    """

    for row in reader:
        if not row or is_blank_row(row):
            continue
        yield row


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CSVImportService:
    """
    Coordinates CSV inspection, validation, transformation and persistence.
    """

    def __init__(
        self,
        *,
        batch_size: int,
        max_upload_bytes: int,
        detection_sample_rows: int,
        preview_rows: int,
        max_stored_errors: int,
        log_validation_errors: bool,
        detector: SchemaDetector | None = None,
        validator: RowValidator | None = None,
        transformer: RowTransformer | None = None,
    ) -> None:
        self._batch_size = max(1, batch_size)
        self._max_upload_bytes = max(1, max_upload_bytes)
        self._detection_sample_rows = max(1, detection_sample_rows)
        self._preview_rows = max(1, preview_rows)
        self._max_stored_errors = max(1, max_stored_errors)
        self._log_validation_errors = log_validation_errors
        self._detector = detector or SchemaDetector()
        self._validator = validator or RowValidator()
        self._transformer = transformer or RowTransformer()

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def inspect_upload(self, *, content: bytes, filename: str) -> UploadInspection:
        """
        Check size and shape of an upload and detect its schema kind.
        """

        if not filename.strip().lower().endswith(".csv"):
            raise CSVFormatError("Only CSV files are allowed.")
        if len(content) > self._max_upload_bytes:
            raise CSVUploadTooLargeError(size_bytes=len(content), max_bytes=self._max_upload_bytes)
        if not content.strip():
            raise CSVFormatError("CSV file is empty.")

        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CSVFormatError("CSV must be UTF-8 encoded.") from exc

        sample: list[list[str]] = []
        total_rows = 0
        try:
            for row in iter_data_rows(csv.reader(io.StringIO(text, newline=""))):
                if len(sample) < max(self._detection_sample_rows, self._preview_rows):
                    sample.append(row)
                total_rows += 1
        except csv.Error as exc:
            raise CSVFormatError(f"Invalid CSV format: {exc}") from exc

        if not sample:
            raise CSVFormatError("CSV header row is missing.")

        headers = sample[0]
        detection = self._detector.detect(headers)
        if detection.type is None:
            logger.info(
                "CSV detection failed filename=%r column_count=%s diagnostics=%s",
                filename,
                detection.column_count,
                detection.diagnostics,
            )
            raise CSVSchemaDetectionError(
                diagnostics=detection.diagnostics,
                headers=headers,
                column_count=detection.column_count,
            )

        return UploadInspection(
            filename=filename,
            kind=detection.type,
            column_count=detection.column_count,
            total_rows=total_rows - 1,
            preview=[list(row) for row in sample[: self._preview_rows]],
            file_size_bytes=len(content),
        )

    def load_rows(
        self,
        *,
        db: Session,
        job_id: uuid.UUID,
        kind: str,
        text_stream: IO[str],
        job_repository: ImportJobRepository,
        record_repository: TargetRecordRepository,
    ) -> ImportSummary:
        """
        Stream a staged CSV into storage, committing progress per chunk.

        Row numbers are 1-based over non-blank data rows; the header row is
        not counted.
        """

        summary = ImportSummary()
        rows = iter_data_rows(csv.reader(text_stream))
        try:
            headers = next(rows)
        except StopIteration as exc:
            raise CSVFormatError("CSV header row is missing.") from exc

        pending_records: list[dict[str, Any]] = []
        pending_errors: list[RowValidationError] = []
        pending_rows = 0

        for row_number, row in enumerate(rows, start=1):
            row_errors = self._validator.validate_row(row, headers, kind, row_number)
            if row_errors:
                summary.rows_rejected += 1
                for error in row_errors:
                    self._record_error(summary, pending_errors, error)
            else:
                pending_records.append(self._transformer.transform_row(row, headers, kind))

            pending_rows += 1
            if pending_rows >= self._batch_size:
                self._flush_chunk(
                    db=db,
                    job_id=job_id,
                    kind=kind,
                    summary=summary,
                    records=pending_records,
                    errors=pending_errors,
                    row_count=pending_rows,
                    job_repository=job_repository,
                    record_repository=record_repository,
                )
                pending_records = []
                pending_errors = []
                pending_rows = 0

        if pending_rows or pending_errors:
            self._flush_chunk(
                db=db,
                job_id=job_id,
                kind=kind,
                summary=summary,
                records=pending_records,
                errors=pending_errors,
                row_count=pending_rows,
                job_repository=job_repository,
                record_repository=record_repository,
            )

        return summary

    # ------------------------------------------------------------------
    # Loading internals
    # ------------------------------------------------------------------

    def _flush_chunk(
        self,
        *,
        db: Session,
        job_id: uuid.UUID,
        kind: str,
        summary: ImportSummary,
        records: list[dict[str, Any]],
        errors: list[RowValidationError],
        row_count: int,
        job_repository: ImportJobRepository,
        record_repository: TargetRecordRepository,
    ) -> None:
        try:
            inserted = record_repository.bulk_insert(kind, job_id, records)
        except SQLAlchemyError as exc:
            db.rollback()
            raise ImportPersistenceError(
                f"Failed to persist {len(records)} {kind} rows."
            ) from exc

        summary.rows_inserted += inserted
        summary.rows_skipped_duplicates += len(records) - inserted
        summary.processed_rows += row_count

        job = job_repository.record_progress(
            job_id=job_id,
            processed_rows=summary.processed_rows,
            rows_inserted=summary.rows_inserted,
            rows_skipped_duplicates=summary.rows_skipped_duplicates,
            rows_rejected=summary.rows_rejected,
            error_count=summary.error_count,
            new_errors=[error.to_dict() for error in errors],
            max_stored_errors=self._max_stored_errors,
        )
        if job is None:
            raise RuntimeError(f"Import job not found: {job_id}")

        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise ImportPersistenceError(f"Failed to commit progress for import job {job_id}.") from exc

        logger.debug(
            "Import chunk committed job_id=%s rows=%s inserted=%s duplicates=%s processed=%s",
            job_id,
            row_count,
            inserted,
            len(records) - inserted,
            summary.processed_rows,
        )

    def _record_error(
        self,
        summary: ImportSummary,
        pending_errors: list[RowValidationError],
        error: RowValidationError,
    ) -> None:
        if self._log_validation_errors:
            logger.warning(
                "CSV validation error row=%s column=%s message=%s value=%r",
                error.row_number,
                error.column,
                error.message,
                error.value,
            )

        summary.error_count += 1
        if len(summary.errors) < self._max_stored_errors:
            summary.errors.append(error)
            pending_errors.append(error)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_csv_import_service() -> CSVImportService:
    """
    Build and cache the import service with env-driven settings.
    """
    settings = get_import_settings()
    return CSVImportService(
        batch_size=settings.batch_size,
        max_upload_bytes=settings.max_upload_bytes,
        detection_sample_rows=settings.detection_sample_rows,
        preview_rows=settings.preview_rows,
        max_stored_errors=settings.max_stored_errors,
        log_validation_errors=settings.log_validation_errors,
    )
