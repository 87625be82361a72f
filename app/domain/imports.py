"""
app/domain/imports.py

Domain models used by the CSV import flow.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

SEVERITY_ERROR = "error"


@dataclass(frozen=True)
class RowValidationError:
    """
    One field-level problem found in a CSV data row.
    """

    row_number: int
    column: str | None
    message: str
    value: str | None = None
    severity: str = SEVERITY_ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row_number,
            "column": self.column,
            "message": self.message,
            "value": self.value,
            "severity": self.severity,
        }


@dataclass(frozen=True)
class SchemaMatched:
    kind: str


@dataclass(frozen=True)
class SchemaAmbiguous:
    candidates: tuple[str, ...]


@dataclass(frozen=True)
class SchemaNoMatch:
    reasons: tuple[str, ...]


DetectionOutcome = Union[SchemaMatched, SchemaAmbiguous, SchemaNoMatch]


@dataclass(frozen=True)
class DetectionResult:
    """
    Result of classifying a header row against the known schemas.
    """

    outcome: DetectionOutcome
    column_count: int
    headers: tuple[str, ...]
    diagnostics: list[str] = field(default_factory=list)

    @property
    def type(self) -> str | None:
        if isinstance(self.outcome, SchemaMatched):
            return self.outcome.kind
        return None

    @property
    def matched(self) -> bool:
        return isinstance(self.outcome, SchemaMatched)


@dataclass(frozen=True)
class UploadInspection:
    """
    What the pipeline learned about an upload before any job exists.
    """

    filename: str
    kind: str
    column_count: int
    total_rows: int
    preview: list[list[str]]
    file_size_bytes: int


@dataclass(frozen=True)
class UploadReceipt:
    job_id: uuid.UUID
    kind: str
    filename: str
    total_rows: int
    column_count: int
    preview: list[list[str]]


@dataclass
class ImportSummary:
    """
    Running and end-of-run counters for one import job.
    """

    processed_rows: int = 0
    rows_inserted: int = 0
    rows_skipped_duplicates: int = 0
    rows_rejected: int = 0
    error_count: int = 0
    errors: list[RowValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class ImportJobStatusView:
    """
    Polling view of one import job.
    """

    job_id: uuid.UUID
    status: str
    filename: str
    type: str | None
    total_rows: int | None
    processed_rows: int
    progress_percentage: int
    is_active: bool
    error_count: int
    errors: list[dict[str, Any]]
    processing_time_seconds: int
    user_id: str
    rows_inserted: int
    rows_skipped_duplicates: int
    rows_rejected: int
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None


@dataclass(frozen=True)
class DatasetTableStatus:
    kind: str
    count: int
    min_date: datetime | None = None
    max_date: datetime | None = None


@dataclass(frozen=True)
class DatasetStatus:
    connected: bool
    tables: list[DatasetTableStatus]
    active_imports: int
    last_import_at: datetime | None
    recent_jobs: list[ImportJobStatusView]
