"""
app/schemas/imports.py

Request/response schemas for the admin data import endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class UploadAcceptedResponse(BaseModel):
    job_id: UUID
    type: str
    filename: str
    total_rows: int = Field(..., ge=0)
    column_count: int = Field(..., ge=0)
    preview: list[list[str]] = Field(default_factory=list)
    processing_scheduled: bool = False


class DetectionErrorResponse(BaseModel):
    """
    Body of a 400 upload response when the header row matches no format.
    """

    message: str
    details: list[str] = Field(default_factory=list)
    headers: list[str] = Field(default_factory=list)
    column_count: int = Field(..., ge=0)


class DetectionErrorDetail(BaseModel):
    detail: DetectionErrorResponse


class ImportErrorRecord(BaseModel):
    """
    One stored row-level (or fatal) error of an import job.
    """

    row: int | None = None
    column: str | None = None
    message: str
    value: str | None = None
    severity: str = "error"


class ImportJobStatusResponse(BaseModel):
    job_id: UUID
    status: str
    filename: str
    type: str | None = None
    total_rows: int | None = None
    processed_rows: int = Field(..., ge=0)
    progress_percentage: int = Field(..., ge=0)
    is_active: bool
    error_count: int = Field(..., ge=0)
    errors: list[ImportErrorRecord] = Field(default_factory=list)
    processing_time_seconds: int = Field(..., ge=0)
    user_id: str
    rows_inserted: int = Field(..., ge=0)
    rows_skipped_duplicates: int = Field(..., ge=0)
    rows_rejected: int = Field(..., ge=0)
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None


class ImportJobListResponse(BaseModel):
    jobs: list[ImportJobStatusResponse] = Field(default_factory=list)


class DatasetTableStatusResponse(BaseModel):
    type: str
    count: int = Field(..., ge=0)
    min_date: datetime | None = None
    max_date: datetime | None = None


class DatasetStatusResponse(BaseModel):
    connected: bool
    tables: list[DatasetTableStatusResponse] = Field(default_factory=list)
    active_imports: int = Field(..., ge=0)
    last_import_at: datetime | None = None
    recent_jobs: list[ImportJobStatusResponse] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    details: dict[str, Any] = Field(default_factory=dict)
