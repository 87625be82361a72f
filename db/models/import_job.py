"""
db/models/import_job.py

Import job model tracking one uploaded CSV through detection and loading.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class ImportJobStatus:
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    ALL: tuple[str, ...] = (UPLOADING, PROCESSING, COMPLETED, FAILED)
    ACTIVE: tuple[str, ...] = (UPLOADING, PROCESSING)
    TERMINAL: tuple[str, ...] = (COMPLETED, FAILED)


_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    ImportJobStatus.UPLOADING: frozenset({ImportJobStatus.PROCESSING, ImportJobStatus.FAILED}),
    ImportJobStatus.PROCESSING: frozenset({ImportJobStatus.COMPLETED, ImportJobStatus.FAILED}),
    ImportJobStatus.COMPLETED: frozenset(),
    ImportJobStatus.FAILED: frozenset(),
}


class ImportJobStateError(ValueError):
    """
    Raised when a job is asked to move to a status it cannot reach.
    """

    def __init__(self, *, job_id: uuid.UUID | None, current: str, requested: str) -> None:
        super().__init__(
            f"Import job {job_id} cannot move from '{current}' to '{requested}'."
        )
        self.job_id = job_id
        self.current = current
        self.requested = requested

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": str(self),
            "job_id": str(self.job_id) if self.job_id is not None else None,
            "current_status": self.current,
            "requested_status": self.requested,
        }


class ImportJob(Base, TimestampMixin):
    __tablename__ = "import_jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Opaque reference to the uploading user",
    )
    filename: Mapped[str] = mapped_column(String(512), nullable=False)
    type: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        comment="traffic_report, players_data",
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ImportJobStatus.UPLOADING,
    )
    total_rows: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processed_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        comment="Ordered row-level error records (capped)",
    )
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rows_inserted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rows_skipped_duplicates: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rows_rejected: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    file_size_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('uploading', 'processing', 'completed', 'failed')",
            name="ck_import_jobs_status",
        ),
        CheckConstraint(
            "type IS NULL OR type IN ('traffic_report', 'players_data')",
            name="ck_import_jobs_type",
        ),
        CheckConstraint(
            "total_rows IS NULL OR processed_rows <= total_rows",
            name="ck_import_jobs_processed_within_total",
        ),
        Index("ix_import_jobs_status", "status"),
        Index("ix_import_jobs_user_id", "user_id"),
        Index("ix_import_jobs_created_at", "created_at"),
        Index("ix_import_jobs_type_status", "type", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ImportJobStatus.ACTIVE

    def can_transition_to(self, status: str) -> bool:
        return status in _ALLOWED_TRANSITIONS.get(self.status, frozenset())

    def transition_to(self, status: str) -> None:
        """
        Move the job forward; backward or sideways moves raise.
        """

        if not self.can_transition_to(status):
            raise ImportJobStateError(job_id=self.id, current=self.status, requested=status)
        self.status = status
