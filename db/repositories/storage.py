"""
Staging area for uploaded CSV files awaiting processing.

Each upload is stored as ``<job_id>.csv`` in a single directory.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import IO, Protocol

from db.repositories.errors import StagedFileError, StagedFileNotFoundError


class StagingStore(Protocol):
    """
    Abstract staging backend used by the import orchestrator.
    """

    def save(self, *, job_id: uuid.UUID, content: bytes) -> Path:
        ...

    def open_text(self, *, job_id: uuid.UUID) -> IO[str]:
        ...

    def delete(self, *, job_id: uuid.UUID) -> None:
        ...


class LocalStagingStore:
    """
    Local filesystem staging backend.
    """

    def __init__(self, root_dir: str | Path) -> None:
        self._root_dir = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def path_for(self, job_id: uuid.UUID) -> Path:
        return self._root_dir / f"{job_id}.csv"

    def exists(self, job_id: uuid.UUID) -> bool:
        return self.path_for(job_id).exists()

    def save(self, *, job_id: uuid.UUID, content: bytes) -> Path:
        target = self.path_for(job_id)
        tmp_path = target.with_suffix(".csv.tmp")
        try:
            self._root_dir.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("wb") as handle:
                handle.write(content)
            tmp_path.replace(target)
        except OSError as exc:
            raise StagedFileError("Failed to write uploaded file to the staging area.") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass
        return target

    def open_text(self, *, job_id: uuid.UUID) -> IO[str]:
        """
        Open a staged upload as text; a leading BOM is dropped.
        """

        target = self.path_for(job_id)
        if not target.exists():
            raise StagedFileNotFoundError(f"Staged file for job {job_id} not found.")
        try:
            return target.open("r", encoding="utf-8-sig", newline="")
        except OSError as exc:
            raise StagedFileError(f"Failed to open staged file for job {job_id}.") from exc

    def delete(self, *, job_id: uuid.UUID) -> None:
        target = self.path_for(job_id)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as exc:
            raise StagedFileError(f"Failed to delete staged file for job {job_id}.") from exc
