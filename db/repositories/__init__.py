"""
Repository layer exports.
"""

from db.repositories.errors import StagedFileError, StagedFileNotFoundError, StagingRepositoryError
from db.repositories.import_job_repository import ImportJobRepository
from db.repositories.storage import LocalStagingStore, StagingStore

__all__ = [
    "ImportJobRepository",
    "LocalStagingStore",
    "StagedFileError",
    "StagedFileNotFoundError",
    "StagingRepositoryError",
    "StagingStore",
]
