"""
Repository-layer exceptions for staging/storage flows.
"""

from __future__ import annotations


class StagingRepositoryError(Exception):
    """Base exception for staging area failures."""


class StagedFileError(StagingRepositoryError):
    """Raised when writing, reading or deleting a staged upload fails."""


class StagedFileNotFoundError(StagedFileError):
    """Raised when a job's staged upload is no longer on disk."""
