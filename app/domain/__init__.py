"""
app/domain package marker.
"""

from app.domain.imports import (
    DatasetStatus,
    DatasetTableStatus,
    DetectionResult,
    ImportJobStatusView,
    ImportSummary,
    RowValidationError,
    SchemaAmbiguous,
    SchemaMatched,
    SchemaNoMatch,
    UploadInspection,
    UploadReceipt,
)

__all__ = [
    "DatasetStatus",
    "DatasetTableStatus",
    "DetectionResult",
    "ImportJobStatusView",
    "ImportSummary",
    "RowValidationError",
    "SchemaAmbiguous",
    "SchemaMatched",
    "SchemaNoMatch",
    "UploadInspection",
    "UploadReceipt",
]
