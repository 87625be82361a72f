"""
app/schemas package marker.
"""

from app.schemas.imports import (
    DatasetStatusResponse,
    DatasetTableStatusResponse,
    DetectionErrorDetail,
    DetectionErrorResponse,
    HealthResponse,
    ImportErrorRecord,
    ImportJobListResponse,
    ImportJobStatusResponse,
    UploadAcceptedResponse,
)

__all__ = [
    "DatasetStatusResponse",
    "DatasetTableStatusResponse",
    "DetectionErrorDetail",
    "DetectionErrorResponse",
    "HealthResponse",
    "ImportErrorRecord",
    "ImportJobListResponse",
    "ImportJobStatusResponse",
    "UploadAcceptedResponse",
]
