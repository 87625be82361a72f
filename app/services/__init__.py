"""
app/services package marker.
"""

from app.services.csv_import_service import (
    CSVFormatError,
    CSVImportService,
    CSVSchemaDetectionError,
    CSVUploadError,
    CSVUploadTooLargeError,
    ImportPersistenceError,
    get_csv_import_service,
)
from app.services.dataset_status_service import DatasetStatusService, get_dataset_status_service
from app.services.import_orchestrator_service import (
    FastAPIBackgroundTaskExecutor,
    ImportJobNotFoundError,
    ImportOrchestratorService,
    ImportTaskExecutor,
    InlineTaskExecutor,
    get_import_orchestrator_service,
)

__all__ = [
    "CSVFormatError",
    "CSVImportService",
    "CSVSchemaDetectionError",
    "CSVUploadError",
    "CSVUploadTooLargeError",
    "DatasetStatusService",
    "FastAPIBackgroundTaskExecutor",
    "ImportJobNotFoundError",
    "ImportOrchestratorService",
    "ImportPersistenceError",
    "ImportTaskExecutor",
    "InlineTaskExecutor",
    "get_csv_import_service",
    "get_dataset_status_service",
    "get_import_orchestrator_service",
]
