"""
Admin data import endpoints: upload, processing trigger, status polling.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload, get_current_user_id
from app.domain.imports import ImportJobStatusView
from app.schemas.imports import (
    DatasetStatusResponse,
    DatasetTableStatusResponse,
    DetectionErrorDetail,
    ImportErrorRecord,
    ImportJobListResponse,
    ImportJobStatusResponse,
    UploadAcceptedResponse,
)
from app.services.csv_import_service import (
    CSVSchemaDetectionError,
    CSVUploadError,
    CSVUploadTooLargeError,
)
from app.services.dataset_status_service import DatasetStatusService, get_dataset_status_service
from app.services.import_orchestrator_service import (
    FastAPIBackgroundTaskExecutor,
    ImportJobNotFoundError,
    ImportOrchestratorService,
    get_import_orchestrator_service,
)
from db.models.import_job import ImportJobStateError
from db.repositories.errors import StagedFileError
from db.session import get_db

router = APIRouter(prefix="/admin/data", tags=["admin-data"])


@router.post(
    "/upload",
    response_model=UploadAcceptedResponse,
    responses={status.HTTP_400_BAD_REQUEST: {"model": DetectionErrorDetail}},
)
def upload_csv(
    background_tasks: BackgroundTasks,
    file: UploadFile = Depends(get_csv_upload),
    process: bool = Query(default=False, description="Schedule processing right after upload"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestratorService = Depends(get_import_orchestrator_service),
) -> UploadAcceptedResponse:
    """
    Detect, stage and register one CSV upload.
    """

    try:
        receipt = orchestrator.receive_upload(db=db, upload_file=file, user_id=user_id)
    except CSVSchemaDetectionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    except CSVUploadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(exc),
        ) from exc
    except CSVUploadError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StagedFileError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to stage uploaded file.",
        ) from exc
    finally:
        file.file.close()

    if process:
        orchestrator.trigger_processing(
            db=db,
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
            job_id=receipt.job_id,
        )

    return UploadAcceptedResponse(
        job_id=receipt.job_id,
        type=receipt.kind,
        filename=receipt.filename,
        total_rows=receipt.total_rows,
        column_count=receipt.column_count,
        preview=receipt.preview,
        processing_scheduled=process,
    )


@router.post(
    "/process/{job_id}",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ImportJobStatusResponse,
)
def trigger_processing(
    job_id: UUID,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestratorService = Depends(get_import_orchestrator_service),
) -> ImportJobStatusResponse:
    try:
        orchestrator.trigger_processing(
            db=db,
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
            job_id=job_id,
        )
        view = orchestrator.get_job_status(db=db, job_id=job_id)
    except ImportJobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ImportJobStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.to_dict()) from exc

    return _to_status_response(view)


@router.get("/status/{job_id}", response_model=ImportJobStatusResponse)
def get_import_status(
    job_id: UUID,
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestratorService = Depends(get_import_orchestrator_service),
) -> ImportJobStatusResponse:
    try:
        view = orchestrator.get_job_status(db=db, job_id=job_id)
    except ImportJobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _to_status_response(view)


@router.get("/jobs", response_model=ImportJobListResponse)
def list_import_jobs(
    job_type: str | None = Query(default=None, alias="type", description="Optional schema kind filter"),
    status_filter: str | None = Query(default=None, alias="status", description="Optional status filter"),
    limit: int = Query(default=100, ge=1, le=500, description="Max jobs returned"),
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestratorService = Depends(get_import_orchestrator_service),
) -> ImportJobListResponse:
    views = orchestrator.list_jobs(
        db=db,
        limit=limit,
        status=status_filter,
        job_type=job_type,
    )
    return ImportJobListResponse(jobs=[_to_status_response(view) for view in views])


@router.get("/database-status", response_model=DatasetStatusResponse)
def get_database_status(
    db: Session = Depends(get_db),
    status_service: DatasetStatusService = Depends(get_dataset_status_service),
) -> DatasetStatusResponse:
    dataset_status = status_service.get_status(db=db)
    return DatasetStatusResponse(
        connected=dataset_status.connected,
        tables=[
            DatasetTableStatusResponse(
                type=table.kind,
                count=table.count,
                min_date=table.min_date,
                max_date=table.max_date,
            )
            for table in dataset_status.tables
        ],
        active_imports=dataset_status.active_imports,
        last_import_at=dataset_status.last_import_at,
        recent_jobs=[_to_status_response(view) for view in dataset_status.recent_jobs],
    )


def _to_status_response(view: ImportJobStatusView) -> ImportJobStatusResponse:
    return ImportJobStatusResponse(
        job_id=view.job_id,
        status=view.status,
        filename=view.filename,
        type=view.type,
        total_rows=view.total_rows,
        processed_rows=view.processed_rows,
        progress_percentage=view.progress_percentage,
        is_active=view.is_active,
        error_count=view.error_count,
        errors=[ImportErrorRecord(**error) for error in view.errors],
        processing_time_seconds=view.processing_time_seconds,
        user_id=view.user_id,
        rows_inserted=view.rows_inserted,
        rows_skipped_duplicates=view.rows_skipped_duplicates,
        rows_rejected=view.rows_rejected,
        created_at=view.created_at,
        updated_at=view.updated_at,
        started_at=view.started_at,
        completed_at=view.completed_at,
    )
