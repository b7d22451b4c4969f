"""Learning-session ingestion endpoints.

- POST /sessions/import: parse and validate an uploaded file for review
- GET /sessions/sample/{fmt}: download an example import file
- POST /sessions/bulk: create many sessions, optionally expanded by recurrence
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import Response
from loguru import logger

from studyplan.api.dependencies.auth import get_current_user_id
from studyplan.config.settings import settings
from studyplan.sessions.bulk_service import create_bulk
from studyplan.sessions.errors import SessionPipelineError
from studyplan.sessions.store import SessionStore, SqlSessionStore
from studyplan.sessions.types import BulkCreateRequest, ImportFormat
from studyplan.upload.import_service import detect_format, import_sessions
from studyplan.upload.samples import render_sample

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_session_store() -> SessionStore:
    """FastAPI dependency providing the session store."""
    return SqlSessionStore()


@router.post("/import")
def import_sessions_file(
    file: UploadFile | None = File(default=None),
    user_id: str = Depends(get_current_user_id),
):
    """Parse an uploaded CSV, JSON or XML file into reviewable rows.

    Nothing is persisted; the caller reviews the rows and submits the good
    ones to /sessions/bulk.

    Raises:
        HTTPException: 400 if no file, empty file, unsupported format or unreadable content
        HTTPException: 413 if file is too large
    """
    if file is None or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded",
        )

    logger.info(f"[IMPORT] Import request for user_id={user_id}, filename={file.filename}")

    try:
        fmt = detect_format(file.filename, file.content_type)
    except SessionPipelineError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e

    try:
        file_bytes = file.file.read()
    except OSError as e:
        logger.error(f"[IMPORT] Failed to read file: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to read file: {e!s}",
        ) from e

    if len(file_bytes) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size: {settings.max_upload_bytes / (1024 * 1024):.0f}MB",
        )

    if len(file_bytes) == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File is empty",
        )

    try:
        result = import_sessions(file_bytes, fmt)
    except SessionPipelineError as e:
        logger.warning("[IMPORT] Import failed: {}", e, code=e.code, user_id=user_id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e

    summary = result.summary
    return {
        "success": True,
        "message": (
            f"File parsed: {summary.successful_rows} valid, {summary.warning_rows} with warnings, "
            f"{summary.failed_rows} failed"
        ),
        "data": result.model_dump(mode="json"),
    }


@router.get("/sample/{fmt}")
def download_sample(fmt: str) -> Response:
    """Download an example import file for csv, json or xml."""
    try:
        import_format = ImportFormat(fmt.lower())
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid format. Expected csv, json, or xml",
        ) from e

    sample = render_sample(import_format)
    return Response(
        content=sample.content,
        media_type=sample.content_type,
        headers={"Content-Disposition": f'attachment; filename="{sample.filename}"'},
    )


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
def bulk_create_sessions(
    request: BulkCreateRequest,
    user_id: str = Depends(get_current_user_id),
    store: SessionStore = Depends(get_session_store),
):
    """Create sessions in bulk with partial-success semantics.

    Raises:
        HTTPException: 400 if no sessions are given or the session cap is exceeded
    """
    if not request.sessions:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Sessions array is required and must not be empty",
        )

    try:
        outcome = create_bulk(request, user_id, store)
    except SessionPipelineError as e:
        logger.warning("[BULK] Bulk create rejected: {}", e, code=e.code, user_id=user_id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e

    return {
        "success": True,
        "message": f"Bulk create completed: {outcome.total_created} created, {outcome.total_failed} failed",
        "data": outcome.model_dump(mode="json"),
    }
