"""
Recipe import API routes.

The upload endpoint always answers 200 with an ImportSummary for files it
could read, including partially failed imports; the error list carries the
row-level detail.
"""

from fastapi import APIRouter, Query, UploadFile, File
from fastapi.responses import JSONResponse
import structlog

from config import settings
from models.recipe_import import ImportSummary, ImportLogEntry
from services.recipe_import_service import get_recipe_import_service, detect_file_type
from services.import_log_service import get_import_log_service
from exceptions import AppError, FileTooLargeError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/import", response_model=ImportSummary)
async def import_recipes(file: UploadFile = File(...)):
    """
    Import recipes from a CSV or XLSX file laid out like the standard template.

    Raises:
        422: File too large or not a CSV/XLSX file
    """
    logger.info(
        "recipe_upload_started",
        filename=file.filename,
        content_type=file.content_type
    )

    try:
        detect_file_type(file.filename, file.content_type)
        content = await file.read()
        if len(content) > settings.max_upload_bytes:
            raise FileTooLargeError(len(content), settings.max_upload_bytes)

        service = get_recipe_import_service()
        return service.import_upload(content, file.filename or "upload", file.content_type)

    except Exception as e:
        return handle_error(e)


@router.get("/import/logs", response_model=list[ImportLogEntry])
async def list_import_logs(
    limit: int = Query(20, ge=1, le=200, description="Max entries to return")
):
    """Most recent import log entries, newest first."""
    return get_import_log_service().recent(limit)
