"""
Verification API routes.

Upload an inventory CSV and get per-row catalog verification results, either
as JSON or as a downloadable CSV report.
"""

from fastapi import APIRouter, UploadFile, File, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse
import structlog

from exceptions import AppError
from models.verification import UploadRow, VerificationRunResponse
from parsers.csv_parser import parse_upload_csv
from services.export_service import EXPORT_FILENAME, get_export_service
from services.verification_service import get_verification_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/verify", tags=["Verification"])


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


async def _read_upload(file: UploadFile) -> list[UploadRow]:
    """Validate the upload and parse it into rows."""
    logger.info(
        "verification_upload_received",
        filename=file.filename,
        content_type=file.content_type
    )

    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(
            status_code=400,
            detail="File must be a CSV"
        )

    contents = await file.read()
    if len(contents) == 0:
        raise HTTPException(
            status_code=400,
            detail="Uploaded file is empty"
        )

    return parse_upload_csv(contents)


# ===================
# ROUTES
# ===================

@router.post("", response_model=VerificationRunResponse)
async def verify_upload(
    file: UploadFile = File(..., description="Inventory CSV to verify")
):
    """
    Verify every row of an uploaded CSV against the catalog.

    Returns:
        Summary counts and one result per row

    Raises:
        400: Not a CSV, or empty file
        422: CSV could not be parsed or has no rows
        503: Catalog unavailable or empty
    """
    try:
        rows = await _read_upload(file)
        run = get_verification_service().verify(rows)
        return VerificationRunResponse.from_run(run)

    except HTTPException:
        raise
    except Exception as e:
        return handle_error(e)


@router.post("/export")
async def export_upload(
    file: UploadFile = File(..., description="Inventory CSV to verify")
):
    """
    Verify an uploaded CSV and download the results.

    Returns:
        CSV attachment: original columns, canonical columns and Status
    """
    try:
        rows = await _read_upload(file)
        run = get_verification_service().verify(rows)
        content = get_export_service().results_to_csv(run)

    except HTTPException:
        raise
    except Exception as e:
        return handle_error(e)

    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'}
    )
