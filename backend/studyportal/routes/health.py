"""
Study Portal Backend — Health Check Route
===========================================

What:  Health check endpoint for monitoring and container liveness checks.
How:   Verifies the uploads directory is writable and reports registry size.

Status levels:
    - healthy:   Uploads directory writable (HTTP 200)
    - unhealthy: Uploads directory missing or read-only (HTTP 200, flagged)
"""

import logging
import os
import time

from fastapi import APIRouter

from studyportal import __version__
from studyportal.schemas.document import HealthResponse
from studyportal.services.document_service import document_service
from studyportal.services.file_service import upload_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    uploads_status = "writable"
    overall = "healthy"

    uploads_dir = upload_storage.uploads_dir
    if not (uploads_dir.is_dir() and os.access(uploads_dir, os.W_OK)):
        uploads_status = "unavailable"
        overall = "unhealthy"
        logger.warning("Health check: uploads directory not writable: %s", uploads_dir)

    return HealthResponse(
        status=overall,
        version=__version__,
        uploads=uploads_status,
        documents=document_service.count(),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
