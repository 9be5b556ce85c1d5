"""
Study Portal Backend — Document Route Handlers
================================================

What:  Upload, list, download and delete study documents (PDFs and friends).
How:   Upload reads the complete request body and hands it to the
       MultipartDecoder together with the Content-Type header; the decoded
       form goes to DocumentService.
Who:   Called by the portal frontend.

Request Flow (POST /api/pdfs):
    1. Client sends multipart/form-data: file + departmentId + name [+ description]
    2. Whole body is read into memory (no streaming)
    3. MultipartDecoder: boundary → parts → fields / stored files
    4. DocumentService validates the fields and registers the first file
    5. Return 201 Created with the DocumentResponse
    Errors propagate to the global handlers in main.py.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import FileResponse

from studyportal.exceptions import NotFoundError, ValidationError
from studyportal.schemas.document import (
    DocumentListResponse,
    DocumentResponse,
    ErrorResponse,
    MessageResponse,
)
from studyportal.services.document_service import document_service
from studyportal.services.file_service import upload_storage
from studyportal.services.multipart_decoder import multipart_decoder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Documents"])


@router.post(
    "/pdfs",
    status_code=201,
    response_model=DocumentResponse,
    responses={
        201: {"description": "Document uploaded", "model": DocumentResponse},
        400: {"description": "Malformed form data or missing fields", "model": ErrorResponse},
        500: {"description": "Upload could not be processed", "model": ErrorResponse},
    },
    summary="Upload a study document",
    description=(
        "Accepts multipart/form-data with a file part and the departmentId, name "
        "and optional description fields. Only the first file part is registered."
    ),
)
async def upload_document(request: Request) -> DocumentResponse:
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" not in content_type.lower():
        raise ValidationError(
            message="Request must be multipart/form-data",
            field="content-type",
            context={"content_type": content_type},
        )

    body = await request.body()
    logger.info("Received upload request: %d bytes", len(body))

    form = await multipart_decoder.decode(body, content_type)
    document = await document_service.create_from_upload(form)
    return DocumentResponse.model_validate(document)


@router.get(
    "/pdfs",
    response_model=DocumentListResponse,
    summary="List documents",
    description="Returns every document, or only those of one department.",
)
async def list_documents(
    department: Optional[int] = Query(
        default=None,
        ge=1,
        description="Only return documents belonging to this department id",
    ),
) -> DocumentListResponse:
    documents = await document_service.list_documents(department_id=department)
    return DocumentListResponse(
        documents=[DocumentResponse.model_validate(d) for d in documents],
        total_count=len(documents),
    )


@router.get(
    "/pdfs/{document_id}/download",
    responses={
        200: {"description": "The stored file, named after the original upload"},
        404: {"description": "Document or stored file not found", "model": ErrorResponse},
    },
    summary="Download a document",
)
async def download_document(document_id: int) -> FileResponse:
    """
    Serve the stored payload with the client's original filename.

    A registry entry whose payload has vanished from disk is reported as a
    missing file, not a server error.
    """
    document = await document_service.get_document(document_id)
    path = upload_storage.path_for(document.filename)
    if not path.exists():
        logger.warning("Stored file missing for document %d: %s", document.id, document.filename)
        raise NotFoundError(resource="file", resource_id=document.filename)

    return FileResponse(path=str(path), filename=document.original_filename)


@router.delete(
    "/pdfs/{document_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Document not found", "model": ErrorResponse}},
    summary="Delete a document",
)
async def delete_document(document_id: int) -> MessageResponse:
    await document_service.delete_document(document_id)
    return MessageResponse(message="Document deleted successfully")
