"""
Study Portal Backend — Pydantic Request/Response Schemas
==========================================================

What:  Pydantic models defining the API contract for the document endpoints.
How:   FastAPI uses these models to serialize responses and generate the
       OpenAPI documentation.
Who:   Used by route handlers as return types.

Design Decision:
    Schemas are separate from the in-memory Document record so the API
    contract controls exactly which fields are exposed and how they are named
    on the wire (camelCase, matching the portal frontend).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ══════════════════════════════════════════════════════════════════════════
# Response Models — What the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


class DocumentResponse(BaseModel):
    """
    What:  Full representation of an uploaded document.
    Who:   Returned by POST /api/pdfs (201) and as items of GET /api/pdfs.
    """
    id: int = Field(description="Auto-incrementing document identifier")
    name: str = Field(description="Display name entered by the uploader")
    description: Optional[str] = Field(default=None, description="Optional free-text description")
    filename: str = Field(description="Storage name of the payload in the uploads directory")
    original_filename: str = Field(description="Filename the client uploaded")
    size: int = Field(description="Payload size in bytes")
    department_id: int = Field(description="Owning department")
    uploaded_at: datetime = Field(description="Upload time (UTC ISO 8601)")

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class DocumentListResponse(BaseModel):
    """
    What:  Wrapper for the document list endpoint.
    Who:   Returned by GET /api/pdfs.
    """
    documents: List[DocumentResponse] = Field(description="Documents in upload order")
    total_count: int = Field(description="Number of documents returned")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(BaseModel):
    """Plain acknowledgement, e.g. after DELETE /api/pdfs/{id}."""
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models — Consistent error format across all endpoints
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "malformed_multipart",
            "message": "No boundary found in Content-Type header",
            "details": {"content_type": "multipart/form-data"},
            "request_id": "1f0c9a2e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service status.
    Who:   Returned by GET /health for monitoring and container health checks.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    uploads: str = Field(description="Uploads directory state: writable, unavailable")
    documents: int = Field(description="Number of documents in the registry")
    uptime_seconds: float = Field(description="Seconds since service started")
