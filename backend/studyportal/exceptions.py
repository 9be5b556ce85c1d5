"""
Study Portal Backend — Custom Exception Hierarchy
===================================================

What:  Application-specific exceptions for the upload pipeline and the
       document registry.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) map them to
       HTTP status codes and structured JSON error bodies.
Who:   Raised by services; caught by global handlers.

Exception Hierarchy:
    PortalError (base)
    ├── MalformedMultipartError      → 400 Bad Request
    │   └── MissingBoundaryError     → 400 Bad Request (no boundary= parameter)
    ├── MalformedPartError           → never leaves the decoder (part skipped)
    ├── UploadProcessingError        → 500 Internal Server Error (decode aborted)
    ├── ValidationError              → 400 Bad Request
    ├── NotFoundError                → 404 Not Found
    └── FileStorageError             → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class PortalError(Exception):
    """
    Base exception for all study portal application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only for client errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class MalformedMultipartError(PortalError):
    """
    Raised when a multipart/form-data request cannot be decoded at all.

    HTTP: 400 Bad Request. The client has to resubmit a well-formed body.
    """

    def __init__(
        self,
        message: str = "Malformed multipart form data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MissingBoundaryError(MalformedMultipartError):
    """
    Raised when the Content-Type header carries no usable `boundary=` parameter.

    When:  Before any byte of the body is inspected.
    HTTP:  400 Bad Request
    """

    def __init__(
        self,
        content_type: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if content_type is not None:
            ctx["content_type"] = content_type
        super().__init__(
            message="No boundary found in Content-Type header",
            context=ctx,
        )


class MalformedPartError(PortalError):
    """
    Raised for a single part that has neither a `filename` nor a `name`
    attribute, or no header/body separator.

    The decoder catches this and skips the part; callers never see it.
    """

    def __init__(
        self,
        message: str = "Multipart section is malformed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UploadProcessingError(PortalError):
    """
    Raised when decoding or persisting an upload fails unexpectedly.

    What:  Wraps the underlying exception (chained via `raise ... from`).
    When:  Disk full, permission denied, or any other failure after the
           boundary has been extracted.
    HTTP:  500 Internal Server Error

    No partial result is returned: payloads already written by the failing
    decode call are removed before this is raised.
    """

    def __init__(
        self,
        message: str = "Error processing form data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(PortalError):
    """
    Raised when client input fails validation.

    When:  Missing upload, missing document name, non-numeric department id,
           wrong Content-Type for an upload endpoint.
    HTTP:  400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(PortalError):
    """
    Raised when a requested resource does not exist.

    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(PortalError):
    """
    Raised when file system operations fail.

    When:  Disk full, permission denied, directory not writable, I/O error.
    HTTP:  500 Internal Server Error. File system paths stay in the logs.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
