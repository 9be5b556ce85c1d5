"""
Study Portal Backend — Document Record
========================================

What:  The record kept by the in-memory document registry for each upload.
Who:   Created and owned by DocumentService; serialized through
       schemas.document.DocumentResponse.

Lifecycle:
    1. Upload request decoded → payload stored under a generated name
    2. DocumentService.create_from_upload() builds a Document with the next id
    3. Document lives in the registry until deleted (or the process exits;
       the registry is not persisted)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class Document:
    """
    One uploaded study document.

    Attributes:
        id:                Registry-assigned identifier, starting at 1
        name:              Display name entered by the uploader
        filename:          Storage name of the payload in the uploads directory
        original_filename: Filename the client sent in Content-Disposition
        size:              Payload size in bytes
        department_id:     Owning department
        description:       Optional free text
        uploaded_at:       Creation time (UTC)
    """

    id: int
    name: str
    filename: str
    original_filename: str
    size: int
    department_id: int
    description: Optional[str] = None
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return (
            f"<Document(id={self.id}, name={self.name!r}, "
            f"filename={self.filename!r}, department_id={self.department_id})>"
        )
