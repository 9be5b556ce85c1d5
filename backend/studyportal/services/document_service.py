"""
Study Portal Backend — Document Service (Registry)
====================================================

What:  In-memory registry of uploaded study documents.
How:   Documents are kept in a dict keyed by an integer id handed out by a
       sequence generator owned by the service. An asyncio.Lock serialises
       mutations so concurrent requests never observe a half-applied change.
Who:   Called by the document route handlers.

Orchestration Flow (POST /api/pdfs):
    ┌──────────┐    ┌─────────────────┐    ┌──────────────────┐
    │  Route   │───▶│ MultipartDecoder│───▶│ DocumentService  │
    │ (body)   │    │ (fields, files) │    │ (validate, store)│
    └──────────┘    └─────────────────┘    └──────────────────┘

    The decoder has already written every uploaded payload when the service
    runs. If the form fails validation, those payloads are removed again.

Persistence:
    None. The registry lives and dies with the process.
"""

import asyncio
import itertools
import logging
from typing import Dict, List, Optional

from studyportal.exceptions import NotFoundError, ValidationError
from studyportal.models.document import Document
from studyportal.schemas.upload import DecodedForm
from studyportal.services.file_service import UploadStorage, upload_storage

logger = logging.getLogger(__name__)


class DocumentService:
    """
    Business logic for document records.

    Responsibilities:
        - create_from_upload(): validate a decoded form and register its first file
        - get_document() / list_documents(): lookups, optionally filtered by department
        - delete_document(): remove the record and its stored payload
    """

    def __init__(self, storage: Optional[UploadStorage] = None):
        self.storage = storage or upload_storage
        self._documents: Dict[int, Document] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def create_from_upload(self, form: DecodedForm) -> Document:
        """
        Register the first uploaded file of a decoded form as a document.

        Required fields: departmentId (positive integer) and name.
        Optional field:  description (empty string means none).

        Raises:
            ValidationError: No file, or a required field missing/invalid.
                             Every payload the form references is cleaned up.
        """
        try:
            file = form.first_file()
            if file is None:
                raise ValidationError(message="No file uploaded", field="file")

            department_id = self._parse_department_id(form.fields.get("departmentId"))

            name = form.fields.get("name", "").strip()
            if not name:
                raise ValidationError(message="Document name is required", field="name")
        except ValidationError:
            for record in form.files.values():
                await self.storage.cleanup_file(record.storage_path)
            raise

        description = form.fields.get("description") or None

        async with self._lock:
            document = Document(
                id=next(self._ids),
                name=name,
                description=description,
                filename=file.storage_name,
                original_filename=file.original_filename,
                size=file.size_in_bytes,
                department_id=department_id,
            )
            self._documents[document.id] = document

        # Only the first file is registered; any others are not kept.
        for record in list(form.files.values())[1:]:
            await self.storage.cleanup_file(record.storage_path)

        logger.info(
            "Document registered: id=%d department=%d file=%s (%d bytes)",
            document.id,
            document.department_id,
            document.filename,
            document.size,
        )
        return document

    @staticmethod
    def _parse_department_id(raw: Optional[str]) -> int:
        if raw is None or not raw.strip():
            raise ValidationError(message="Department ID is required", field="departmentId")
        try:
            department_id = int(raw.strip())
        except ValueError:
            raise ValidationError(
                message="Department ID must be an integer",
                field="departmentId",
                context={"value": raw},
            )
        if department_id < 1:
            raise ValidationError(
                message="Department ID must be positive",
                field="departmentId",
                context={"value": raw},
            )
        return department_id

    async def get_document(self, document_id: int) -> Document:
        """
        Raises:
            NotFoundError if no document has this id.
        """
        document = self._documents.get(document_id)
        if document is None:
            raise NotFoundError(resource="Document", resource_id=str(document_id))
        return document

    async def list_documents(self, department_id: Optional[int] = None) -> List[Document]:
        """All documents in id order, or only those of one department."""
        documents = sorted(self._documents.values(), key=lambda d: d.id)
        if department_id is not None:
            documents = [d for d in documents if d.department_id == department_id]
        return documents

    async def delete_document(self, document_id: int) -> Document:
        """
        Remove a document and its stored payload.

        Raises:
            NotFoundError if no document has this id.
        """
        async with self._lock:
            document = self._documents.pop(document_id, None)
        if document is None:
            raise NotFoundError(resource="Document", resource_id=str(document_id))

        await self.storage.cleanup_file(str(self.storage.uploads_dir / document.filename))
        logger.info("Document deleted: id=%d file=%s", document.id, document.filename)
        return document

    def count(self) -> int:
        return len(self._documents)


# ── Singleton Instance ────────────────────────────────────────────────────
document_service = DocumentService()
