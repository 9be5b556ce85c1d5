"""
Study Portal Backend — Upload Storage Service
===============================================

What:  Writes uploaded payloads to the uploads directory under generated
       names, resolves stored files for download, and cleans them up.
How:   Storage names are a random hex token plus a sanitized extension taken
       from the client's filename; bytes are written with aiofiles.
Who:   Called by MultipartDecoder for every file part, and by DocumentService
       and the document routes for cleanup and downloads.

Security Model:
    1. Random storage name: no user input reaches the file system path
    2. Extension whitelist pattern: only ".<alnum>{1,16}" is kept
    3. path_for() refuses any name that resolves outside the uploads directory

    Layout is flat:
        uploads/
        ├── 3f9a0c6be1d24a7f8e1b0c2d4e6f8a1b.pdf
        └── 0b8e6d4c2a1f4e3d9c7b5a3f1e0d2c4b.docx
"""

import logging
import os
import re
import uuid
from pathlib import Path
from typing import Callable, Optional

import aiofiles

from studyportal.config import settings
from studyportal.exceptions import FileStorageError, ValidationError
from studyportal.schemas.upload import FileRecord

logger = logging.getLogger(__name__)

# A kept extension is a dot followed by 1-16 ASCII letters or digits.
_SAFE_EXTENSION = re.compile(r"^\.[A-Za-z0-9]{1,16}$")


def _random_token() -> str:
    """32 lowercase hex characters (128 random bits)."""
    return uuid.uuid4().hex


class UploadStorage:
    """
    Manages the uploads directory.

    Lifecycle of an uploaded payload:
        1. MultipartDecoder finds a file part → UploadStorage.store()
        2. Storage name generated from token_factory() + safe extension
        3. Bytes written in binary mode
        4. FileRecord returned to the decoder
        5. On a failed request: cleanup_file() removes the payload
    """

    def __init__(
        self,
        uploads_dir: Optional[str] = None,
        token_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Args:
            uploads_dir:   Override the default directory (used in tests).
                           If None, uses settings.uploads_dir.
            token_factory: Callable returning the random part of storage names.
                           Tests inject a deterministic one.
        """
        self.uploads_dir = Path(uploads_dir or settings.uploads_dir).resolve()
        self.token_factory = token_factory or _random_token
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        logger.info("UploadStorage initialized with uploads_dir=%s", self.uploads_dir)

    @staticmethod
    def safe_extension(filename: str) -> str:
        """
        Derive a storage-safe extension from a client filename.

        Browsers on Windows may send a full path, so both separators are
        honoured before the suffix is taken. Returns "" when the suffix is
        missing or contains anything but letters and digits.
        """
        basename = filename.replace("\\", "/").rsplit("/", 1)[-1]
        ext = os.path.splitext(basename)[1].lower()
        if not _SAFE_EXTENSION.match(ext):
            return ""
        return ext

    def generate_storage_name(self, original_filename: str) -> str:
        """e.g. "Algoritmi EKG.pdf" → "3f9a0c6be1d24a7f8e1b0c2d4e6f8a1b.pdf"."""
        return f"{self.token_factory()}{self.safe_extension(original_filename)}"

    def path_for(self, storage_name: str) -> Path:
        """
        Resolve a storage name to its absolute path inside the uploads directory.

        Raises:
            ValidationError if the name would escape the uploads directory.
        """
        candidate = (self.uploads_dir / storage_name).resolve()
        if candidate.parent != self.uploads_dir:
            raise ValidationError(
                message="Invalid file path",
                field="filename",
                context={"storage_name": storage_name},
            )
        return candidate

    async def store(self, content: bytes, original_filename: str) -> FileRecord:
        """
        Write one payload to disk under a freshly generated name.

        Returns:
            FileRecord describing the stored payload.

        Raises:
            FileStorageError if the directory or the file cannot be written.
        """
        storage_name = self.generate_storage_name(original_filename)
        absolute_path = self.uploads_dir / storage_name

        try:
            # The directory may have been removed since startup.
            self.uploads_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded file. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            ) from e

        logger.info(
            "File stored: %s (%d bytes, original=%r)",
            storage_name,
            len(content),
            original_filename,
        )
        return FileRecord(
            storage_name=storage_name,
            original_filename=original_filename,
            size_in_bytes=len(content),
            storage_path=str(absolute_path),
        )

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a stored payload (best effort).

        Missing files are ignored and other failures are logged, never raised:
        cleanup runs on error paths whose original exception must win.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
upload_storage = UploadStorage()
