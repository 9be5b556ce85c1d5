"""
Study Portal Backend — Multipart Decoder Output Schemas
=========================================================

What:  Pydantic models returned by MultipartDecoder.decode().
Who:   Produced by the decoder, consumed by DocumentService and route handlers.
When:  Exist for the duration of one upload request; only the payload bytes
       written to the uploads directory outlive it.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class FileRecord(BaseModel):
    """
    What:  Metadata for one uploaded payload that has been written to disk.

    The raw bytes are not kept on the record: they are persisted under
    `storage_name` before the record is created, and `size_in_bytes` is the
    exact length that was written.
    """
    storage_name: str = Field(description="Generated file name (random hex + extension)")
    original_filename: str = Field(description="filename= attribute as sent by the client")
    size_in_bytes: int = Field(ge=0, description="Payload length in bytes")
    storage_path: str = Field(description="Absolute path of the stored payload")


class DecodedForm(BaseModel):
    """
    What:  Everything a multipart/form-data body decoded to.

    fields: name= attribute → text value (last part with a given name wins)
    files:  original filename → FileRecord (last part with a given filename wins)

    Both dicts keep insertion order, which is the order parts appeared in the
    body. Single-file endpoints use first_file().
    """
    fields: Dict[str, str] = Field(default_factory=dict)
    files: Dict[str, FileRecord] = Field(default_factory=dict)

    def first_file(self) -> Optional[FileRecord]:
        """Return the first uploaded file in body order, or None."""
        return next(iter(self.files.values()), None)
