"""
Study Portal Backend — Multipart Form Decoder
===============================================

What:  Decodes a multipart/form-data request body into text fields and stored
       files without a multipart library.
How:   Works on bytes from start to finish: the body is split on the
       "--<boundary>" delimiter, each part is split once on its first blank
       line, and file payloads are handed to UploadStorage untouched.
Who:   Called by the upload route with `await request.body()` and the
       Content-Type header.
When:  Once per upload request, after the whole body has been received.

Wire Format (RFC 7578):
    --XYZ\r\n
    Content-Disposition: form-data; name="title"\r\n
    \r\n
    Algoritmi EKG\r\n
    --XYZ\r\n
    Content-Disposition: form-data; name="file"; filename="doc.pdf"\r\n
    Content-Type: application/pdf\r\n
    \r\n
    <raw bytes>\r\n
    --XYZ--\r\n

Limits:
    None. Body size, part count and file size are unbounded here; the whole
    body is already in memory by the time decode() runs.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional

from studyportal.exceptions import (
    MalformedPartError,
    MissingBoundaryError,
    UploadProcessingError,
)
from studyportal.schemas.upload import DecodedForm, FileRecord
from studyportal.services.file_service import UploadStorage, upload_storage

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
HEADER_SEPARATOR = b"\r\n\r\n"

# boundary="quoted value" or boundary=token (up to the next ';')
_BOUNDARY_RE = re.compile(r'boundary=(?:"([^"]+)"|([^;]+))', re.IGNORECASE)
# \b keeps name= from matching inside filename=
_NAME_RE = re.compile(r'\bname="([^"]+)"', re.IGNORECASE)
# filename="quoted" or filename=token; either form makes the part a file
_FILENAME_RE = re.compile(r'\bfilename=(?:"([^"]*)"|([^;\r\n]*))', re.IGNORECASE)


@dataclass
class Part:
    """One section of a multipart body, split into its two blocks."""

    headers: str
    body: bytes

    @property
    def name(self) -> Optional[str]:
        match = _NAME_RE.search(self.headers)
        return match.group(1) if match else None

    @property
    def filename(self) -> Optional[str]:
        match = _FILENAME_RE.search(self.headers)
        if match is None:
            return None
        if match.group(1) is not None:
            return match.group(1)
        return match.group(2).strip()


def extract_boundary(content_type: Optional[str]) -> bytes:
    """
    Pull the boundary token out of a Content-Type header.

    The token is returned as bytes via latin-1, which maps each header
    character to exactly one byte, so the delimiter matches the body as sent.

    Raises:
        MissingBoundaryError if there is no non-empty boundary parameter.
    """
    match = _BOUNDARY_RE.search(content_type or "")
    if not match:
        raise MissingBoundaryError(content_type=content_type)

    boundary = match.group(1) if match.group(1) is not None else match.group(2).strip()
    if not boundary:
        raise MissingBoundaryError(content_type=content_type)

    try:
        return boundary.encode("latin-1")
    except UnicodeEncodeError as e:
        raise MissingBoundaryError(content_type=content_type) from e


def strip_line_terminator(data: bytes) -> bytes:
    """Remove exactly one trailing CRLF, the delimiter's leading line break."""
    if data.endswith(CRLF):
        return data[: -len(CRLF)]
    return data


def iter_sections(body: bytes, boundary: bytes) -> Iterator[bytes]:
    """
    Yield the raw bytes between consecutive delimiters.

    The preamble before the first delimiter is never yielded. A section that
    starts with "--" follows the closing delimiter and ends iteration, so the
    epilogue is ignored too. Whitespace-only sections are skipped.
    """
    sections = body.split(b"--" + boundary)
    for section in sections[1:]:
        if section.startswith(b"--"):
            return
        if not section.strip():
            continue
        yield section


def parse_part(section: bytes) -> Part:
    """
    Split one section into headers and body on its FIRST blank line.

    Everything after that first separator is body, including any further
    CRLFCRLF sequences inside binary payloads.

    Raises:
        MalformedPartError if the section has no header/body separator.
    """
    if section.startswith(CRLF):
        section = section[len(CRLF):]

    header_block, separator, body_block = section.partition(HEADER_SEPARATOR)
    if not separator:
        raise MalformedPartError(
            message="Multipart section has no header/body separator",
            context={"section_length": len(section)},
        )

    return Part(
        headers=header_block.decode("utf-8", errors="replace"),
        body=strip_line_terminator(body_block),
    )


def split_parts(body: bytes, boundary: bytes) -> List[Part]:
    """
    Parse every well-formed section of a body; malformed ones are skipped.
    """
    parts = []
    for index, section in enumerate(iter_sections(body, boundary)):
        try:
            parts.append(parse_part(section))
        except MalformedPartError as e:
            logger.debug("Skipping multipart section %d: %s", index, e.message)
    return parts


class MultipartDecoder:
    """
    Decodes multipart/form-data bodies and persists their files.

    Classification of each part (by its Content-Disposition attributes):
        filename="x.pdf"  → file, stored and keyed by "x.pdf"
        filename=""       → no file chosen in the browser, skipped
        name="title" only → text field, keyed by "title"
        neither           → malformed, skipped

    Error Handling Strategy:
        MissingBoundaryError propagates before the body is touched. Anything
        that goes wrong afterwards becomes UploadProcessingError, and every
        payload this call already wrote is removed first.
    """

    def __init__(self, storage: Optional[UploadStorage] = None):
        self.storage = storage or upload_storage

    async def decode(self, body: bytes, content_type: Optional[str]) -> DecodedForm:
        """
        Decode a complete request body.

        Args:
            body: The raw request body, read to end-of-stream
            content_type: The request's Content-Type header

        Returns:
            DecodedForm with text fields and stored file records

        Raises:
            MissingBoundaryError: Content-Type has no boundary parameter
            UploadProcessingError: Parsing or persisting failed
        """
        boundary = extract_boundary(content_type)

        form = DecodedForm()
        stored: List[FileRecord] = []

        try:
            for part in split_parts(body, boundary):
                try:
                    await self._apply_part(part, form, stored)
                except MalformedPartError as e:
                    logger.debug("Skipping multipart part: %s", e.message)
        except Exception as e:
            logger.error(
                "Multipart decode failed after storing %d file(s): %s",
                len(stored),
                str(e),
            )
            for record in stored:
                await self.storage.cleanup_file(record.storage_path)
            raise UploadProcessingError(
                context={"error": str(e), "body_length": len(body)},
            ) from e

        logger.info(
            "Decoded multipart body: %d field(s), %d file(s), %d bytes",
            len(form.fields),
            len(form.files),
            len(body),
        )
        return form

    async def _apply_part(
        self,
        part: Part,
        form: DecodedForm,
        stored: List[FileRecord],
    ) -> None:
        filename = part.filename
        if filename is not None:
            if not filename:
                logger.debug("Skipping file part with empty filename (name=%r)", part.name)
                return
            record = await self.storage.store(part.body, filename)
            stored.append(record)
            superseded = form.files.get(filename)
            if superseded is not None:
                await self.storage.cleanup_file(superseded.storage_path)
            form.files[filename] = record
            return

        name = part.name
        if name is not None:
            form.fields[name] = part.body.decode("utf-8", errors="replace")
            return

        raise MalformedPartError(
            message="Multipart part has neither a name nor a filename attribute",
            context={"headers": part.headers},
        )


# ── Singleton Instance ────────────────────────────────────────────────────
multipart_decoder = MultipartDecoder()
