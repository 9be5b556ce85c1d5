"""
Study Portal Backend — Test Configuration (conftest.py)
=========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment overrides are applied BEFORE any studyportal import so the
       module-level singletons never touch the real ./uploads directory.

Fixtures (function-scoped):
    ├── temp_uploads: Temporary uploads directory
    ├── token_factory: Deterministic storage-name tokens (000...1, 000...2, ...)
    ├── storage: UploadStorage bound to temp_uploads + token_factory
    ├── decoder: MultipartDecoder writing through `storage`
    ├── registry: DocumentService writing through `storage`
    ├── multipart_body: Builder for raw multipart/form-data bodies
    └── test_client: HTTPX AsyncClient wired to fresh service instances
"""

import itertools
import os
import tempfile
from typing import Dict, List, Optional, Union

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

os.environ["UPLOADS_DIR"] = tempfile.mkdtemp(prefix="studyportal_test_")
os.environ["LOG_LEVEL"] = "WARNING"


# ══════════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════════

Part = Dict[str, Union[str, bytes, None]]


def build_multipart_body(parts: List[Part], boundary: str = "XYZ") -> bytes:
    """
    Assemble a multipart/form-data body the way a browser sends it.

    Each part is a dict with:
        name:         name= attribute (omit for a part without one)
        filename:     filename= attribute (omit for plain fields)
        content:      str (encoded UTF-8) or raw bytes
        content_type: optional Content-Type header for the part
    """
    delimiter = f"--{boundary}".encode("latin-1")
    chunks = []
    for part in parts:
        disposition = "Content-Disposition: form-data"
        if part.get("name") is not None:
            disposition += f'; name="{part["name"]}"'
        if part.get("filename") is not None:
            disposition += f'; filename="{part["filename"]}"'
        headers = [disposition]
        if part.get("content_type"):
            headers.append(f"Content-Type: {part['content_type']}")

        content = part.get("content", b"")
        if isinstance(content, str):
            content = content.encode("utf-8")

        chunks.append(
            delimiter
            + b"\r\n"
            + "\r\n".join(headers).encode("utf-8")
            + b"\r\n\r\n"
            + content
            + b"\r\n"
        )
    chunks.append(delimiter + b"--\r\n")
    return b"".join(chunks)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_uploads(tmp_path):
    """A fresh uploads directory for each test."""
    uploads_dir = tmp_path / "uploads"
    uploads_dir.mkdir()
    return uploads_dir


@pytest.fixture
def token_factory():
    """Predictable 32-hex-digit tokens: 00..01, 00..02, ..."""
    counter = itertools.count(1)
    return lambda: f"{next(counter):032x}"


@pytest.fixture
def storage(temp_uploads, token_factory):
    from studyportal.services.file_service import UploadStorage
    return UploadStorage(uploads_dir=str(temp_uploads), token_factory=token_factory)


@pytest.fixture
def decoder(storage):
    from studyportal.services.multipart_decoder import MultipartDecoder
    return MultipartDecoder(storage=storage)


@pytest.fixture
def registry(storage):
    from studyportal.services.document_service import DocumentService
    return DocumentService(storage=storage)


@pytest.fixture
def multipart_body():
    """
    The body builder as a fixture.

    Usage:
        def test_x(multipart_body):
            body = multipart_body([{"name": "title", "content": "EKG"}])
    """
    def _build(parts: List[Part], boundary: Optional[str] = "XYZ") -> bytes:
        return build_multipart_body(parts, boundary=boundary)
    return _build


@pytest_asyncio.fixture
async def test_client(monkeypatch, storage, decoder, registry):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    The route modules' singletons are swapped for the per-test instances so
    every test starts with an empty registry and its own uploads directory.
    """
    from studyportal.main import app
    from studyportal.routes import documents, health

    monkeypatch.setattr(documents, "upload_storage", storage)
    monkeypatch.setattr(documents, "multipart_decoder", decoder)
    monkeypatch.setattr(documents, "document_service", registry)
    monkeypatch.setattr(health, "upload_storage", storage)
    monkeypatch.setattr(health, "document_service", registry)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
