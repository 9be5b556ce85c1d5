"""
Study Portal Backend — Application Package Initializer
========================================================

What: Marks the `studyportal` directory as a Python package.
Who:  Imported by uvicorn (`studyportal.main:app`), pytest, and every module
      via `from studyportal.config import settings`.

Architecture Note:
    The backend is layered the same way for every request:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Decoder, Storage, Docs) │  ← Parsing, persistence, rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← In-memory records + Pydantic
    └─────────────────────────────────────┘

    The multipart decoder lives in the services layer: routes hand it the raw
    request body and Content-Type header, and get back plain field values and
    stored file records.
"""

__version__ = "1.0.0"
