# Middleware package init
"""
Study Portal Backend — Middleware Package
===========================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: correlation ID for log lines and error bodies
    2. Logging: one access log line per request, with the request ID
    3. CORS: FastAPI's CORSMiddleware (handles preflight)

Neither middleware touches the request body; the upload route reads it whole.
"""
