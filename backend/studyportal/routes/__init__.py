# Routes package init
"""
Study Portal Backend — API Routes Package
===========================================

Route Inventory:
    - documents.py: POST   /api/pdfs                 (multipart upload)
                    GET    /api/pdfs                 (list, ?department=<id>)
                    GET    /api/pdfs/{id}/download   (stored file)
                    DELETE /api/pdfs/{id}            (record + stored file)
    - health.py:    GET    /health                   (service health check)

Routes stay thin: they read the request, call a service, and shape the
response. Errors are left to the global handlers in main.py.
"""
