# Services package init
"""
Study Portal Backend — Services Layer
=======================================

Service Inventory:
    - UploadStorage (file_service): storage names, binary writes, cleanup
    - MultipartDecoder (multipart_decoder): request body → fields + stored files
    - DocumentService (document_service): in-memory document registry

Each module exposes a singleton (upload_storage, multipart_decoder,
document_service) used by the routes; tests build their own instances with a
temporary uploads directory.
"""
