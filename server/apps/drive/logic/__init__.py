"""Business logic layer for drive app.

This package contains all business logic for the item tree:
- Folder and file record creation, updates, moves, deletion
- Listing views, breadcrumbs and storage usage
- Upload/download orchestration between the tree and the blob store
- Cascading trash operations

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
