"""Infrastructure layer for drive app.

This package contains integrations with external systems:
- Local blob storage for file content
- Metadata extraction and name validation

Keep infrastructure concerns separate from business logic.
"""
