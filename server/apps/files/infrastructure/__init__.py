"""Infrastructure layer for files app.

This package contains integrations with external systems:
- S3-compatible object store backend for blobs
- File type and URL derivation for metadata records

Keep infrastructure concerns separate from business logic.
"""
