"""Business logic layer for files app.

This package contains all business logic for file operations:
- Scoped read queries (owner or shared-with email)
- Two-phase upload and delete with compensation
- Rename and sharing updates guarded by ownership
- Per-category storage usage

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
