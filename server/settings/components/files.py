"""File storage limits and public URL settings."""

from server.settings.components import config

# Single upload ceiling: 50 MB
FILES_MAX_UPLOAD_BYTES = config(
    'FILES_MAX_UPLOAD_BYTES',
    cast=int,
    default=50 * 1024 * 1024,
)

# Total storage per account: 2 GiB
FILES_TOTAL_QUOTA_BYTES = config(
    'FILES_TOTAL_QUOTA_BYTES',
    cast=int,
    default=2 * 1024 * 1024 * 1024,
)

# Public blob URLs: {endpoint}/storage/buckets/{bucket}/files/{id}/view
FILES_PUBLIC_ENDPOINT = config(
    'FILES_PUBLIC_ENDPOINT',
    default='http://localhost:9000',
)
FILES_PROJECT_ID = config('FILES_PROJECT_ID', default='file-vault')
