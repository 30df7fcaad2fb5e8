"""Metadata derivation utilities for files."""

from pathlib import PurePosixPath
from typing import Final

from django.conf import settings

from server.apps.files.models import FileType

_EXTENSION_TYPES: Final[dict[str, FileType]] = {
    **dict.fromkeys(
        (
            'pdf', 'doc', 'docx', 'txt', 'xls', 'xlsx', 'csv', 'rtf',
            'ods', 'ppt', 'odp', 'md', 'html', 'htm', 'epub', 'pages',
            'fig', 'psd', 'ai', 'indd', 'xd', 'sketch', 'afdesign',
            'afphoto',
        ),
        FileType.DOCUMENT,
    ),
    **dict.fromkeys(
        ('jpg', 'jpeg', 'png', 'gif', 'bmp', 'svg', 'webp'),
        FileType.IMAGE,
    ),
    **dict.fromkeys(
        ('mp4', 'avi', 'mov', 'mkv', 'webm'),
        FileType.VIDEO,
    ),
    **dict.fromkeys(
        ('mp3', 'wav', 'ogg', 'flac'),
        FileType.AUDIO,
    ),
}


def get_file_extension(filename: str) -> str:
    """Get file extension from filename.

    Args:
        filename: Filename (e.g., 'document.pdf').

    Returns:
        Extension without dot, lowercase (e.g., 'pdf').
        Returns empty string if no extension.
    """
    extension = PurePosixPath(filename).suffix
    return extension.lstrip('.').lower()


def get_file_type(filename: str) -> tuple[FileType, str]:
    """Derive category and extension from a filename.

    Example: 'Report.PDF' -> (FileType.DOCUMENT, 'pdf')

    Args:
        filename: Stored file name.

    Returns:
        Tuple of file category and lowercase extension.
    """
    extension = get_file_extension(filename)
    return _EXTENSION_TYPES.get(extension, FileType.OTHER), extension


def construct_file_url(blob_id: str) -> str:
    """Build the public URL of a blob.

    The URL depends only on the blob id and the configured
    endpoint, bucket and project.

    Args:
        blob_id: Blob id in the object store.

    Returns:
        URL of the blob's view endpoint.
    """
    endpoint = settings.FILES_PUBLIC_ENDPOINT.rstrip('/')
    bucket = settings.STORAGES['default']['OPTIONS']['bucket_name']
    return (
        f'{endpoint}/storage/buckets/{bucket}/files/{blob_id}/view'
        f'?project={settings.FILES_PROJECT_ID}'
    )
