"""Tests for metadata utilities."""

import pytest

from server.apps.files.infrastructure.metadata import (
    construct_file_url,
    get_file_extension,
    get_file_type,
)
from server.apps.files.models import FileType


@pytest.mark.parametrize(('filename', 'expected'), [
    ('report.pdf', (FileType.DOCUMENT, 'pdf')),
    ('Holiday.JPG', (FileType.IMAGE, 'jpg')),
    ('clip.mkv', (FileType.VIDEO, 'mkv')),
    ('song.flac', (FileType.AUDIO, 'flac')),
    ('archive.zip', (FileType.OTHER, 'zip')),
    ('Makefile', (FileType.OTHER, '')),
])
def test_get_file_type(filename, expected):
    """Test category and extension derivation from the name."""
    assert get_file_type(filename) == expected


def test_get_file_extension():
    """Test extension extraction uses the last suffix."""
    assert get_file_extension('backup.tar.GZ') == 'gz'
    assert get_file_extension('README') == ''


def test_construct_file_url(settings):
    """Test URL depends only on blob id and configuration."""
    settings.FILES_PUBLIC_ENDPOINT = 'https://cdn.example.com/'
    settings.FILES_PROJECT_ID = 'vault'

    url = construct_file_url('abc123')

    assert url == (
        'https://cdn.example.com/storage/buckets/file-vault/files/'
        'abc123/view?project=vault'
    )
