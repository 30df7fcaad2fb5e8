"""Shared fixtures for files app tests."""

import uuid

import pytest
from django.core.files.base import ContentFile

from server.apps.files.infrastructure.metadata import (
    construct_file_url,
    get_file_type,
)
from server.apps.files.models import File


@pytest.fixture
def make_file(db):
    """Create file records without touching the object store.

    Returns:
        Function creating a File for an owner.
    """
    def _make(owner, name='notes.txt', size_bytes=100):
        blob_id = uuid.uuid4().hex
        file_type, extension = get_file_type(name)
        return File.objects.create(
            name=name,
            type=file_type,
            extension=extension,
            size_bytes=size_bytes,
            url=construct_file_url(blob_id),
            owner=owner,
            account_id=owner.account_id,
            bucket_object_id=blob_id,
        )

    return _make


@pytest.fixture
def sample_file_content():
    """Sample file content for testing.

    Returns:
        ContentFile with test data.
    """
    return ContentFile(b'test file content', name='test.txt')
