"""Tests for sweep_orphaned_blobs management command."""

from datetime import timedelta
from io import StringIO
from unittest import mock

import pytest
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.core.management import call_command
from django.utils import timezone

from server.apps.files.infrastructure.storage import FileStorage
from server.apps.files.logic.file_operations import upload_file


@pytest.mark.django_db
class TestSweepOrphanedBlobsCommand:
    """Tests for sweep_orphaned_blobs management command."""

    def test_sweep_deletes_unreferenced_blobs(self, account, mock_s3):
        """Test blobs without records are deleted, others kept."""
        kept = upload_file(account, ContentFile(b'kept'), 'kept.txt')
        orphan_id = default_storage.put(ContentFile(b'leaked'), 'leaked.txt')

        out = StringIO()
        call_command('sweep_orphaned_blobs', '--min-age=0', stdout=out)

        assert not default_storage.exists(orphan_id)
        assert default_storage.exists(kept.bucket_object_id)
        assert 'Swept 1 orphaned blobs, 0 failed' in out.getvalue()

    def test_sweep_keeps_recent_blobs(self, account, mock_s3):
        """Test a fresh blob of an upload in flight is not swept."""
        pending_id = default_storage.put(ContentFile(b'pending'), 'pending.txt')

        out = StringIO()
        call_command('sweep_orphaned_blobs', stdout=out)

        assert default_storage.exists(pending_id)
        assert 'Swept 0 orphaned blobs' in out.getvalue()

    def test_sweep_deletes_blobs_past_min_age(self, account, mock_s3):
        """Test the default grace period still lets old orphans go."""
        orphan_id = default_storage.put(ContentFile(b'leaked'), 'leaked.txt')

        out = StringIO()
        with mock.patch.object(
            FileStorage,
            'get_modified_time',
            return_value=timezone.now() - timedelta(hours=7),
        ):
            call_command('sweep_orphaned_blobs', stdout=out)

        assert not default_storage.exists(orphan_id)
        assert 'Swept 1 orphaned blobs, 0 failed' in out.getvalue()

    def test_sweep_dry_run(self, account, mock_s3):
        """Test dry run only reports."""
        orphan_id = default_storage.put(ContentFile(b'leaked'), 'leaked.txt')

        out = StringIO()
        call_command(
            'sweep_orphaned_blobs',
            '--dry-run',
            '--min-age=0',
            stdout=out,
        )

        assert default_storage.exists(orphan_id)
        assert f'Would delete: {orphan_id}' in out.getvalue()
        assert 'Would sweep 1 orphaned blobs' in out.getvalue()

    def test_sweep_batch_size(self, account, mock_s3):
        """Test the batch size caps deletions per run."""
        for index in range(3):
            default_storage.put(ContentFile(b'leaked'), f'leaked{index}.txt')

        out = StringIO()
        call_command(
            'sweep_orphaned_blobs',
            '--batch-size=2',
            '--min-age=0',
            stdout=out,
        )

        assert len(default_storage.list_blob_ids()) == 1
        assert 'Swept 2 orphaned blobs' in out.getvalue()

    def test_sweep_reports_failures(self, account, mock_s3):
        """Test failed deletes are counted and the sweep continues."""
        default_storage.put(ContentFile(b'leaked'), 'leaked.txt')

        out = StringIO()
        err = StringIO()
        with mock.patch.object(
            FileStorage,
            'delete',
            side_effect=OSError('connection reset'),
        ):
            call_command(
                'sweep_orphaned_blobs',
                '--min-age=0',
                stdout=out,
                stderr=err,
            )

        assert 'Swept 0 orphaned blobs, 1 failed' in out.getvalue()
        assert 'Failed to delete' in err.getvalue()
