"""Management command to delete blobs no file record points at."""

import logging
from datetime import timedelta
from typing import Any, Final

from django.core.files.storage import default_storage
from django.core.management.base import BaseCommand
from django.utils import timezone

from server.apps.files.models import File

_DEFAULT_BATCH_SIZE: Final = 1000

# Blobs younger than this may belong to an upload still writing its record
_DEFAULT_MIN_AGE_HOURS: Final = 6

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Reclaim blobs leaked by failed compensations or deletes."""

    help = 'Delete blobs in the object store that no file record references'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=f'Max blobs to process (default: {_DEFAULT_BATCH_SIZE})',
        )
        parser.add_argument(
            '--min-age',
            type=int,
            default=_DEFAULT_MIN_AGE_HOURS,
            help=(
                'Only sweep blobs older than this many hours '
                f'(default: {_DEFAULT_MIN_AGE_HOURS})'
            ),
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the sweep.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        batch_size = options['batch_size']
        storage = default_storage

        cutoff = timezone.now() - timedelta(hours=options['min_age'])

        self.stdout.write(
            f'Looking for orphaned blobs stored before {cutoff}',
        )

        blob_ids = storage.list_blob_ids()
        referenced = set(
            File.objects.values_list('bucket_object_id', flat=True),
        )
        unreferenced = [
            blob_id
            for blob_id in blob_ids
            if blob_id not in referenced
        ]
        orphans = [
            blob_id
            for blob_id in unreferenced
            if storage.get_modified_time(blob_id) <= cutoff
        ][:batch_size]

        self.stdout.write(
            f'Found {len(orphans)} orphaned blobs '
            f'out of {len(blob_ids)} stored '
            f'({len(unreferenced) - len(orphans)} too recent or over batch)',
        )

        count = 0
        failed = 0

        for blob_id in orphans:
            if dry_run:
                self.stdout.write(f'Would delete: {blob_id}')
                count += 1
                continue

            try:
                storage.delete(blob_id)
                count += 1
                logger.info('Swept orphaned blob: %s', blob_id)
            except Exception as exc:
                self.stderr.write(f'Failed to delete {blob_id}: {exc}')
                logger.exception('Failed to sweep orphaned blob: %s', blob_id)
                failed += 1

        if dry_run:
            self.stdout.write(
                self.style.SUCCESS(f'Would sweep {count} orphaned blobs'),
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Swept {count} orphaned blobs, {failed} failed',
                ),
            )
