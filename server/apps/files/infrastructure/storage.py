"""Custom storage backend for S3-compatible storage."""

import logging
import uuid
from typing import Any, final, override

from storages.backends.s3 import S3Storage

logger = logging.getLogger(__name__)


@final
class FileStorage(S3Storage):
    """Object store for file blobs.

    Extends django-storages S3Storage with:
    - Blob writes under freshly generated ids
    - Compensating deletes for failed metadata writes
    - Enhanced error logging
    """

    def put(self, content: Any, name: str) -> str:
        """Write raw content under a new blob id.

        Args:
            content: File content (file-like object).
            name: Original file name, used for logging only.

        Returns:
            Blob id the content was stored under.

        Raises:
            Exception: If S3 upload fails.
        """
        blob_id = uuid.uuid4().hex
        try:
            logger.info('Uploading blob %s for file: %s', blob_id, name)
            saved_name = self.save(blob_id, content)
            logger.info('Successfully uploaded blob: %s', saved_name)
        except Exception:
            logger.exception('Failed to upload blob for file: %s', name)
            raise
        else:
            return saved_name

    @override
    def delete(self, name: str) -> None:
        """Delete blob from S3 with error handling and logging.

        Args:
            name: Blob id to delete.

        Raises:
            Exception: If S3 delete fails.
        """
        try:
            logger.info('Deleting blob from storage: %s', name)
            super().delete(name)
            logger.info('Successfully deleted blob: %s', name)
        except Exception:
            logger.exception('Failed to delete blob from storage: %s', name)
            raise

    def rollback_upload(self, blob_id: str) -> bool:
        """Delete an uploaded blob after its metadata write failed.

        This is a best-effort operation: if deletion fails, the error
        is logged but not raised, the caller reports the original
        failure instead. A leaked blob has no metadata, so it stays
        invisible until the orphan sweep reclaims it.

        Args:
            blob_id: Blob id to delete.

        Returns:
            True if the blob was deleted, False if it was orphaned.
        """
        try:
            logger.warning('Rolling back upload, deleting blob: %s', blob_id)
            self.delete(blob_id)
        except Exception:
            logger.exception(
                'Failed to rollback upload, orphaned blob: %s',
                blob_id,
            )
            return False
        logger.info('Successfully rolled back blob upload: %s', blob_id)
        return True

    def list_blob_ids(self) -> list[str]:
        """List every blob id in the bucket.

        Returns:
            Blob ids stored at the bucket root.
        """
        _, blob_ids = self.listdir('')
        return blob_ids
