"""Business logic for file uploads and deletes."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, BinaryIO

from django.core.files.base import File as DjangoFile
from django.core.files.storage import default_storage
from django.db import transaction

from server.apps.accounts.models import Account
from server.apps.files.exceptions import (
    FileOperationError,
    OrphanedBlobError,
    StoreWriteError,
)
from server.apps.files.infrastructure.metadata import (
    construct_file_url,
    get_file_type,
)
from server.apps.files.logic.queries import get_owned_file
from server.apps.files.logic.quota_operations import (
    check_quota,
    check_upload_size,
)
from server.apps.files.logic.transactions import (
    DeleteState,
    DeleteTransaction,
    UploadState,
    UploadTransaction,
)
from server.apps.files.models import File
from server.apps.files.signals import file_deleted, file_uploaded

if TYPE_CHECKING:
    from server.apps.files.infrastructure.storage import FileStorage

logger = logging.getLogger(__name__)


@dataclass
class BatchUploadResult:
    """Outcome of uploading several files together."""

    uploaded: list[File] = field(default_factory=list)
    rejected: list[tuple[str, FileOperationError]] = field(default_factory=list)


def _get_storage() -> 'FileStorage':
    """Get the configured default storage backend.

    Returns:
        FileStorage instance with proper S3 configuration.
    """
    return default_storage  # type: ignore[return-value]


def _get_file_size(file_obj: BinaryIO | DjangoFile) -> int:
    """Get file size from file object.

    Args:
        file_obj: File-like object.

    Returns:
        File size in bytes.
    """
    if hasattr(file_obj, 'size'):
        return file_obj.size
    file_size = len(file_obj.read())
    file_obj.seek(0)
    return file_size


def upload_file(
    owner: Account,
    file_obj: BinaryIO | DjangoFile,
    name: str,
) -> File:
    """Upload file to storage and create its metadata record.

    Size and capacity are checked before any store call. The blob is
    written first, then the record. If the record cannot be written the
    blob is deleted again (compensation), so a returned record always
    points at an existing blob.

    Args:
        owner: Account uploading the file.
        file_obj: File-like object to upload.
        name: File name including extension.

    Returns:
        Created File instance.

    Raises:
        FileTooLargeError: If the file exceeds the upload ceiling.
        QuotaExceededError: If the account lacks capacity.
        StoreWriteError: If the blob or record write fails.
    """
    file_size = _get_file_size(file_obj)
    check_upload_size(name, file_size)
    check_quota(owner, file_size)

    upload = UploadTransaction(name=name)
    storage = _get_storage()

    # Step 1: Upload to storage first
    try:
        blob_id = storage.put(file_obj, name)
    except Exception as error:
        upload.advance(UploadState.FAILED)
        logger.exception('Failed to upload file to storage: %s', name)
        raise StoreWriteError(
            f'Failed to store content of {name}',
            transaction=upload,
        ) from error

    upload.blob_id = blob_id
    upload.advance(UploadState.METADATA_PENDING)
    file_type, extension = get_file_type(name)

    # Step 2: Create database record (in transaction)
    try:
        with transaction.atomic():
            file_instance = File.objects.create(
                name=name,
                type=file_type,
                extension=extension,
                size_bytes=file_size,
                url=construct_file_url(blob_id),
                owner=owner,
                account_id=owner.account_id,
                bucket_object_id=blob_id,
            )
    except Exception as error:
        # Rollback: Delete blob from storage since DB transaction failed
        logger.exception(
            'Database transaction failed, rolling back storage upload: %s',
            blob_id,
        )
        upload.advance(UploadState.FAILED)
        _compensate_upload(storage, upload)
        raise StoreWriteError(
            f'Failed to save metadata of {name}',
            transaction=upload,
        ) from error

    upload.advance(UploadState.COMMITTED)
    logger.info(
        'File record created in database: %s (ID: %d, blob: %s)',
        name,
        file_instance.id,
        blob_id,
    )
    file_uploaded.send(sender=File, instance=file_instance, owner=owner)
    return file_instance


def _compensate_upload(storage: 'FileStorage', upload: UploadTransaction) -> None:
    """Delete the blob of a failed upload.

    Args:
        storage: Storage backend.
        upload: Failed upload with its blob id set.
    """
    upload.advance(UploadState.COMPENSATING)
    blob_id = upload.blob_id or ''
    if storage.rollback_upload(blob_id):
        upload.advance(UploadState.COMPENSATED)
        return

    upload.orphan = OrphanedBlobError(blob_id)
    upload.advance(UploadState.ORPHANED)
    logger.warning('%s', upload.orphan)


def upload_files(
    owner: Account,
    files: Iterable[tuple[str, BinaryIO | DjangoFile]],
) -> BatchUploadResult:
    """Upload several files, each through its own protocol.

    A failing file does not stop the others.

    Args:
        owner: Account uploading the files.
        files: Pairs of file name and file-like object.

    Returns:
        Uploaded records and rejected names with their errors.
    """
    result = BatchUploadResult()
    for name, file_obj in files:
        try:
            result.uploaded.append(upload_file(owner, file_obj, name))
        except FileOperationError as error:
            result.rejected.append((name, error))

    logger.info(
        'Batch upload for account %s: %d uploaded, %d rejected',
        owner.pk,
        len(result.uploaded),
        len(result.rejected),
    )
    return result


def delete_file(owner: Account, file_id: int) -> DeleteTransaction:
    """Delete a file record and then its blob.

    If the record cannot be deleted, the blob is left untouched. If the
    blob cannot be deleted afterwards, the file is already gone from all
    reads; the leaked blob is logged and left to the orphan sweep.

    Args:
        owner: Account deleting the file.
        file_id: ID of file to delete.

    Returns:
        Finished delete transaction (``deleted`` or ``blob_leaked``).

    Raises:
        FileMissingError: If the file is not visible to the caller.
        FileAccessDeniedError: If the caller does not own the file.
        StoreWriteError: If the record cannot be deleted.
    """
    file_instance = get_owned_file(owner, file_id)
    removal = DeleteTransaction(
        file_id=file_id,
        blob_id=file_instance.bucket_object_id,
    )
    logger.info(
        'Deleting file: ID=%d, blob=%s',
        file_id,
        removal.blob_id,
    )

    # Step 1: Delete metadata record
    try:
        with transaction.atomic():
            file_instance.delete()
    except Exception as error:
        logger.exception('Failed to delete file from database: ID=%d', file_id)
        removal.advance(DeleteState.FAILED)
        raise StoreWriteError(
            f'Failed to delete file {file_id}',
            transaction=removal,
        ) from error

    removal.advance(DeleteState.METADATA_DELETED)
    logger.info('File record deleted from database: ID=%d', file_id)

    # Step 2: Delete blob, a failure only leaks it
    try:
        _get_storage().delete(removal.blob_id)
    except Exception:
        removal.orphan = OrphanedBlobError(removal.blob_id)
        removal.advance(DeleteState.BLOB_LEAKED)
        logger.exception(
            'Failed to delete blob from storage (orphaned): %s',
            removal.blob_id,
        )
    else:
        removal.advance(DeleteState.DELETED)

    file_deleted.send(
        sender=File,
        file_id=file_id,
        blob_id=removal.blob_id,
        owner=owner,
    )
    return removal
