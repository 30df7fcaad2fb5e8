"""Database models for files app."""

from typing import ClassVar, Final, final, override

from django.db import models

from server.apps.accounts.models import Account

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_TYPE_MAX_LENGTH: Final = 16
_EXTENSION_MAX_LENGTH: Final = 32
_URL_MAX_LENGTH: Final = 500
_ACCOUNT_ID_MAX_LENGTH: Final = 36
_BLOB_ID_MAX_LENGTH: Final = 64


class FileType(models.TextChoices):
    """Category a file is counted under."""

    IMAGE = 'image', 'Image'
    DOCUMENT = 'document', 'Document'
    VIDEO = 'video', 'Video'
    AUDIO = 'audio', 'Audio'
    OTHER = 'other', 'Other'


@final
class File(models.Model):
    """Metadata record of a blob in the object store.

    The record is only ever created after its blob was written, and its
    blob is only deleted after the record is gone, so a stored record
    always points at an existing blob.
    """

    name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        help_text='Display name including extension',
    )

    type = models.CharField(
        max_length=_TYPE_MAX_LENGTH,
        choices=FileType.choices,
        default=FileType.OTHER,
        db_index=True,
    )

    extension = models.CharField(
        max_length=_EXTENSION_MAX_LENGTH,
        blank=True,
        default='',
    )

    size_bytes = models.BigIntegerField(
        help_text='File size in bytes',
    )

    url = models.URLField(
        max_length=_URL_MAX_LENGTH,
        help_text='Public URL derived from the blob id',
    )

    # Owner relationship, fixed at creation
    owner = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name='files',
        db_index=True,
    )

    # Creating account, kept for audit
    account_id = models.CharField(max_length=_ACCOUNT_ID_MAX_LENGTH)

    bucket_object_id = models.CharField(
        max_length=_BLOB_ID_MAX_LENGTH,
        unique=True,
        help_text='Blob id in the object store',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

        indexes: ClassVar[list[models.Index]] = [
            # Optimize recent files queries
            models.Index(
                fields=['owner', '-created_at'],
                name='files_owner_recent_idx',
            ),
            # Optimize per-category listings
            models.Index(
                fields=['owner', 'type'],
                name='files_owner_type_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=models.Q(size_bytes__gte=0),
                name='files_size_bytes_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner.email}:{self.name}'

    def get_shared_emails(self) -> list[str]:
        """Emails the file is shared with.

        Uses prefetched shares when available.

        Returns:
            Sorted list of emails.
        """
        return sorted(share.email for share in self.shares.all())


@final
class FileShare(models.Model):
    """One email a file is shared with.

    The set of shares of a file is replaced as a whole when sharing
    is updated.
    """

    file = models.ForeignKey(
        File,
        on_delete=models.CASCADE,
        related_name='shares',
    )

    email = models.EmailField(db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File share'  # type: ignore[mutable-override]
        verbose_name_plural = 'File shares'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['email']

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.UniqueConstraint(
                fields=['file', 'email'],
                name='file_shares_file_email_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.file.name} -> {self.email}'
