"""Business logic for renaming and sharing files.

Both are single-record updates that only the file's owner may run. The
blob is never touched.
"""

import logging
from collections.abc import Iterable

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.utils import timezone

from server.apps.accounts.models import Account
from server.apps.files.exceptions import FileMissingError, InvalidShareError
from server.apps.files.logic.queries import get_owned_file
from server.apps.files.models import File, FileShare
from server.apps.files.signals import file_updated

logger = logging.getLogger(__name__)


def rename_file(
    caller: Account,
    file_id: int,
    new_base_name: str,
    extension: str,
) -> File:
    """Rename a file, keeping its extension explicit.

    Names are not unique, several files may share one.

    Args:
        caller: Account renaming the file, must be the owner.
        file_id: ID of the file.
        new_base_name: Name without extension.
        extension: Extension without dot.

    Returns:
        Updated File instance.

    Raises:
        ValidationError: If the base name is empty.
        FileMissingError: If the file is not visible or vanished meanwhile.
        FileAccessDeniedError: If the caller does not own the file.
    """
    base_name = new_base_name.strip()
    if not base_name:
        raise ValidationError('File name cannot be empty')

    file_instance = get_owned_file(caller, file_id)
    new_name = f'{base_name}.{extension.strip().lstrip(".")}'

    updated = File.objects.filter(pk=file_id, owner=caller).update(
        name=new_name,
        updated_at=timezone.now(),
    )
    if not updated:
        raise FileMissingError(f'File not found: ID={file_id}')

    file_instance.refresh_from_db()
    logger.info(
        'File renamed: ID=%d, name=%s',
        file_id,
        new_name,
    )
    file_updated.send(sender=File, instance=file_instance, owner=caller)
    return file_instance


def normalize_share_emails(emails: Iterable[str]) -> list[str]:
    """Validate and normalize emails to share with.

    Args:
        emails: Raw email addresses.

    Returns:
        Lower-cased, de-duplicated emails in input order.

    Raises:
        InvalidShareError: If an email is not valid.
    """
    normalized: dict[str, None] = {}
    for email in emails:
        candidate = str(email).strip().lower()
        try:
            validate_email(candidate)
        except ValidationError as error:
            raise InvalidShareError(f'Invalid email: {email!r}') from error
        normalized[candidate] = None
    return list(normalized)


def update_sharing(
    caller: Account,
    file_id: int,
    emails: Iterable[str],
) -> File:
    """Replace the set of emails a file is shared with.

    Args:
        caller: Account updating sharing, must be the owner.
        file_id: ID of the file.
        emails: Complete new set of emails, empty to stop sharing.

    Returns:
        Updated File instance.

    Raises:
        InvalidShareError: If an email is not valid.
        FileMissingError: If the file is not visible or vanished meanwhile.
        FileAccessDeniedError: If the caller does not own the file.
    """
    shared_with = normalize_share_emails(emails)
    get_owned_file(caller, file_id)

    with transaction.atomic():
        try:
            file_instance = File.objects.select_for_update().get(
                pk=file_id,
                owner=caller,
            )
        except File.DoesNotExist as error:
            raise FileMissingError(f'File not found: ID={file_id}') from error

        file_instance.shares.all().delete()
        FileShare.objects.bulk_create(
            FileShare(file=file_instance, email=email)
            for email in shared_with
        )
        file_instance.save(update_fields=['updated_at'])

    logger.info(
        'File sharing updated: ID=%d, %d emails',
        file_id,
        len(shared_with),
    )
    file_instance = File.objects.prefetch_related('shares').get(pk=file_id)
    file_updated.send(sender=File, instance=file_instance, owner=caller)
    return file_instance
