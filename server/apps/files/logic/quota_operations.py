"""Business logic for storage limits and usage.

Usage is a projection recomputed from the owner's file records on every
call. No counters are stored, so concurrent uploads and deletes cannot
make them drift; a report may miss a file whose metadata write is still
in flight.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from django.conf import settings
from django.db import DatabaseError

from server.apps.accounts.models import Account
from server.apps.files.exceptions import (
    FileTooLargeError,
    QuotaExceededError,
    StoreReadError,
)
from server.apps.files.models import File, FileType

logger = logging.getLogger(__name__)


def get_max_upload_bytes() -> int:
    """Get the single-file upload ceiling.

    Returns:
        Ceiling from settings or default of 50 MB.
    """
    return getattr(settings, 'FILES_MAX_UPLOAD_BYTES', 50 * 1024 * 1024)


def get_total_quota_bytes() -> int:
    """Get the storage capacity of an account.

    Returns:
        Capacity from settings or default of 2 GiB.
    """
    return getattr(
        settings,
        'FILES_TOTAL_QUOTA_BYTES',
        2 * 1024 * 1024 * 1024,
    )


@dataclass(frozen=True, slots=True)
class CategoryUsage:
    """Usage of one file category."""

    total_bytes: int = 0
    latest_update: datetime | None = None


@dataclass(frozen=True, slots=True)
class UsageReport:
    """Storage usage of one account at the time of computation."""

    categories: Mapping[str, CategoryUsage] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    used: int = 0
    capacity_bytes: int = 0

    @property
    def available_bytes(self) -> int:
        """Remaining capacity, never negative."""
        return max(0, self.capacity_bytes - self.used)

    def has_space_for(self, size_bytes: int) -> bool:
        """Check if there's enough space for the given size.

        Args:
            size_bytes: Size to check in bytes.

        Returns:
            True if there's enough space, False otherwise.
        """
        return self.used + size_bytes <= self.capacity_bytes

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses.

        Returns:
            Mapping with one entry per category plus totals.
        """
        report: dict[str, Any] = {
            category: {
                'size': usage.total_bytes,
                'latestDate': (
                    usage.latest_update.isoformat()
                    if usage.latest_update
                    else ''
                ),
            }
            for category, usage in self.categories.items()
        }
        report['used'] = self.used
        report['all'] = self.capacity_bytes
        return report


def compute_usage(identity: Account) -> UsageReport:
    """Fold the account's own files into a usage report.

    Files shared with the account do not count, quota is owner-only.

    Args:
        identity: Account to compute usage for.

    Returns:
        UsageReport with per-category totals and latest update times.

    Raises:
        StoreReadError: If the document store cannot be read.
    """
    totals = {category: 0 for category in FileType.values}
    latest: dict[str, datetime | None] = dict.fromkeys(FileType.values)

    try:
        rows = list(
            File.objects.filter(owner=identity).values_list(
                'type',
                'size_bytes',
                'updated_at',
            ),
        )
    except DatabaseError as error:
        logger.exception('Failed to read files for usage: %s', identity.pk)
        raise StoreReadError('Failed to compute usage') from error

    for file_type, size_bytes, updated_at in rows:
        category = file_type if file_type in totals else FileType.OTHER.value
        totals[category] += size_bytes
        latest_update = latest[category]
        if latest_update is None or updated_at > latest_update:
            latest[category] = updated_at

    categories = MappingProxyType({
        category: CategoryUsage(
            total_bytes=totals[category],
            latest_update=latest[category],
        )
        for category in FileType.values
    })
    return UsageReport(
        categories=categories,
        used=sum(totals.values()),
        capacity_bytes=get_total_quota_bytes(),
    )


def check_upload_size(name: str, size_bytes: int) -> None:
    """Reject a single file above the upload ceiling.

    Args:
        name: File name.
        size_bytes: File size in bytes.

    Raises:
        FileTooLargeError: If the file exceeds the ceiling.
    """
    max_bytes = get_max_upload_bytes()
    if size_bytes > max_bytes:
        logger.warning(
            'Rejected oversized file %s: %d > %d bytes',
            name,
            size_bytes,
            max_bytes,
        )
        raise FileTooLargeError(name, size_bytes, max_bytes)


def check_quota(identity: Account, size_bytes: int) -> None:
    """Check if the account has capacity left for an upload.

    Args:
        identity: Uploading account.
        size_bytes: Size of the upload in bytes.

    Raises:
        QuotaExceededError: If upload would exceed capacity.
    """
    report = compute_usage(identity)

    if not report.has_space_for(size_bytes):
        logger.warning(
            'Quota exceeded for account %s: need %d, have %d available',
            identity.pk,
            size_bytes,
            report.available_bytes,
        )
        raise QuotaExceededError(
            quota_bytes=report.capacity_bytes,
            used_bytes=report.used,
            required_bytes=size_bytes,
        )
