"""Scoped queries over file metadata.

Every read of file metadata goes through ``FileQuery``: a file is
visible to its owner and to every account whose email it is shared
with. Additional filters narrow that set, they never widen it.
"""

import logging
import operator
from collections.abc import Sequence
from dataclasses import dataclass
from functools import reduce
from typing import Final

from django.db import DatabaseError
from django.db.models import Q, QuerySet

from server.apps.accounts.models import Account
from server.apps.files.exceptions import (
    FileAccessDeniedError,
    FileMissingError,
    StoreReadError,
)
from server.apps.files.models import File, FileShare

logger = logging.getLogger(__name__)

DEFAULT_SORT: Final = 'createdAt-desc'

# Public sort keys mapped to model fields
_SORT_FIELDS: Final = {
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
    'name': 'name',
    'size': 'size_bytes',
    'type': 'type',
}


@dataclass(frozen=True, slots=True)
class Owner:
    """Files owned by the account."""

    account_pk: int


@dataclass(frozen=True, slots=True)
class Shared:
    """Files shared with the email."""

    email: str


@dataclass(frozen=True, slots=True)
class TypeIn:
    """Files in any of the categories."""

    types: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class NameContains:
    """Files whose name contains the text (case-insensitive)."""

    text: str


@dataclass(frozen=True, slots=True)
class Limit:
    """Cap on the number of returned files."""

    count: int


@dataclass(frozen=True, slots=True)
class SortBy:
    """Ordering of returned files."""

    field: str
    descending: bool = True


Filter = Owner | Shared | TypeIn | NameContains | Limit | SortBy


@dataclass(frozen=True, slots=True)
class FileListing:
    """Page of visible files plus the number of all matches."""

    documents: list[File]
    total: int


def parse_sort(sort: str | None) -> SortBy:
    """Parse a ``<field>-<asc|desc>`` sort key.

    A leading ``$`` on the field is accepted. Unknown fields fall back
    to ``createdAt``, any direction other than ``asc`` sorts descending.

    Args:
        sort: Sort key, None or empty for the default.

    Returns:
        SortBy filter.
    """
    field_name, _, direction = (sort or DEFAULT_SORT).partition('-')
    field_name = field_name.lstrip('$')
    if field_name not in _SORT_FIELDS:
        logger.debug('Unknown sort field %r, using createdAt', field_name)
        field_name = 'createdAt'
    return SortBy(field=field_name, descending=direction != 'asc')


@dataclass(frozen=True, slots=True)
class FileQuery:
    """Immutable, composable query over visible files."""

    filters: tuple[Filter, ...]

    def visibility(self) -> Q:
        """Build the owner-or-shared condition.

        Returns:
            Q object OR-ing all Owner and Shared filters. Matches nothing
            when the query has neither.
        """
        conditions = []
        for item in self.filters:
            if isinstance(item, Owner):
                conditions.append(Q(owner_id=item.account_pk))
            elif isinstance(item, Shared):
                conditions.append(Q(
                    pk__in=FileShare.objects.filter(
                        email=item.email,
                    ).values('file_id'),
                ))
        if not conditions:
            return Q(pk__in=[])
        return reduce(operator.or_, conditions)

    def to_q(self) -> Q:
        """Build the full filter condition.

        Returns:
            Visibility condition AND-ed with the narrowing filters.
        """
        condition = self.visibility()
        for item in self.filters:
            if isinstance(item, TypeIn):
                condition &= Q(type__in=item.types)
            elif isinstance(item, NameContains):
                condition &= Q(name__icontains=item.text)
        return condition

    @property
    def limit(self) -> int | None:
        """Result cap, the last Limit filter wins."""
        limits = [item.count for item in self.filters if isinstance(item, Limit)]
        return limits[-1] if limits else None

    @property
    def sort(self) -> SortBy:
        """Ordering, the last SortBy filter wins."""
        sorts = [item for item in self.filters if isinstance(item, SortBy)]
        return sorts[-1] if sorts else parse_sort(DEFAULT_SORT)

    def ordering(self) -> tuple[str, str]:
        """Model ordering with the primary key as tie-breaker.

        Returns:
            Order-by expressions.
        """
        prefix = '-' if self.sort.descending else ''
        return (
            f'{prefix}{_SORT_FIELDS[self.sort.field]}',
            f'{prefix}pk',
        )

    def with_filter(self, item: Filter) -> 'FileQuery':
        """Return a copy with one more filter.

        Args:
            item: Filter to add.

        Returns:
            New FileQuery.
        """
        return FileQuery(filters=(*self.filters, item))

    def queryset(self) -> QuerySet[File]:
        """Build the unevaluated queryset, without the limit.

        Returns:
            QuerySet of visible, filtered, ordered files.
        """
        return (
            File.objects.filter(self.to_q())
            .select_related('owner')
            .prefetch_related('shares')
            .order_by(*self.ordering())
        )

    def execute(self) -> FileListing:
        """Run the query.

        Returns:
            Listing with at most ``limit`` files and the full count.

        Raises:
            StoreReadError: If the document store cannot be read.
        """
        queryset = self.queryset()
        try:
            total = queryset.count()
            if self.limit is not None:
                queryset = queryset[:self.limit]
            documents = list(queryset)
        except DatabaseError as error:
            logger.exception('Failed to list files')
            raise StoreReadError('Failed to list files') from error
        return FileListing(documents=documents, total=total)


def visible_to(identity: Account) -> FileQuery:
    """Start a query of files the account may see.

    Args:
        identity: Calling account.

    Returns:
        FileQuery with only the visibility rule.
    """
    return FileQuery(filters=(Owner(identity.pk), Shared(identity.email)))


def build_query(
    identity: Account,
    types: Sequence[str] = (),
    search_text: str = '',
    sort: str | None = DEFAULT_SORT,
    limit: int | None = None,
) -> FileQuery:
    """Build a listing query for the caller.

    Args:
        identity: Calling account.
        types: Categories to restrict to, empty for all.
        search_text: Substring of the file name, empty for all.
        sort: ``<field>-<asc|desc>`` key, defaults to newest first.
        limit: Maximum number of files, None or 0 for no cap.

    Returns:
        Immutable FileQuery.

    Raises:
        ValueError: If limit is negative.
    """
    query = visible_to(identity)

    if types:
        query = query.with_filter(TypeIn(tuple(types)))
    if search_text:
        query = query.with_filter(NameContains(search_text))
    if limit:
        if limit < 0:
            raise ValueError(f'Limit must be positive, got {limit}')
        query = query.with_filter(Limit(limit))

    return query.with_filter(parse_sort(sort))


def list_files(
    identity: Account,
    types: Sequence[str] = (),
    search_text: str = '',
    sort: str | None = DEFAULT_SORT,
    limit: int | None = None,
) -> FileListing:
    """List files visible to the caller.

    Args:
        identity: Calling account.
        types: Categories to restrict to, empty for all.
        search_text: Substring of the file name, empty for all.
        sort: ``<field>-<asc|desc>`` key, defaults to newest first.
        limit: Maximum number of files, None or 0 for no cap.

    Returns:
        Listing of visible files.
    """
    return build_query(identity, types, search_text, sort, limit).execute()


def get_visible_file(identity: Account, file_id: int) -> File:
    """Get one file the caller may see.

    Args:
        identity: Calling account.
        file_id: ID of the file.

    Returns:
        File instance.

    Raises:
        FileMissingError: If the file does not exist or is not visible.
        StoreReadError: If the document store cannot be read.
    """
    try:
        return visible_to(identity).queryset().get(pk=file_id)
    except File.DoesNotExist as error:
        raise FileMissingError(f'File not found: ID={file_id}') from error
    except DatabaseError as error:
        logger.exception('Failed to read file: ID=%d', file_id)
        raise StoreReadError(f'Failed to read file: ID={file_id}') from error


def get_owned_file(identity: Account, file_id: int) -> File:
    """Get a file the caller owns.

    Args:
        identity: Calling account.
        file_id: ID of the file.

    Returns:
        File instance.

    Raises:
        FileMissingError: If the file is not visible to the caller.
        FileAccessDeniedError: If the file is visible but owned by another.
    """
    file_instance = get_visible_file(identity, file_id)
    if file_instance.owner_id != identity.pk:
        logger.warning(
            'Account %s tried to modify file %d owned by %s',
            identity.pk,
            file_id,
            file_instance.owner_id,
        )
        raise FileAccessDeniedError(f'Only the owner may modify file {file_id}')
    return file_instance
