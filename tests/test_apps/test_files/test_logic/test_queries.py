"""Tests for scoped file queries."""

from datetime import timedelta
from unittest import mock

import pytest
from django.db import DatabaseError
from django.utils import timezone

from server.apps.files.exceptions import (
    FileAccessDeniedError,
    FileMissingError,
    StoreReadError,
)
from server.apps.files.logic.queries import (
    FileQuery,
    Limit,
    NameContains,
    Owner,
    SortBy,
    build_query,
    get_owned_file,
    get_visible_file,
    list_files,
    parse_sort,
)
from server.apps.files.models import File, FileShare


@pytest.mark.django_db
def test_list_only_owned_and_shared(account, other_account, make_file):
    """Test listing never shows files of unrelated accounts."""
    own = make_file(account, name='mine.txt')
    foreign = make_file(other_account, name='theirs.txt')
    shared = make_file(other_account, name='shared.txt')
    FileShare.objects.create(file=shared, email=account.email)

    listing = list_files(account)

    assert {item.pk for item in listing.documents} == {own.pk, shared.pk}
    assert foreign.pk not in {item.pk for item in listing.documents}
    assert listing.total == 2


@pytest.mark.django_db
def test_list_filters_by_type(account, make_file):
    """Test narrowing to categories."""
    report = make_file(account, name='report.pdf', size_bytes=10 * 1024 * 1024)
    make_file(account, name='photo.png')

    listing = list_files(account, types=['document'])

    assert [item.pk for item in listing.documents] == [report.pk]
    assert listing.documents[0].size_bytes == 10 * 1024 * 1024


@pytest.mark.django_db
def test_filters_never_widen_visibility(account, other_account, make_file):
    """Test a type filter cannot reveal foreign files."""
    make_file(other_account, name='secret.pdf')

    listing = list_files(account, types=['document'], search_text='secret')

    assert listing.documents == []
    assert listing.total == 0


@pytest.mark.django_db
def test_search_is_case_insensitive(account, make_file):
    """Test name search matches regardless of case."""
    match = make_file(account, name='Quarterly-Report.pdf')
    make_file(account, name='notes.txt')

    listing = list_files(account, search_text='report')

    assert [item.pk for item in listing.documents] == [match.pk]


@pytest.mark.django_db
def test_limit_keeps_full_total(account, make_file):
    """Test the total counts all matches, not only the page."""
    for index in range(5):
        make_file(account, name=f'file{index}.txt')

    listing = list_files(account, limit=2)

    assert len(listing.documents) == 2
    assert listing.total == 5


@pytest.mark.django_db
def test_sort_by_name_ascending(account, make_file):
    """Test explicit sort key."""
    make_file(account, name='b.txt')
    make_file(account, name='a.txt')
    make_file(account, name='c.txt')

    listing = list_files(account, sort='name-asc')

    assert [item.name for item in listing.documents] == ['a.txt', 'b.txt', 'c.txt']


@pytest.mark.django_db
def test_default_sort_newest_first(account, make_file):
    """Test files are listed newest first by default."""
    older = make_file(account, name='older.txt')
    newer = make_file(account, name='newer.txt')
    File.objects.filter(pk=older.pk).update(
        created_at=timezone.now() - timedelta(days=1),
    )

    listing = list_files(account)

    assert [item.pk for item in listing.documents] == [newer.pk, older.pk]


def test_parse_sort():
    """Test sort key parsing and fallbacks."""
    assert parse_sort('$createdAt-asc') == SortBy('createdAt', descending=False)
    assert parse_sort('size-desc') == SortBy('size', descending=True)
    assert parse_sort('size-sideways') == SortBy('size', descending=True)
    assert parse_sort('password-asc') == SortBy('createdAt', descending=False)
    assert parse_sort(None) == SortBy('createdAt', descending=True)


@pytest.mark.django_db
def test_build_query_is_immutable(account):
    """Test adding filters returns a new query."""
    query = build_query(account, search_text='a')

    narrowed = query.with_filter(Limit(1))

    assert Limit(1) not in query.filters
    assert Limit(1) in narrowed.filters
    assert NameContains('a') in query.filters


@pytest.mark.django_db
def test_build_query_rejects_negative_limit(account):
    """Test negative limits are refused."""
    with pytest.raises(ValueError, match='positive'):
        build_query(account, limit=-1)


@pytest.mark.django_db
def test_query_without_visibility_matches_nothing(account, make_file):
    """Test a query with no owner or share filter returns nothing."""
    make_file(account)

    listing = FileQuery(filters=(NameContains('notes'),)).execute()

    assert listing.total == 0


@pytest.mark.django_db
def test_owner_filter_excludes_shared(account, other_account, make_file):
    """Test an owner-only query skips shared files."""
    shared = make_file(other_account)
    FileShare.objects.create(file=shared, email=account.email)

    listing = FileQuery(filters=(Owner(account.pk),)).execute()

    assert listing.total == 0


@pytest.mark.django_db
def test_list_read_failure(account):
    """Test store failures are wrapped."""
    with mock.patch(
        'django.db.models.query.QuerySet.count',
        side_effect=DatabaseError('gone'),
    ):
        with pytest.raises(StoreReadError):
            list_files(account)


@pytest.mark.django_db
def test_get_visible_file(account, other_account, make_file):
    """Test single lookups follow the visibility rule."""
    foreign = make_file(other_account)

    with pytest.raises(FileMissingError):
        get_visible_file(account, foreign.pk)

    FileShare.objects.create(file=foreign, email=account.email)

    assert get_visible_file(account, foreign.pk) == foreign


@pytest.mark.django_db
def test_get_owned_file_denies_viewer(account, other_account, make_file):
    """Test shared viewers may read but not modify."""
    foreign = make_file(other_account)
    FileShare.objects.create(file=foreign, email=account.email)

    with pytest.raises(FileAccessDeniedError):
        get_owned_file(account, foreign.pk)

    assert get_owned_file(other_account, foreign.pk) == foreign
