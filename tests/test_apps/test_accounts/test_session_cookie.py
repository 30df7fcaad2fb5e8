"""Tests for the session manager."""

from unittest import mock

import pytest
from django.http import HttpResponse
from django.test import RequestFactory

from server.apps.accounts.exceptions import NoSessionError, UserNotFoundError
from server.apps.accounts.logic import session_manager
from server.apps.accounts.logic.credential_operations import (
    request_otp,
    validate_session,
    verify_otp,
)


@pytest.mark.django_db
def test_establish_sets_strict_cookie(account, issue_session, settings):
    """Test the cookie carries the secret with strict flags."""
    session = issue_session(account)
    response = HttpResponse()

    session_manager.establish(response, session)

    morsel = response.cookies[settings.ACCOUNTS_SESSION_COOKIE]
    assert morsel.value == session.secret
    assert morsel['httponly'] is True
    assert morsel['secure'] is True
    assert morsel['samesite'] == 'Strict'
    assert morsel['path'] == '/'
    assert morsel['max-age'] == settings.ACCOUNTS_SESSION_TTL


def test_get_session_secret(settings):
    """Test the secret is read from the request cookie."""
    request = RequestFactory().get('/')
    assert session_manager.get_session_secret(request) is None

    request.COOKIES[settings.ACCOUNTS_SESSION_COOKIE] = 'secret'
    assert session_manager.get_session_secret(request) == 'secret'


@pytest.mark.django_db
def test_current_returns_account(account, issue_session):
    """Test a live secret resolves to its account."""
    session = issue_session(account)

    assert session_manager.current(session.secret) == account


@pytest.mark.django_db
def test_current_without_secret():
    """Test missing cookies are treated as signed out."""
    with pytest.raises(NoSessionError):
        session_manager.current(None)


@pytest.mark.django_db
def test_current_invalid_secret():
    """Test unknown secrets are treated as signed out."""
    with pytest.raises(NoSessionError):
        session_manager.current('forged')


@pytest.mark.django_db
def test_current_without_account_record(read_code):
    """Test a session whose identity has no account record."""
    account_id = request_otp('ghost@example.com')
    session = verify_otp(account_id, read_code())

    with pytest.raises(UserNotFoundError):
        session_manager.current(session.secret)


@pytest.mark.django_db
def test_terminate_ends_session(account, issue_session, settings):
    """Test sign-out invalidates the session and clears the cookie."""
    session = issue_session(account)

    response = session_manager.terminate(session.secret)

    assert response.status_code == 302
    assert response.url == settings.ACCOUNTS_LOGIN_URL
    assert response.cookies[settings.ACCOUNTS_SESSION_COOKIE].value == ''
    with pytest.raises(NoSessionError):
        validate_session(session.secret)


@pytest.mark.django_db
def test_terminate_without_session(settings):
    """Test sign-out still redirects when nothing is signed in."""
    response = session_manager.terminate(None)

    assert response.url == settings.ACCOUNTS_LOGIN_URL
    assert response.cookies[settings.ACCOUNTS_SESSION_COOKIE]['max-age'] == 0


@pytest.mark.django_db
def test_terminate_upstream_failure_still_clears(account, issue_session, settings):
    """Test upstream errors never keep the caller signed in locally."""
    session = issue_session(account)

    with mock.patch(
        'server.apps.accounts.logic.session_manager.end_session',
        side_effect=RuntimeError('provider down'),
    ):
        response = session_manager.terminate(session.secret)

    assert response.url == settings.ACCOUNTS_LOGIN_URL
    assert response.cookies[settings.ACCOUNTS_SESSION_COOKIE].value == ''
