"""Tests for one-time code login logic."""

import smtplib
from unittest import mock

import pytest
from django.core import mail

from server.apps.accounts.exceptions import (
    DeliveryError,
    InvalidCodeError,
    NoSessionError,
    UserNotFoundError,
)
from server.apps.accounts.logic.credential_operations import (
    create_account,
    end_session,
    register_or_get_account,
    request_otp,
    sign_in,
    validate_session,
    verify_otp,
)
from server.apps.accounts.models import Account


@pytest.mark.django_db
def test_create_account_full_flow(read_code, settings):
    """Test sign-up, code verification and session validation."""
    account_id = create_account('Ada Lovelace', 'Ada@Example.com')

    account = Account.objects.get(account_id=account_id)
    assert account.email == 'ada@example.com'
    assert account.full_name == 'Ada Lovelace'
    assert account.avatar_url == settings.ACCOUNTS_AVATAR_PLACEHOLDER_URL
    assert mail.outbox[0].to == ['ada@example.com']

    session = verify_otp(account_id, f' {read_code()} ')

    assert validate_session(session.secret).account_id == account_id


@pytest.mark.django_db
def test_create_account_existing_email(account):
    """Test signing up twice keeps the first record."""
    account_id = create_account('Someone Else', account.email.upper())

    assert account_id == account.account_id
    assert Account.objects.count() == 1


@pytest.mark.django_db
def test_create_account_delivery_failure_keeps_record():
    """Test the account survives a failed code delivery."""
    with mock.patch(
        'server.apps.accounts.infrastructure.identity_provider.send_mail',
        side_effect=smtplib.SMTPException('relay down'),
    ):
        with pytest.raises(DeliveryError):
            create_account('Ada Lovelace', 'ada@example.com')

    assert Account.objects.filter(email='ada@example.com').exists()


@pytest.mark.django_db
def test_register_or_get_account_is_idempotent():
    """Test repeated registration returns the same id."""
    first = register_or_get_account('Ada', 'ada@example.com')
    second = register_or_get_account('Ada', ' ADA@example.com ')

    assert first == second


@pytest.mark.django_db
def test_register_or_get_account_concurrent_insert(account):
    """Test losing an insert race returns the winner inside a transaction."""
    with mock.patch(
        'server.apps.accounts.logic.credential_operations.get_account_by_email',
        return_value=None,
    ):
        account_id = register_or_get_account('Ada', account.email)

    assert account_id == account.account_id
    assert Account.objects.count() == 1


@pytest.mark.django_db
def test_request_otp_known_email(account):
    """Test known emails are bound to their account id."""
    assert request_otp(account.email) == account.account_id
    assert len(mail.outbox) == 1


@pytest.mark.django_db
def test_request_otp_unknown_email():
    """Test unknown emails get a fresh identity without an account."""
    account_id = request_otp('new@example.com')

    assert len(account_id) == 32
    assert not Account.objects.exists()


@pytest.mark.django_db
def test_sign_in(account, read_code):
    """Test signing in to an existing account."""
    account_id = sign_in(account.email)

    assert account_id == account.account_id
    assert verify_otp(account_id, read_code()).account_id == account.account_id


@pytest.mark.django_db
def test_sign_in_unknown_email():
    """Test unknown emails are refused without sending mail."""
    with pytest.raises(UserNotFoundError):
        sign_in('nobody@example.com')

    assert mail.outbox == []


@pytest.mark.django_db
def test_verify_otp_wrong_code(account):
    """Test a wrong code is refused."""
    with mock.patch(
        'server.apps.accounts.infrastructure.identity_provider.generate_code',
        return_value='111111',
    ):
        account_id = sign_in(account.email)

    with pytest.raises(InvalidCodeError):
        verify_otp(account_id, '000000')


@pytest.mark.django_db
def test_end_session(account, issue_session):
    """Test ended sessions stop validating."""
    session = issue_session(account)

    assert end_session(session.secret) is True
    with pytest.raises(NoSessionError):
        validate_session(session.secret)


@pytest.mark.django_db
def test_end_session_unknown():
    """Test ending an unknown session."""
    with pytest.raises(NoSessionError):
        end_session('unknown')
