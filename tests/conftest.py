"""Shared fixtures for all app tests."""

import uuid
from unittest import mock

import boto3
import pytest
from moto import mock_aws

from server.apps.accounts.infrastructure.identity_provider import (
    IssuedSession,
    get_identity_provider,
)
from server.apps.accounts.models import Account

TEST_CODE = '123456'


@pytest.fixture(autouse=True)
def fast_password_hasher(settings):
    """Use a cheap hasher for one-time codes in tests."""
    settings.PASSWORD_HASHERS = [
        'django.contrib.auth.hashers.MD5PasswordHasher',
    ]


def _create_account(full_name: str, email: str) -> Account:
    return Account.objects.create(
        account_id=uuid.uuid4().hex,
        full_name=full_name,
        email=email,
        avatar_url='https://example.com/avatar.png',
    )


@pytest.fixture
def account(db):
    """Create test account.

    Returns:
        Account instance for testing.
    """
    return _create_account('Test Owner', 'owner@example.com')


@pytest.fixture
def other_account(db):
    """Create second test account for visibility tests.

    Returns:
        Second account instance.
    """
    return _create_account('Other Viewer', 'viewer@example.com')


@pytest.fixture
def issue_session(db):
    """Log an account in without reading its email.

    Returns:
        Function creating an IssuedSession for an account.
    """
    def _issue(target: Account) -> IssuedSession:
        provider = get_identity_provider()
        with mock.patch(
            'server.apps.accounts.infrastructure.identity_provider.generate_code',
            return_value=TEST_CODE,
        ):
            provider.issue_otp(target.account_id, target.email)
        return provider.create_session(target.account_id, TEST_CODE)

    return _issue


@pytest.fixture
def auth_client(client, account, issue_session, settings):
    """Test client carrying a live session cookie of ``account``.

    Returns:
        Django test client.
    """
    session = issue_session(account)
    client.cookies[settings.ACCOUNTS_SESSION_COOKIE] = session.secret
    return client


@pytest.fixture
def mock_s3():
    """Mock S3 service with file-vault bucket.

    Yields:
        boto3 S3 resource with file-vault bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket='file-vault')

        yield conn
