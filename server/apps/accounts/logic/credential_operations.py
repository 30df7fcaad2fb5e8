"""Business logic for one-time code login.

Account registration and code delivery are two separate writes. If the
account is created but the code cannot be sent, the account stays behind
without a way to log in until a later code request for the same email
succeeds. Lookups by email are idempotent, so retries never duplicate the
record.
"""

import logging
import uuid

from django.conf import settings
from django.db import IntegrityError, transaction

from server.apps.accounts.exceptions import UserNotFoundError
from server.apps.accounts.infrastructure.identity_provider import (
    IssuedSession,
    get_identity_provider,
)
from server.apps.accounts.models import Account, AuthSession

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Normalize an email for lookups and storage.

    Args:
        email: Raw email address.

    Returns:
        Stripped, lower-cased email.
    """
    return email.strip().lower()


def get_account_by_email(email: str) -> Account | None:
    """Find the account registered for an email.

    Args:
        email: Email address.

    Returns:
        Account if registered, None otherwise.
    """
    return Account.objects.filter(email=normalize_email(email)).first()


def get_avatar_placeholder() -> str:
    """Get the avatar assigned to new accounts.

    Returns:
        Placeholder avatar URL from settings.
    """
    return settings.ACCOUNTS_AVATAR_PLACEHOLDER_URL


def mint_account_id() -> str:
    """Create a fresh identity key.

    Returns:
        Random hex id in the format of account ids.
    """
    return uuid.uuid4().hex


def request_otp(email: str) -> str:
    """Send a one-time code to an email.

    Unknown emails get a fresh identity, the same way the identity
    provider would create one on first contact.

    Args:
        email: Recipient address.

    Returns:
        Account id to verify the code against.

    Raises:
        DeliveryError: If the code could not be sent.
    """
    email = normalize_email(email)
    account = get_account_by_email(email)
    account_id = account.account_id if account else mint_account_id()

    token = get_identity_provider().issue_otp(account_id, email)
    return token.account_id


def register_or_get_account(full_name: str, email: str) -> str:
    """Return the account for an email, creating it when missing.

    Args:
        full_name: Display name for a new account.
        email: Email address.

    Returns:
        Account id of the existing or new account.
    """
    email = normalize_email(email)
    existing = get_account_by_email(email)
    if existing is not None:
        return existing.account_id

    try:
        # Savepoint keeps an outer transaction usable after the conflict
        with transaction.atomic():
            account = Account.objects.create(
                account_id=mint_account_id(),
                full_name=full_name.strip(),
                email=email,
                avatar_url=get_avatar_placeholder(),
            )
    except IntegrityError:
        # A concurrent registration for the same email won
        account = Account.objects.get(email=email)
    else:
        logger.info('Account registered: %s', account.account_id[:8])

    return account.account_id


def create_account(full_name: str, email: str) -> str:
    """Register an account if needed and send it a one-time code.

    Args:
        full_name: Display name for a new account.
        email: Email address.

    Returns:
        Account id to verify the code against.

    Raises:
        DeliveryError: If the code could not be sent. The account record
            is kept in that case.
    """
    account_id = register_or_get_account(full_name, email)
    try:
        return request_otp(email)
    except Exception:
        logger.warning(
            'Account %s exists but no code was delivered',
            account_id[:8],
        )
        raise


def sign_in(email: str) -> str:
    """Send a one-time code to an already registered email.

    Args:
        email: Email address.

    Returns:
        Account id to verify the code against.

    Raises:
        UserNotFoundError: If no account uses the email.
        DeliveryError: If the code could not be sent.
    """
    account = get_account_by_email(email)
    if account is None:
        raise UserNotFoundError('No account for this email')

    request_otp(account.email)
    return account.account_id


def verify_otp(account_id: str, code: str) -> IssuedSession:
    """Exchange a one-time code for a session.

    Args:
        account_id: Account id returned by the code request.
        code: Code typed by the user.

    Returns:
        Newly issued session.

    Raises:
        InvalidCodeError: If the code is wrong or expired.
    """
    return get_identity_provider().create_session(account_id, code.strip())


def validate_session(secret: str) -> AuthSession:
    """Ask the identity provider whether a secret is a live session.

    Args:
        secret: Plain session secret.

    Returns:
        Live AuthSession.

    Raises:
        NoSessionError: If the secret does not resolve.
    """
    return get_identity_provider().get_session(secret)


def end_session(secret: str) -> bool:
    """Invalidate the session a secret belongs to.

    Args:
        secret: Plain session secret.

    Returns:
        True if a session was deleted.

    Raises:
        NoSessionError: If the secret does not resolve.
    """
    provider = get_identity_provider()
    session = provider.get_session(secret)
    return provider.delete_session(session.session_id)
