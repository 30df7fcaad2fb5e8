"""Identity provider issuing one-time codes and sessions.

Codes are emailed through Django's mail framework and stored hashed.
Session secrets are bearer tokens, only their SHA256 digest is kept.
"""

import hashlib
import logging
import secrets
import smtplib
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Final

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.core.mail import send_mail
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from django.utils.module_loading import import_string

from server.apps.accounts.exceptions import (
    DeliveryError,
    InvalidCodeError,
    NoSessionError,
)
from server.apps.accounts.models import AuthSession, OneTimeCode

logger = logging.getLogger(__name__)

_CODE_DIGITS: Final = 6
_SESSION_ID_BYTES: Final = 16  # 32 hex chars
_SESSION_SECRET_BYTES: Final = 32  # 64 hex chars


@dataclass(frozen=True, slots=True)
class OtpToken:
    """Receipt for an issued one-time code."""

    account_id: str
    email: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class IssuedSession:
    """Freshly created session, the only place the secret is visible."""

    session_id: str
    secret: str
    account_id: str
    expires_at: datetime


def get_otp_ttl() -> int:
    """Get one-time code lifetime in seconds.

    Returns:
        Lifetime from settings or default of 900 (15 min).
    """
    return getattr(settings, 'ACCOUNTS_OTP_TTL', 900)


def get_otp_max_attempts() -> int:
    """Get number of wrong codes tolerated before a code is burned.

    Returns:
        Limit from settings or default of 5.
    """
    return getattr(settings, 'ACCOUNTS_OTP_MAX_ATTEMPTS', 5)


def get_session_ttl() -> int:
    """Get session lifetime in seconds.

    Returns:
        Lifetime from settings or default of one year.
    """
    return getattr(settings, 'ACCOUNTS_SESSION_TTL', 365 * 24 * 60 * 60)


def digest_secret(secret: str) -> str:
    """Hash a session secret for storage and lookup.

    Args:
        secret: Plain bearer secret.

    Returns:
        Hex-encoded SHA256 digest.
    """
    return hashlib.sha256(secret.encode()).hexdigest()


def generate_code() -> str:
    """Generate a zero-padded numeric one-time code.

    Returns:
        Code string of ``_CODE_DIGITS`` digits.
    """
    return str(secrets.randbelow(10 ** _CODE_DIGITS)).zfill(_CODE_DIGITS)


class IdentityProvider:
    """Issues one-time codes and exchanges them for sessions."""

    def issue_otp(self, account_id: str, email: str) -> OtpToken:
        """Create a one-time code for the account and email it.

        Earlier unused codes of the account are discarded, so only the
        newest code can be exchanged.

        Args:
            account_id: Identity the code is bound to.
            email: Recipient address.

        Returns:
            Receipt with the code expiry.

        Raises:
            DeliveryError: If the email could not be sent.
        """
        code = generate_code()
        expires_at = timezone.now() + timedelta(seconds=get_otp_ttl())

        with transaction.atomic():
            OneTimeCode.objects.filter(
                account_id=account_id,
                consumed_at__isnull=True,
            ).delete()
            record = OneTimeCode.objects.create(
                account_id=account_id,
                email=email,
                code_hash=make_password(code),
                expires_at=expires_at,
            )

        try:
            send_mail(
                subject='Your verification code',
                message=(
                    f'Your one-time code is {code}. '
                    f'It expires in {get_otp_ttl() // 60} minutes.'
                ),
                from_email=None,
                recipient_list=[email],
                fail_silently=False,
            )
        except (smtplib.SMTPException, OSError) as error:
            logger.exception('Failed to deliver one-time code to %s', email)
            record.delete()
            raise DeliveryError(f'Could not deliver code to {email}') from error

        logger.info('One-time code issued for account %s', account_id[:8])
        return OtpToken(
            account_id=account_id,
            email=email,
            expires_at=expires_at,
        )

    def create_session(self, account_id: str, code: str) -> IssuedSession:
        """Exchange a one-time code for a new session.

        Every wrong code counts against the account's live codes. A code
        that reaches ``ACCOUNTS_OTP_MAX_ATTEMPTS`` misses is consumed, so
        the right code no longer works and a new one must be requested.

        Args:
            account_id: Identity the code was issued for.
            code: Code typed by the user.

        Returns:
            New session including its plain secret.

        Raises:
            InvalidCodeError: If no usable code matches.
        """
        self.cleanup_expired_sessions()
        now = timezone.now()

        with transaction.atomic():
            candidates = OneTimeCode.objects.select_for_update().filter(
                account_id=account_id,
                consumed_at__isnull=True,
                expires_at__gt=now,
            )
            matched = next(
                (
                    candidate
                    for candidate in candidates
                    if check_password(code, candidate.code_hash)
                ),
                None,
            )
            if matched is None:
                burned = self._record_failed_attempt(
                    [candidate.pk for candidate in candidates],
                    now,
                )
            else:
                matched.consumed_at = now
                matched.save(update_fields=['consumed_at'])

                secret = secrets.token_hex(_SESSION_SECRET_BYTES)
                session = AuthSession.objects.create(
                    session_id=secrets.token_hex(_SESSION_ID_BYTES),
                    secret_digest=digest_secret(secret),
                    account_id=account_id,
                    expires_at=now + timedelta(seconds=get_session_ttl()),
                )

        # Raised outside the atomic block so the attempt count is kept
        if matched is None:
            logger.warning(
                'Invalid one-time code for account %s (%d codes burned)',
                account_id[:8],
                burned,
            )
            raise InvalidCodeError('Code is wrong or expired')

        logger.info(
            'Session created for account %s: %s',
            account_id[:8],
            session.session_id[:8],
        )
        return IssuedSession(
            session_id=session.session_id,
            secret=secret,
            account_id=account_id,
            expires_at=session.expires_at,
        )

    def _record_failed_attempt(self, code_ids: list[int], now: datetime) -> int:
        """Count a wrong code against live codes and burn exhausted ones.

        Args:
            code_ids: Primary keys of the live codes of the account.
            now: Timestamp used as consumption time.

        Returns:
            Number of codes burned by this attempt.
        """
        live_codes = OneTimeCode.objects.filter(pk__in=code_ids)
        live_codes.update(failed_attempts=F('failed_attempts') + 1)
        return live_codes.filter(
            failed_attempts__gte=get_otp_max_attempts(),
        ).update(consumed_at=now)

    def get_session(self, secret: str) -> AuthSession:
        """Resolve a bearer secret into its live session.

        Args:
            secret: Plain session secret.

        Returns:
            Matching AuthSession.

        Raises:
            NoSessionError: If the secret is unknown or expired.
        """
        try:
            session = AuthSession.objects.get(
                secret_digest=digest_secret(secret),
            )
        except AuthSession.DoesNotExist as error:
            raise NoSessionError('Unknown session') from error

        if session.is_expired():
            raise NoSessionError('Session expired')

        # auto_now refreshes the activity timestamp
        session.save(update_fields=['last_activity'])
        return session

    def delete_session(self, session_id: str) -> bool:
        """Invalidate a session.

        Args:
            session_id: Session to delete.

        Returns:
            True if the session existed.
        """
        deleted, _ = AuthSession.objects.filter(
            session_id=session_id,
        ).delete()

        if deleted:
            logger.info('Session ended: %s', session_id[:8])

        return deleted > 0

    def cleanup_expired_sessions(self) -> int:
        """Remove sessions past their expiry.

        Returns:
            Number of sessions removed.
        """
        deleted, _ = AuthSession.objects.filter(
            expires_at__lte=timezone.now(),
        ).delete()

        if deleted:
            logger.info('Cleaned up %d expired sessions', deleted)

        return deleted


def get_identity_provider() -> IdentityProvider:
    """Instantiate the configured identity provider.

    Returns:
        Provider built from ``ACCOUNTS_IDENTITY_PROVIDER``.
    """
    provider_path = getattr(
        settings,
        'ACCOUNTS_IDENTITY_PROVIDER',
        'server.apps.accounts.infrastructure.identity_provider.IdentityProvider',
    )
    return import_string(provider_path)()
