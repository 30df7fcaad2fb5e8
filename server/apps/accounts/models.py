"""Database models for passwordless accounts and their sessions."""

from typing import ClassVar, Final, final, override

from django.db import models
from django.utils import timezone

# Constants for field max lengths
_ACCOUNT_ID_MAX_LENGTH: Final = 36
_FULL_NAME_MAX_LENGTH: Final = 255
_AVATAR_URL_MAX_LENGTH: Final = 500
_CODE_HASH_MAX_LENGTH: Final = 128
_SESSION_ID_MAX_LENGTH: Final = 64
_DIGEST_MAX_LENGTH: Final = 64  # SHA256 hex length


@final
class Account(models.Model):
    """User record of the file vault.

    ``account_id`` correlates the record with the identity provider that
    issues one-time codes and sessions. The record is created by sign-up
    and is never deleted here.
    """

    account_id = models.CharField(
        max_length=_ACCOUNT_ID_MAX_LENGTH,
        unique=True,
        help_text='Identity provider correlation key',
    )

    full_name = models.CharField(max_length=_FULL_NAME_MAX_LENGTH)

    email = models.EmailField(unique=True)

    avatar_url = models.URLField(max_length=_AVATAR_URL_MAX_LENGTH)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Account'  # type: ignore[mutable-override]
        verbose_name_plural = 'Accounts'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['email']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.full_name} <{self.email}>'


@final
class OneTimeCode(models.Model):
    """Hashed one-time passcode waiting to be exchanged for a session."""

    account_id = models.CharField(
        max_length=_ACCOUNT_ID_MAX_LENGTH,
        db_index=True,
    )

    email = models.EmailField()

    code_hash = models.CharField(
        max_length=_CODE_HASH_MAX_LENGTH,
        help_text='Hashed code, the plain code is only ever emailed',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    expires_at = models.DateTimeField()

    consumed_at = models.DateTimeField(null=True, blank=True)

    failed_attempts = models.PositiveSmallIntegerField(
        default=0,
        help_text='Wrong codes entered while this code was live',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'One-time code'  # type: ignore[mutable-override]
        verbose_name_plural = 'One-time codes'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.email} ({self.account_id[:8]})'


@final
class AuthSession(models.Model):
    """Session produced by a successful one-time code verification.

    Only a digest of the bearer secret is stored.
    """

    session_id = models.CharField(
        max_length=_SESSION_ID_MAX_LENGTH,
        unique=True,
    )

    secret_digest = models.CharField(
        max_length=_DIGEST_MAX_LENGTH,
        unique=True,
        help_text='SHA256 of the session secret',
    )

    account_id = models.CharField(
        max_length=_ACCOUNT_ID_MAX_LENGTH,
        db_index=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)

    last_activity = models.DateTimeField(
        auto_now=True,
        db_index=True,
    )

    expires_at = models.DateTimeField(db_index=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Session'  # type: ignore[mutable-override]
        verbose_name_plural = 'Sessions'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-last_activity']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.account_id[:8]} ({self.session_id[:8]})'

    def is_expired(self) -> bool:
        """Check whether the session outlived its expiry.

        Returns:
            True if expired.
        """
        return self.expires_at <= timezone.now()
