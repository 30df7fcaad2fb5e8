"""Django admin configuration for accounts app."""

from django.contrib import admin

from server.apps.accounts.models import Account, AuthSession, OneTimeCode


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin[Account]):
    """Admin interface for Account model."""

    list_display = [
        'email',
        'full_name',
        'account_id_short',
        'created_at',
    ]

    search_fields = [
        'email',
        'full_name',
        'account_id',
    ]

    readonly_fields = [
        'account_id',
        'email',
        'created_at',
        'updated_at',
    ]

    fieldsets = (
        ('Identity', {
            'fields': ('account_id', 'email', 'full_name'),
        }),
        ('Profile', {
            'fields': ('avatar_url',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
        }),
    )

    def account_id_short(self, obj: Account) -> str:
        """Display truncated account ID.

        Args:
            obj: Account instance.

        Returns:
            First 8 characters of account ID.
        """
        return obj.account_id[:8]
    account_id_short.short_description = 'Account ID'  # type: ignore[attr-defined]


@admin.register(AuthSession)
class AuthSessionAdmin(admin.ModelAdmin[AuthSession]):
    """Admin interface for AuthSession model."""

    list_display = [
        'session_id_short',
        'account_id',
        'created_at',
        'last_activity',
        'expires_at',
    ]

    list_filter = [
        'created_at',
        'last_activity',
    ]

    search_fields = [
        'session_id',
        'account_id',
    ]

    readonly_fields = [
        'session_id',
        'secret_digest',
        'account_id',
        'created_at',
        'last_activity',
        'expires_at',
    ]

    def session_id_short(self, obj: AuthSession) -> str:
        """Display truncated session ID.

        Args:
            obj: AuthSession instance.

        Returns:
            First 8 characters of session ID.
        """
        return obj.session_id[:8]
    session_id_short.short_description = 'Session ID'  # type: ignore[attr-defined]

    def has_add_permission(self, request: object) -> bool:
        """Sessions are only created by code verification."""
        return False


@admin.register(OneTimeCode)
class OneTimeCodeAdmin(admin.ModelAdmin[OneTimeCode]):
    """Admin interface for OneTimeCode model."""

    list_display = [
        'email',
        'account_id',
        'created_at',
        'expires_at',
        'consumed_at',
        'failed_attempts',
    ]

    search_fields = [
        'email',
        'account_id',
    ]

    readonly_fields = [
        'account_id',
        'email',
        'code_hash',
        'created_at',
        'expires_at',
        'consumed_at',
        'failed_attempts',
    ]

    def has_add_permission(self, request: object) -> bool:
        """Codes are only created by the identity provider."""
        return False
