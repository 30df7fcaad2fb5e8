"""One-time-code login and session settings."""

from server.settings.components import config

# One-time codes expire after 15 minutes
ACCOUNTS_OTP_TTL = config('ACCOUNTS_OTP_TTL', cast=int, default=900)

# A code is burned after this many wrong guesses
ACCOUNTS_OTP_MAX_ATTEMPTS = config(
    'ACCOUNTS_OTP_MAX_ATTEMPTS',
    cast=int,
    default=5,
)

# Sessions expire after one year
ACCOUNTS_SESSION_TTL = config(
    'ACCOUNTS_SESSION_TTL',
    cast=int,
    default=365 * 24 * 60 * 60,
)

ACCOUNTS_SESSION_COOKIE = config(
    'ACCOUNTS_SESSION_COOKIE',
    default='vault-session',
)
ACCOUNTS_LOGIN_URL = config('ACCOUNTS_LOGIN_URL', default='/sign-in')

ACCOUNTS_AVATAR_PLACEHOLDER_URL = config(
    'ACCOUNTS_AVATAR_PLACEHOLDER_URL',
    default='https://img.freepik.com/free-psd/3d-illustration-person-with-sunglasses_23-2149436188.jpg',
)

ACCOUNTS_IDENTITY_PROVIDER = config(
    'ACCOUNTS_IDENTITY_PROVIDER',
    default='server.apps.accounts.infrastructure.identity_provider.IdentityProvider',
)
