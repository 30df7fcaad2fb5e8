"""Settings for local development and tests."""

from server.settings.components import config

DEBUG = config('DJANGO_DEBUG', cast=bool, default=True)

SECRET_KEY = SECRET_KEY or 'development-only-insecure-key'  # type: ignore[name-defined]  # noqa: F821

ALLOWED_HOSTS = [
    config('DOMAIN_NAME', default='localhost'),
    'localhost',
    '0.0.0.0',  # noqa: S104
    '127.0.0.1',
    '[::1]',
    'testserver',
]
