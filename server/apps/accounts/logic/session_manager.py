"""Session management for authenticated callers.

The session secret is request-scoped: it is read from the caller's
cookie and passed explicitly into every call, nothing is kept in
process state.
"""

import logging

from django.conf import settings
from django.http import HttpRequest, HttpResponse, HttpResponseRedirect

from server.apps.accounts.exceptions import NoSessionError, UserNotFoundError
from server.apps.accounts.infrastructure.identity_provider import (
    IssuedSession,
    get_session_ttl,
)
from server.apps.accounts.logic.credential_operations import (
    end_session,
    validate_session,
)
from server.apps.accounts.models import Account

logger = logging.getLogger(__name__)


def get_cookie_name() -> str:
    """Get the name of the session cookie.

    Returns:
        Cookie name from settings or ``vault-session``.
    """
    return getattr(settings, 'ACCOUNTS_SESSION_COOKIE', 'vault-session')


def get_login_url() -> str:
    """Get the URL signed-out callers are sent to.

    Returns:
        Login URL from settings or ``/sign-in``.
    """
    return getattr(settings, 'ACCOUNTS_LOGIN_URL', '/sign-in')


def get_session_secret(request: HttpRequest) -> str | None:
    """Read the session secret from the request cookie.

    Args:
        request: Incoming request.

    Returns:
        Secret string or None when no cookie is set.
    """
    return request.COOKIES.get(get_cookie_name()) or None


def establish(response: HttpResponse, session: IssuedSession) -> None:
    """Store the session secret in the caller's cookie.

    Any previous cookie value is overwritten. Other sessions of the same
    account stay valid upstream.

    Args:
        response: Response that will carry the cookie.
        session: Session returned by code verification.
    """
    response.set_cookie(
        get_cookie_name(),
        session.secret,
        max_age=get_session_ttl(),
        path='/',
        secure=True,
        httponly=True,
        samesite='Strict',
    )
    logger.info('Session cookie set: %s', session.session_id[:8])


def current(secret: str | None) -> Account:
    """Resolve a session secret into the caller's account.

    Args:
        secret: Session secret from the request, may be None.

    Returns:
        Account of the authenticated caller.

    Raises:
        NoSessionError: If no secret is given or it is not a live session.
        UserNotFoundError: If the session has no account record.
    """
    if not secret:
        raise NoSessionError('No session')

    session = validate_session(secret)

    try:
        return Account.objects.get(account_id=session.account_id)
    except Account.DoesNotExist as error:
        logger.error(
            'Session %s has no account record for %s',
            session.session_id[:8],
            session.account_id[:8],
        )
        raise UserNotFoundError('No account for session') from error


def terminate(secret: str | None) -> HttpResponseRedirect:
    """Sign the caller out.

    Upstream invalidation is attempted first. Whatever its outcome, the
    cookie is cleared and the caller is redirected to the login page.

    Args:
        secret: Session secret from the request, may be None.

    Returns:
        Redirect to the login URL with the session cookie deleted.
    """
    try:
        if secret:
            end_session(secret)
    except NoSessionError:
        logger.info('Sign-out without a live session')
    except Exception:
        logger.exception('Failed to invalidate session upstream')

    response = HttpResponseRedirect(get_login_url())
    response.delete_cookie(
        get_cookie_name(),
        path='/',
        samesite='Strict',
    )
    return response
