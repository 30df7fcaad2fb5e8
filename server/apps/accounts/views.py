"""JSON endpoints for one-time code login.

Every auth failure is answered with the same generic message so that
responses do not reveal whether an email is registered. The session
cookie is SameSite=Strict, which is why these endpoints skip CSRF tokens.
"""

import logging

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from server.apps.accounts.exceptions import AuthError, UserNotFoundError
from server.apps.accounts.http import (
    BadRequestError,
    error_response,
    parse_json_body,
    require_fields,
    session_required,
)
from server.apps.accounts.logic import session_manager
from server.apps.accounts.logic.credential_operations import (
    create_account,
    mint_account_id,
    request_otp,
    sign_in,
    verify_otp,
)

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def sign_up_view(request: HttpRequest) -> HttpResponse:
    """Register an account if needed and send a one-time code."""
    try:
        full_name, email = require_fields(
            parse_json_body(request),
            'fullName',
            'email',
        )
        account_id = create_account(full_name, email)
    except BadRequestError as error:
        return error_response(str(error), status=400)
    except AuthError as error:
        return error_response(error.public_message, status=400)
    return JsonResponse({'accountId': account_id})


@csrf_exempt
@require_POST
def sign_in_view(request: HttpRequest) -> HttpResponse:
    """Send a one-time code to a registered email.

    Unknown emails get the same answer with an id no code was sent for,
    so the response does not reveal whether the email is registered.
    """
    try:
        (email,) = require_fields(parse_json_body(request), 'email')
        account_id = sign_in(email)
    except UserNotFoundError:
        logger.info('Sign-in requested for an unregistered email')
        account_id = mint_account_id()
    except BadRequestError as error:
        return error_response(str(error), status=400)
    except AuthError as error:
        return error_response(error.public_message, status=400)
    return JsonResponse({'accountId': account_id})


@csrf_exempt
@require_POST
def request_otp_view(request: HttpRequest) -> HttpResponse:
    """Send a fresh one-time code, used by "resend code"."""
    try:
        (email,) = require_fields(parse_json_body(request), 'email')
        account_id = request_otp(email)
    except BadRequestError as error:
        return error_response(str(error), status=400)
    except AuthError as error:
        return error_response(error.public_message, status=400)
    return JsonResponse({'accountId': account_id})


@csrf_exempt
@require_POST
def verify_otp_view(request: HttpRequest) -> HttpResponse:
    """Exchange a one-time code for a session cookie."""
    try:
        account_id, code = require_fields(
            parse_json_body(request),
            'accountId',
            'code',
        )
        session = verify_otp(account_id, code)
    except BadRequestError as error:
        return error_response(str(error), status=400)
    except AuthError as error:
        return error_response(error.public_message, status=400)

    response = JsonResponse({'sessionId': session.session_id})
    session_manager.establish(response, session)
    return response


@csrf_exempt
@require_POST
def sign_out_view(request: HttpRequest) -> HttpResponse:
    """Invalidate the session and redirect to the login page."""
    return session_manager.terminate(
        session_manager.get_session_secret(request),
    )


@require_GET
@session_required
def me_view(request: HttpRequest) -> HttpResponse:
    """Describe the authenticated caller."""
    account = request.account  # type: ignore[attr-defined]
    return JsonResponse({
        'id': account.pk,
        'accountId': account.account_id,
        'fullName': account.full_name,
        'email': account.email,
        'avatarUrl': account.avatar_url,
    })
