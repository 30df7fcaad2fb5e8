"""HTTP helpers shared by the JSON views."""

import json
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from django.http import HttpRequest, HttpResponse, JsonResponse

from server.apps.accounts.exceptions import AuthError
from server.apps.accounts.logic.session_manager import (
    current,
    get_session_secret,
)

logger = logging.getLogger(__name__)

_View = Callable[..., HttpResponse]


class BadRequestError(Exception):
    """Raised when a request body cannot be used."""


def error_response(message: str, status: int) -> JsonResponse:
    """Build a JSON error response.

    Args:
        message: Message shown to the caller.
        status: HTTP status code.

    Returns:
        JsonResponse with ``{"detail": message}``.
    """
    return JsonResponse({'detail': message}, status=status)


def parse_json_body(request: HttpRequest) -> dict[str, Any]:
    """Decode a JSON object body.

    Args:
        request: Incoming request.

    Returns:
        Decoded object.

    Raises:
        BadRequestError: If the body is not a JSON object.
    """
    try:
        payload = json.loads(request.body or b'{}')
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise BadRequestError('Body must be valid JSON') from error

    if not isinstance(payload, dict):
        raise BadRequestError('Body must be a JSON object')
    return payload


def require_fields(payload: dict[str, Any], *names: str) -> list[str]:
    """Extract required non-empty string fields.

    Args:
        payload: Decoded request body.
        names: Field names to extract.

    Returns:
        Field values in the order of ``names``.

    Raises:
        BadRequestError: If a field is missing or not a non-empty string.
    """
    values = []
    for name in names:
        value = payload.get(name)
        if not isinstance(value, str) or not value.strip():
            raise BadRequestError(f'Field "{name}" is required')
        values.append(value)
    return values


def session_required(view: _View) -> _View:
    """Resolve the caller's account before running the view.

    The account is attached as ``request.account``. Missing or broken
    sessions are answered with 401 and a generic message.

    Args:
        view: View function to wrap.

    Returns:
        Wrapped view.
    """
    @wraps(view)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        try:
            request.account = current(get_session_secret(request))  # type: ignore[attr-defined]
        except AuthError as error:
            logger.info('Rejected unauthenticated request: %s', error)
            return error_response(error.public_message, status=401)
        return view(request, *args, **kwargs)

    return wrapper
