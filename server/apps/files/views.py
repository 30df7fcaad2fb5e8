"""JSON endpoints for file listing, upload and mutations."""

import logging
from typing import Any

from django.core.exceptions import ValidationError
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from server.apps.accounts.http import (
    BadRequestError,
    error_response,
    parse_json_body,
    require_fields,
    session_required,
)
from server.apps.files.exceptions import (
    FileAccessDeniedError,
    FileMissingError,
    FileOperationError,
    FileTooLargeError,
    InvalidShareError,
    QuotaExceededError,
    StoreReadError,
    StoreWriteError,
)
from server.apps.files.logic.file_operations import delete_file, upload_files
from server.apps.files.logic.mutation_operations import (
    rename_file,
    update_sharing,
)
from server.apps.files.logic.queries import DEFAULT_SORT, list_files
from server.apps.files.logic.quota_operations import compute_usage
from server.apps.files.models import File

logger = logging.getLogger(__name__)

_ERROR_STATUSES: dict[type[FileOperationError], int] = {
    FileMissingError: 404,
    FileAccessDeniedError: 403,
    FileTooLargeError: 413,
    QuotaExceededError: 507,
    InvalidShareError: 400,
    StoreReadError: 503,
    StoreWriteError: 503,
}


def serialize_file(file_instance: File) -> dict[str, Any]:
    """Convert a File into its JSON document.

    Args:
        file_instance: File with prefetched shares.

    Returns:
        JSON-ready mapping.
    """
    return {
        'id': file_instance.pk,
        'name': file_instance.name,
        'type': file_instance.type,
        'extension': file_instance.extension,
        'sizeBytes': file_instance.size_bytes,
        'url': file_instance.url,
        'ownerId': file_instance.owner_id,
        'accountId': file_instance.account_id,
        'sharedWith': file_instance.get_shared_emails(),
        'bucketObjectId': file_instance.bucket_object_id,
        'createdAt': file_instance.created_at.isoformat(),
        'updatedAt': file_instance.updated_at.isoformat(),
    }


def _file_error_response(error: FileOperationError) -> JsonResponse:
    status = _ERROR_STATUSES.get(type(error), 500)
    if status >= 500:
        return error_response('Storage is unavailable, please try again.', status)
    return error_response(str(error), status)


def _upload_status(
    uploaded: list[File],
    rejected: list[tuple[str, FileOperationError]],
) -> int:
    """Pick the status of a batch upload response.

    Any stored file makes it 201. When nothing was stored, a store
    failure outranks caller errors, so a store outage is not reported
    as a bad request.
    """
    if uploaded:
        return 201
    statuses = [
        _ERROR_STATUSES.get(type(error), 500)
        for _, error in rejected
    ]
    return 503 if any(status >= 500 for status in statuses) else 400


@require_GET
@session_required
def list_files_view(request: HttpRequest) -> HttpResponse:
    """List files visible to the caller.

    Query parameters: ``types`` (comma separated), ``search``, ``sort``
    and ``limit``.
    """
    types = [
        file_type
        for file_type in request.GET.get('types', '').split(',')
        if file_type
    ]
    try:
        limit = int(request.GET.get('limit') or 0)
        listing = list_files(
            request.account,  # type: ignore[attr-defined]
            types=types,
            search_text=request.GET.get('search', ''),
            sort=request.GET.get('sort') or DEFAULT_SORT,
            limit=limit or None,
        )
    except ValueError:
        return error_response('Limit must be a positive integer', 400)
    except FileOperationError as error:
        return _file_error_response(error)

    return JsonResponse({
        'documents': [serialize_file(document) for document in listing.documents],
        'total': listing.total,
    })


@csrf_exempt
@require_POST
@session_required
def upload_view(request: HttpRequest) -> HttpResponse:
    """Upload one or more files sent as multipart ``file`` fields."""
    uploads = request.FILES.getlist('file')
    if not uploads:
        return error_response('No file was sent', 400)

    result = upload_files(
        request.account,  # type: ignore[attr-defined]
        ((upload.name, upload) for upload in uploads),
    )
    return JsonResponse(
        {
            'uploaded': [serialize_file(document) for document in result.uploaded],
            'rejected': [
                {'name': name, 'detail': str(error)}
                for name, error in result.rejected
            ],
        },
        status=_upload_status(result.uploaded, result.rejected),
    )


@csrf_exempt
@require_POST
@session_required
def rename_view(request: HttpRequest, file_id: int) -> HttpResponse:
    """Rename a file owned by the caller."""
    try:
        payload = parse_json_body(request)
        name, extension = require_fields(payload, 'name', 'extension')
        file_instance = rename_file(
            request.account,  # type: ignore[attr-defined]
            file_id,
            name,
            extension,
        )
    except BadRequestError as error:
        return error_response(str(error), 400)
    except ValidationError as error:
        return error_response(' '.join(error.messages), 400)
    except FileOperationError as error:
        return _file_error_response(error)
    return JsonResponse(serialize_file(file_instance))


@csrf_exempt
@require_POST
@session_required
def share_view(request: HttpRequest, file_id: int) -> HttpResponse:
    """Replace the emails a file owned by the caller is shared with."""
    try:
        emails = parse_json_body(request).get('emails')
        if not isinstance(emails, list):
            raise BadRequestError('Field "emails" must be a list')
        file_instance = update_sharing(
            request.account,  # type: ignore[attr-defined]
            file_id,
            emails,
        )
    except BadRequestError as error:
        return error_response(str(error), 400)
    except FileOperationError as error:
        return _file_error_response(error)
    return JsonResponse(serialize_file(file_instance))


@csrf_exempt
@require_POST
@session_required
def delete_view(request: HttpRequest, file_id: int) -> HttpResponse:
    """Delete a file owned by the caller."""
    try:
        delete_file(request.account, file_id)  # type: ignore[attr-defined]
    except FileOperationError as error:
        return _file_error_response(error)
    return JsonResponse({'status': 'success'})


@require_GET
@session_required
def usage_view(request: HttpRequest) -> HttpResponse:
    """Report the caller's storage usage per category."""
    try:
        report = compute_usage(request.account)  # type: ignore[attr-defined]
    except FileOperationError as error:
        return _file_error_response(error)
    return JsonResponse(report.to_dict())
