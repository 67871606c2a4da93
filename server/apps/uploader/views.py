"""JSON endpoints used by the mobile app.

Every endpoint authenticates the app and the session first. Rejections
are returned as ``{"success": false, "message", "reason",
"upgradeRequired"}``; unexpected failures as a generic 500.
"""

import functools
import json
import logging
from collections.abc import Callable
from http import HTTPStatus
from typing import Any, Final

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from server.apps.uploader.config import UploaderSettings
from server.apps.uploader.entities import UploadCandidate, UploadRequest
from server.apps.uploader.exceptions import (
    IOFailureError,
    UploaderError,
    UploadValidationError,
)
from server.apps.uploader.services import build_admission_gate

logger = logging.getLogger(__name__)

_INTERNAL_ERROR_MESSAGE: Final = 'Internal server error'
_TRUE_VALUES: Final = frozenset(('1', 'true', 'yes', 'on'))

_View = Callable[..., JsonResponse]


def _error_response(error: UploaderError) -> JsonResponse:
    return JsonResponse(
        {
            'success': False,
            'message': error.message,
            'reason': error.reason.value,
            'upgradeRequired': error.upgrade_required,
        },
        status=error.status_code,
    )


def _internal_error_response() -> JsonResponse:
    return JsonResponse(
        {
            'success': False,
            'message': _INTERNAL_ERROR_MESSAGE,
            'reason': 'internal',
            'upgradeRequired': False,
        },
        status=HTTPStatus.INTERNAL_SERVER_ERROR,
    )


def uploader_endpoint(view: _View) -> _View:
    """Translate uploader errors into JSON responses.

    IOFailure and unexpected exceptions are logged with traceback and
    reported without internal detail.

    Args:
        view: View function to wrap.

    Returns:
        Wrapped, CSRF-exempt view.
    """
    @functools.wraps(view)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> JsonResponse:
        try:
            return view(request, *args, **kwargs)
        except IOFailureError:
            logger.exception('I/O failure in %s', view.__name__)
            return _internal_error_response()
        except UploaderError as error:
            logger.warning(
                'Rejected %s %s: %s (%s)',
                request.method,
                request.path,
                error.message,
                error.reason.value,
            )
            return _error_response(error)
        except Exception:
            logger.exception('Unhandled error in %s', view.__name__)
            return _internal_error_response()

    return csrf_exempt(wrapper)


def _flag(raw_value: str | None) -> bool:
    return (raw_value or '').strip().lower() in _TRUE_VALUES


@require_GET
@uploader_endpoint
def verify(request: HttpRequest) -> JsonResponse:
    """Check the session and report upload availability."""
    uploader_settings = UploaderSettings.from_django_settings()
    gate = build_admission_gate(uploader_settings)
    principal = gate.authenticate(request.headers)
    return JsonResponse({
        'success': True,
        'message': 'Session valid',
        'username': principal.user_name,
        'userId': principal.user_id,
        'uploadsEnabled': uploader_settings.enable_uploads,
        'maxFileSizeMB': uploader_settings.max_file_size_mb,
    })


@require_GET
@uploader_endpoint
def libraries(request: HttpRequest) -> JsonResponse:
    """List libraries the app can upload into."""
    gate = build_admission_gate()
    gate.authenticate(request.headers)
    return JsonResponse({
        'success': True,
        'message': '',
        'libraries': [
            {
                'id': library.id,
                'name': library.name,
                'path': library.root_path,
                'type': library.category,
            }
            for library in gate.directory.list_libraries()
        ],
    })


@require_GET
@uploader_endpoint
def folders(request: HttpRequest) -> JsonResponse:
    """List folders one level below a library path."""
    gate = build_admission_gate()
    gate.authenticate(request.headers)

    library_id = request.GET.get('libraryId', '')
    if not library_id:
        raise UploadValidationError('LibraryId parameter is required')

    library = gate.directory.get_library(library_id)
    entries = gate.directory.list_folders(library, request.GET.get('path'))
    return JsonResponse({
        'success': True,
        'message': '',
        'folders': [
            {
                'name': entry.name,
                'path': entry.path,
                'isDirectory': entry.is_directory,
            }
            for entry in entries
        ],
    })


def _json_body(request: HttpRequest) -> dict[str, Any]:
    try:
        payload = json.loads(request.body or b'{}')
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise UploadValidationError('Request body must be JSON') from error
    if not isinstance(payload, dict):
        raise UploadValidationError('Request body must be a JSON object')
    return payload


@require_POST
@uploader_endpoint
def create_folder(request: HttpRequest) -> JsonResponse:
    """Create a folder inside a library."""
    gate = build_admission_gate()
    principal = gate.authenticate(request.headers)
    payload = _json_body(request)

    library_id = str(payload.get('libraryId') or '')
    folder_name = str(payload.get('folderName') or '')
    if not library_id or not folder_name:
        raise UploadValidationError('LibraryId and FolderName are required')

    library = gate.directory.get_library(library_id)
    folder = gate.directory.create_folder(
        library,
        folder_name,
        payload.get('parentPath') or None,
    )
    logger.info('Created folder %s by user %s', folder, principal.user_name)
    return JsonResponse({
        'success': True,
        'message': 'Folder created successfully',
    })


@require_POST
@uploader_endpoint
def upload(request: HttpRequest) -> JsonResponse:
    """Upload a multipart batch of files into a library folder."""
    gate = build_admission_gate()
    upload_request = UploadRequest(
        library_id=request.GET.get('libraryId', ''),
        folder_id=request.GET.get('folderId', ''),
        claimed_premium=_flag(request.GET.get('isPremium')),
        premium_token=request.GET.get('premiumToken') or None,
        candidates=tuple(
            UploadCandidate(
                file_name=uploaded.name,
                byte_size=uploaded.size,
                content=uploaded,
            )
            for uploaded in request.FILES.getlist('files')
        ),
    )

    result = gate.upload(request.headers, upload_request)
    return JsonResponse({
        'success': True,
        'message': f'Successfully uploaded {len(result.outcomes)} file(s)',
        'uploadedFiles': [
            {
                'fileName': outcome.file_name,
                'size': outcome.byte_size,
                'path': outcome.final_path,
            }
            for outcome in result.outcomes
        ],
        'isPremiumUpload': result.is_premium,
    })


@require_GET
@uploader_endpoint
def user_limits(request: HttpRequest) -> JsonResponse:
    """Report current usage and remaining daily quota."""
    gate = build_admission_gate()
    principal = gate.authenticate(request.headers)
    limits = gate.describe_limits(
        principal,
        _flag(request.GET.get('isPremium')),
        request.GET.get('premiumToken') or None,
    )
    return JsonResponse({
        'success': True,
        'message': '',
        'isPremium': limits.is_premium,
        'dailyUploadLimit': limits.daily_upload_limit,
        'dailySizeLimitMB': limits.daily_size_limit_mb,
        'maxFileSizeMB': limits.max_file_size_mb,
        'filesUploadedToday': limits.files_uploaded_today,
        'sizeUploadedTodayMB': limits.size_uploaded_today_mb,
        'remainingFiles': limits.remaining_files,
        'remainingSizeMB': limits.remaining_size_mb,
    })
