"""Exceptions for uploader app.

Every rejection raised by the admission pipeline is an ``UploaderError``
subclass carrying a machine-readable ``reason``, the HTTP status used at
the request boundary and whether the client should offer an upgrade.
"""

import enum
from http import HTTPStatus
from typing import ClassVar


class FailureReason(enum.StrEnum):
    """Machine-distinguishable rejection reasons."""

    AUTHENTICATION = 'authentication'
    SESSION = 'session'
    DISABLED = 'disabled'
    VALIDATION = 'validation'
    QUOTA = 'quota'
    NOT_FOUND = 'not_found'
    TYPE_REJECTED = 'type_rejected'
    SIZE_REJECTED = 'size_rejected'
    ALREADY_EXISTS = 'already_exists'
    IO_FAILURE = 'io_failure'


class UploaderError(Exception):
    """Base class for all uploader rejections."""

    reason: ClassVar[FailureReason]
    status_code: ClassVar[int] = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str, *, upgrade_required: bool = False) -> None:
        """Initialize UploaderError.

        Args:
            message: Human readable message returned to the client.
            upgrade_required: Whether a premium upgrade would lift the
                rejection.
        """
        self.message = message
        self.upgrade_required = upgrade_required
        super().__init__(message)


class AuthenticationFailedError(UploaderError):
    """Raised when app identity headers are missing or mismatched."""

    reason = FailureReason.AUTHENTICATION
    status_code = HTTPStatus.UNAUTHORIZED


class SessionInvalidError(UploaderError):
    """Raised when the bearer token does not resolve to a user."""

    reason = FailureReason.SESSION
    status_code = HTTPStatus.UNAUTHORIZED


class FeatureDisabledError(UploaderError):
    """Raised when an administratively disabled feature is used."""

    reason = FailureReason.DISABLED
    status_code = HTTPStatus.FORBIDDEN


class UploadValidationError(UploaderError):
    """Raised when required request fields are missing or malformed."""

    reason = FailureReason.VALIDATION


class QuotaExceededError(UploaderError):
    """Raised when a batch would exceed the daily quota."""

    reason = FailureReason.QUOTA
    status_code = HTTPStatus.FORBIDDEN

    def __init__(self, message: str, *, limit: int, used: int, requested: int) -> None:
        """Initialize QuotaExceededError.

        Args:
            message: Human readable message.
            limit: Configured daily limit (files or bytes).
            used: Usage already recorded today.
            requested: Amount the rejected batch asked for.
        """
        self.limit = limit
        self.used = used
        self.requested = requested
        super().__init__(message, upgrade_required=True)


class SizeExceededError(UploaderError):
    """Raised when a single file exceeds the per-file cap of its tier."""

    reason = FailureReason.SIZE_REJECTED
    status_code = HTTPStatus.REQUEST_ENTITY_TOO_LARGE


class TypeRejectedError(UploaderError):
    """Raised when a file extension is not allowed for the library."""

    reason = FailureReason.TYPE_REJECTED
    status_code = HTTPStatus.UNSUPPORTED_MEDIA_TYPE


class NotFoundError(UploaderError):
    """Raised when a library or folder does not exist."""

    reason = FailureReason.NOT_FOUND
    status_code = HTTPStatus.NOT_FOUND


class AlreadyExistsError(UploaderError):
    """Raised when a folder to create already exists."""

    reason = FailureReason.ALREADY_EXISTS
    status_code = HTTPStatus.CONFLICT


class IOFailureError(UploaderError):
    """Raised when the filesystem cannot be written."""

    reason = FailureReason.IO_FAILURE
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
