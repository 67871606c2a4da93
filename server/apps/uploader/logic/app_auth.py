"""Shared-secret authentication of the companion mobile app."""

import logging
import secrets
from collections.abc import Mapping
from typing import Final

from server.apps.uploader.config import UploaderSettings
from server.apps.uploader.exceptions import AuthenticationFailedError

logger = logging.getLogger(__name__)

API_KEY_HEADER: Final = 'X-API-Key'
SECURITY_TOKEN_HEADER: Final = 'X-Security-Token'
APP_PACKAGE_HEADER: Final = 'X-App-Package'
USER_AGENT_HEADER: Final = 'User-Agent'

_FAILURE_MESSAGE: Final = 'Invalid app authentication'


def _matches(provided: str | None, expected: str) -> bool:
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode(), expected.encode())


def authenticate_app(
    headers: Mapping[str, str],
    settings: UploaderSettings,
) -> None:
    """Verify the app identity headers of a request.

    API key, security token and app package must equal the configured
    values exactly and the user agent must contain the client identifier.
    Which check failed is logged but never reported to the caller.

    Args:
        headers: Request headers (case-insensitive mapping).
        settings: Uploader configuration.

    Raises:
        AuthenticationFailedError: If any check fails.
    """
    checks = (
        (API_KEY_HEADER, _matches(headers.get(API_KEY_HEADER), settings.api_key)),
        (
            SECURITY_TOKEN_HEADER,
            _matches(headers.get(SECURITY_TOKEN_HEADER), settings.security_token),
        ),
        (
            APP_PACKAGE_HEADER,
            _matches(headers.get(APP_PACKAGE_HEADER), settings.allowed_app_package),
        ),
        (
            USER_AGENT_HEADER,
            bool(settings.client_identifier)
            and settings.client_identifier in headers.get(USER_AGENT_HEADER, ''),
        ),
    )

    for header, passed in checks:
        if not passed:
            logger.warning('App authentication failed: bad %s header', header)
            raise AuthenticationFailedError(_FAILURE_MESSAGE)
