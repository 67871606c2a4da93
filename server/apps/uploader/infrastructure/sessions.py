"""Resolve bearer tokens through Django's session framework.

The mobile app logs in through the regular host login and then sends
the session key as ``Authorization: Bearer <key>``.
"""

import logging
from collections.abc import Mapping
from importlib import import_module
from typing import Final, Protocol, final

from django.conf import settings
from django.contrib.auth import SESSION_KEY, get_user_model

from server.apps.uploader.entities import Principal

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER: Final = 'Authorization'
_BEARER_PREFIX: Final = 'Bearer '


class SessionStore(Protocol):
    """Resolves opaque session tokens to users."""

    def resolve(self, token: str) -> Principal | None:
        """Return the session's user, None if absent or expired."""


def extract_bearer_token(headers: Mapping[str, str]) -> str | None:
    """Extract the bearer token from request headers.

    Args:
        headers: Request headers (case-insensitive mapping).

    Returns:
        Token, or None if the header is missing or not a bearer token.
    """
    authorization = headers.get(AUTHORIZATION_HEADER, '')
    if not authorization.startswith(_BEARER_PREFIX):
        return None
    token = authorization[len(_BEARER_PREFIX):].strip()
    return token or None


@final
class DjangoSessionStore:
    """Session store backed by ``SESSION_ENGINE`` and the user model."""

    def resolve(self, token: str) -> Principal | None:
        """Resolve a session key to the logged-in user.

        Args:
            token: Session key.

        Returns:
            Principal for an active user, None otherwise.
        """
        engine = import_module(settings.SESSION_ENGINE)
        store = engine.SessionStore()
        if not store.exists(token):
            logger.debug('Unknown session token %s', token[:8])
            return None

        session = engine.SessionStore(session_key=token)
        user_pk = session.get(SESSION_KEY)
        if user_pk is None:
            logger.debug('Session %s has no authenticated user', token[:8])
            return None

        user_model = get_user_model()
        try:
            user = user_model._default_manager.get(pk=user_pk)
        except user_model.DoesNotExist:
            logger.warning('Session %s points to a missing user', token[:8])
            return None

        if not user.is_active:
            logger.warning('Inactive user session: %s', user.get_username())
            return None

        return Principal(user_id=str(user.pk), user_name=user.get_username())
