"""Premium entitlement resolution."""

import logging
import secrets
from typing import Protocol, final

from server.apps.uploader.config import UploaderSettings
from server.apps.uploader.entities import Entitlement

logger = logging.getLogger(__name__)

INVALID_TOKEN_REASON = 'invalid premium token'


class PremiumVerifier(Protocol):
    """External premium subscription check."""

    def __call__(self, user_id: str, premium_token: str | None) -> bool:
        """Return True only if the subscription is confirmed."""


@final
class EntitlementResolver:
    """Decides whether a request is served with premium limits.

    Precedence is strict and fails closed: anything not positively
    confirmed resolves to the free tier.
    """

    def __init__(
        self,
        settings: UploaderSettings,
        verifier: PremiumVerifier | None = None,
    ) -> None:
        """Initialize resolver.

        Args:
            settings: Uploader configuration.
            verifier: Client for the external verification endpoint,
                used only when an endpoint is configured.
        """
        self._settings = settings
        self._verifier = verifier

    def resolve(
        self,
        user_id: str,
        claimed_premium: bool,
        premium_token: str | None = None,
    ) -> Entitlement:
        """Resolve the entitlement for one request.

        Args:
            user_id: Calling user.
            claimed_premium: Premium flag sent by the app.
            premium_token: Optional token proving the claim.

        Returns:
            Resolved entitlement.
        """
        if self._settings.enable_premium_bypass:
            return Entitlement(is_premium=True)

        # A free-tier claim is trusted as is, no token is checked
        if not claimed_premium:
            return Entitlement(is_premium=False)

        static_key = self._settings.premium_api_key
        if static_key and premium_token and secrets.compare_digest(
            premium_token.encode(),
            static_key.encode(),
        ):
            return Entitlement(is_premium=True)

        if self._settings.premium_verification_endpoint:
            if self._verify_externally(user_id, premium_token):
                return Entitlement(is_premium=True)

        logger.warning('Premium claim rejected for user %s', user_id)
        return Entitlement(is_premium=False, reason=INVALID_TOKEN_REASON)

    def _verify_externally(self, user_id: str, premium_token: str | None) -> bool:
        if self._verifier is None:
            logger.warning(
                'Premium verification endpoint configured but no verifier '
                'is available',
            )
            return False
        return self._verifier(user_id, premium_token)
