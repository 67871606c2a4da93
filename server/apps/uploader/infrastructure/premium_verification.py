"""HTTP client for the external premium verification endpoint."""

import logging
from typing import final

import requests

logger = logging.getLogger(__name__)


@final
class HttpPremiumVerifier:
    """Confirms premium subscriptions against a remote endpoint.

    The endpoint receives ``{"userId": ..., "token": ...}`` as JSON and
    must answer 2xx with ``{"isPremium": true}`` to confirm. Any other
    answer, and any transport failure, counts as not premium.
    """

    def __init__(self, endpoint: str, timeout: float = 5.0) -> None:
        """Initialize verifier.

        Args:
            endpoint: Verification URL.
            timeout: Request timeout in seconds.
        """
        self._endpoint = endpoint
        self._timeout = timeout

    def __call__(self, user_id: str, premium_token: str | None) -> bool:
        """Verify a premium claim.

        Args:
            user_id: Calling user.
            premium_token: Token sent by the app.

        Returns:
            True only if the endpoint confirmed the subscription.
        """
        if not premium_token:
            return False

        try:
            response = requests.post(
                self._endpoint,
                json={'userId': user_id, 'token': premium_token},
                timeout=self._timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError):
            logger.exception(
                'Premium verification failed for user %s',
                user_id,
            )
            return False

        is_premium = isinstance(payload, dict) and payload.get('isPremium') is True
        logger.info(
            'Premium verification for user %s: %s',
            user_id,
            is_premium,
        )
        return is_premium
