"""
Jotter Backend — Identity Verifier
====================================

What:  Exchanges a third-party ID token for a stable account id.
Why:   Jotter stores no passwords; the identity provider vouches for the user.
How:   POSTs {"idToken": ...} to the Identity Toolkit accounts:lookup endpoint
       and reads users[0].localId from the answer.
Who:   Built once by create_app(); called by the POST /auth route.
When:  Once per login attempt. Notes requests never reach the provider.

Failure Policy:
    There is no retry and no circuit breaker. A login is a one-shot exchange:
    an empty token, a transport error, a non-2xx status, an unreadable body
    or an answer without a matched account all raise IdentityVerificationError,
    which the login route turns into 401.

Trust Boundary:
    A response is accepted when it contains at least one user record with a
    localId. Audience and issuer of the token are not checked here; the
    provider performs its own validation of the token it was given.
"""

import logging
import time
import uuid
from typing import Optional

import httpx

from jotter.config import Settings
from jotter.exceptions import IdentityVerificationError

logger = logging.getLogger(__name__)


class IdentityVerifier:
    """
    Thin async client for the identity provider's token lookup.

    Args:
        api_key:     Key appended as ?key= to the lookup URL.
        lookup_url:  Full URL of the accounts:lookup endpoint.
        timeout:     Seconds before the outbound call is abandoned.
        transport:   Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        lookup_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.lookup_url = lookup_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(
        cls,
        app_settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "IdentityVerifier":
        return cls(
            api_key=app_settings.identity_api_key,
            lookup_url=app_settings.identity_lookup_url,
            timeout=app_settings.identity_timeout,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def verify(self, id_token: str) -> str:
        """
        Resolve an ID token to the provider's account id.

        Returns:
            The account id (localId) of the first matched user.

        Raises:
            IdentityVerificationError: for every failure path; never anything else.
        """
        # Short id to correlate the request/response log lines of one lookup
        lookup_id = str(uuid.uuid4())[:8]

        if not id_token:
            raise IdentityVerificationError(reason="empty token")

        start_time = time.perf_counter()
        try:
            response = await self._client.post(
                self.lookup_url,
                params={"key": self.api_key},
                json={"idToken": id_token},
            )
        except httpx.HTTPError as e:
            logger.warning(
                "[%s] Identity lookup transport error after %.0fms: %s",
                lookup_id,
                (time.perf_counter() - start_time) * 1000,
                type(e).__name__,
            )
            raise IdentityVerificationError(
                reason="transport error",
                context={"lookup_id": lookup_id, "error_type": type(e).__name__},
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000

        if not response.is_success:
            logger.warning(
                "[%s] Identity lookup rejected with HTTP %d in %.0fms",
                lookup_id,
                response.status_code,
                duration_ms,
            )
            raise IdentityVerificationError(
                reason="provider rejected token",
                context={"lookup_id": lookup_id, "status_code": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise IdentityVerificationError(
                reason="unreadable response",
                context={"lookup_id": lookup_id},
            ) from e

        user_id = self._extract_user_id(payload)
        if user_id is None:
            logger.warning("[%s] Identity lookup returned no matched user", lookup_id)
            raise IdentityVerificationError(
                reason="no matched user",
                context={"lookup_id": lookup_id},
            )

        logger.info("[%s] Identity lookup succeeded in %.0fms", lookup_id, duration_ms)
        return user_id

    @staticmethod
    def _extract_user_id(payload) -> Optional[str]:
        # Expected shape: {"users": [{"localId": "...", ...}, ...]}
        if not isinstance(payload, dict):
            return None
        users = payload.get("users")
        if not isinstance(users, list) or not users:
            return None
        first = users[0]
        if not isinstance(first, dict):
            return None
        local_id = first.get("localId")
        if not isinstance(local_id, str) or not local_id:
            return None
        return local_id

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()
