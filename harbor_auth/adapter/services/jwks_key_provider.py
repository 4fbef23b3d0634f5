"""
JWKS Key Provider

Fetches the identity provider's JSON Web Key Set over HTTPS and caches it.
An unknown kid triggers one refetch so rotated keys are picked up without
waiting for the cache to expire.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

import httpx

from harbor_auth.app.services.key_provider import ISigningKeyProvider, KeyProviderError, select_jwk
from harbor_auth.domain.base import utcnow

logger = logging.getLogger(__name__)


class JwksKeyProvider(ISigningKeyProvider):
    def __init__(
        self,
        jwks_url: str,
        timeout_seconds: float = 5.0,
        cache_ttl: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = utcnow,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.jwks_url = jwks_url
        self.timeout_seconds = timeout_seconds
        self.cache_ttl = cache_ttl
        self.clock = clock
        self.transport = transport
        self._jwks: Optional[Dict[str, Any]] = None
        self._fetched_at: Optional[datetime] = None

    def _cache_fresh(self) -> bool:
        return (
            self._jwks is not None
            and self._fetched_at is not None
            and self.clock() - self._fetched_at < self.cache_ttl
        )

    async def _fetch(self) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self.transport
            ) as client:
                response = await client.get(self.jwks_url)
                response.raise_for_status()
                jwks = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Failed to fetch JWKS from {self.jwks_url}: {exc!r}")
            raise KeyProviderError(f"JWKS unavailable: {exc}") from exc

        if not isinstance(jwks, dict) or not isinstance(jwks.get("keys"), list):
            raise KeyProviderError("JWKS response has no key list")

        self._jwks = jwks
        self._fetched_at = self.clock()
        logger.info(f"Fetched {len(jwks['keys'])} signing keys from {self.jwks_url}")
        return jwks

    async def get_key(self, header: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        kid = header.get("kid")
        if self._cache_fresh():
            key = select_jwk(self._jwks, kid)
            if key is not None:
                return key

        # Stale cache or unknown kid (key rotation)
        return select_jwk(await self._fetch(), kid)
