"""
Unit tests for the JWKS key provider
"""

from datetime import timedelta

import httpx
import pytest

from harbor_auth.adapter.services.jwks_key_provider import JwksKeyProvider
from harbor_auth.app.services.key_provider import KeyProviderError

JWKS_URL = "https://idp.example.com/pool/.well-known/jwks.json"


class _JwksServer:
    def __init__(self, keys, status_code=200):
        self.keys = keys
        self.status_code = status_code
        self.calls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        return httpx.Response(self.status_code, json={"keys": self.keys})


def make_provider(server, clock):
    return JwksKeyProvider(
        JWKS_URL,
        timeout_seconds=1.0,
        cache_ttl=timedelta(hours=1),
        clock=clock,
        transport=httpx.MockTransport(server.handler),
    )


@pytest.mark.asyncio
async def test_key_cached_within_ttl(clock):
    server = _JwksServer([{"kid": "k1", "kty": "oct", "k": "c2VjcmV0"}])
    provider = make_provider(server, clock)

    first = await provider.get_key({"kid": "k1"})
    clock.advance(minutes=59)
    second = await provider.get_key({"kid": "k1"})

    assert first == second == {"kid": "k1", "kty": "oct", "k": "c2VjcmV0"}
    assert server.calls == 1


@pytest.mark.asyncio
async def test_cache_refreshed_after_ttl(clock):
    server = _JwksServer([{"kid": "k1", "kty": "oct", "k": "c2VjcmV0"}])
    provider = make_provider(server, clock)

    await provider.get_key({"kid": "k1"})
    clock.advance(hours=1)
    await provider.get_key({"kid": "k1"})

    assert server.calls == 2


@pytest.mark.asyncio
async def test_unknown_kid_triggers_refetch(clock):
    server = _JwksServer([{"kid": "k1", "kty": "oct", "k": "c2VjcmV0"}])
    provider = make_provider(server, clock)
    await provider.get_key({"kid": "k1"})

    server.keys = [{"kid": "k2", "kty": "oct", "k": "bmV3"}]
    rotated = await provider.get_key({"kid": "k2"})

    assert rotated["kid"] == "k2"
    assert server.calls == 2


@pytest.mark.asyncio
async def test_unknown_kid_after_refetch_is_none(clock):
    server = _JwksServer([{"kid": "k1", "kty": "oct", "k": "c2VjcmV0"}])
    provider = make_provider(server, clock)

    assert await provider.get_key({"kid": "missing"}) is None


@pytest.mark.asyncio
async def test_fetch_failure_raises_key_provider_error(clock):
    server = _JwksServer([], status_code=503)
    provider = make_provider(server, clock)

    with pytest.raises(KeyProviderError):
        await provider.get_key({"kid": "k1"})
