"""Pooled httpx clients shared by the provider adapters.

One ``httpx.AsyncClient`` per provider, so connections to the same API are
reused across queue items. A client is bound to the event loop that created
it; asking for one from a different loop (a new test case, a server reload)
replaces it, and the replaced client is closed on the next ``close_all``.
"""
from __future__ import annotations

import asyncio
import logging

import httpx

from creative_studio.schemas.common import AIProvider

logger = logging.getLogger(__name__)

# Per-request bounds. The per-generation deadline is ProviderConfig.timeout,
# enforced by AIProviderService around the whole submit/poll cycle.
PROVIDER_TIMEOUTS: dict[AIProvider, httpx.Timeout] = {
    AIProvider.OPENAI: httpx.Timeout(120.0, connect=15.0),
    AIProvider.STABLE_DIFFUSION: httpx.Timeout(120.0, connect=15.0),
    AIProvider.STABLE_VIDEO: httpx.Timeout(120.0, connect=15.0),
    AIProvider.MIDJOURNEY: httpx.Timeout(30.0, connect=10.0),
    AIProvider.RUNWAY: httpx.Timeout(30.0, connect=10.0),
}
DEFAULT_TIMEOUT = httpx.Timeout(60.0, connect=15.0)

POOL_LIMITS = httpx.Limits(max_connections=20, max_keepalive_connections=10, keepalive_expiry=120)


class ProviderClientPool:
    def __init__(self, limits: httpx.Limits = POOL_LIMITS):
        self.limits = limits
        self._entries: dict[AIProvider, tuple[httpx.AsyncClient, asyncio.AbstractEventLoop]] = {}
        self._stale: list[tuple[AIProvider, httpx.AsyncClient]] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def stale_count(self) -> int:
        return len(self._stale)

    def get(self, provider: AIProvider) -> httpx.AsyncClient:
        """Client for *provider* on the running loop, created on first use."""
        provider = AIProvider(provider)
        loop = asyncio.get_running_loop()
        entry = self._entries.get(provider)
        if entry is not None:
            client, owner = entry
            if owner is loop and not client.is_closed:
                return client
            if not client.is_closed:
                self._stale.append((provider, client))
                logger.debug("Replacing HTTP client for %s opened on another event loop", provider.value)

        client = httpx.AsyncClient(
            timeout=PROVIDER_TIMEOUTS.get(provider, DEFAULT_TIMEOUT),
            limits=self.limits,
            follow_redirects=True,
        )
        self._entries[provider] = (client, loop)
        logger.debug("Opened HTTP client for %s", provider.value)
        return client

    async def close_all(self) -> None:
        entries, self._entries = self._entries, {}
        stale, self._stale = self._stale, []
        clients = [(provider, client) for provider, (client, _) in entries.items()] + stale
        for provider, client in clients:
            if client.is_closed:
                continue
            try:
                await client.aclose()
            except (httpx.HTTPError, RuntimeError) as e:
                # Client from a loop that is already gone
                logger.warning("Could not close HTTP client for %s: %s", provider.value, e)
        logger.info("Closed %d provider HTTP clients", len(clients))


_pool = ProviderClientPool()


def get_http_client(provider: AIProvider) -> httpx.AsyncClient:
    return _pool.get(provider)


async def close_all_clients() -> None:
    await _pool.close_all()
