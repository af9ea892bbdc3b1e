"""Wiring of cache, rate gate, client and matchers for one CLI run."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import TypeVar

import httpx

from gbtool.api.cache import ResponseCache
from gbtool.api.client import ApiClient
from gbtool.api.endpoints import GiantBombApi
from gbtool.api.rate_gate import RateGate
from gbtool.catalog.builder import CatalogBuilder
from gbtool.config.manager import resolve_cache_file
from gbtool.config.schema import GlobalConfig
from gbtool.matching.shows import ShowMatcher
from gbtool.matching.videos import VideoMatcher
from gbtool.utils.retry import RetryConfig, retry_transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Session:
    """Everything a command needs to talk to the API."""

    config: GlobalConfig
    api_key: str
    cache: ResponseCache
    client: ApiClient
    api: GiantBombApi
    shows: ShowMatcher
    videos: VideoMatcher
    builder: CatalogBuilder
    retry: RetryConfig

    async def attempt(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run an API operation under the configured retry policy."""
        return await retry_transport(operation, self.retry)


async def open_cache(config: GlobalConfig) -> ResponseCache:
    return await ResponseCache.open(
        resolve_cache_file(config),
        ttl=timedelta(hours=config.cache_ttl_hours),
        flush_delay=config.cache_flush_ms / 1000,
    )


@asynccontextmanager
async def open_session(
    config: GlobalConfig,
    api_key: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[Session]:
    """Open the cache and API client; flush and close both on exit.

    The cache is flushed even when the block raises or is cancelled.
    """
    cache = await open_cache(config)
    try:
        client = ApiClient(
            api_key,
            cache,
            gate=RateGate(config.rate_limit_ms),
            base_url=config.base_url,
            timeout=config.request_timeout_seconds,
            transport=transport,
        )
        async with client:
            api = GiantBombApi(client)
            yield Session(
                config=config,
                api_key=api_key,
                cache=cache,
                client=client,
                api=api,
                shows=ShowMatcher(api),
                videos=VideoMatcher(api),
                builder=CatalogBuilder(api, copy_year=config.copy_year),
                retry=RetryConfig(max_attempts=config.retry_attempts),
            )
    finally:
        await cache.close()
        logger.debug(f"Closed cache {cache.path}")
