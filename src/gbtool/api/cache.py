"""Durable cache of API responses.

All responses live in a single JSON document. Entries expire after a TTL
and writes to disk are debounced, so a burst of requests costs one write.
"""

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import aiofiles
from pydantic import AwareDatetime, BaseModel, Field, ValidationError

from gbtool.utils.datetime import now_utc

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=4)
DEFAULT_FLUSH_DELAY = 5.0

Writer = Callable[[Path, dict[str, Any]], Awaitable[None]]


class CallRecord(BaseModel):
    """When a response was stored under a key."""

    path: str
    date: AwareDatetime


class CacheEntry(BaseModel):
    """A stored response."""

    response: dict[str, Any]
    date: AwareDatetime


class CacheDocument(BaseModel):
    """On-disk layout of the cache file.

    ``calls`` is append-ordered, so it is also ordered by ``date``.
    """

    calls: list[CallRecord] = Field(default_factory=list)
    responses: dict[str, CacheEntry] = Field(default_factory=dict)


async def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write JSON to a temporary sibling, then rename it over ``path``.

    Raises:
        OSError: If the write or the rename fails
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    os.close(fd)
    temp_path = Path(temp_name)

    try:
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data))
        await asyncio.to_thread(temp_path.replace, path)
    except OSError:
        await asyncio.to_thread(temp_path.unlink, missing_ok=True)
        raise


class FlushScheduler:
    """Debounced writer for one cache file.

    Every :meth:`schedule` bumps a generation number and arms a timer that
    remembers it. When the timer fires it commits only if its generation is
    still current; otherwise a newer timer owns the write.
    """

    def __init__(
        self,
        path: Path,
        delay_seconds: float = DEFAULT_FLUSH_DELAY,
        writer: Writer = write_json_atomic,
    ) -> None:
        self.path = path
        self.delay_seconds = delay_seconds
        self._writer = writer
        self._lock = asyncio.Lock()
        self._pending: dict[str, Any] | None = None
        self._timers: set[asyncio.Task[None]] = set()
        self.generation = 0
        self.writes = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, snapshot: dict[str, Any]) -> None:
        """Record a new state and arm a delayed write for it.

        Must be called from a running event loop.
        """
        self.generation += 1
        self._pending = snapshot

        timer = asyncio.get_running_loop().create_task(self._fire(self.generation))
        self._timers.add(timer)
        timer.add_done_callback(self._timers.discard)

    async def _fire(self, generation: int) -> None:
        await asyncio.sleep(self.delay_seconds)
        if generation != self.generation:
            return
        await self.flush()

    async def flush(self) -> bool:
        """Write the pending state now, if there is one.

        Returns:
            True if a write happened
        """
        async with self._lock:
            if self._pending is None:
                return False

            snapshot, self._pending = self._pending, None
            try:
                await self._writer(self.path, snapshot)
            except OSError as e:
                logger.warning(f"Failed to write cache file {self.path}: {e}")
                return False

            self.writes += 1
            logger.debug(f"Wrote cache file {self.path}")
            return True

    async def close(self) -> None:
        """Flush any pending state and cancel outstanding timers."""
        await self.flush()
        timers = list(self._timers)
        for timer in timers:
            timer.cancel()
        await asyncio.gather(*timers, return_exceptions=True)


class ResponseCache:
    """TTL cache of API responses keyed by request signature.

    Example:
        >>> cache = await ResponseCache.open(Path("gb.cache.json"))
        >>> await cache.put("https://.../videos/?format=json", {"error": "OK"})
        >>> await cache.get("https://.../videos/?format=json")
        {'error': 'OK'}
        >>> await cache.close()
    """

    def __init__(
        self,
        scheduler: FlushScheduler,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = now_utc,
        document: CacheDocument | None = None,
    ) -> None:
        """Initialize the cache.

        Prefer :meth:`open`, which loads existing state from disk.

        Args:
            scheduler: Debounced writer owning the cache file
            ttl: How long a response stays valid
            clock: Source of the current time
            document: Initial state (empty when omitted)
        """
        self.scheduler = scheduler
        self.ttl = ttl
        self.clock = clock
        self._document = document if document is not None else CacheDocument()

    @classmethod
    async def open(
        cls,
        path: Path,
        ttl: timedelta = DEFAULT_TTL,
        flush_delay: float = DEFAULT_FLUSH_DELAY,
        clock: Callable[[], datetime] = now_utc,
        scheduler: FlushScheduler | None = None,
    ) -> "ResponseCache":
        """Load the cache file at ``path``.

        A missing or unreadable file gives an empty cache. Entries that
        expired while the file sat on disk are evicted, and the trimmed
        state is scheduled for writing.
        """
        scheduler = scheduler or FlushScheduler(path, flush_delay)
        document = await cls._load(path)
        cache = cls(scheduler, ttl=ttl, clock=clock, document=document)

        if cache.evict():
            cache._schedule_flush()
        return cache

    @staticmethod
    async def _load(path: Path) -> CacheDocument:
        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                content = await f.read()
            return CacheDocument.model_validate_json(content)
        except FileNotFoundError:
            logger.debug(f"No cache file at {path}; starting empty")
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable cache file {path}: {e}")
        return CacheDocument()

    @property
    def path(self) -> Path:
        return self.scheduler.path

    def __len__(self) -> int:
        return len(self._document.responses)

    def __contains__(self, key: str) -> bool:
        return key in self._document.responses

    def keep_from(self) -> datetime:
        """Oldest timestamp that is still fresh."""
        return self.clock() - self.ttl

    def evict(self) -> int:
        """Drop every entry stored before the TTL threshold.

        Returns:
            Number of entries removed
        """
        calls = self._document.calls
        keep_from = self.keep_from()
        cutoff = next(
            (index for index, call in enumerate(calls) if call.date >= keep_from),
            len(calls),
        )
        if cutoff == 0:
            return 0

        for call in calls[:cutoff]:
            self._document.responses.pop(call.path, None)
        del calls[:cutoff]

        logger.debug(f"Evicted {cutoff} expired cache entries")
        return cutoff

    async def get(self, key: str) -> dict[str, Any] | None:
        """Stored response for ``key``, or None if absent or expired."""
        entry = self._document.responses.get(key)
        if entry is None or entry.date < self.keep_from():
            return None
        return entry.response

    async def put(self, key: str, response: dict[str, Any]) -> None:
        """Store a response and schedule a write."""
        self.evict()

        document = self._document
        if key in document.responses:
            document.calls = [call for call in document.calls if call.path != key]

        now = self.clock()
        document.calls.append(CallRecord(path=key, date=now))
        document.responses[key] = CacheEntry(response=response, date=now)

        self._schedule_flush()

    async def clear(self) -> int:
        """Remove every entry and write the empty cache immediately.

        Returns:
            Number of entries removed
        """
        count = len(self._document.responses)
        self._document = CacheDocument()
        self._schedule_flush()
        await self.flush()
        return count

    def stats(self) -> dict[str, Any]:
        """Entry count, age range, and file details."""
        calls = self._document.calls
        now = self.clock()
        size = self.path.stat().st_size if self.path.exists() else 0
        return {
            "path": str(self.path),
            "total_entries": len(self._document.responses),
            "size_kb": round(size / 1024, 1),
            "oldest_entry_age_minutes": round((now - calls[0].date).total_seconds() / 60, 1)
            if calls
            else 0,
            "newest_entry_age_minutes": round((now - calls[-1].date).total_seconds() / 60, 1)
            if calls
            else 0,
            "ttl_hours": self.ttl.total_seconds() / 3600,
        }

    def _schedule_flush(self) -> None:
        self.scheduler.schedule(self._document.model_dump(mode="json"))

    async def flush(self) -> bool:
        """Write any pending state now."""
        return await self.scheduler.flush()

    async def close(self) -> None:
        """Final flush; call before the process exits."""
        await self.scheduler.close()
