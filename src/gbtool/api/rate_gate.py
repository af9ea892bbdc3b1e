"""Request pacing for the remote API.

At most one request is in flight at a time, and successive requests are
spaced at least ``interval_ms`` apart.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1000


class Turn:
    """A caller's exclusive slot in the gate."""

    def __init__(self, gate: "RateGate") -> None:
        self._gate = gate
        self.sent = False

    async def wait(self) -> None:
        """Wait out the spacing since the last request, then mark this turn as sending."""
        remaining = self._gate.remaining()
        if remaining > 0:
            logger.debug(f"Rate limit: waiting {remaining:.3f}s")
            await self._gate.sleep(remaining)
        self.sent = True


class RateGate:
    """Serializes requests and enforces a minimum interval between them.

    One gate is shared by every client talking to the same API.

    Example:
        >>> gate = RateGate(interval_ms=1000)
        >>> async with gate.turn() as turn:
        ...     await turn.wait()
        ...     # ... make the request ...
    """

    def __init__(
        self,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the gate.

        Args:
            interval_ms: Minimum spacing between requests in milliseconds
            clock: Monotonic time source in seconds
            sleep: Coroutine used for waiting
        """
        self.interval = interval_ms / 1000
        self.poll_interval = max(min(self.interval, 0.1), 0.001)
        self.clock = clock
        self.sleep = sleep
        self.busy = False
        self.last_call: float | None = None

    def remaining(self) -> float:
        """Seconds until the next request may start."""
        if self.last_call is None:
            return 0.0
        return self.last_call + self.interval - self.clock()

    @asynccontextmanager
    async def turn(self) -> AsyncIterator[Turn]:
        """Wait until no other request is in flight and hold the gate.

        The spacing clock only advances if the holder actually sent a
        request (called :meth:`Turn.wait`).
        """
        while self.busy:
            await self.sleep(self.poll_interval)

        self.busy = True
        turn = Turn(self)
        try:
            yield turn
        finally:
            if turn.sent:
                self.last_call = self.clock()
            self.busy = False
