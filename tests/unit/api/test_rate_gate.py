"""Tests for request pacing."""

import asyncio

import pytest

from gbtool.api.rate_gate import RateGate


class FakeTime:
    """Monotonic clock that advances only when slept on."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class TestRateGate:
    """Tests for RateGate."""

    def test_poll_interval_bounds(self) -> None:
        """Test that polling is capped at 100ms and floored at 1ms."""
        assert RateGate(interval_ms=1000).poll_interval == 0.1
        assert RateGate(interval_ms=50).poll_interval == 0.05
        assert RateGate(interval_ms=0).poll_interval == 0.001

    def test_remaining_before_first_call(self) -> None:
        """Test that the first request never waits."""
        assert RateGate(interval_ms=1000).remaining() == 0.0

    @pytest.mark.asyncio
    async def test_requests_are_spaced(self) -> None:
        """Test that consecutive requests start at least one interval apart."""
        time = FakeTime()
        gate = RateGate(interval_ms=1000, clock=time.clock, sleep=time.sleep)
        started: list[float] = []

        for _ in range(3):
            async with gate.turn() as turn:
                await turn.wait()
                started.append(time.now)

        assert started == [0.0, 1.0, 2.0]

    @pytest.mark.asyncio
    async def test_no_wait_after_interval_elapsed(self) -> None:
        """Test that a request after a long pause goes out immediately."""
        time = FakeTime()
        gate = RateGate(interval_ms=1000, clock=time.clock, sleep=time.sleep)

        async with gate.turn() as turn:
            await turn.wait()
        time.now += 5
        async with gate.turn() as turn:
            await turn.wait()

        assert time.sleeps == []

    @pytest.mark.asyncio
    async def test_unsent_turn_does_not_advance_clock(self) -> None:
        """Test that a turn answered without a request does not delay the next one."""
        time = FakeTime()
        gate = RateGate(interval_ms=1000, clock=time.clock, sleep=time.sleep)

        async with gate.turn():
            pass

        assert gate.last_call is None
        assert not gate.busy

    @pytest.mark.asyncio
    async def test_gate_released_on_error(self) -> None:
        """Test that an exception inside a turn frees the gate."""
        gate = RateGate(interval_ms=0)

        with pytest.raises(RuntimeError):
            async with gate.turn() as turn:
                await turn.wait()
                raise RuntimeError("request failed")

        assert not gate.busy
        assert gate.last_call is not None

    @pytest.mark.asyncio
    async def test_single_request_in_flight(self) -> None:
        """Test that concurrent callers never overlap inside the gate."""
        gate = RateGate(interval_ms=0)
        active = 0
        peak = 0

        async def request() -> None:
            nonlocal active, peak
            async with gate.turn() as turn:
                await turn.wait()
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*(request() for _ in range(4)))

        assert peak == 1
