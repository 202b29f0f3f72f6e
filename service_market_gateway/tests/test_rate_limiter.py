"""
Unit tests for the request spacer.
"""

import asyncio

import pytest

from service_market_gateway.app.ratelimit.request_spacer import RequestSpacer


class TestRequestSpacer:
    """Test cases for RequestSpacer."""

    @pytest.fixture
    def spacer(self, clock):
        return RequestSpacer(1.0, clock=clock)

    @pytest.mark.asyncio
    async def test_first_request_does_not_wait(self, spacer, clock):
        waited = await spacer.acquire()

        assert waited == 0
        assert clock.sleeps == []
        assert spacer.last_request_at == clock.now()

    @pytest.mark.asyncio
    async def test_waits_for_remaining_interval(self, spacer, clock):
        await spacer.acquire()
        clock.advance(0.1)

        waited = await spacer.acquire()

        assert waited == pytest.approx(0.9)
        assert clock.sleeps == [pytest.approx(0.9)]

    @pytest.mark.asyncio
    async def test_no_wait_after_interval_elapsed(self, spacer, clock):
        await spacer.acquire()
        clock.advance(1.5)

        assert await spacer.acquire() == 0

    @pytest.mark.asyncio
    async def test_concurrent_callers_are_paced_in_issue_order(self, spacer, clock):
        issued = []

        async def call(name):
            await spacer.acquire()
            issued.append((name, clock.now()))

        await asyncio.gather(call("a"), call("b"), call("c"))

        assert [name for name, _ in issued] == ["a", "b", "c"]
        times = [at for _, at in issued]
        assert times[1] - times[0] >= 1.0 - 1e-9
        assert times[2] - times[1] >= 1.0 - 1e-9

    @pytest.mark.asyncio
    async def test_reset_forgets_last_request(self, spacer, clock):
        await spacer.acquire()
        spacer.reset()

        assert await spacer.acquire() == 0

    def test_rejects_negative_interval(self, clock):
        with pytest.raises(ValueError):
            RequestSpacer(-1, clock=clock)
