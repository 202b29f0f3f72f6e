"""
Pytest fixtures shared by the gateway unit tests and integration tests.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from service_market_gateway.app.adapters.coingecko_client import CoinGeckoClient
from service_market_gateway.app.caching.ttl_cache import TTLCache
from service_market_gateway.app.market_data.service import MarketDataGateway
from service_market_gateway.app.ratelimit.clock import Clock
from service_market_gateway.app.ratelimit.request_spacer import RequestSpacer
from shared.metrics import MetricsCollector


class FakeClock(Clock):
    """Virtual clock. Sleepers wake in deadline order without real delays.

    The earliest pending sleeper moves time forward to its own deadline once
    the other runnable tasks have had a chance to run.
    """

    def __init__(self, start: float = 1000.0):
        self.current = start
        self.sleeps: List[float] = []
        self._pending: List[float] = []

    def now(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        deadline = self.current + seconds
        self._pending.append(deadline)
        try:
            while self.current < deadline:
                await asyncio.sleep(0)
                if min(self._pending) == deadline:
                    self.current = max(self.current, deadline)
        finally:
            self._pending.remove(deadline)


class FakeProvider:
    """Routes provider requests to canned responses and records issue times."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[Tuple[float, httpx.Request]] = []

    def add_json(self, path: str, payload: Any, status_code: int = 200) -> None:
        self.routes[path] = lambda request: httpx.Response(status_code, json=payload)

    def add_handler(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[path] = handler

    def calls_to(self, path: str) -> int:
        return sum(1 for _, request in self.requests if request.url.path.endswith(path))

    @property
    def issue_times(self) -> List[float]:
        return [issued_at for issued_at, _ in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((self.clock.now(), request))
        path = request.url.path.replace("/api/v3", "", 1)
        handler = self.routes.get(path)
        if handler is None:
            return httpx.Response(404, json={"error": "coin not found"})
        return handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider(clock) -> FakeProvider:
    return FakeProvider(clock)


@pytest.fixture
def make_gateway(clock, provider):
    """Factory for gateways wired to the fake clock and provider."""

    def _make(ttl_seconds: float = 300.0, min_interval: float = 1.0, metrics: Optional[MetricsCollector] = None):
        client = CoinGeckoClient("https://api.coingecko.com/api/v3", transport=provider.transport())
        return MarketDataGateway(
            client,
            cache=TTLCache(ttl_seconds, clock=clock),
            spacer=RequestSpacer(min_interval, clock=clock),
            metrics=metrics or MetricsCollector("market-gateway-test"),
            clock=clock,
        )

    return _make


@pytest.fixture
def market_rows() -> List[Dict[str, Any]]:
    return [
        {
            "id": "bitcoin",
            "symbol": "btc",
            "name": "Bitcoin",
            "image": "https://assets.coingecko.com/coins/images/1/large/bitcoin.png",
            "current_price": 45000.0,
            "market_cap": 880000000000,
            "market_cap_rank": 1,
            "price_change_percentage_1h_in_currency": 0.12,
            "price_change_percentage_24h": 2.5,
            "price_change_percentage_7d_in_currency": -3.4,
            "total_volume": 21000000000,
            "circulating_supply": 19500000.0,
            "total_supply": 21000000.0,
            "max_supply": 21000000.0,
        },
        {
            "id": "ethereum",
            "symbol": "eth",
            "name": "Ethereum",
            "image": "https://assets.coingecko.com/coins/images/279/large/ethereum.png",
            "current_price": 3200.0,
            "market_cap": 385000000000,
            "market_cap_rank": 2,
            "price_change_percentage_24h": -1.2,
            "total_volume": 12000000000,
            "circulating_supply": 120000000.0,
            "total_supply": None,
        },
    ]
