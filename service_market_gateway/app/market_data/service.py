"""
Market data gateway mediating every call to the market data provider.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

import httpx

from shared.config import BaseConfig
from shared.errors import FetchFailedError, InvalidArgumentError, NotFoundError
from shared.logging import get_logger
from shared.metrics import MetricsCollector, get_metrics_collector

from ..adapters.coingecko_client import CoinGeckoClient
from ..caching.ttl_cache import TTLCache
from ..ratelimit.clock import Clock, MonotonicClock
from ..ratelimit.request_spacer import RequestSpacer
from . import transforms
from .models import CoinDetail, GlobalStats, HistorySeries, MarketRecord, SearchResult, TrendingCoin


T = TypeVar("T")

MIN_SEARCH_QUERY_LENGTH = 2


def default_history_interval(days: int) -> str:
    """Interval callers are expected to pass to ``get_history`` for ``days``."""
    return "hourly" if days == 1 else "daily"


class MarketDataGateway:
    """Serves normalized market data through a TTL cache and a request spacer.

    Cache hits return without suspending. Misses wait for the spacer, issue
    one provider call, normalize the payload and store the result. Failures
    propagate to the caller and are never cached; an expired entry is never
    served in place of a failed refresh.

    ``get_history`` does not check that ``interval`` matches ``days``. Pass
    ``default_history_interval(days)`` to keep cache keys consistent.
    """

    def __init__(
        self,
        client: CoinGeckoClient,
        *,
        cache: Optional[TTLCache] = None,
        spacer: Optional[RequestSpacer] = None,
        metrics: Optional[MetricsCollector] = None,
        clock: Optional[Clock] = None,
        vs_currency: str = "usd",
    ) -> None:
        clock = clock or MonotonicClock()
        self.client = client
        self.cache = cache if cache is not None else TTLCache(clock=clock)
        self.spacer = spacer if spacer is not None else RequestSpacer(clock=clock)
        self.metrics = metrics if metrics is not None else get_metrics_collector("market-gateway")
        self.vs_currency = vs_currency.lower()
        self.logger = get_logger("gateway.market_data")

    @classmethod
    def from_config(
        cls,
        config: BaseConfig,
        *,
        clock: Optional[Clock] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> "MarketDataGateway":
        """Build a gateway and its provider client from settings."""
        clock = clock or MonotonicClock()
        client = CoinGeckoClient(
            config.coingecko_base_url,
            timeout=config.request_timeout_seconds,
            api_key=config.coingecko_api_key,
            transport=transport,
        )
        return cls(
            client,
            cache=TTLCache(config.cache_ttl_seconds, clock=clock),
            spacer=RequestSpacer(config.min_request_interval_seconds, clock=clock),
            clock=clock,
            metrics=metrics,
            vs_currency=config.vs_currency,
        )

    async def close(self) -> None:
        """Release the provider client."""
        await self.client.close()

    async def __aenter__(self) -> "MarketDataGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def get_market_list(self, page: int = 1, page_size: int = 100) -> Tuple[MarketRecord, ...]:
        """Coins ordered by market cap descending, with 1h/24h/7d changes."""
        if page < 1:
            raise InvalidArgumentError("page must be >= 1", {"page": page})
        if page_size <= 0:
            raise InvalidArgumentError("page_size must be > 0", {"page_size": page_size})

        params = {
            "vs_currency": self.vs_currency,
            "order": "market_cap_desc",
            "per_page": page_size,
            "page": page,
            "sparkline": "false",
            "price_change_percentage": "1h,24h,7d",
        }
        return await self._cached_fetch(
            "market_list",
            self._cache_key("market_list", page, page_size),
            "/coins/markets",
            params,
            transforms.normalize_market_list,
        )

    async def get_coin(self, coin_id: str) -> CoinDetail:
        """Detail record for one coin, including its English description."""
        coin_id = self._require_identifier(coin_id, "coin_id")
        params = {
            "localization": "false",
            "tickers": "false",
            "market_data": "true",
            "community_data": "false",
            "developer_data": "false",
            "sparkline": "false",
        }
        return await self._cached_fetch(
            "coin",
            self._cache_key("coin", coin_id),
            f"/coins/{coin_id}",
            params,
            lambda payload: transforms.normalize_coin(payload, coin_id, self.vs_currency),
            not_found_resource=coin_id,
        )

    async def get_history(self, coin_id: str, days: int = 7, interval: str = "daily") -> HistorySeries:
        """Price, market cap and volume series for the last ``days`` days."""
        coin_id = self._require_identifier(coin_id, "coin_id")
        if days <= 0:
            raise InvalidArgumentError("days must be > 0", {"days": days})

        params = {"vs_currency": self.vs_currency, "days": days, "interval": interval}
        return await self._cached_fetch(
            "history",
            self._cache_key("history", coin_id, days, interval),
            f"/coins/{coin_id}/market_chart",
            params,
            transforms.normalize_history,
            not_found_resource=coin_id,
        )

    async def search(self, query: Optional[str]) -> Tuple[SearchResult, ...]:
        """Up to ten coins matching a partial name or symbol.

        Queries shorter than two characters return an empty tuple without
        consulting the cache or the provider.
        """
        if not query or len(query) < MIN_SEARCH_QUERY_LENGTH:
            return ()

        return await self._cached_fetch(
            "search",
            self._cache_key("search", query.strip().lower()),
            "/search",
            {"query": query},
            transforms.normalize_search,
        )

    async def get_trending(self) -> Tuple[TrendingCoin, ...]:
        """Coins currently trending on the provider."""
        return await self._cached_fetch(
            "trending",
            self._cache_key("trending"),
            "/search/trending",
            None,
            transforms.normalize_trending,
        )

    async def get_global_stats(self) -> GlobalStats:
        """Aggregate totals for the whole market."""
        return await self._cached_fetch(
            "global_stats",
            self._cache_key("global_stats"),
            "/global",
            None,
            lambda payload: transforms.normalize_global(payload, self.vs_currency),
        )

    async def ping(self) -> bool:
        """Check provider availability. Uncached, but paced like any other call."""
        waited = await self.spacer.acquire()
        self.metrics.observe_histogram("rate_limit_wait_seconds", waited, operation="ping")
        return await self.client.ping()

    def clear_cache(self) -> int:
        """Evict every cached entry. Returns the number removed."""
        removed = self.cache.clear()
        self.logger.info("Cache cleared", entries=removed)
        return removed

    def cache_size(self) -> int:
        """Stored entries, including expired ones not yet evicted."""
        return len(self.cache)

    async def _cached_fetch(
        self,
        operation: str,
        cache_key: str,
        path: str,
        params: Optional[Dict[str, Any]],
        transform: Callable[[Any], T],
        *,
        not_found_resource: Optional[str] = None,
    ) -> T:
        hit, cached = self.cache.lookup(cache_key)
        if hit:
            self.metrics.increment_counter("cache_hits_total", operation=operation)
            self.logger.debug("Cache hit", operation=operation, key=cache_key)
            return cached

        self.metrics.increment_counter("cache_misses_total", operation=operation)
        value = await self._fetch(operation, path, params, transform, not_found_resource)
        self.cache.set(cache_key, value)
        return value

    async def _fetch(
        self,
        operation: str,
        path: str,
        params: Optional[Dict[str, Any]],
        transform: Callable[[Any], T],
        not_found_resource: Optional[str],
    ) -> T:
        waited = await self.spacer.acquire()
        self.metrics.observe_histogram("rate_limit_wait_seconds", waited, operation=operation)

        try:
            payload = await self.client.get_json(operation, path, params)
        except FetchFailedError as exc:
            status = exc.status_code
            self.metrics.increment_counter(
                "upstream_requests_total", operation=operation, status=str(status or "error")
            )
            if status == 404 and not_found_resource is not None:
                raise NotFoundError(operation, not_found_resource) from exc
            raise

        self.metrics.increment_counter("upstream_requests_total", operation=operation, status="ok")
        self.logger.debug("Fetched from provider", operation=operation, path=path, waited_seconds=round(waited, 3))
        return transform(payload)

    @staticmethod
    def _cache_key(operation: str, *parts: Any) -> str:
        return ":".join([operation, *(str(part) for part in parts)])

    @staticmethod
    def _require_identifier(value: Optional[str], name: str) -> str:
        if not value or not str(value).strip():
            raise InvalidArgumentError(f"{name} must be a non-empty string", {name: value})
        return str(value).strip().lower()
