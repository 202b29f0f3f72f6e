"""
Translation boundary between CoinGecko payloads and normalized records.

Each gateway operation has exactly one normalize_* function here. Provider
schema drift should only ever require changes in this module.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from shared.errors import FetchFailedError, NotFoundError
from shared.logging import get_logger

from .models import (
    CoinDetail,
    GlobalStats,
    HistorySeries,
    MarketCapPoint,
    MarketRecord,
    PricePoint,
    SearchResult,
    TrendingCoin,
    VolumePoint,
)


SEARCH_RESULT_LIMIT = 10

logger = get_logger("gateway.transforms")


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _nested(payload: Any, *keys: str) -> Any:
    """Walk nested dictionaries, returning None as soon as a level is missing."""
    current = payload
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _symbol(value: Any) -> str:
    return str(value or "").upper()


def _from_epoch_ms(value: Any) -> Optional[datetime]:
    millis = _optional_float(value)
    if millis is None:
        return None
    return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)


def _pairs(series: Any) -> Iterable[tuple]:
    if not isinstance(series, list):
        return
    for item in series:
        if not isinstance(item, (list, tuple)) or len(item) < 2:
            continue
        timestamp = _from_epoch_ms(item[0])
        if timestamp is None:
            continue
        yield timestamp, _optional_float(item[1])


def _require_list(operation: str, value: Any, what: str) -> List[Any]:
    if not isinstance(value, list):
        raise FetchFailedError(operation, message=f"malformed provider response: expected {what} list")
    return value


def normalize_market_list(payload: Any) -> Tuple[MarketRecord, ...]:
    """Map a /coins/markets payload to market records."""
    rows = _require_list("market_list", payload, "coins")
    records: List[MarketRecord] = []
    for row in rows:
        if not isinstance(row, dict) or not row.get("id"):
            logger.warning("Skipping market row without id")
            continue
        records.append(
            MarketRecord(
                id=str(row["id"]),
                symbol=_symbol(row.get("symbol")),
                name=str(row.get("name") or ""),
                image=row.get("image"),
                current_price=_optional_float(row.get("current_price")),
                market_cap=_optional_float(row.get("market_cap")),
                market_cap_rank=_optional_int(row.get("market_cap_rank")),
                price_change_percentage_1h=_optional_float(row.get("price_change_percentage_1h_in_currency")),
                price_change_percentage_24h=_optional_float(row.get("price_change_percentage_24h")),
                price_change_percentage_7d=_optional_float(row.get("price_change_percentage_7d_in_currency")),
                total_volume=_optional_float(row.get("total_volume")),
                circulating_supply=_optional_float(row.get("circulating_supply")),
                total_supply=_optional_float(row.get("total_supply")),
                max_supply=_optional_float(row.get("max_supply")),
            )
        )
    return tuple(records)


def normalize_coin(payload: Any, coin_id: str, vs_currency: str = "usd") -> CoinDetail:
    """Map a /coins/{id} payload to a coin detail record.

    An empty payload, one that carries an ``error`` field, or one without an
    ``id`` means the provider does not know the coin.
    """
    if not isinstance(payload, dict) or not payload or "error" in payload or not payload.get("id"):
        raise NotFoundError("coin", coin_id)

    market_data = payload.get("market_data")
    image = _nested(payload, "image", "large") or _nested(payload, "image", "small")

    return CoinDetail(
        id=str(payload["id"]),
        symbol=_symbol(payload.get("symbol")),
        name=str(payload.get("name") or ""),
        image=image,
        current_price=_optional_float(_nested(market_data, "current_price", vs_currency)),
        market_cap=_optional_float(_nested(market_data, "market_cap", vs_currency)),
        market_cap_rank=_optional_int(payload.get("market_cap_rank")),
        price_change_percentage_24h=_optional_float(_nested(market_data, "price_change_percentage_24h")),
        price_change_percentage_7d=_optional_float(_nested(market_data, "price_change_percentage_7d")),
        price_change_percentage_30d=_optional_float(_nested(market_data, "price_change_percentage_30d")),
        total_volume=_optional_float(_nested(market_data, "total_volume", vs_currency)),
        circulating_supply=_optional_float(_nested(market_data, "circulating_supply")),
        total_supply=_optional_float(_nested(market_data, "total_supply")),
        max_supply=_optional_float(_nested(market_data, "max_supply")),
        description=_nested(payload, "description", "en") or None,
    )


def normalize_history(payload: Any) -> HistorySeries:
    """Map a /coins/{id}/market_chart payload to a history series."""
    if not isinstance(payload, dict):
        raise FetchFailedError("history", message="malformed provider response: expected object")

    return HistorySeries(
        prices=tuple(PricePoint(ts, value) for ts, value in _pairs(payload.get("prices"))),
        market_caps=tuple(MarketCapPoint(ts, value) for ts, value in _pairs(payload.get("market_caps"))),
        total_volumes=tuple(VolumePoint(ts, value) for ts, value in _pairs(payload.get("total_volumes"))),
    )


def normalize_search(payload: Any) -> Tuple[SearchResult, ...]:
    """Map a /search payload to at most SEARCH_RESULT_LIMIT results."""
    coins = _require_list("search", _nested(payload, "coins"), "coins")
    results: List[SearchResult] = []
    for coin in coins:
        if len(results) >= SEARCH_RESULT_LIMIT:
            break
        if not isinstance(coin, dict) or not coin.get("id"):
            continue
        results.append(
            SearchResult(
                id=str(coin["id"]),
                symbol=_symbol(coin.get("symbol")),
                name=str(coin.get("name") or ""),
                thumb=coin.get("thumb"),
                market_cap_rank=_optional_int(coin.get("market_cap_rank")),
            )
        )
    return tuple(results)


def normalize_trending(payload: Any) -> Tuple[TrendingCoin, ...]:
    """Map a /search/trending payload to trending coins."""
    coins = _require_list("trending", _nested(payload, "coins"), "coins")
    results: List[TrendingCoin] = []
    for entry in coins:
        item = _nested(entry, "item")
        if not isinstance(item, dict) or not item.get("id"):
            continue
        results.append(
            TrendingCoin(
                id=str(item["id"]),
                symbol=_symbol(item.get("symbol")),
                name=str(item.get("name") or ""),
                thumb=item.get("thumb"),
                market_cap_rank=_optional_int(item.get("market_cap_rank")),
                price_btc=_optional_float(item.get("price_btc")),
            )
        )
    return tuple(results)


def normalize_global(payload: Any, vs_currency: str = "usd") -> GlobalStats:
    """Map a /global payload to aggregate market stats."""
    data = _nested(payload, "data")
    if not isinstance(data, dict):
        raise FetchFailedError("global_stats", message="malformed provider response: expected data object")

    percentages = data.get("market_cap_percentage")
    market_cap_percentage: Optional[Dict[str, float]] = None
    if isinstance(percentages, dict):
        market_cap_percentage = {}
        for key, raw in percentages.items():
            value = _optional_float(raw)
            if value is not None:
                market_cap_percentage[str(key)] = value

    return GlobalStats(
        total_market_cap=_optional_float(_nested(data, "total_market_cap", vs_currency)),
        total_volume=_optional_float(_nested(data, "total_volume", vs_currency)),
        market_cap_percentage=market_cap_percentage,
        active_cryptocurrencies=_optional_int(data.get("active_cryptocurrencies")),
        markets=_optional_int(data.get("markets")),
        market_cap_change_percentage_24h=_optional_float(data.get("market_cap_change_percentage_24h_usd")),
    )
