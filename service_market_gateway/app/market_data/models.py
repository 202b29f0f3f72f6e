"""
Normalized market data records returned by the gateway.

These shapes are decoupled from the provider's JSON schema; callers never
see provider field names. Optional fields the provider omitted are None.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


def _format_timestamp(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class MarketRecord:
    """One row of the market-cap ordered coin list."""

    id: str
    symbol: str
    name: str
    image: Optional[str] = None
    current_price: Optional[float] = None
    market_cap: Optional[float] = None
    market_cap_rank: Optional[int] = None
    price_change_percentage_1h: Optional[float] = None
    price_change_percentage_24h: Optional[float] = None
    price_change_percentage_7d: Optional[float] = None
    total_volume: Optional[float] = None
    circulating_supply: Optional[float] = None
    total_supply: Optional[float] = None
    max_supply: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CoinDetail:
    """Detail record for a single coin."""

    id: str
    symbol: str
    name: str
    image: Optional[str] = None
    current_price: Optional[float] = None
    market_cap: Optional[float] = None
    market_cap_rank: Optional[int] = None
    price_change_percentage_24h: Optional[float] = None
    price_change_percentage_7d: Optional[float] = None
    price_change_percentage_30d: Optional[float] = None
    total_volume: Optional[float] = None
    circulating_supply: Optional[float] = None
    total_supply: Optional[float] = None
    max_supply: Optional[float] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PricePoint:
    timestamp: datetime
    price: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": _format_timestamp(self.timestamp), "price": self.price}


@dataclass(frozen=True)
class MarketCapPoint:
    timestamp: datetime
    market_cap: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": _format_timestamp(self.timestamp), "market_cap": self.market_cap}


@dataclass(frozen=True)
class VolumePoint:
    timestamp: datetime
    volume: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": _format_timestamp(self.timestamp), "volume": self.volume}


@dataclass(frozen=True)
class HistorySeries:
    """Time-ordered price series with optional market cap and volume series."""

    prices: Tuple[PricePoint, ...] = ()
    market_caps: Tuple[MarketCapPoint, ...] = ()
    total_volumes: Tuple[VolumePoint, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prices": [point.to_dict() for point in self.prices],
            "market_caps": [point.to_dict() for point in self.market_caps],
            "total_volumes": [point.to_dict() for point in self.total_volumes],
        }


@dataclass(frozen=True)
class SearchResult:
    id: str
    symbol: str
    name: str
    thumb: Optional[str] = None
    market_cap_rank: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TrendingCoin:
    id: str
    symbol: str
    name: str
    thumb: Optional[str] = None
    market_cap_rank: Optional[int] = None
    price_btc: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GlobalStats:
    """Aggregate totals across the whole crypto market."""

    total_market_cap: Optional[float] = None
    total_volume: Optional[float] = None
    market_cap_percentage: Optional[Mapping[str, float]] = None
    active_cryptocurrencies: Optional[int] = None
    markets: Optional[int] = None
    market_cap_change_percentage_24h: Optional[float] = None

    def __post_init__(self) -> None:
        if self.market_cap_percentage is not None:
            object.__setattr__(self, "market_cap_percentage", MappingProxyType(dict(self.market_cap_percentage)))

    def to_dict(self) -> Dict[str, Any]:
        percentages = self.market_cap_percentage
        data = asdict(replace(self, market_cap_percentage=None))
        data["market_cap_percentage"] = dict(percentages) if percentages is not None else None
        return data
