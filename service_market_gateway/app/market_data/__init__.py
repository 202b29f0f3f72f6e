"""
Market data service layer for the gateway.
"""

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
from .service import MarketDataGateway, default_history_interval

__all__ = [
    "CoinDetail",
    "GlobalStats",
    "HistorySeries",
    "MarketCapPoint",
    "MarketDataGateway",
    "MarketRecord",
    "PricePoint",
    "SearchResult",
    "TrendingCoin",
    "VolumePoint",
    "default_history_interval",
]
