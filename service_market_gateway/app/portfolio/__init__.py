"""
Portfolio layer: holdings, valuation against market prices, persistence.
"""

from .holdings import (
    Holding,
    HoldingValuation,
    PortfolioSummary,
    PortfolioValuator,
    prices_from_market,
    summarize_portfolio,
    value_holding,
)
from .store import HoldingsStore

__all__ = [
    "Holding",
    "HoldingValuation",
    "HoldingsStore",
    "PortfolioSummary",
    "PortfolioValuator",
    "prices_from_market",
    "summarize_portfolio",
    "value_holding",
]
