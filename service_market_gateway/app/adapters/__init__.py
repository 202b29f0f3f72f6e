"""
Adapters for external collaborators of the gateway.

- CoinGeckoClient: async JSON client for the CoinGecko v3 REST API.
"""

from .coingecko_client import CoinGeckoClient, DEFAULT_BASE_URL

__all__ = ["CoinGeckoClient", "DEFAULT_BASE_URL"]
