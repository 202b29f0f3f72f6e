"""
Gateway caching package.

Provides the in-memory, time-expiring cache used by the market data gateway
to serve repeated queries without new provider calls. Entries are evicted
lazily on read; there is no background sweep.
"""

from .ttl_cache import CacheEntry, TTLCache

__all__ = ["CacheEntry", "TTLCache"]
