"""
Rate limiting package for the gateway.

Holds the request spacer that paces outbound provider calls and the clock
abstraction shared with the cache.
"""

from .clock import Clock, MonotonicClock
from .request_spacer import RequestSpacer

__all__ = ["Clock", "MonotonicClock", "RequestSpacer"]
