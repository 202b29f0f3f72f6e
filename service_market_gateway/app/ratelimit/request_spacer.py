"""
Minimum-spacing rate limiter for outbound market data requests.
"""

from typing import Optional

from shared.logging import get_logger

from .clock import Clock, MonotonicClock


DEFAULT_MIN_INTERVAL_SECONDS = 1.0


class RequestSpacer:
    """Enforces a minimum gap between consecutive outbound calls.

    One instance is shared by every gateway operation. ``acquire`` reserves
    the next issue slot and records it as the last request time before
    suspending, so callers that arrive while another is waiting queue up
    behind it in arrival order.
    """

    def __init__(self, min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS, clock: Optional[Clock] = None):
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self.min_interval = min_interval
        self.clock = clock or MonotonicClock()
        self.last_request_at: Optional[float] = None
        self.logger = get_logger("gateway.request_spacer")

    def _next_slot(self, now: float) -> float:
        if self.last_request_at is None:
            return now
        return max(now, self.last_request_at + self.min_interval)

    async def acquire(self) -> float:
        """Wait until a request may be issued. Returns the seconds waited."""
        now = self.clock.now()
        slot = self._next_slot(now)
        self.last_request_at = slot

        delay = slot - now
        if delay > 0:
            self.logger.debug("Delaying outbound request", delay_seconds=round(delay, 3))
            await self.clock.sleep(delay)
        return delay

    def reset(self) -> None:
        """Forget the last issue time."""
        self.last_request_at = None
