"""Services package initialization."""

from driftwatch.services.alert_dispatcher import AlertDispatcher, DeliveryResult
from driftwatch.services.rate_limiter import RateLimiter, RateLimitConfig, RateLimitResult
from driftwatch.services.watch_store import WatchStore

__all__ = [
    "AlertDispatcher",
    "DeliveryResult",
    "RateLimiter",
    "RateLimitConfig",
    "RateLimitResult",
    "WatchStore",
]
