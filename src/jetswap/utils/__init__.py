"""Utility modules for Jet Swap."""

from jetswap.utils.cache import CacheEntry, TTLCache
from jetswap.utils.governor import (
    RequestGovernor,
    ThrottledError,
    ThrottledRetryExhausted,
    backoff_delays,
)

__all__ = [
    "CacheEntry",
    "TTLCache",
    "RequestGovernor",
    "ThrottledError",
    "ThrottledRetryExhausted",
    "backoff_delays",
]
