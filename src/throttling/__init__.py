"""Request throttling."""

from .limiter import ThrottleExceededError, ThrottleOptions, ThrottleResult, Throttler

__all__ = [
    "ThrottleExceededError",
    "ThrottleOptions",
    "ThrottleResult",
    "Throttler",
]
