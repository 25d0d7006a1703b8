"""Fixed-window request throttling configured from the environment."""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter

from ..config.settings import EnvironmentConfig

logger = logging.getLogger(__name__)

NAMESPACE = "throttle"


class ThrottleExceededError(Exception):
    """Raised when a client exceeds its request limit."""

    def __init__(self, key: str, retry_after_ms: int):
        self.key = key
        self.retry_after_ms = retry_after_ms
        super().__init__(
            f"Too many requests from {key}, retry after {retry_after_ms}ms"
        )


@dataclass(frozen=True)
class ThrottleOptions:
    """Window length and request limit."""
    ttl_ms: int = 60000
    limit: int = 100

    @classmethod
    def from_config(cls, config: EnvironmentConfig) -> "ThrottleOptions":
        """Create options from validated configuration."""
        return cls(ttl_ms=config.rate_limit_ttl_ms, limit=config.rate_limit_max)

    @property
    def window_seconds(self) -> int:
        """Window length rounded up to whole seconds."""
        return max(1, -(-self.ttl_ms // 1000))


@dataclass
class ThrottleResult:
    """Outcome of a single hit."""
    allowed: bool
    limit: int
    remaining: int
    reset_after_ms: int

    def __bool__(self) -> bool:
        return self.allowed


class Throttler:
    """
    Counts requests per client key within a fixed window.

    Wraps a ``limits`` fixed-window limiter. A key's window opens on its
    first hit; once ``limit`` hits have been counted, further hits are
    refused until the window expires. Expired windows are dropped by the
    storage, not by the caller.

    Example:
        throttler = Throttler(ThrottleOptions(ttl_ms=60000, limit=100))
        throttler.guard(client_ip)
    """

    def __init__(
        self,
        options: Optional[ThrottleOptions] = None,
        storage: Optional[Storage] = None,
    ):
        self.options = options or ThrottleOptions()
        self.storage = storage if storage is not None else MemoryStorage()
        self.item = RateLimitItemPerSecond(
            self.options.limit,
            self.options.window_seconds,
            namespace=NAMESPACE,
        )
        self._limiter = FixedWindowRateLimiter(self.storage)

    @classmethod
    def from_config(cls, config: EnvironmentConfig) -> "Throttler":
        """Create a throttler from validated configuration."""
        return cls(ThrottleOptions.from_config(config))

    def hit(self, key: str) -> ThrottleResult:
        """
        Record a request for ``key``.

        Args:
            key: Client identifier (e.g. remote address)

        Returns:
            ThrottleResult, falsy when the request should be refused
        """
        allowed = self._limiter.hit(self.item, key)
        stats = self._limiter.get_window_stats(self.item, key)

        return ThrottleResult(
            allowed=allowed,
            limit=self.options.limit,
            remaining=stats.remaining,
            reset_after_ms=max(0, int((stats.reset_time - time.time()) * 1000)),
        )

    def guard(self, key: str) -> ThrottleResult:
        """
        Record a request and refuse it when over the limit.

        Raises:
            ThrottleExceededError: If ``key`` has used up its window
        """
        result = self.hit(key)
        if not result.allowed:
            logger.warning(f"Throttled {key}: limit {result.limit} reached")
            raise ThrottleExceededError(key, result.reset_after_ms)
        return result

    def reset(self, key: Optional[str] = None) -> None:
        """Forget one key's window, or all of them."""
        if key is None:
            self.storage.reset()
        else:
            self._limiter.clear(self.item, key)
