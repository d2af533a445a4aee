"""
In-memory cache for resolved exchange rates.

One instance is created at process start and handed to every
ExchangeRateResolver, so all requests share the same rates.
"""
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

import structlog

logger = structlog.get_logger()

RateKey = tuple[str, str]


class RateCache:
    """
    Thread-safe in-memory rate cache with read-time expiry.

    Entries are never swept in the background. Each read passes the
    maximum age it accepts; an older entry counts as a miss and is dropped.
    Uses LRU eviction when the size limit is reached.
    """

    def __init__(
        self,
        max_size: int = 256,
        default_ttl: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of currency pairs to cache.
            default_ttl: Default maximum age in seconds.
            clock: Monotonic time source, injectable for tests.
        """
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._cache: OrderedDict[RateKey, tuple[float, float]] = OrderedDict()

    @staticmethod
    def key(from_currency: str, to_currency: str) -> RateKey:
        """Build the cache key for a currency pair."""
        return (str(from_currency), str(to_currency))

    def get(
        self,
        from_currency: str,
        to_currency: str,
        max_age: Optional[float] = None,
    ) -> Optional[float]:
        """
        Get a cached rate.

        Args:
            from_currency: Source currency code.
            to_currency: Target currency code.
            max_age: Oldest acceptable entry in seconds. Uses default if None.

        Returns:
            Cached rate or None if not found/expired.
        """
        if max_age is None:
            max_age = self.default_ttl

        key = self.key(from_currency, to_currency)
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            rate, stored_at = entry
            if self._clock() - stored_at >= max_age:
                del self._cache[key]
                return None

            # Move to end (most recently used)
            self._cache.move_to_end(key)
            return rate

    def set(self, from_currency: str, to_currency: str, rate: float) -> None:
        """
        Store a rate, replacing any existing entry for the pair.

        Args:
            from_currency: Source currency code.
            to_currency: Target currency code.
            rate: Resolved exchange rate.
        """
        key = self.key(from_currency, to_currency)
        with self._lock:
            if key in self._cache:
                del self._cache[key]

            # Evict oldest if at capacity
            if len(self._cache) >= self.max_size:
                evicted, _ = self._cache.popitem(last=False)
                logger.debug("Evicted cached rate", pair="-".join(evicted))

            self._cache[key] = (rate, self._clock())

    def clear(self) -> None:
        """Clear all cached rates."""
        with self._lock:
            self._cache.clear()

    def stats(self) -> dict:
        """Cache statistics for monitoring."""
        with self._lock:
            return {
                "size": len(self._cache),
                "keys": ["-".join(key) for key in self._cache.keys()],
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
