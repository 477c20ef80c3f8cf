"""
Tool Result Cache - Time-bounded memoization of external lookups.

Tool results that are a pure function of their normalized arguments
(web search, for one) are cached process-wide so that the same question
asked again within the TTL window costs no external call.

Backed by cachetools.TTLCache, which bounds both lifetime and size.
TTLCache is not thread-safe, so every access goes through a lock.
"""
import threading
import time
from typing import Callable, Dict, Optional

from cachetools import TTLCache

from jarvis.core.logging_config import get_logger

logger = get_logger(__name__)


def normalize_key(key: str) -> str:
    """Normalize a lookup key: trimmed and lower-cased."""
    return key.strip().lower()


class ToolResultCache:
    """
    TTL cache for serialized tool results.

    Example:
        >>> cache = ToolResultCache(ttl_seconds=3600)
        >>> cache.set("  Latest iPhone News ", "[...]")
        >>> cache.get("latest iphone news")
        '[...]'
    """

    def __init__(
        self,
        ttl_seconds: int = 3600,
        max_entries: int = 1000,
        sweep_interval_seconds: int = 60,
        timer: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Lifetime of an entry, counted from insertion
            max_entries: Upper bound on stored entries
            sweep_interval_seconds: Minimum time between expiry sweeps
            timer: Monotonic clock, injectable for tests
        """
        self.ttl = ttl_seconds
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval_seconds

        self._timer = timer
        self._cache: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_seconds, timer=timer)
        self._lock = threading.RLock()
        self._last_sweep = timer()
        self._hits = 0
        self._misses = 0

        logger.info(
            f"ToolResultCache initialized: ttl={ttl_seconds}s, "
            f"max_entries={max_entries}, sweep={sweep_interval_seconds}s"
        )

    def get(self, key: str) -> Optional[str]:
        """
        Look up a cached value.

        Args:
            key: Raw lookup key (normalized here)

        Returns:
            Cached value, or None on a miss or after expiry
        """
        normalized = normalize_key(key)

        with self._lock:
            self._maybe_sweep()
            value = self._cache.get(normalized)

            if value is None:
                self._misses += 1
                logger.debug(f"Cache MISS: {normalized[:60]!r}")
            else:
                self._hits += 1
                logger.debug(f"Cache HIT: {normalized[:60]!r}")

            return value

    def set(self, key: str, value: str) -> None:
        """Store a value; its TTL starts now."""
        normalized = normalize_key(key)

        with self._lock:
            self._maybe_sweep()
            self._cache[normalized] = value
            logger.debug(f"Cache SET: {normalized[:60]!r} ({len(value)} chars)")

    def clear(self) -> None:
        """Drop every entry and reset counters (used by tests)."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> Dict[str, int]:
        """Hit/miss counters and current size, for diagnostics."""
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._cache),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def _maybe_sweep(self) -> None:
        """Evict expired entries periodically."""
        now = self._timer()

        if now - self._last_sweep < self.sweep_interval:
            return

        before = len(self._cache)
        self._cache.expire()
        self._last_sweep = now

        evicted = before - len(self._cache)
        if evicted:
            logger.debug(f"Cache sweep: evicted {evicted}, {len(self._cache)} remaining")


# Global cache instance, shared by every turn in the process
_tool_cache: Optional[ToolResultCache] = None
_tool_cache_lock = threading.Lock()


def get_tool_cache() -> ToolResultCache:
    """Get or create the process-wide tool cache."""
    global _tool_cache
    with _tool_cache_lock:
        if _tool_cache is None:
            from jarvis.core.config import get_settings
            settings = get_settings()
            _tool_cache = ToolResultCache(
                ttl_seconds=settings.tool_cache_ttl_seconds,
                max_entries=settings.tool_cache_max_entries,
                sweep_interval_seconds=settings.tool_cache_sweep_seconds,
            )
    return _tool_cache


def reset_tool_cache() -> None:
    """Forget the process-wide cache (used by tests)."""
    global _tool_cache
    with _tool_cache_lock:
        _tool_cache = None
