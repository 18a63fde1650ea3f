# taskpilot_agent/context/cache.py
"""
Context Cache - reuses an enhanced context across messages that arrive close
together for the same task/session state.

Cache is keyed by: (current task id, active session id, 15-minute bucket,
first 50 characters of the message)

Entries expire after a TTL and the cache is bounded: once it grows past
``max_entries`` the least recently used entry is evicted. Entries are never
edited in place; ``put`` always replaces.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable

from taskpilot_agent.config import (
    CONTEXT_CACHE_BUCKET_SECONDS,
    CONTEXT_CACHE_MESSAGE_PREFIX,
    DEFAULT_CONTEXT_CACHE_SIZE,
    DEFAULT_CONTEXT_CACHE_TTL,
)
from taskpilot_agent.models.context import AppContext, CacheEntry, ContextCacheStats, EnhancedContext

logger = logging.getLogger(__name__)


class ContextCache:
    """TTL + LRU cache of EnhancedContext objects with an injectable clock."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CONTEXT_CACHE_TTL,
        max_entries: int = DEFAULT_CONTEXT_CACHE_SIZE,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "expirations": 0,
        }

    def make_key(self, base_context: AppContext, message: str) -> str:
        """Create cache key from the base context and the message."""
        task_id = base_context.current_task.id if base_context.current_task else "none"
        session_id = base_context.active_session.id if base_context.active_session else "none"
        bucket = int(self._clock() // CONTEXT_CACHE_BUCKET_SECONDS)
        prefix = message[:CONTEXT_CACHE_MESSAGE_PREFIX]

        key_str = f"{task_id}:{session_id}:{bucket}:{prefix}"
        return hashlib.sha256(key_str.encode()).hexdigest()[:16]

    def get(self, key: str) -> EnhancedContext | None:
        """Return the cached context, or None if missing or expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None

            if self._clock() - entry.stored_at >= self.ttl_seconds:
                del self._cache[key]
                self._stats["expirations"] += 1
                self._stats["misses"] += 1
                logger.debug(f"Context cache entry {key} expired")
                return None

            # Move to end (most recently used)
            self._cache.move_to_end(key)
            self._stats["hits"] += 1
            return entry.context

    def put(self, key: str, context: EnhancedContext) -> None:
        """Store a context, replacing any existing entry; evict LRU if over capacity."""
        with self._lock:
            self._cache.pop(key, None)
            self._cache[key] = CacheEntry(context=context, stored_at=self._clock())

            while len(self._cache) > self.max_entries:
                evicted, _ = self._cache.popitem(last=False)
                self._stats["evictions"] += 1
                logger.debug(f"Context cache evicted {evicted}")

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    @property
    def size(self) -> int:
        """Current number of cached entries."""
        return len(self._cache)

    @property
    def hit_rate(self) -> float:
        total = self._stats["hits"] + self._stats["misses"]
        if total == 0:
            return 0.0
        return self._stats["hits"] / total

    def get_stats(self) -> ContextCacheStats:
        with self._lock:
            return ContextCacheStats(
                hits=self._stats["hits"],
                misses=self._stats["misses"],
                evictions=self._stats["evictions"],
                expirations=self._stats["expirations"],
                size=len(self._cache),
                max_size=self.max_entries,
            )
