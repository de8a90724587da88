"""Bounded response cache for generated text.

Entries expire after a fixed TTL and, once the cache is full, the least
frequently used entry is evicted (oldest access first among equals).
"""

import hashlib
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .base import TextGenerator

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass
class CacheEntry:
    """A cached response with its usage counters."""
    value: str
    created_at: float
    last_accessed: float
    access_count: int = 0


class ResponseCache:
    """Thread-safe LFU cache with per-entry time-to-live."""

    def __init__(
        self,
        max_entries: int = 100,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(prompt: str) -> str:
        return hashlib.sha256(prompt.encode("utf-8")).hexdigest()

    def get(self, key: str) -> Optional[str]:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            now = self._clock()
            if entry is None:
                self.misses += 1
                return None
            if now - entry.created_at >= self.ttl_seconds:
                del self._entries[key]
                self.misses += 1
                return None

            entry.access_count += 1
            entry.last_accessed = now
            self.hits += 1
            return entry.value

    def put(self, key: str, value: str) -> None:
        """Store a value; last write wins."""
        with self._lock:
            now = self._clock()
            if key not in self._entries:
                self._purge_expired(now)
                if len(self._entries) >= self.max_entries:
                    self._evict_one()
            self._entries[key] = CacheEntry(value=value, created_at=now, last_accessed=now)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() - entry.created_at < self.ttl_seconds

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now - e.created_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]

    def _evict_one(self) -> None:
        victim = min(
            self._entries,
            key=lambda k: (self._entries[k].access_count, self._entries[k].last_accessed),
        )
        logger.debug("Evicting cached response %s", victim[:12])
        del self._entries[victim]


class CachingGenerator:
    """Wraps a ``TextGenerator`` and serves repeated prompts from a cache."""

    def __init__(self, generator: TextGenerator, cache: ResponseCache):
        self.generator = generator
        self.cache = cache

    def generate(self, prompt: str) -> str:
        key = self.cache.make_key(prompt)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Response cache hit")
            return cached

        response = self.generator.generate(prompt)
        self.cache.put(key, response)
        return response

    def stop(self) -> None:
        self.generator.stop()
