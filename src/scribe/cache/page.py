"""In-memory page cache for rendered responses.

Maps a normalized request path (or an explicit key) to the rendered body of
a previous response. Entries are only ever removed by explicit invalidation;
there is no TTL and no size bound.

Reads are lock-free dictionary lookups. Writes replace whole immutable
entries under a lock, so a reader sees either the old entry, the new entry,
or nothing.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime

from scribe.observability.metrics import record_cache_invalidation, set_cache_entries

logger = logging.getLogger(__name__)

# Invalidations remembered for checking late writes
INVALIDATION_LOG_SIZE = 256


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A rendered response body stored under ``key``."""

    key: str
    body: bytes
    content_type: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class PageCache:
    """Process-local page cache.

    One instance is created per application and handed to the routing layer
    and to the invalidation listeners. Tests build their own instances.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._generation = 0
        # (generation, key or prefix, is_prefix), oldest first
        self._log: deque[tuple[int, str, bool]] = deque(maxlen=INVALIDATION_LOG_SIZE)

    @property
    def generation(self) -> int:
        """Counter bumped by every invalidation.

        Read it before rendering and pass it to ``put`` so a render that
        raced with an invalidation of its key is not stored.
        """
        return self._generation

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key``, or None on a miss."""
        return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry, generation: int | None = None) -> bool:
        """Store ``entry`` under ``key``, replacing any previous entry.

        When ``generation`` is given and an invalidation covering ``key`` has
        happened since it was read, the entry is dropped. Invalidations of
        unrelated keys do not affect it. Returns whether it was stored.
        """
        with self._lock:
            if generation is not None and self._invalidated_since(key, generation):
                logger.debug("Dropped stale page cache write for %s", key)
                return False
            self._entries[key] = entry
            set_cache_entries(len(self._entries))
        return True

    def _invalidated_since(self, key: str, generation: int) -> bool:
        if generation >= self._generation:
            return False
        if not self._log or self._log[0][0] > generation + 1:
            # Older than the log; assume the worst
            return True
        for logged, target, is_prefix in reversed(self._log):
            if logged <= generation:
                break
            if key.startswith(target) if is_prefix else key == target:
                return True
        return False

    def invalidate(self, key: str) -> bool:
        """Remove the entry for ``key``. Missing keys are a no-op."""
        with self._lock:
            self._generation += 1
            self._log.append((self._generation, key, False))
            removed = self._entries.pop(key, None) is not None
            set_cache_entries(len(self._entries))
        record_cache_invalidation("key")
        if removed:
            logger.debug("Invalidated page cache key %s", key)
        return removed

    def invalidate_by_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with ``prefix``.

        Returns the number of entries removed.
        """
        with self._lock:
            self._generation += 1
            self._log.append((self._generation, prefix, True))
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            set_cache_entries(len(self._entries))
        record_cache_invalidation("prefix")
        logger.debug("Invalidated %d page cache entries under prefix %r", len(doomed), prefix)
        return len(doomed)

    def clear(self) -> int:
        """Remove every entry. Returns the number of entries removed."""
        return self.invalidate_by_prefix("")

    def keys(self) -> list[str]:
        """Snapshot of the cached keys."""
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())
