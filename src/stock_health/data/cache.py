"""In-process result cache with TTL expiry and LRU-by-last-access eviction."""

import itertools
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class CacheEntry:
    """
    One cached value plus its access metadata.

    Times are epoch seconds for display. ``access_seq`` is a per-cache
    counter stamped on every write and read; eviction orders on it so two
    accesses within the same clock tick still have a definite order.
    """

    value: Any
    created_at: float
    expires_at: float
    access_count: int = 0
    last_accessed: float = 0.0
    access_seq: int = 0

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, UTC).isoformat()


class BoundedTTLCache:
    """
    Key-value cache bounded by size and time.

    Reads expire stale entries lazily before touching access metadata, so a
    stale value is never returned even if the background sweeper is off.
    When a ``set`` pushes the size over ``max_size``, entries read or
    written least recently are evicted first. Eviction is silent.

    All map mutations hold an ``RLock``; the cache is safe to share between
    the event loop and the sweeper thread.
    """

    def __init__(
        self,
        ttl: float = 300.0,
        max_size: int = 1000,
        sweep_interval: float | None = None,
        clock: Callable[[], float] = time.time,
        log: logging.Logger | None = None,
    ):
        if ttl <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl}")
        if max_size <= 0:
            raise ValueError(f"Cache max_size must be positive, got {max_size}")

        self.ttl = ttl
        self.max_size = max_size
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._logger = log or logger
        self._entries: dict[str, CacheEntry] = {}
        self._sequence = itertools.count()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._timer: threading.Timer | None = None
        self._closed = False

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value, replacing any existing entry for the key."""
        ttl = self.ttl if ttl is None else ttl
        if ttl <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl}")

        now = self._clock()
        with self._lock:
            self._entries[key] = CacheEntry(
                value=value,
                created_at=now,
                expires_at=now + ttl,
                last_accessed=now,
                access_seq=next(self._sequence),
            )
            self._enforce_size()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or ``default`` if absent or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return default
            if entry.is_expired(now):
                del self._entries[key]
                self._misses += 1
                return default
            entry.access_count += 1
            entry.last_accessed = now
            entry.access_seq = next(self._sequence)
            self._hits += 1
            return entry.value

    def has(self, key: str) -> bool:
        """True if the key holds an unexpired value. Does not count as an access."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.is_expired(now):
                del self._entries[key]
                return False
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, _MISSING) is not _MISSING

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def _enforce_size(self) -> None:
        overflow = len(self._entries) - self.max_size
        if overflow <= 0:
            return
        victims = sorted(self._entries, key=lambda k: self._entries[k].access_seq)[:overflow]
        for key in victims:
            del self._entries[key]
        self._logger.debug(f"Evicted {len(victims)} least recently used cache entries")

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def sweep(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            self._logger.debug(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    def delete_matching(self, fragment: str) -> int:
        """Drop every key containing ``fragment`` (e.g. a symbol). Returns the count."""
        with self._lock:
            keys = [k for k in self._entries if fragment in k]
            for key in keys:
                del self._entries[key]
        return len(keys)

    def start_sweeper(self) -> None:
        """Start the periodic background sweep, if an interval is configured."""
        if not self.sweep_interval or self.sweep_interval <= 0:
            return
        with self._lock:
            if self._timer is not None or self._closed:
                return
            self._schedule()

    def _schedule(self) -> None:
        timer = threading.Timer(self.sweep_interval, self._run_sweep)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _run_sweep(self) -> None:
        try:
            self.sweep()
        except Exception:
            self._logger.exception("Cache sweep failed")
        with self._lock:
            if self._timer is not None and not self._closed:
                self._schedule()

    def stop_sweeper(self) -> None:
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def close(self) -> None:
        """Stop the sweeper and drop all entries."""
        self._closed = True
        self.stop_sweeper()
        self.clear()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        with self._lock:
            total_hits = sum(e.access_count for e in self._entries.values())
            lookups = self._hits + self._misses
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl,
                "total_hits": total_hits,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
            }

    def status(self) -> list[dict[str, Any]]:
        with self._lock:
            return [self._describe(k, e) for k, e in self._entries.items()]

    def most_accessed(self, limit: int = 10) -> list[dict[str, Any]]:
        return self._ranked(lambda e: e.access_count, limit, reverse=True)

    def recently_accessed(self, limit: int = 10) -> list[dict[str, Any]]:
        return self._ranked(lambda e: e.access_seq, limit, reverse=True)

    def oldest(self, limit: int = 10) -> list[dict[str, Any]]:
        return self._ranked(lambda e: e.created_at, limit, reverse=False)

    def _ranked(
        self,
        sort_key: Callable[[CacheEntry], float],
        limit: int,
        reverse: bool,
    ) -> list[dict[str, Any]]:
        with self._lock:
            items = sorted(self._entries.items(), key=lambda kv: sort_key(kv[1]), reverse=reverse)
            return [self._describe(k, e) for k, e in items[:limit]]

    @staticmethod
    def _describe(key: str, entry: CacheEntry) -> dict[str, Any]:
        return {
            "key": key,
            "created_at": _iso(entry.created_at),
            "expires_at": _iso(entry.expires_at),
            "access_count": entry.access_count,
            "last_accessed": _iso(entry.last_accessed),
        }
