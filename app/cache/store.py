"""
Main cache store: key -> slot mapping with shared in-flight loads and
reclamation on eviction.
"""
import re
import threading
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple, Union

from .access import AccessTimeTracker
from .core import CacheEntry, EntryState, ErrorCallback, SuccessCallback
from .reclaim import ResourceContext, classify_asset

logger = logging.getLogger("cache.store")

Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Default clock: monotonic time in milliseconds."""
    return time.monotonic() * 1000


class CacheStore:
    """
    Asset cache with:
    - One slot per key, created on first get/set
    - Listener queues so concurrent requesters share one load
    - Last-access tracking for idle eviction
    - Type-dispatched reclamation of external resources on removal

    All public operations are serialized behind one re-entrant lock, so a
    listener may call back into the store while it is being notified.
    """

    def __init__(self, clock: Optional[Clock] = None):
        """
        Initialize the store.

        Args:
            clock: Returns the current time used by get() to record accesses.
                   Defaults to monotonic milliseconds.
        """
        self._entries: Dict[str, CacheEntry] = {}
        self._access = AccessTimeTracker()
        self._lock = threading.RLock()
        self._clock = clock or monotonic_ms

        self._stats = {
            "hits": 0,
            "misses": 0,
            "loaded": 0,
            "errors": 0,
            "evictions": 0,
            "released_handles": 0,
        }

    def now(self) -> float:
        """Current value of the clock used to stamp accesses."""
        return self._clock()

    def _create_slot(self, key: str) -> CacheEntry:
        """Create a pending slot for `key`. Caller holds the lock."""
        entry = CacheEntry(key=key)
        self._entries[key] = entry
        self._access.touch(key, self._clock())
        return entry

    def get(
        self,
        key: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Optional[Any]:
        """
        Get an asset, registering optional completion callbacks.

        Args:
            key: Asset key (filename)
            on_success: Called with the payload once loaded
            on_error: Called with the error description if the load fails

        Returns:
            The payload, or None while the entry is pending
        """
        payload, _ = self.get_or_create(key, on_success, on_error)
        return payload

    def get_or_create(
        self,
        key: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Tuple[Optional[Any], bool]:
        """
        Same as get(), also reporting whether this call created the slot.

        The creator is the one requester expected to start the load.

        Returns:
            (payload, created) tuple
        """
        with self._lock:
            entry = self._entries.get(key)
            created = entry is None
            if created:
                entry = self._create_slot(key)
                self._stats["misses"] += 1
                logger.debug(f"CACHE MISS: {key} (slot created)")
            else:
                self._access.touch(key, self._clock())
                self._stats["hits"] += 1

            entry.add_listener(on_success, on_error)
            return entry.payload, created

    def exists(self, key: str) -> bool:
        """True if a slot exists for `key`, whatever its state."""
        with self._lock:
            return key in self._entries

    def set(self, key: str, payload: Any, error: bool = False) -> None:
        """
        Resolve the entry for `key` and notify its listeners.

        The outcome is an error if `error` is set or `payload` is falsy.

        Raises:
            EntryAlreadyResolvedError: If the entry already has an outcome
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._create_slot(key)

            has_error = bool(error) or not payload
            asset = classify_asset(key, payload)
            entry.resolve(payload, has_error, asset)

            if has_error:
                self._stats["errors"] += 1
                logger.warning(f"Asset failed to load: {key} ({payload})")
            else:
                self._stats["loaded"] += 1
                logger.debug(f"Asset loaded: {key} [{asset.name}]")

    def touch(self, key: str, time: float) -> bool:
        """
        Record an access to `key` at a caller-supplied time.

        Unknown keys are ignored so the tracker never holds orphan
        timestamps.

        Returns:
            True if the key exists and was touched
        """
        with self._lock:
            if key not in self._entries:
                return False
            self._access.touch(key, time)
            return True

    def last_access(self, key: str) -> Optional[float]:
        with self._lock:
            return self._access.last_access(key)

    def state(self, key: str) -> Optional[EntryState]:
        with self._lock:
            entry = self._entries.get(key)
            return entry.state if entry else None

    def search(self, pattern: Union[str, Pattern[str]]) -> List[str]:
        """
        Find keys matching a regular expression.

        Args:
            pattern: Compiled regex or regex string (matched with search())

        Returns:
            Matching keys in insertion order (a snapshot)
        """
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        with self._lock:
            return [key for key in self._entries if regex.search(key)]

    def _is_idle(self, key: str, cutoff: float) -> bool:
        """Resolved and last accessed at or before `cutoff`. Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is None or entry.is_pending:
            return False
        last = self._access.last_access(key)
        if last is None:
            logger.error(f"No access time recorded for cached key {key}")
            return False
        return last <= cutoff

    def idle_keys(self, cutoff: float) -> List[str]:
        """
        Snapshot of resolved keys last accessed at or before `cutoff`.

        Pending entries are never included.
        """
        with self._lock:
            return [key for key in self._entries if self._is_idle(key, cutoff)]

    def evict_idle(self, context: ResourceContext, cutoff: float) -> List[str]:
        """
        Evict every resolved entry idle since `cutoff`, in one locked pass.

        Each candidate is checked again right before removal: a release
        routine may touch other keys through the store while the pass runs.

        Returns:
            Evicted keys
        """
        with self._lock:
            evicted = []
            for key in self.idle_keys(cutoff):
                if not self._is_idle(key, cutoff):
                    continue
                self.remove(context, key)
                evicted.append(key)
            return evicted

    def remove(self, context: ResourceContext, key: str) -> None:
        """
        Evict `key`, releasing any external resources its asset holds.

        No-op if the key is absent. Release runs before the entry is dropped.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return

            released = entry.asset.release(context)

            del self._entries[key]
            self._access.forget(key)
            self._stats["evictions"] += 1
            self._stats["released_handles"] += released
            logger.debug(f"Evicted {key} [{entry.asset.name}, released={released}]")

    def clear(self, context: ResourceContext) -> int:
        """
        Evict every resolved entry. Pending entries are kept.

        Returns:
            Number of entries evicted
        """
        with self._lock:
            keys = [key for key, entry in self._entries.items() if entry.complete]
            for key in keys:
                self.remove(context, key)
            if keys:
                logger.info(f"Cleared {len(keys)} cache entries")
            return len(keys)

    def __contains__(self, key: str) -> bool:
        return self.exists(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total_requests = self._stats["hits"] + self._stats["misses"]
            hit_rate = (self._stats["hits"] / total_requests * 100) if total_requests > 0 else 0

            pending = sum(1 for entry in self._entries.values() if entry.is_pending)
            return {
                "entries": len(self._entries),
                "pending": pending,
                "tracked": len(self._access),
                "hits": self._stats["hits"],
                "misses": self._stats["misses"],
                "loaded": self._stats["loaded"],
                "errors": self._stats["errors"],
                "evictions": self._stats["evictions"],
                "released_handles": self._stats["released_handles"],
                "hit_rate_percent": round(hit_rate, 1),
            }
