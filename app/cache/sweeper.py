"""
Periodic eviction of idle cache entries.
"""
import logging
import threading
from typing import Optional

from .reclaim import ResourceContext
from .store import CacheStore

logger = logging.getLogger("cache.sweeper")

DEFAULT_SWEEP_INTERVAL = 30 * 1000        # 30 seconds
DEFAULT_REMEMBER_WINDOW = 2 * 60 * 1000   # 2 minutes


class Sweeper:
    """
    Rate-limited eviction pass over a CacheStore.

    The scheduler calls sweep() as often as it likes; work is done at most
    once per `sweep_interval`. Times are read from the store's clock, the
    same one that stamps accesses.

    Usage:
        store = CacheStore(clock=lambda: game_tick)
        sweeper = Sweeper(store)
        sweeper.sweep(gl_context)
    """

    def __init__(
        self,
        store: CacheStore,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        remember_window: float = DEFAULT_REMEMBER_WINDOW,
    ):
        """
        Initialize the sweeper.

        Args:
            store: Store to evict from
            sweep_interval: Minimum time between two sweep passes
            remember_window: Idle time after which a resolved entry is evicted
        """
        self._store = store
        self._sweep_interval = sweep_interval
        self._remember_window = remember_window
        self._last_sweep_time: float = 0
        self._lock = threading.Lock()

    @property
    def last_sweep_time(self) -> float:
        return self._last_sweep_time

    def due(self, now: float) -> bool:
        """True if a sweep at `now` would do work."""
        return now >= self._last_sweep_time + self._sweep_interval

    def sweep(self, context: ResourceContext, now: Optional[float] = None) -> int:
        """
        Evict resolved entries idle for at least the remember window.

        Args:
            context: Resource context handed to each eviction
            now: Current clock value. Must come from the store's clock;
                 defaults to reading it.

        Returns:
            Number of entries evicted (0 when rate-limited)
        """
        if now is None:
            now = self._store.now()

        with self._lock:
            if not self.due(now):
                return 0
            self._last_sweep_time = now

        evicted = self._store.evict_idle(context, now - self._remember_window)

        if evicted:
            logger.info(f"Sweep at {now}: evicted {len(evicted)} idle entries")
        else:
            logger.debug(f"Sweep at {now}: nothing to evict")
        return len(evicted)

    def reset(self, last_sweep_time: Optional[float] = None) -> None:
        """Forget the previous sweep so the next call runs immediately."""
        with self._lock:
            self._last_sweep_time = (
                last_sweep_time if last_sweep_time is not None else -self._sweep_interval
            )
