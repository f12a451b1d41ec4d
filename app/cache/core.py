"""
Core cache data structures.

A CacheEntry is the slot shared by every requester of one asset key. While
the asset is loading the slot is PENDING and collects listeners; the loader
resolves it once and all collected listeners are notified in order.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from .exceptions import EntryAlreadyResolvedError
from .reclaim import AssetKind, OpaqueAsset

logger = logging.getLogger("cache.core")

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[Any], None]


class EntryState(Enum):
    """Lifecycle states of a cache slot."""
    PENDING = "pending"   # Load in flight, listeners queued
    LOADED = "loaded"     # Payload available
    ERROR = "error"       # Load failed, payload holds the error description


@dataclass
class CacheEntry:
    """
    Per-key slot holding load state, payload and waiting listeners.
    """
    key: str
    state: EntryState = EntryState.PENDING
    payload: Optional[Any] = None
    asset: AssetKind = field(default_factory=OpaqueAsset)
    listeners: List[Tuple[Optional[SuccessCallback], Optional[ErrorCallback]]] = field(
        default_factory=list
    )

    @property
    def is_pending(self) -> bool:
        return self.state is EntryState.PENDING

    @property
    def complete(self) -> bool:
        """True once the entry has been resolved, successfully or not."""
        return self.state is not EntryState.PENDING

    def add_listener(
        self,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """
        Register a listener pair.

        On a pending entry the pair is queued until resolution. On a resolved
        entry the matching callback fires immediately with the stored outcome.
        """
        if on_success is None and on_error is None:
            return

        if self.is_pending:
            self.listeners.append((on_success, on_error))
            return

        self._notify(on_success, on_error)

    def resolve(self, payload: Any, error: bool, asset: AssetKind) -> None:
        """
        Transition PENDING -> LOADED/ERROR and fire queued listeners.

        Raises:
            EntryAlreadyResolvedError: If the entry was resolved before
        """
        if self.complete:
            raise EntryAlreadyResolvedError(self.key, self.state.value)

        self.state = EntryState.ERROR if error else EntryState.LOADED
        self.payload = payload
        self.asset = asset

        # Detach first so listeners registering from inside a callback
        # take the resolved path instead of joining this batch
        pending, self.listeners = self.listeners, []
        logger.debug(f"Resolved {self.key} as {self.state.value} ({len(pending)} listeners)")

        for on_success, on_error in pending:
            self._notify(on_success, on_error)

    def _notify(
        self,
        on_success: Optional[SuccessCallback],
        on_error: Optional[ErrorCallback],
    ) -> None:
        callback = on_error if self.state is EntryState.ERROR else on_success
        if callback is None:
            return
        try:
            callback(self.payload)
        except Exception:
            logger.exception(f"Listener for {self.key} raised")
