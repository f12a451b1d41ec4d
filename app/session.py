"""
Client session wiring: one cache, its sweeper and loader, and the resource
context that owns the GPU/blob handles referenced by cached assets.
"""
import logging
from typing import Any, Dict, Optional

from app.cache import CacheStore, ResourceContext, Sweeper
from app.cache.store import Clock
from app.loader import BLOB_SUFFIXES, AssetLoader, Decoder, blob_decoder
from config.settings import settings

logger = logging.getLogger("asset.session")


class AssetSession:
    """
    Owns the asset cache for the lifetime of a client session.

    The render loop calls tick() every frame; eviction runs at most once per
    sweep interval.
    """

    def __init__(
        self,
        context: ResourceContext,
        clock: Optional[Clock] = None,
        loader: Optional[AssetLoader] = None,
        decoders: Optional[Dict[str, Decoder]] = None,
        sweep_interval: Optional[float] = None,
        remember_window: Optional[float] = None,
    ):
        self.context = context
        self.store = CacheStore(clock=clock)
        self.sweeper = Sweeper(
            self.store,
            sweep_interval=sweep_interval if sweep_interval is not None else settings.sweep_interval_ms,
            remember_window=remember_window if remember_window is not None else settings.remember_window_ms,
        )

        all_decoders: Dict[str, Decoder] = {}
        create_object_url = getattr(context, "create_object_url", None)
        if create_object_url is not None:
            for suffix in BLOB_SUFFIXES:
                all_decoders[suffix] = blob_decoder(create_object_url)
        all_decoders.update(decoders or {})

        self.loader = loader or AssetLoader(self.store, decoders=all_decoders)
        self._closed = False

    def load(self, key: str, on_success=None, on_error=None) -> Optional[Any]:
        """Request an asset through the loader."""
        return self.loader.load(key, on_success, on_error)

    def tick(self, now: Optional[float] = None) -> int:
        """
        Drive the periodic sweep. Returns the number of evicted entries.

        `now` must come from the session clock; it defaults to reading it.
        """
        return self.sweeper.sweep(self.context, now)

    def resume(self, now: Optional[float] = None) -> int:
        """
        Sweep immediately, ignoring the rate limit.

        Called when the client comes back from a pause, so assets that went
        idle meanwhile are released without waiting for the next interval.
        """
        self.sweeper.reset()
        evicted = self.sweeper.sweep(self.context, now)
        logger.info(f"Session resumed, released {evicted} idle assets")
        return evicted

    def get_stats(self) -> Dict[str, Any]:
        stats = self.store.get_stats()
        stats["last_sweep_time"] = self.sweeper.last_sweep_time
        return stats

    def close(self) -> None:
        """Release every resolved asset and the HTTP session."""
        if self._closed:
            return
        self._closed = True
        evicted = self.store.clear(self.context)
        self.loader.close()
        logger.info(f"Session closed, released {evicted} cached assets")
