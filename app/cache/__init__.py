"""
In-memory asset cache with shared in-flight loads, idle eviction and
reclamation of external resources.
"""
from .core import CacheEntry, EntryState
from .access import AccessTimeTracker
from .exceptions import AssetCacheError, AssetLoadError, EntryAlreadyResolvedError
from .reclaim import (
    RECLAIM_POLICIES,
    AssetKind,
    NullResourceContext,
    OpaqueAsset,
    PaletteAsset,
    ResourceContext,
    SpriteAsset,
    TransientBlobAsset,
    classify_asset,
    get_discriminator,
)
from .store import CacheStore, monotonic_ms
from .sweeper import DEFAULT_REMEMBER_WINDOW, DEFAULT_SWEEP_INTERVAL, Sweeper

__all__ = [
    # Core types
    "CacheEntry",
    "EntryState",
    "AccessTimeTracker",
    # Errors
    "AssetCacheError",
    "AssetLoadError",
    "EntryAlreadyResolvedError",
    # Reclamation
    "RECLAIM_POLICIES",
    "AssetKind",
    "NullResourceContext",
    "OpaqueAsset",
    "PaletteAsset",
    "ResourceContext",
    "SpriteAsset",
    "TransientBlobAsset",
    "classify_asset",
    "get_discriminator",
    # Store
    "CacheStore",
    "monotonic_ms",
    "Sweeper",
    "DEFAULT_SWEEP_INTERVAL",
    "DEFAULT_REMEMBER_WINDOW",
]
