"""
Exceptions raised by the asset cache.
"""


class AssetCacheError(Exception):
    """Base class for asset cache errors."""


class EntryAlreadyResolvedError(AssetCacheError):
    """Raised when a loader resolves a key that already has an outcome."""

    def __init__(self, key: str, state: str):
        self.key = key
        self.state = state
        super().__init__(f"Cache entry {key!r} is already {state}; remove it before reloading")


class AssetLoadError(AssetCacheError):
    """
    A fetch or decode failure.

    Never raised to callers of the loader: instances are handed to error
    listeners as the entry's payload.
    """

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Failed to load {key}: {reason}")
