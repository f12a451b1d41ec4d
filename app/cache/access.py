"""
Last-access bookkeeping used to decide eviction eligibility.
"""
from typing import Dict, Optional


class AccessTimeTracker:
    """Maps cache key -> last-touch timestamp (caller-supplied clock value)."""

    def __init__(self):
        self._last_access: Dict[str, float] = {}

    def touch(self, key: str, time: float) -> None:
        self._last_access[key] = time

    def last_access(self, key: str) -> Optional[float]:
        return self._last_access.get(key)

    def forget(self, key: str) -> None:
        self._last_access.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._last_access

    def __len__(self) -> int:
        return len(self._last_access)
