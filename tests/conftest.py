"""
Shared fixtures: a fake GPU/blob context that records releases and a
controllable clock.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

import pytest

from app.cache import CacheStore, Sweeper


class FakeResourceContext:
    """Tracks live texture handles and records every release."""

    def __init__(self):
        self.live = set()
        self.deleted: List[Any] = []
        self.revoked: List[str] = []
        self._next_blob = 0

    def create_texture(self) -> int:
        handle = len(self.live) + len(self.deleted) + 1
        self.live.add(handle)
        return handle

    def is_texture(self, handle: Any) -> bool:
        return handle in self.live

    def delete_texture(self, handle: Any) -> None:
        self.live.remove(handle)
        self.deleted.append(handle)

    def create_object_url(self, data: bytes) -> str:
        self._next_blob += 1
        return f"blob:asset-{self._next_blob}"

    def revoke_object_url(self, ref: str) -> None:
        self.revoked.append(ref)


class FakeClock:
    def __init__(self, now: float = 0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@dataclass
class Frame:
    texture: Optional[int] = None


@dataclass
class Sprite:
    frames: List[Frame] = field(default_factory=list)
    texture: Optional[int] = None


@dataclass
class Palette:
    texture: Optional[int] = None


@pytest.fixture
def ctx():
    return FakeResourceContext()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return CacheStore(clock=clock)


@pytest.fixture
def sweeper(store):
    return Sweeper(store, sweep_interval=30000, remember_window=120000)
