"""
Unit tests for CacheEntry listener semantics.
"""
import pytest

from app.cache import CacheEntry, EntryAlreadyResolvedError, EntryState, OpaqueAsset


def test_new_entry_is_pending():
    entry = CacheEntry(key="a.spr")
    assert entry.state is EntryState.PENDING
    assert entry.payload is None
    assert not entry.complete


def test_queued_listeners_fire_in_registration_order():
    entry = CacheEntry(key="a.txt")
    calls = []
    for i in range(3):
        entry.add_listener(lambda data, i=i: calls.append((i, data)), lambda err: calls.append("error"))

    entry.resolve("hello", False, OpaqueAsset("hello"))

    assert calls == [(0, "hello"), (1, "hello"), (2, "hello")]
    assert entry.listeners == []


def test_error_resolution_only_calls_error_arm():
    entry = CacheEntry(key="a.txt")
    ok, failed = [], []
    entry.add_listener(ok.append, failed.append)

    entry.resolve("not found", True, OpaqueAsset("not found"))

    assert ok == []
    assert failed == ["not found"]
    assert entry.state is EntryState.ERROR


def test_listener_after_resolution_fires_immediately():
    entry = CacheEntry(key="a.txt")
    entry.resolve("data", False, OpaqueAsset("data"))

    received = []
    entry.add_listener(received.append)

    assert received == ["data"]
    assert entry.listeners == []


def test_listener_registered_from_callback_fires_once():
    entry = CacheEntry(key="a.txt")
    late = []

    def on_load(data):
        entry.add_listener(late.append)

    entry.add_listener(on_load)
    entry.resolve("data", False, OpaqueAsset("data"))

    assert late == ["data"]


def test_failing_listener_does_not_block_others():
    entry = CacheEntry(key="a.txt")
    received = []

    def boom(data):
        raise RuntimeError("listener bug")

    entry.add_listener(boom)
    entry.add_listener(received.append)
    entry.resolve("data", False, OpaqueAsset("data"))

    assert received == ["data"]


def test_second_resolution_is_rejected():
    entry = CacheEntry(key="a.txt")
    entry.resolve("first", False, OpaqueAsset("first"))

    with pytest.raises(EntryAlreadyResolvedError):
        entry.resolve("second", False, OpaqueAsset("second"))

    assert entry.payload == "first"
