"""
Shared pytest fixtures and configuration for cachespine tests.

This module provides:
- Fresh in-memory backends and stores per test
- A recording backend that counts primitive calls
- A backend without atomic increments, to exercise read-modify-write paths
"""

import os
import sys
from pathlib import Path

import pytest

# Ensure cachespine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cachespine.backends.memory import InMemoryBackend
from cachespine.settings import CacheOptions
from cachespine.store import CacheStore


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark all tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


class RecordingBackend(InMemoryBackend):
    """In-memory backend that records every primitive call."""

    name = "recording"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls: list[tuple] = []
        self.open_count = 0

    def _open(self):
        self.open_count += 1
        return super()._open()

    def raw_get(self, key):
        self.calls.append(("get", key))
        return super().raw_get(key)

    def raw_set(self, key, data, ttl):
        self.calls.append(("set", key, data, ttl))
        return super().raw_set(key, data, ttl)

    def raw_delete(self, key):
        self.calls.append(("delete", key))
        return super().raw_delete(key)

    def raw_flush(self):
        self.calls.append(("flush",))
        return super().raw_flush()

    def raw_increment(self, key, step):
        self.calls.append(("increment", key, step))
        return super().raw_increment(key, step)

    def ops(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


class NonAtomicBackend(RecordingBackend):
    """Backend that declares no atomic increment support."""

    name = "non-atomic"
    atomic_increment = False
    signed_increment = False


class UnsignedBackend(RecordingBackend):
    """Backend whose atomic increment only accepts non-negative steps."""

    name = "unsigned"
    signed_increment = False


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def options() -> CacheOptions:
    return CacheOptions(prefix="test:", expire=0)


@pytest.fixture
def store(backend, options) -> CacheStore:
    return CacheStore(backend, options)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep CACHE_* variables from the developer's shell out of tests."""
    for name in list(os.environ):
        if name.startswith("CACHE_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def non_atomic_backend() -> NonAtomicBackend:
    return NonAtomicBackend()


@pytest.fixture
def unsigned_backend() -> UnsignedBackend:
    return UnsignedBackend()
