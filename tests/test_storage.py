"""Tests for the in-memory key-value store."""
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

from cogscore.storage import InMemoryStore


class TestInMemoryStore:
    """Test atomic store operations."""

    def test_compute_if_absent_once(self):
        """The factory runs only for missing keys."""
        store = InMemoryStore()
        factory = MagicMock(return_value=42)
        assert store.compute_if_absent("a", factory) == 42
        assert store.compute_if_absent("a", factory) == 42
        factory.assert_called_once_with("a")

    def test_update_absent(self):
        """Updating a missing key is a no-op."""
        store = InMemoryStore()
        assert store.update("missing", lambda v: v + 1) is None
        assert "missing" not in store

    def test_concurrent_updates(self):
        """Read-modify-write on one key never loses an update."""
        store = InMemoryStore()
        store.put("count", 0)

        def increment(_):
            for _ in range(100):
                store.update("count", lambda v: v + 1)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(increment, range(8)))
        assert store.get("count") == 800

    def test_concurrent_compute_if_absent(self):
        """Racing creators agree on one value."""
        store = InMemoryStore()
        calls = []

        def factory(key):
            calls.append(key)
            return object()

        with ThreadPoolExecutor(max_workers=8) as pool:
            values = list(pool.map(lambda _: store.compute_if_absent("k", factory), range(32)))
        assert len(calls) == 1
        assert all(v is values[0] for v in values)

    def test_clear(self):
        store = InMemoryStore()
        store.put("a", 1)
        store.clear()
        assert len(store) == 0
        assert store.items() == []

    def test_clear_during_compute_discards_stale_value(self):
        """A value computed before a clear is returned but not cached."""
        store = InMemoryStore()
        started = threading.Event()
        release = threading.Event()

        def slow_factory(key):
            started.set()
            release.wait(timeout=5)
            return "computed-before-clear"

        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(store.compute_if_absent, "k", slow_factory)
            assert started.wait(timeout=5)
            store.clear()
            release.set()
            assert future.result(timeout=5) == "computed-before-clear"

        assert store.get("k") is None
        assert store.compute_if_absent("k", lambda key: "fresh") == "fresh"

    def test_clear_keeps_key_lock_exclusive(self):
        """Factories for one key never overlap across a clear."""
        store = InMemoryStore()
        started = threading.Event()
        release = threading.Event()
        running = []
        overlaps = []

        def factory(key):
            if running:
                overlaps.append(key)
            running.append(key)
            started.set()
            release.wait(timeout=5)
            running.pop()
            return key

        with ThreadPoolExecutor(max_workers=2) as pool:
            first = pool.submit(store.compute_if_absent, "k", factory)
            assert started.wait(timeout=5)
            store.clear()
            second = pool.submit(store.compute_if_absent, "k", factory)
            release.set()
            first.result(timeout=5)
            second.result(timeout=5)

        assert overlaps == []
