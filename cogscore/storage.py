"""Thread-safe key-value storage shared across scoring sessions.

The Embedding Store and the viability cache never touch a bare dict; they are
handed a ``KeyValueStore`` so the scoring logic can be exercised with a plain
in-memory store in tests and backed by something else in deployments.

Contract:
    get(key)                    -> value or None
    put(key, value)             -> None
    compute_if_absent(key, fn)  -> existing value, or fn(key) stored atomically
    update(key, fn)             -> fn(old) stored atomically, or None if absent
"""

from __future__ import annotations

import threading
from typing import Callable, Generic, Hashable, Optional, Protocol, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class KeyValueStore(Protocol[K, V]):
    """Store with atomic per-key read-modify-write."""

    def get(self, key: K) -> Optional[V]: ...

    def put(self, key: K, value: V) -> None: ...

    def compute_if_absent(self, key: K, factory: Callable[[K], V]) -> V: ...

    def update(self, key: K, fn: Callable[[V], V]) -> Optional[V]: ...

    def items(self) -> list[tuple[K, V]]: ...

    def clear(self) -> None: ...

    def __contains__(self, key: object) -> bool: ...

    def __len__(self) -> int: ...


class InMemoryStore(Generic[K, V]):
    """Dict-backed ``KeyValueStore`` guarded by per-key locks.

    A store-wide lock protects the table itself; per-key locks serialize
    read-modify-write on a single key without blocking other keys.

    ``clear()`` bumps a generation counter. A computation that started
    before the clear returns its value to the caller but does not store it.
    Key locks survive ``clear()`` so a holder keeps excluding other writers.
    """

    def __init__(self):
        self._data: dict[K, V] = {}
        self._lock = threading.Lock()
        self._key_locks: dict[K, threading.Lock] = {}
        self._generation = 0

    def _key_lock(self, key: K) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: K, value: V) -> None:
        with self._key_lock(key):
            with self._lock:
                self._data[key] = value

    def compute_if_absent(self, key: K, factory: Callable[[K], V]) -> V:
        with self._key_lock(key):
            with self._lock:
                if key in self._data:
                    return self._data[key]
                generation = self._generation
            # Factory runs outside the table lock so it may read other keys
            value = factory(key)
            with self._lock:
                if generation == self._generation:
                    self._data[key] = value
            return value

    def update(self, key: K, fn: Callable[[V], V]) -> Optional[V]:
        with self._key_lock(key):
            with self._lock:
                if key not in self._data:
                    return None
                current = self._data[key]
                generation = self._generation
            new_value = fn(current)
            with self._lock:
                if generation == self._generation:
                    self._data[key] = new_value
            return new_value

    def items(self) -> list[tuple[K, V]]:
        with self._lock:
            return list(self._data.items())

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._generation += 1

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
