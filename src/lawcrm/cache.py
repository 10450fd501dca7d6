"""In-process TTL cache with generation based invalidation."""

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, TypeVar

V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float
    generation: int


class TTLCache(Generic[V]):
    """Key/value cache where entries expire after a TTL.

    ``invalidate()`` without a key bumps the generation so every existing
    entry becomes a miss without walking the store.
    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._store: dict[Hashable, _Entry[V]] = {}
        self.generation = 0

    def get(self, key: Hashable, default: Any = None) -> V | Any:
        entry = self._store.get(key)
        if entry is None:
            return default
        if entry.generation != self.generation or entry.expires_at <= self._clock():
            del self._store[key]
            return default
        return entry.value

    def set(self, key: Hashable, value: V, ttl: float | None = None) -> None:
        lifetime = self.ttl if ttl is None else ttl
        self._store[key] = _Entry(value, self._clock() + lifetime, self.generation)

    def invalidate(self, key: Hashable | None = None) -> None:
        if key is None:
            self.generation += 1
            self._store.clear()
        else:
            self._store.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        return len(self._store)


_MISSING = object()
