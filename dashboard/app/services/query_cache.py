import copy
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

Key = tuple[Hashable, ...]


@dataclass
class _Entry:
    value: Any
    fetched_at: float
    stale: bool = False


class QueryCache:
    """Tuple-keyed read cache with staleness and write generations.

    Every optimistic write bumps the key's generation; a fetch that captured
    an older generation before awaiting the network must not overwrite it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[Key, _Entry] = {}
        self._generations: dict[Key, int] = {}
        self._clock = clock

    def get(self, key: Key) -> Any:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def keys(self, prefix: Key = ()) -> list[Key]:
        return [key for key in self._entries if key[: len(prefix)] == prefix]

    def generation(self, key: Key) -> int:
        return self._generations.get(key, 0)

    def _bump(self, key: Key) -> None:
        self._generations[key] = self.generation(key) + 1

    def set(self, key: Key, value: Any, *, generation: int | None = None) -> bool:
        if generation is not None and generation != self.generation(key):
            return False
        self._entries[key] = _Entry(value, self._clock())
        return True

    def is_fresh(self, key: Key, max_age: float) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return False
        return self._clock() - entry.fetched_at < max_age

    def invalidate(self, prefix: Key) -> int:
        keys = self.keys(prefix)
        for key in keys:
            self._entries[key].stale = True
        return len(keys)

    def patch(self, key: Key, mutator: Callable[[Any], Any]) -> Any:
        """Replace the value with ``mutator(copy)`` and return the untouched previous value."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        previous = entry.value
        self._bump(key)
        self._entries[key] = _Entry(mutator(copy.deepcopy(previous)), entry.fetched_at, entry.stale)
        return previous

    def restore(self, key: Key, snapshot: Any) -> None:
        self._bump(key)
        entry = self._entries.get(key)
        if snapshot is None:
            self._entries.pop(key, None)
        elif entry is None:
            self._entries[key] = _Entry(snapshot, self._clock())
        else:
            self._entries[key] = _Entry(snapshot, entry.fetched_at, entry.stale)
