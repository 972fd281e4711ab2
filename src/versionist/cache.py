"""Per-calculation memoization table.

Entries are grouped by namespace, for example:

    "mainline"       target sha  -> Mainline | None
    "merge-message"  commit sha  -> MergeMessage | None

A cache belongs to exactly one top-level calculation. Entries are
write-once: a key always recomputes to the same value, so storing a
different value for an existing key is a programming error.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from versionist.statistics import CalculationStatistics

T = TypeVar("T")

_MISSING = object()


@dataclass
class CacheStats:
    """Statistics about the cache."""

    total_entries: int
    hits: int
    misses: int
    entries_by_namespace: dict[str, int] = field(default_factory=dict)

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100


class CalculationCache:
    """Namespaced, write-once memo table scoped to one calculation."""

    def __init__(self, statistics: CalculationStatistics | None = None) -> None:
        """Initialize the cache.

        Args:
            statistics: Optional statistics object that also receives
                hit/miss counts.
        """
        self._entries: dict[str, dict[Hashable, Any]] = {}
        self._statistics = statistics
        self._hits = 0
        self._misses = 0

    def get(self, namespace: str, key: Hashable, default: Any = None) -> Any:
        """Get a cached value, or ``default`` when absent.

        Args:
            namespace: Entry group (e.g., "merge-message").
            key: Hashable key within the namespace.
            default: Returned when there is no entry.
        """
        value = self._entries.get(namespace, {}).get(key, _MISSING)
        if value is _MISSING:
            self._record(hit=False)
            return default
        self._record(hit=True)
        return value

    def contains(self, namespace: str, key: Hashable) -> bool:
        """Check for an entry without touching the hit/miss counters."""
        return key in self._entries.get(namespace, {})

    def set(self, namespace: str, key: Hashable, value: Any) -> None:
        """Store a value.

        Raises:
            ValueError: If the key already holds a different value.
        """
        entries = self._entries.setdefault(namespace, {})
        existing = entries.get(key, _MISSING)
        if existing is not _MISSING and existing != value:
            raise ValueError(
                f"Cache entry {namespace}/{key!r} is write-once "
                f"(has {existing!r}, got {value!r})"
            )
        entries[key] = value

    def get_or_compute(self, namespace: str, key: Hashable, compute: Callable[[], T]) -> T:
        """Return the cached value, computing and storing it on a miss."""
        entries = self._entries.get(namespace)
        if entries is not None and key in entries:
            self._record(hit=True)
            return entries[key]  # type: ignore[no-any-return]

        self._record(hit=False)
        value = compute()
        self.set(namespace, key, value)
        return value

    def clear(self, namespace: str | None = None) -> int:
        """Clear cache entries.

        Args:
            namespace: If provided, only clear entries in this namespace.
                If None, clear all entries.

        Returns:
            Number of entries deleted.
        """
        if namespace:
            return len(self._entries.pop(namespace, {}))
        count = sum(len(entries) for entries in self._entries.values())
        self._entries = {}
        return count

    def stats(self) -> CacheStats:
        """Get cache statistics."""
        by_namespace = {name: len(entries) for name, entries in self._entries.items()}
        return CacheStats(
            total_entries=sum(by_namespace.values()),
            hits=self._hits,
            misses=self._misses,
            entries_by_namespace=by_namespace,
        )

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def _record(self, hit: bool) -> None:
        if hit:
            self._hits += 1
            if self._statistics is not None:
                self._statistics.record_cache_hit()
        else:
            self._misses += 1
            if self._statistics is not None:
                self._statistics.record_cache_miss()
