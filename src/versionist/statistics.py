"""Statistics for a single version calculation.

Counts the work done while walking history (commit expansions, merge-base
queries, memoization hits) and times each phase of the calculation, so
``calculate --stats`` can show where the time went.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rich.table import Table

if TYPE_CHECKING:
    from rich.console import Console


def format_duration(seconds: float) -> str:
    """Render a duration as ``250ms``, ``2.5s`` or ``1m 30.0s``."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes)}m {rest:.1f}s"


@dataclass
class PhaseTiming:
    """Wall-clock time and work count of one calculation phase."""

    name: str
    started_at: float
    ended_at: float | None = None
    item_count: int = 0

    @property
    def seconds(self) -> float:
        """Elapsed seconds, up to now if the phase is still running."""
        end = self.ended_at if self.ended_at is not None else time.perf_counter()
        return end - self.started_at


@dataclass
class CalculationStatistics:
    """Counters and phase timings owned by one calculation.

    Phases are timed with a context manager:

        stats = CalculationStatistics()
        with stats.phase("Locating base version") as timing:
            candidates = locate()
            timing.item_count = len(candidates)
        stats.print_summary(console)
    """

    commits_walked: int = 0
    merge_base_queries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    base_version_candidates: int = 0
    merges_replayed: int = 0
    phases: list[PhaseTiming] = field(default_factory=list)

    @contextmanager
    def phase(self, name: str) -> Iterator[PhaseTiming]:
        """Time a named phase; the timing is kept even if the body raises."""
        timing = PhaseTiming(name=name, started_at=time.perf_counter())
        self.phases.append(timing)
        try:
            yield timing
        finally:
            timing.ended_at = time.perf_counter()

    @property
    def total_seconds(self) -> float:
        return sum(timing.seconds for timing in self.phases)

    @property
    def cache_hit_rate(self) -> float:
        """Memoization hit rate as a percentage (0 with no lookups)."""
        lookups = self.cache_hits + self.cache_misses
        return 100 * self.cache_hits / lookups if lookups else 0.0

    def record_cache_hit(self) -> None:
        self.cache_hits += 1

    def record_cache_miss(self) -> None:
        self.cache_misses += 1

    def counters(self) -> dict[str, int]:
        """Non-zero work counters by display name; commits walked is always shown."""
        values = {
            "Commits walked": self.commits_walked,
            "Merge-base queries": self.merge_base_queries,
            "Base version candidates": self.base_version_candidates,
            "Merges replayed": self.merges_replayed,
        }
        return {
            label: value
            for label, value in values.items()
            if value or label == "Commits walked"
        }

    def print_summary(self, console: Console) -> None:
        """Print phase timings and counters as a table.

        Args:
            console: Rich console for output.
        """
        table = Table(title="Calculation Summary", title_justify="left", show_header=False, box=None)
        table.add_column("", style="dim")
        table.add_column("", justify="right")

        for timing in self.phases:
            detail = f" ({timing.item_count} items)" if timing.item_count else ""
            table.add_row(timing.name, f"{format_duration(timing.seconds)}{detail}")
        table.add_row("[bold]Total time[/bold]", format_duration(self.total_seconds))

        for label, value in self.counters().items():
            table.add_row(label, str(value))
        if self.cache_hits or self.cache_misses:
            table.add_row(
                "Cache",
                f"{self.cache_hit_rate:.0f}% hit rate "
                f"({self.cache_hits} hits, {self.cache_misses} misses)",
            )

        console.print()
        console.print(table)
