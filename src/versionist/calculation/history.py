"""History queries for one calculation.

:class:`History` wraps a :class:`~versionist.git.CommitGraph` and answers the
ancestry questions the engine asks (reachability, merge bases, ranges and
first-parent logs). Results are memoized for the lifetime of the object and
every commit expanded during a walk counts against a traversal budget.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterator

from versionist.errors import TraversalLimitExceededError
from versionist.git import Commit, CommitGraph
from versionist.statistics import CalculationStatistics


class History:
    """Memoized ancestry queries with a traversal budget."""

    def __init__(
        self,
        graph: CommitGraph,
        max_traversal: int = 1_000_000,
        statistics: CalculationStatistics | None = None,
    ) -> None:
        """Initialize the history view.

        Args:
            graph: The commit graph to query.
            max_traversal: Maximum number of commit expansions allowed.
            statistics: Optional statistics receiving traversal counts.
        """
        self.graph = graph
        self.max_traversal = max_traversal
        self.statistics = statistics
        self.visits = 0
        self._reachable: dict[str, frozenset[str]] = {}
        self._merge_bases: dict[tuple[str, str], str | None] = {}

    def get(self, sha: str) -> Commit:
        """Look up a commit without counting it as a traversal step."""
        return self.graph.get_commit(sha)

    def _expand(self, sha: str) -> Commit:
        """Load a commit during a walk, charging the traversal budget."""
        self.visits += 1
        if self.statistics is not None:
            self.statistics.commits_walked += 1
        if self.visits > self.max_traversal:
            raise TraversalLimitExceededError(self.max_traversal)
        return self.graph.get_commit(sha)

    def reachable(self, sha: str) -> frozenset[str]:
        """SHAs of ``sha`` and all of its ancestors."""
        cached = self._reachable.get(sha)
        if cached is not None:
            return cached

        seen: set[str] = set()
        pending = [sha]
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            known = self._reachable.get(current)
            if known is not None:
                seen |= known
                continue
            seen.add(current)
            pending.extend(self._expand(current).parents)

        result = frozenset(seen)
        self._reachable[sha] = result
        return result

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """True when ``ancestor`` is reachable from ``descendant`` (or equal)."""
        return ancestor in self.reachable(descendant)

    def walk_newest_first(self, sha: str) -> Iterator[Commit]:
        """Yield ``sha`` and its ancestors, newest commit time first.

        Ties on commit time are broken by SHA so the order is stable.
        """
        start = self._expand(sha)
        heap = [(-start.committed_at.timestamp(), start.sha, start)]
        queued = {start.sha}
        while heap:
            _, _, commit = heapq.heappop(heap)
            yield commit
            for parent_sha in commit.parents:
                if parent_sha in queued:
                    continue
                queued.add(parent_sha)
                parent = self._expand(parent_sha)
                heapq.heappush(heap, (-parent.committed_at.timestamp(), parent.sha, parent))

    def merge_base(self, a: str, b: str) -> str | None:
        """Newest common ancestor of two commits, or None if unrelated."""
        if a == b:
            return a
        key = (a, b)
        if key in self._merge_bases:
            return self._merge_bases[key]
        if self.statistics is not None:
            self.statistics.merge_base_queries += 1

        result: str | None = None
        if a in self.reachable(b):
            result = a
        elif b in self.reachable(a):
            result = b
        else:
            other = self.reachable(b)
            for commit in self.walk_newest_first(a):
                if commit.sha in other:
                    result = commit.sha
                    break

        self._merge_bases[key] = result
        self._merge_bases[(b, a)] = result
        return result

    def commits_between(self, include: str, exclude: str | None) -> list[Commit]:
        """Commits reachable from ``include`` but not from ``exclude``.

        Args:
            include: Newest commit of the range.
            exclude: Commit whose ancestry is removed. None keeps everything.

        Returns:
            Commits newest first.
        """
        excluded = self.reachable(exclude) if exclude is not None else frozenset()
        selected = [self.get(sha) for sha in self.reachable(include) if sha not in excluded]
        selected.sort(key=lambda c: (c.committed_at, c.sha), reverse=True)
        return selected

    def count_between(self, include: str, exclude: str | None) -> int:
        """Number of commits reachable from ``include`` but not from ``exclude``."""
        if exclude is None:
            return len(self.reachable(include))
        return len(self.reachable(include) - self.reachable(exclude))

    def first_parent_log(self, tip: str, exclude: str | None = None) -> list[Commit]:
        """Follow first parents from ``tip`` until reaching ``exclude``'s ancestry.

        Returns:
            Commits oldest first.
        """
        excluded = self.reachable(exclude) if exclude is not None else frozenset()
        log: list[Commit] = []
        current: str | None = tip
        while current is not None and current not in excluded:
            commit = self._expand(current)
            log.append(commit)
            current = commit.first_parent
        log.reverse()
        return log
