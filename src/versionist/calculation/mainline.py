"""Mainline version calculation.

The mainline's history is replayed from the base version's source commit:
every direct commit applies its own increment and every merge applies the
increment of the work it brought in, once. A branch that is not itself a
mainline takes the mainline version at the point it diverged and adds one
increment for its own commits.
"""

from __future__ import annotations

from dataclasses import dataclass

from versionist.calculation.context import CalculationContext
from versionist.calculation.models import BaseVersion
from versionist.config import BranchConfig
from versionist.errors import ConfigurationAmbiguityError
from versionist.git import Branch, Commit
from versionist.increments import IncrementSignal
from versionist.logging import get_logger
from versionist.semver import Increment, SemanticVersion

logger = get_logger(__name__)


@dataclass(frozen=True)
class Mainline:
    """The mainline branch a calculation follows."""

    branch: Branch
    config: BranchConfig
    tip: str


@dataclass(frozen=True)
class MainlineVersion:
    """Result of a mainline calculation."""

    version: SemanticVersion
    mainline: Mainline
    merge_base: str
    branch_commits: int  # Commits on the current branch since ``merge_base``


def find_mainline(context: CalculationContext) -> Mainline | None:
    """Find the mainline branch the target commit belongs to or diverged from.

    The lookup is memoized per target for the calculation.

    Each mainline branch is grouped by its merge base with the target. The
    group whose merge base is the newest ancestor of the target wins. Within
    that group a branch whose tip is the merge base is preferred, then the
    first by name.

    Returns:
        The mainline, or None when no mainline branch shares history with
        the target.
    """
    return context.cache.get_or_compute(
        "mainline", context.target.sha, lambda: _find_mainline(context)
    )


def require_mainline(context: CalculationContext) -> Mainline:
    """Find the mainline or fail.

    Raises:
        ConfigurationAmbiguityError: If no mainline branch shares history
            with the target.
    """
    mainline = find_mainline(context)
    if mainline is None:
        names = ", ".join(context.config.mainline_branch_names)
        raise ConfigurationAmbiguityError(
            f"No branches can be found matching the commit {context.target.sha} "
            f"in the configured Mainline branches: {names}"
        )
    return mainline


def _find_mainline(context: CalculationContext) -> Mainline | None:
    history = context.history
    target = context.target
    if context.branch_config.is_mainline:
        own = Branch(name=context.branch_name, tip=target.sha)
        return Mainline(branch=own, config=context.branch_config, tip=target.sha)

    groups: dict[str, list[tuple[Branch, BranchConfig]]] = {}
    seen: set[str] = set()
    # Local branches come first, so a remote duplicate is dropped
    for branch in history.graph.branches():
        name = branch.friendly_name
        if name in seen:
            continue
        config = context.resolver.resolve(name)
        if not config.is_mainline:
            continue
        seen.add(name)
        merge_base = history.merge_base(branch.tip, target.sha)
        if merge_base is not None:
            groups.setdefault(merge_base, []).append((branch, config))

    if not groups:
        return None

    for commit in history.walk_newest_first(target.sha):
        group = groups.get(commit.sha)
        if group is None:
            continue
        group.sort(key=lambda item: (item[0].tip != commit.sha, item[0].friendly_name))
        branch, config = group[0]
        logger.debug("Mainline for %s is '%s'", target.short_sha, branch.friendly_name)
        return Mainline(branch=branch, config=config, tip=branch.tip)
    return None  # pragma: no cover - every merge base is an ancestor of the target


class MainlineCalculator:
    """Replay mainline history to compute versions in Mainline mode."""

    def __init__(self, context: CalculationContext) -> None:
        self.context = context
        self.history = context.history

    def calculate(self, base: BaseVersion) -> MainlineVersion:
        """Compute the version for the target commit.

        Raises:
            ConfigurationAmbiguityError: If no mainline branch can be found.
        """
        context = self.context
        target = context.target
        mainline = require_mainline(context)

    def _diverged_segment(self, log: list[Commit], tip: str) -> tuple[str, list[Commit]]:
        """Find where the target left the mainline and the log up to that point.

        Returns:
            The merge base and the mainline commits to replay (oldest first).
        """
        target = self.context.target
        merge_base = self.history.merge_base(target.sha, tip)
        if merge_base is None:  # pragma: no cover - find_mainline guarantees shared history
            raise ConfigurationAmbiguityError(f"Commit {target.sha} shares no history with {tip}")

        shas = [commit.sha for commit in log]
        end = self._effective_tip(log, merge_base)

        # The target was already merged into the mainline: version it as of
        # the mainline commit before that merge
        if merge_base == target.sha and merge_base not in shas:
            tip_commit = log[end - 1] if end else self.history.get(tip)
            previous = tip_commit.first_parent
            if previous is not None:
                merge_base = self.history.merge_base(target.sha, previous) or merge_base
                if previous in shas:
                    limit = shas.index(previous) + 1
                    end = self._effective_tip(log[:limit], merge_base)
                else:
                    end = 0
        return merge_base, log[:end]

    @staticmethod
    def _effective_tip(log: list[Commit], merge_base: str) -> int:
        """Length of the log prefix ending at the commit that holds ``merge_base``.

        That is the merge base itself or the first commit that has it as a
        parent; the whole log when neither is found.
        """
        for index, commit in enumerate(log):
            if commit.sha == merge_base or merge_base in commit.parents:
                return index + 1
        return len(log)

    def _replay(
        self,
        version: SemanticVersion,
        log: list[Commit],
        mainline: BranchConfig,
    ) -> SemanticVersion:
        """Apply the increments of a mainline log to ``version``."""
        context = self.context
        default = context.resolver.resolve_increment(mainline)
        pending: list[Commit] = []

        for commit in log:
            if not commit.is_merge:
                pending.append(commit)
                continue

            signal, merged = self._merged_increment(commit, mainline, default)
            pending = [c for c in pending if c.sha not in merged]
            version = self._apply_direct(version, pending, default)
            pending = []
            version = self._bump(version, signal, f"merge {commit.short_sha}")

        return self._apply_direct(version, pending, default)

    def _apply_direct(
        self,
        version: SemanticVersion,
        commits: list[Commit],
        default: Increment,
    ) -> SemanticVersion:
        """Apply each direct mainline commit's own increment in order."""
        for commit in commits:
            signal = self.context.scanner.scan([commit], default)
            version = self._bump(version, signal, f"commit {commit.short_sha}")
        return version

    def _merged_increment(
        self,
        merge: Commit,
        mainline: BranchConfig,
        default: Increment,
    ) -> tuple[IncrementSignal, frozenset[str]]:
        """Increment contributed by a merge and the SHAs it brought in."""
        context = self.context
        history = self.history
        context.statistics.merges_replayed += 1

        merged: set[str] = {merge.sha}
        first_parent = merge.parents[0]
        for head in merge.parents[1:]:
            base = history.merge_base(first_parent, head)
            brought = history.reachable(head)
            if base is not None:
                brought = brought - history.reachable(base)
            merged |= brought

        if mainline.prevent_increment_of_merged_branch:
            scanned = [merge]
        else:
            scanned = [merge] + [history.get(sha) for sha in sorted(merged) if sha != merge.sha]

        signal = context.scanner.find_signal(scanned)
        if signal is None:
            signal = IncrementSignal(self._merged_branch_default(merge, default), from_default=True)
        return signal, frozenset(merged)

    def _merged_branch_default(self, merge: Commit, default: Increment) -> Increment:
        """Configured increment of the merged branch, else the mainline default."""
        message = self.context.parse_merge(merge)
        if message is None:
            return default
        increment = self.context.resolver.resolve(message.merged_branch).increment.to_increment()
        return default if increment is None else increment

    def _bump(self, version: SemanticVersion, signal: IncrementSignal, what: str) -> SemanticVersion:
        bumped = version.increment(signal.increment)
        self.context.explain("%s: %s -> %s (%s)", what, version, bumped, signal.reason)
        return bumped

