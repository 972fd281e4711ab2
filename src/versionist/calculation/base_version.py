"""Base version discovery.

Each strategy is a plain function that looks at the history from the target
commit and yields :class:`BaseVersion` candidates. The locator runs them all
and picks one winner with a fixed ordering: highest version, then the
candidate closest to the target, then strategy priority (tags first).
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Iterator

from versionist.branches import version_in_branch_name
from versionist.calculation.context import CalculationContext
from versionist.calculation.models import BaseVersion
from versionist.config import VersioningMode
from versionist.errors import ConfigurationError, MalformedTagError
from versionist.git import Commit
from versionist.logging import get_logger
from versionist.semver import SemanticVersion

logger = get_logger(__name__)

TAG_STRATEGY = "Git tag"
MERGE_MESSAGE_STRATEGY = "Merge message"
BRANCH_NAME_STRATEGY = "Version in branch name"
NEXT_VERSION_STRATEGY = "NextVersion in configuration"
FALLBACK_STRATEGY = "Fallback"

# Lower wins when version and distance tie
STRATEGY_PRIORITY = {
    TAG_STRATEGY: 0,
    MERGE_MESSAGE_STRATEGY: 1,
    BRANCH_NAME_STRATEGY: 2,
    NEXT_VERSION_STRATEGY: 3,
    FALLBACK_STRATEGY: 4,
}

Strategy = Callable[[CalculationContext], Iterable[BaseVersion]]


def tagged_commits(context: CalculationContext) -> Iterator[BaseVersion]:
    """Tags on commits reachable from the target.

    Tags that do not parse as versions are skipped. Pre-release tags only
    count on the target commit itself, and never in Mainline mode.
    """
    reachable = context.history.reachable(context.target.sha)
    for tag in context.history.graph.tags():
        if tag.target not in reachable:
            continue
        try:
            version = SemanticVersion.parse(tag.name, context.config.tag_prefix)
        except MalformedTagError as e:
            logger.debug("Ignoring tag: %s", e)
            continue

        on_target = tag.target == context.target.sha
        if version.is_pre_release and (not on_target or context.mode == VersioningMode.MAINLINE):
            continue
        yield BaseVersion(
            version=version,
            source=context.history.get(tag.target),
            should_increment=not on_target,
            strategy=TAG_STRATEGY,
        )


def merge_messages(context: CalculationContext) -> Iterator[BaseVersion]:
    """Merges of release branches whose names carry a version.

    Only the version in the merged branch's name is taken here. A
    ``+semver:`` directive in a merge message is an increment, not a base
    version: the increment scanner reads it when the merge is scanned.
    """
    history = context.history
    for sha in history.reachable(context.target.sha):
        commit = history.get(sha)
        message = context.parse_merge(commit)
        if message is None or message.version is None:
            continue
        if not context.resolver.resolve(message.merged_branch).is_release_branch:
            continue
        yield BaseVersion(
            version=message.version.without_metadata(),
            source=commit,
            should_increment=not context.branch_config.prevent_increment_of_merged_branch,
            strategy=MERGE_MESSAGE_STRATEGY,
        )


def branch_name(context: CalculationContext) -> Iterator[BaseVersion]:
    """The version in a release branch's own name, sourced at its branch point."""
    if not context.branch_config.is_release_branch:
        return
    version = version_in_branch_name(context.branch_name, context.config.tag_prefix)
    if version is None:
        return
    yield BaseVersion(
        version=version.without_metadata(),
        source=_branch_point(context),
        should_increment=False,
        strategy=BRANCH_NAME_STRATEGY,
    )


def configured_next_version(context: CalculationContext) -> Iterator[BaseVersion]:
    """The ``next_version`` floor from configuration."""
    text = context.config.next_version
    if not text:
        return
    try:
        version = SemanticVersion.parse(text)
    except MalformedTagError as e:
        raise ConfigurationError(f"next-version '{text}' is not a valid version") from e
    yield BaseVersion(
        version=version,
        source=None,
        should_increment=False,
        strategy=NEXT_VERSION_STRATEGY,
    )


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    tagged_commits,
    merge_messages,
    branch_name,
    configured_next_version,
)


def _branch_point(context: CalculationContext) -> Commit | None:
    """Newest merge base between the target and any branch not containing it."""
    history = context.history
    target = context.target
    best: Commit | None = None
    for branch in history.graph.branches():
        if branch.friendly_name == context.branch_name or branch.name == context.branch_name:
            continue
        if history.is_ancestor(target.sha, branch.tip):
            continue
        base = history.merge_base(target.sha, branch.tip)
        if base is None:
            continue
        commit = history.get(base)
        if best is None or (commit.committed_at, commit.sha) > (best.committed_at, best.sha):
            best = commit
    return best


class BaseVersionLocator:
    """Run the base version strategies and choose one candidate."""

    def __init__(self, strategies: Iterable[Strategy] | None = None) -> None:
        """Initialize the locator.

        Args:
            strategies: Strategy functions to run. Defaults to
                :data:`DEFAULT_STRATEGIES`.
        """
        self.strategies = tuple(strategies) if strategies is not None else DEFAULT_STRATEGIES

    def candidates(self, context: CalculationContext) -> list[BaseVersion]:
        """All candidates from all strategies, falling back to 0.0.0."""
        found: list[BaseVersion] = []
        for strategy in self.strategies:
            found.extend(strategy(context))
        if not found:
            found.append(
                BaseVersion(
                    version=SemanticVersion(),
                    source=None,
                    should_increment=True,
                    strategy=FALLBACK_STRATEGY,
                )
            )
        context.statistics.base_version_candidates += len(found)
        return found

    def distance(self, context: CalculationContext, candidate: BaseVersion) -> float:
        """Commits between the candidate's source and the target."""
        if candidate.source is None:
            return math.inf
        return context.history.count_between(context.target.sha, candidate.source.sha)

    def locate(self, context: CalculationContext) -> BaseVersion:
        """Choose the base version for the target commit.

        Returns:
            The highest version; ties go to the candidate closest to the
            target, then to the highest priority strategy.
        """
        candidates = self.candidates(context)
        for candidate in candidates:
            logger.debug("Base version candidate: %s", candidate)

        def sort_key(candidate: BaseVersion) -> tuple[SemanticVersion, float, int]:
            return (
                candidate.version,
                -self.distance(context, candidate),
                -STRATEGY_PRIORITY.get(candidate.strategy, len(STRATEGY_PRIORITY)),
            )

        chosen = max(candidates, key=sort_key)
        context.explain("Base version %s", chosen)
        return chosen
