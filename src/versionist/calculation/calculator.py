"""Version calculation orchestrator."""

from __future__ import annotations

from versionist.branches import BranchResolver, normalize_branch_name
from versionist.cache import CalculationCache
from versionist.calculation.base_version import BaseVersionLocator
from versionist.calculation.context import CalculationContext
from versionist.calculation.history import History
from versionist.calculation.mainline import MainlineCalculator, find_mainline, require_mainline
from versionist.calculation.merge_message import MergeMessageParser
from versionist.calculation.models import BaseVersion, VersionResult
from versionist.calculation.prerelease import PreReleaseComposer
from versionist.config import VersioningConfig, VersioningMode
from versionist.git import Commit, CommitGraph
from versionist.increments import IncrementScanner
from versionist.logging import get_logger
from versionist.semver import SemanticVersion
from versionist.statistics import CalculationStatistics

logger = get_logger(__name__)

DETACHED_BRANCH_NAME = "(no branch)"


class VersionCalculator:
    """Calculate semantic versions for commits of a repository.

    The calculator holds no state between calls: each :meth:`calculate`
    builds its own history view, memoization cache and statistics.
    """

    def __init__(
        self,
        graph: CommitGraph,
        config: VersioningConfig | None = None,
        locator: BaseVersionLocator | None = None,
    ) -> None:
        """Initialize the calculator.

        Args:
            graph: Commit graph to read history from.
            config: Versioning configuration. Defaults to the built-in one.
            locator: Base version locator (defaults to all strategies).
        """
        self.graph = graph
        self.config = config or VersioningConfig()
        self.locator = locator or BaseVersionLocator()
        self.resolver = BranchResolver(self.config)
        self.scanner = IncrementScanner(self.config)
        self.merge_messages = MergeMessageParser(self.config)
        self.last_statistics: CalculationStatistics | None = None

    def calculate(
        self,
        commit: str | None = None,
        branch: str | None = None,
        pull_request_number: int | None = None,
    ) -> VersionResult:
        """Calculate the version of a commit.

        Args:
            commit: Commit reference (SHA, branch or tag). Defaults to the tip
                of ``branch``, else HEAD.
            branch: Branch whose policy applies. Defaults to the checked-out
                branch, else a branch pointing at the commit.
            pull_request_number: Treat the calculation as a pull-request build.

        Returns:
            The calculated version and its supporting details.

        Raises:
            ConfigurationAmbiguityError: If the branch matches several
                patterns of an unordered configuration, or no mainline can be
                found in Mainline mode.
            TraversalLimitExceededError: If history is larger than
                ``max_traversal`` allows.
            CommitNotFoundError: If ``commit`` does not resolve.
        """
        statistics = CalculationStatistics()
        self.last_statistics = statistics

        with statistics.phase("Resolving target"):
            target = self._resolve_target(commit, branch)
            branch_name = normalize_branch_name(branch) if branch else self._branch_name_for(target)
            context = self._build_context(target, branch_name, pull_request_number, statistics)

        with statistics.phase("Locating base version") as timing:
            base = self.locator.locate(context)
            timing.item_count = statistics.base_version_candidates

        with statistics.phase("Calculating version") as timing:
            version = self._calculate_version(context, base)
            timing.item_count = context.history.visits

        logger.info("Version for %s on '%s' is %s", target.short_sha, branch_name, version)
        return VersionResult(
            version=version,
            branch_name=branch_name,
            sha=target.sha,
            commit_date=target.committed_at,
            version_source_sha=base.source.sha if base.source is not None else None,
            commits_since_version_source=context.history.count_between(
                target.sha, base.source.sha if base.source is not None else None
            ),
            versioning_mode=context.mode,
            base_version_strategy=base.strategy,
            increment_reasons=tuple(context.reasons),
        )

    def _resolve_target(self, commit: str | None, branch: str | None) -> Commit:
        if commit is not None:
            return self.graph.resolve(commit)
        if branch is not None:
            return self.graph.resolve(branch)
        return self.graph.head_commit()

    def _branch_name_for(self, target: Commit) -> str:
        """Checked-out branch, else a branch whose tip is the target."""
        head = self.graph.head()
        if head is not None:
            return normalize_branch_name(head)
        at_target = self.graph.branches_at(target.sha)
        if at_target:
            return at_target[0].friendly_name
        return DETACHED_BRANCH_NAME

    def _build_context(
        self,
        target: Commit,
        branch_name: str,
        pull_request_number: int | None,
        statistics: CalculationStatistics,
    ) -> CalculationContext:
        branch_config = self.resolver.resolve(branch_name)
        if pull_request_number is not None:
            branch_config = self.resolver.pull_request_config() or branch_config

        context = CalculationContext(
            config=self.config,
            history=History(self.graph, self.config.max_traversal, statistics),
            resolver=self.resolver,
            scanner=self.scanner,
            merge_messages=self.merge_messages,
            cache=CalculationCache(statistics),
            statistics=statistics,
            target=target,
            branch_name=branch_name,
            branch_config=branch_config,
            pull_request_number=pull_request_number,
        )

        mainline_config = None
        if branch_config.mode is None and not branch_config.is_mainline:
            mainline = find_mainline(context)
            mainline_config = mainline.config if mainline is not None else None
        context.mode = self.resolver.resolve_mode(branch_config, mainline_config)
        context.explain(
            "Branch '%s' uses configuration '%s' in %s mode",
            branch_name,
            branch_config.name,
            context.mode.value,
        )
        return context

    def _calculate_version(self, context: CalculationContext, base: BaseVersion) -> SemanticVersion:
        # Mainline mode needs a mainline even when the base version is final
        if context.mode == VersioningMode.MAINLINE:
            require_mainline(context)

        # A version established at the target itself is the answer
        if not base.should_increment and base.source is not None and base.source == context.target:
            context.explain("%s is exactly the target commit", base.version)
            return base.version

        composer = PreReleaseComposer(context)
        if context.mode == VersioningMode.MAINLINE:
            # Configured and branch-name versions are not replayed
            if not base.should_increment:
                return composer.continuous_delivery(base)
            result = MainlineCalculator(context).calculate(base)
            return composer.attach(result.version, result.branch_commits)
        if context.mode == VersioningMode.CONTINUOUS_DEPLOYMENT:
            return composer.continuous_deployment(base)
        return composer.continuous_delivery(base)
