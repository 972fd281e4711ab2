"""State shared by the parts of one calculation."""

from __future__ import annotations

from dataclasses import dataclass, field

from versionist.branches import BranchResolver
from versionist.cache import CalculationCache
from versionist.calculation.history import History
from versionist.calculation.merge_message import MergeMessage, MergeMessageParser
from versionist.config import BranchConfig, VersioningConfig, VersioningMode
from versionist.git import Commit
from versionist.increments import IncrementScanner
from versionist.logging import get_logger
from versionist.statistics import CalculationStatistics

logger = get_logger(__name__)


@dataclass
class CalculationContext:
    """Everything one top-level calculation needs.

    Built fresh per :meth:`VersionCalculator.calculate` call, so the cache and
    the traversal budget never leak between calculations.
    """

    config: VersioningConfig
    history: History
    resolver: BranchResolver
    scanner: IncrementScanner
    merge_messages: MergeMessageParser
    cache: CalculationCache
    statistics: CalculationStatistics
    target: Commit
    branch_name: str
    branch_config: BranchConfig
    mode: VersioningMode = VersioningMode.CONTINUOUS_DELIVERY
    pull_request_number: int | None = None
    reasons: list[str] = field(default_factory=list)

    def explain(self, message: str, *args: object) -> None:
        """Record a step of the increment reason trail and log it."""
        text = message % args if args else message
        self.reasons.append(text)
        logger.info(text)

    def parse_merge(self, commit: Commit) -> MergeMessage | None:
        """Parse a merge commit message, once per commit for the calculation."""
        return self.cache.get_or_compute(
            "merge-message", commit.sha, lambda: self.merge_messages.parse_commit(commit)
        )
