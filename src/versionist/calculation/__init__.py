"""Version calculation engine."""

from versionist.calculation.base_version import (
    DEFAULT_STRATEGIES,
    BaseVersionLocator,
    branch_name,
    configured_next_version,
    merge_messages,
    tagged_commits,
)
from versionist.calculation.calculator import VersionCalculator
from versionist.calculation.context import CalculationContext
from versionist.calculation.history import History
from versionist.calculation.mainline import (
    Mainline,
    MainlineCalculator,
    MainlineVersion,
    find_mainline,
    require_mainline,
)
from versionist.calculation.merge_message import MergeMessage, MergeMessageParser
from versionist.calculation.models import BaseVersion, VersionResult
from versionist.calculation.prerelease import PreReleaseComposer

__all__ = [
    # Orchestration
    "VersionCalculator",
    "VersionResult",
    "CalculationContext",
    # Base versions
    "BaseVersion",
    "BaseVersionLocator",
    "DEFAULT_STRATEGIES",
    "tagged_commits",
    "merge_messages",
    "branch_name",
    "configured_next_version",
    # Mainline
    "Mainline",
    "MainlineCalculator",
    "MainlineVersion",
    "find_mainline",
    "require_mainline",
    # Supporting pieces
    "History",
    "MergeMessage",
    "MergeMessageParser",
    "PreReleaseComposer",
]
