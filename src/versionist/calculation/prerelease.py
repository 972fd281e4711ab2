"""Pre-release composition and the non-mainline increment paths."""

from __future__ import annotations

from versionist.calculation.context import CalculationContext
from versionist.calculation.models import BaseVersion
from versionist.config import VersioningMode
from versionist.semver import SemanticVersion


class PreReleaseComposer:
    """Turn a base version and the commits since it into the final version."""

    def __init__(self, context: CalculationContext) -> None:
        self.context = context

    def label(self) -> str:
        """Pre-release label for the current branch; empty for none."""
        context = self.context
        if context.mode == VersioningMode.CONTINUOUS_DEPLOYMENT:
            return ""
        if context.branch_config.is_mainline:
            return ""
        return context.resolver.pre_release_label(
            context.branch_config,
            context.branch_name,
            context.pull_request_number,
        )

    def attach(self, version: SemanticVersion, number: int) -> SemanticVersion:
        """Attach the branch's pre-release tag (if it has one) to ``version``."""
        label = self.label()
        if not label:
            return version
        return version.with_pre_release(label, number)

    def continuous_delivery(self, base: BaseVersion) -> SemanticVersion:
        """Bump once by the strongest signal since the base, then label.

        The pre-release number is the count of commits since the base
        version's source.
        """
        context = self.context
        source = base.source.sha if base.source is not None else None
        commits = context.history.commits_between(context.target.sha, source)

        if not base.should_increment:
            version = base.version
            context.explain("%s is not incremented", version)
        else:
            default = context.resolver.resolve_increment(context.branch_config)
            signal = context.scanner.scan(commits, default)
            version = base.version.increment(signal.increment)
            context.explain(
                "%d commit(s) since %s: %s -> %s (%s)",
                len(commits),
                base.source.short_sha if base.source is not None else "root",
                base.version,
                version,
                signal.reason,
            )

        if base.source is not None and base.source == context.target:
            return version
        return self.attach(version, len(commits))

    def continuous_deployment(self, base: BaseVersion) -> SemanticVersion:
        """Bump once per commit since the base, oldest first, with no label."""
        context = self.context
        if not base.should_increment:
            return base.version

        source = base.source.sha if base.source is not None else None
        commits = context.history.commits_between(context.target.sha, source)
        default = context.resolver.resolve_increment(context.branch_config)
        version = base.version
        for commit in reversed(commits):
            signal = context.scanner.scan([commit], default)
            bumped = version.increment(signal.increment)
            context.explain("commit %s: %s -> %s (%s)", commit.short_sha, version, bumped, signal.reason)
            version = bumped
        return version
