"""Commit message increment detection.

Each commit message is scanned on its own. An explicit ``+semver:`` directive
is always recognised and the configured patterns are checked on top of it.
A message with a no-bump directive contributes nothing, whatever else it
says. The remaining messages contribute the most severe bump they carry,
and a set of commits yields the maximum of those contributions.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from versionist.config import CommitMessageIncrementMode, VersioningConfig, compile_pattern
from versionist.git import Commit
from versionist.semver import Increment

# Explicit directives are always honoured, whatever patterns are configured
SEMVER_DIRECTIVE = re.compile(
    r"\+semver:\s?(breaking|major|feature|minor|fix|patch|none|skip)\b", re.IGNORECASE
)


@dataclass(frozen=True)
class IncrementSignal:
    """Outcome of scanning one or more commits."""

    increment: Increment
    commit: Commit | None = None  # Commit that carried the deciding directive
    from_default: bool = False

    @property
    def reason(self) -> str:
        """Human-readable explanation for the reason trail."""
        name = self.increment.name.lower()
        if self.from_default:
            return f"{name} (branch default)"
        if self.commit is None:
            return f"{name} (no commits)"
        if self.increment == Increment.NONE:
            return f"none (suppressed by {self.commit.short_sha})"
        return f"{name} (from {self.commit.short_sha} '{self.commit.subject}')"


class IncrementScanner:
    """Find increment directives in commit messages."""

    def __init__(self, config: VersioningConfig) -> None:
        self.mode = config.commit_message_incrementing
        self._none = compile_pattern(config.no_bump_message)
        self._bumps = (
            (Increment.MAJOR, compile_pattern(config.major_version_bump_message)),
            (Increment.MINOR, compile_pattern(config.minor_version_bump_message)),
            (Increment.PATCH, compile_pattern(config.patch_version_bump_message)),
        )

    def scan_message(self, message: str) -> Increment | None:
        """Scan a single message as one unit.

        An explicit ``+semver:`` directive sets the floor and the configured
        bump patterns can only raise it.

        Returns:
            ``Increment.NONE`` for a no-bump directive, the most severe bump
            found, or None when the message says nothing.
        """
        explicit = [
            Increment.from_name(match.group(1))
            for match in SEMVER_DIRECTIVE.finditer(message)
        ]
        if Increment.NONE in explicit or self._none.search(message):
            return Increment.NONE

        found = max(explicit) if explicit else None
        for increment, pattern in self._bumps:
            if pattern.search(message):
                if found is None or increment > found:
                    found = increment
                break
        return found

    def _scannable(self, commit: Commit) -> bool:
        if self.mode == CommitMessageIncrementMode.DISABLED:
            return False
        if self.mode == CommitMessageIncrementMode.MERGE_MESSAGE_ONLY:
            return commit.is_merge
        return True

    def find_signal(self, commits: Iterable[Commit]) -> IncrementSignal | None:
        """Find the strongest directive across ``commits``.

        Commits carrying a no-bump directive are excluded from the maximum
        but do not cancel directives carried by other commits.

        Returns:
            The deciding signal, or None when no commit carries a directive.
        """
        best: IncrementSignal | None = None
        suppressed: Commit | None = None
        for commit in commits:
            if not self._scannable(commit):
                continue
            found = self.scan_message(commit.message)
            if found is None:
                continue
            if found == Increment.NONE:
                suppressed = suppressed or commit
                continue
            if best is None or found > best.increment:
                best = IncrementSignal(found, commit)

        if best is not None:
            return best
        if suppressed is not None:
            return IncrementSignal(Increment.NONE, suppressed)
        return None

    def scan(self, commits: Iterable[Commit], default: Increment) -> IncrementSignal:
        """Determine the increment for a set of commits.

        Args:
            commits: Commits to scan (any order).
            default: Branch default used when no commit carries a directive.

        Returns:
            The deciding signal.
        """
        signal = self.find_signal(commits)
        if signal is None:
            return IncrementSignal(default, from_default=True)
        return signal
