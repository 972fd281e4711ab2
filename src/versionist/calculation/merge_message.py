"""Merge commit message parsing.

Recognises the messages written by git itself and by the common hosting
services, and extracts the merged branch, the target branch, the
pull-request number and any version embedded in the merged branch name.
"""

from __future__ import annotations

from dataclasses import dataclass

from versionist.branches import normalize_branch_name, version_in_branch_name
from versionist.config import VersioningConfig, compile_pattern
from versionist.git import Commit
from versionist.semver import SemanticVersion

# Tried in order after any configured formats
DEFAULT_FORMATS: dict[str, str] = {
    "Default": r"^Merge (branch|tag) '(?P<SourceBranch>[^']*)'(?: into (?P<TargetBranch>[^\s]*))*",
    "SmartGit": r"^Finish (?P<SourceBranch>[^\s]*)(?: into (?P<TargetBranch>[^\s]*))*",
    "BitBucketPull": (
        r"^Merge pull request #(?P<PullRequestNumber>\d+) (from|in) (?P<Source>.*) "
        r"from (?P<SourceBranch>[^\s]*) to (?P<TargetBranch>[^\s]*)"
    ),
    "BitBucketPullv7": (
        r"^Pull request #(?P<PullRequestNumber>\d+).*\r?\n\r?\nMerge in (?P<Source>.*) "
        r"from (?P<SourceBranch>[^\s]*) to (?P<TargetBranch>[^\s]*)"
    ),
    "GitHubPull": (
        r"^Merge pull request #(?P<PullRequestNumber>\d+) (from|in) "
        r"(?:[^\s\/]+\/)?(?P<SourceBranch>[^\s]*)(?: into (?P<TargetBranch>[^\s]*))*"
    ),
    "RemoteTracking": (
        r"^Merge remote-tracking branch '(?P<SourceBranch>[^\s]*)'(?: into (?P<TargetBranch>[^\s]*))*"
    ),
    "AzureDevOpsPull": (
        r"^Merge pull request (?P<PullRequestNumber>\d+) from (?P<SourceBranch>[^\s]*) "
        r"into (?P<TargetBranch>[^\s]*)"
    ),
}


@dataclass(frozen=True)
class MergeMessage:
    """Information parsed from a merge commit message."""

    format_name: str
    merged_branch: str
    target_branch: str | None = None
    pull_request_number: int | None = None
    version: SemanticVersion | None = None

    @property
    def is_merged_pull_request(self) -> bool:
        """True when the message names a pull request."""
        return self.pull_request_number is not None


class MergeMessageParser:
    """Parse merge messages using built-in and configured formats."""

    def __init__(self, config: VersioningConfig) -> None:
        self.tag_prefix = config.tag_prefix
        # Configured formats take precedence over the built-in ones
        self.formats = dict(config.merge_message_formats)
        for name, pattern in DEFAULT_FORMATS.items():
            self.formats.setdefault(name, pattern)

    def parse(self, message: str) -> MergeMessage | None:
        """Parse a merge message.

        Returns:
            The parsed message, or None when no format matches.
        """
        for name, pattern in self.formats.items():
            match = compile_pattern(pattern).search(message)
            if match is None:
                continue
            groups = match.groupdict()
            source = groups.get("SourceBranch") or ""
            if not source:
                continue
            merged = normalize_branch_name(source)
            number = groups.get("PullRequestNumber")
            return MergeMessage(
                format_name=name,
                merged_branch=merged,
                target_branch=groups.get("TargetBranch") or None,
                pull_request_number=int(number) if number else None,
                version=version_in_branch_name(merged, self.tag_prefix),
            )
        return None

    def parse_commit(self, commit: Commit) -> MergeMessage | None:
        """Parse a commit's message; non-merge commits yield None."""
        if not commit.is_merge:
            return None
        return self.parse(commit.message)
