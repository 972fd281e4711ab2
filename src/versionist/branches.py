"""Branch configuration resolution.

Maps a branch name to the policy that governs it and derives the values the
rest of the engine needs from that policy: the effective increment, the
effective versioning mode and the pre-release label.
"""

from __future__ import annotations

import re

from versionist.config import (
    UNKNOWN_BRANCH,
    BranchConfig,
    VersioningConfig,
    VersioningMode,
    compile_pattern,
)
from versionist.errors import ConfigurationAmbiguityError
from versionist.logging import get_logger
from versionist.semver import Increment, SemanticVersion

logger = get_logger(__name__)

_LABEL_UNSAFE = re.compile(r"[^0-9A-Za-z-]")
_BRANCH_NAME_PLACEHOLDER = "{BranchName}"
_NUMBER_PLACEHOLDER = "{Number}"

_REF_PREFIXES = ("refs/heads/", "refs/remotes/origin/", "refs/", "origin/")


def normalize_branch_name(name: str) -> str:
    """Strip ref and remote prefixes from a branch name."""
    for prefix in _REF_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix) :]
    return name


def sanitize_label(text: str) -> str:
    """Replace characters that are not allowed in a pre-release label."""
    return _LABEL_UNSAFE.sub("-", text).strip("-")


def version_in_branch_name(branch_name: str, tag_prefix: str | None = None) -> SemanticVersion | None:
    """Find a version embedded in a branch name.

    ``release/2.1.0``, ``release-2.1`` and ``hotfix/v1.0.3`` all carry one.
    Path segments are tried from the last one back.
    """
    name = normalize_branch_name(branch_name)
    for segment in reversed(name.split("/")):
        candidates = [segment]
        if "-" in segment:
            candidates.append(segment.split("-", 1)[1])
        for candidate in candidates:
            version = SemanticVersion.try_parse(candidate, tag_prefix)
            if version is not None:
                return version
    return None


class BranchResolver:
    """Resolve branch names against a configuration."""

    def __init__(self, config: VersioningConfig) -> None:
        """Initialize the resolver.

        Args:
            config: Configuration whose ``branches`` are matched in order.
        """
        self.config = config
        self._fallback = config.get_branch(UNKNOWN_BRANCH) or BranchConfig(
            name=UNKNOWN_BRANCH,
            regex=r"(?P<BranchName>.+)",
            label=_BRANCH_NAME_PLACEHOLDER,
        )

    def matching_configs(self, branch_name: str) -> list[BranchConfig]:
        """All branch policies whose pattern matches ``branch_name``, in order."""
        name = normalize_branch_name(branch_name)
        return [
            branch
            for branch in self.config.branches
            if branch.name != UNKNOWN_BRANCH and compile_pattern(branch.regex).search(name)
        ]

    def resolve(self, branch_name: str) -> BranchConfig:
        """Find the policy for a branch.

        The first matching pattern wins. In an unordered configuration a
        name that matches more than one pattern is an error.

        Args:
            branch_name: Branch name, with or without ``refs/heads/``.

        Returns:
            The matching policy, or the ``unknown`` fallback policy.

        Raises:
            ConfigurationAmbiguityError: If the configuration is unordered
                and several patterns match.
        """
        matches = self.matching_configs(branch_name)
        if not matches:
            logger.debug("Branch '%s' matches no pattern, using '%s'", branch_name, UNKNOWN_BRANCH)
            return self._fallback

        if len(matches) > 1:
            names = ", ".join(branch.name for branch in matches)
            if not self.config.ordered_branches:
                raise ConfigurationAmbiguityError(
                    f"Branch '{branch_name}' matches multiple branch configurations: {names}"
                )
            logger.warning(
                "Branch '%s' matches multiple branch configurations (%s); using '%s'",
                branch_name,
                names,
                matches[0].name,
            )
        return matches[0]

    def is_mainline(self, branch_name: str) -> bool:
        """Check whether a branch is governed by a mainline policy."""
        return self.resolve(branch_name).is_mainline

    def resolve_increment(self, branch: BranchConfig) -> Increment:
        """Effective default increment: branch, then global, then None."""
        increment = branch.increment.to_increment()
        if increment is not None:
            return increment
        increment = self.config.increment.to_increment()
        if increment is not None:
            return increment
        return Increment.NONE

    def resolve_mode(
        self,
        branch: BranchConfig,
        mainline: BranchConfig | None = None,
    ) -> VersioningMode:
        """Effective versioning mode.

        Args:
            branch: The branch's own policy.
            mainline: Policy of the mainline branch this branch descends
                from, if known.

        Returns:
            The branch's mode, else the mainline's mode, else the global mode.
        """
        if branch.mode is not None:
            return branch.mode
        if mainline is not None and mainline.mode is not None:
            return mainline.mode
        return self.config.mode

    def pull_request_config(self) -> BranchConfig | None:
        """The first policy that extracts pull-request numbers."""
        for branch in self.config.branches:
            if branch.label_number_pattern:
                return branch
        return None

    def pull_request_number(self, branch: BranchConfig, branch_name: str) -> int | None:
        """Extract a pull-request number from a branch name, if the policy has a pattern."""
        if not branch.label_number_pattern:
            return None
        match = compile_pattern(branch.label_number_pattern).search(normalize_branch_name(branch_name))
        if match is None:
            return None
        number = match.groupdict().get("number") or (match.group(1) if match.groups() else None)
        return int(number) if number and number.isdigit() else None

    def label_name(self, branch: BranchConfig, branch_name: str) -> str:
        """The value substituted for ``{BranchName}``.

        A named ``BranchName`` group in the pattern wins. Otherwise the part
        of the name matched by the pattern is removed.
        """
        name = normalize_branch_name(branch_name)
        match = compile_pattern(branch.regex).search(name)
        if match is not None:
            captured = match.groupdict().get("BranchName")
            if captured:
                name = captured
            elif match.start() == 0 and match.end() < len(name):
                name = name[match.end() :]
        return sanitize_label(name)

    def pre_release_label(
        self,
        branch: BranchConfig,
        branch_name: str,
        pull_request_number: int | None = None,
    ) -> str:
        """Build the pre-release label for a branch.

        Args:
            branch: The branch's policy.
            branch_name: The branch name.
            pull_request_number: Explicit pull-request number. Parsed from the
                branch name with ``label_number_pattern`` when not given.

        Returns:
            The sanitized label; empty when the policy's label is empty.
        """
        template = branch.label if branch.label is not None else _BRANCH_NAME_PLACEHOLDER
        if template == "":
            return ""

        label = template
        if _BRANCH_NAME_PLACEHOLDER in label:
            label = label.replace(_BRANCH_NAME_PLACEHOLDER, self.label_name(branch, branch_name))

        number = pull_request_number
        if number is None:
            number = self.pull_request_number(branch, branch_name)
        if _NUMBER_PLACEHOLDER in label:
            label = label.replace(_NUMBER_PLACEHOLDER, "" if number is None else str(number))
        elif number is not None:
            label = f"{label}{number}"

        return sanitize_label(label)
