"""Configuration validation for Versionist."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape

from versionist.config import UNKNOWN_BRANCH, VersioningConfig, VersioningMode
from versionist.semver import SemanticVersion

# Names used to probe for overlapping branch patterns
SAMPLE_BRANCH_NAMES = (
    "main",
    "master",
    "develop",
    "release/1.0.0",
    "releases/1.0",
    "feature/example",
    "features/example",
    "pull/1/merge",
    "pr/1",
    "hotfix/1.0.1",
    "support/1.x",
)


@dataclass
class ValidationIssue:
    """A problem found in a configuration."""

    severity: str  # "error" or "warning"
    message: str
    branch: str | None = None

    @property
    def is_error(self) -> bool:
        """True for problems that make the configuration unusable."""
        return self.severity == "error"

    def __str__(self) -> str:
        where = f"[{self.branch}] " if self.branch else ""
        return f"{self.severity}: {where}{self.message}"


def _check_pattern(pattern: str | None, what: str, branch: str | None = None) -> ValidationIssue | None:
    if pattern is None:
        return None
    try:
        re.compile(pattern)
    except re.error as e:
        return ValidationIssue("error", f"invalid {what} regex '{pattern}': {e}", branch)
    return None


def validate_configuration(
    config: VersioningConfig,
    sample_branch_names: Iterable[str] = SAMPLE_BRANCH_NAMES,
) -> list[ValidationIssue]:
    """Check a configuration for problems.

    Args:
        config: Configuration to check.
        sample_branch_names: Branch names probed for overlapping patterns.

    Returns:
        Issues found, errors and warnings mixed, in discovery order.
    """
    issues: list[ValidationIssue] = []

    # Global patterns
    for what, pattern in (
        ("tag-prefix", config.tag_prefix),
        ("major-version-bump-message", config.major_version_bump_message),
        ("minor-version-bump-message", config.minor_version_bump_message),
        ("patch-version-bump-message", config.patch_version_bump_message),
        ("no-bump-message", config.no_bump_message),
    ):
        issue = _check_pattern(pattern, what)
        if issue:
            issues.append(issue)
    for name, pattern in config.merge_message_formats.items():
        issue = _check_pattern(pattern, f"merge-message-format '{name}'")
        if issue:
            issues.append(issue)

    if config.next_version and SemanticVersion.try_parse(config.next_version) is None:
        issues.append(ValidationIssue("error", f"next-version '{config.next_version}' is not a version"))

    # Branch patterns
    valid_patterns: dict[str, re.Pattern[str]] = {}
    for branch in config.branches:
        issue = _check_pattern(branch.regex, "branch", branch.name)
        if issue:
            issues.append(issue)
        elif branch.name != UNKNOWN_BRANCH:
            valid_patterns[branch.name] = re.compile(branch.regex, re.IGNORECASE)
        issue = _check_pattern(branch.label_number_pattern, "label-number-pattern", branch.name)
        if issue:
            issues.append(issue)

    # Duplicate names
    counts = Counter(branch.name for branch in config.branches)
    for name, count in counts.items():
        if count > 1:
            issues.append(ValidationIssue("error", f"branch name defined {count} times", name))

    # Mainline mode needs a mainline branch
    uses_mainline = config.mode == VersioningMode.MAINLINE or any(
        branch.mode == VersioningMode.MAINLINE for branch in config.branches
    )
    if uses_mainline and not config.mainline_branch_names:
        issues.append(
            ValidationIssue("error", "Mainline mode is used but no branch is marked is-mainline")
        )

    # Source branches must name configured branch types
    known = set(counts)
    for branch in config.branches:
        for source in branch.source_branches:
            if source not in known:
                issues.append(
                    ValidationIssue("warning", f"unknown source branch '{source}'", branch.name)
                )

    # Overlapping patterns are only a problem when order does not decide
    if not config.ordered_branches:
        for sample in sample_branch_names:
            matching = [name for name, pattern in valid_patterns.items() if pattern.search(sample)]
            if len(matching) > 1:
                issues.append(
                    ValidationIssue(
                        "error",
                        f"'{sample}' matches several branch configurations: {', '.join(matching)}",
                    )
                )

    return issues


def validate_config(config: VersioningConfig, console: Console | None = None) -> bool:
    """Validate a configuration with Rich console output.

    Returns:
        True if no errors were found (warnings are allowed), False otherwise.
    """
    console = console or Console()
    console.print("[bold]Validating Configuration[/bold]")
    console.print()

    issues = validate_configuration(config)
    console.print(f"Branches... {len(config.branches)} configured")
    mainlines = config.mainline_branch_names
    console.print(f"Mainline branches... {', '.join(mainlines) if mainlines else 'none'}")
    console.print()

    for issue in issues:
        colour = "red" if issue.is_error else "yellow"
        console.print(f"[{colour}]{escape(str(issue))}[/{colour}]", highlight=False)

    errors = [issue for issue in issues if issue.is_error]
    if issues:
        console.print()
    if not errors:
        console.print("[green]Configuration is valid![/green]")
    else:
        console.print(f"[red]{len(errors)} error(s) found.[/red]")
    return not errors
