"""Data models for version calculation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, computed_field

from versionist.config import VersioningMode
from versionist.git import Commit
from versionist.semver import SemanticVersion


@dataclass(frozen=True)
class BaseVersion:
    """A candidate version that later commits increment from.

    Attributes:
        version: The candidate version.
        source: Commit the version was established at. None means "before
            the first commit", so every reachable commit counts as newer.
        should_increment: False when the version is already the answer for
            commits at ``source`` (an exact tag, a configured next version,
            a release branch name).
        strategy: Name of the strategy that produced it.
    """

    version: SemanticVersion
    source: Commit | None
    should_increment: bool
    strategy: str

    def __str__(self) -> str:
        origin = self.source.short_sha if self.source is not None else "root"
        suffix = "" if self.should_increment else ", no increment"
        return f"{self.strategy}: {self.version} at {origin}{suffix}"


class VersionResult(BaseModel):
    """Outcome of a version calculation."""

    model_config = ConfigDict(frozen=True)

    version: SemanticVersion
    branch_name: str
    sha: str
    commit_date: datetime
    version_source_sha: str | None = None
    commits_since_version_source: int = 0
    versioning_mode: VersioningMode
    base_version_strategy: str
    increment_reasons: tuple[str, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def full_semver(self) -> str:
        """The complete version string."""
        return str(self.version)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def major(self) -> int:
        return self.version.major

    @computed_field  # type: ignore[prop-decorator]
    @property
    def minor(self) -> int:
        return self.version.minor

    @computed_field  # type: ignore[prop-decorator]
    @property
    def patch(self) -> int:
        return self.version.patch

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pre_release_label(self) -> str:
        tag = self.version.pre_release_tag
        return tag.name if tag is not None else ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pre_release_number(self) -> int | None:
        tag = self.version.pre_release_tag
        return tag.number if tag is not None else None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def build_metadata(self) -> str | None:
        return self.version.build_metadata

    @computed_field  # type: ignore[prop-decorator]
    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    def to_variables(self) -> dict[str, str]:
        """Flatten the result into ``{PascalCaseName: value}`` strings.

        Missing values are rendered as empty strings.
        """
        version = self.version
        pre_release = str(version.pre_release_tag) if version.is_pre_release else ""
        semver = version.major_minor_patch + (f"-{pre_release}" if pre_release else "")
        number = self.pre_release_number

        return {
            "Major": str(version.major),
            "Minor": str(version.minor),
            "Patch": str(version.patch),
            "MajorMinorPatch": version.major_minor_patch,
            "SemVer": semver,
            "FullSemVer": self.full_semver,
            "PreReleaseTag": pre_release,
            "PreReleaseTagWithDash": f"-{pre_release}" if pre_release else "",
            "PreReleaseLabel": self.pre_release_label,
            "PreReleaseNumber": "" if number is None else str(number),
            "BuildMetaData": self.build_metadata or "",
            "BranchName": self.branch_name,
            "EscapedBranchName": _escape(self.branch_name),
            "Sha": self.sha,
            "ShortSha": self.short_sha,
            "VersionSourceSha": self.version_source_sha or "",
            "CommitsSinceVersionSource": str(self.commits_since_version_source),
            "CommitDate": self.commit_date.date().isoformat(),
            "VersioningMode": self.versioning_mode.value,
            "BaseVersionStrategy": self.base_version_strategy,
        }


def _escape(name: str) -> str:
    return "".join(ch if ch.isalnum() or ch == "-" else "-" for ch in name)
