"""Semantic version value objects.

Versions order by major, minor and patch, then by pre-release presence
(``1.0.0-beta.1 < 1.0.0``), then by pre-release label and number. Build
metadata never participates in ordering.
"""

from __future__ import annotations

import re
from enum import IntEnum
from functools import total_ordering

from pydantic import BaseModel, ConfigDict, Field

from versionist.errors import MalformedTagError

_VERSION_RE = re.compile(
    r"^(?P<major>\d+)"
    r"(?:\.(?P<minor>\d+))?"
    r"(?:\.(?P<patch>\d+))?"
    r"(?:-(?P<pre>[0-9A-Za-z.\-]+))?"
    r"(?:\+(?P<meta>[0-9A-Za-z.\-]+))?$"
)

_PRE_RELEASE_RE = re.compile(r"^(?P<name>.*?)\.?(?P<number>\d+)?$")


class Increment(IntEnum):
    """Which version component to bump.

    Totally ordered so ``max()`` picks the most severe signal.
    """

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    @classmethod
    def from_name(cls, name: str) -> Increment:
        """Parse a directive word such as ``minor`` or ``breaking``."""
        word = name.strip().lower()
        if word in ("major", "breaking"):
            return cls.MAJOR
        if word in ("minor", "feature"):
            return cls.MINOR
        if word in ("patch", "fix"):
            return cls.PATCH
        if word in ("none", "skip"):
            return cls.NONE
        raise ValueError(f"Unknown increment: {name!r}")


@total_ordering
class PreReleaseTag(BaseModel):
    """Pre-release part of a version, e.g. ``beta.4``."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    number: int | None = None

    @classmethod
    def parse(cls, text: str) -> PreReleaseTag:
        """Split ``alpha.3`` / ``alpha3`` / ``alpha`` into name and number."""
        match = _PRE_RELEASE_RE.match(text)
        if match is None:  # pragma: no cover - the pattern matches any string
            return cls(name=text)
        number = match.group("number")
        return cls(name=match.group("name"), number=int(number) if number else None)

    @property
    def has_tag(self) -> bool:
        """True when a label or number is present."""
        return bool(self.name) or self.number is not None

    def __str__(self) -> str:
        if self.number is None:
            return self.name
        if not self.name:
            return str(self.number)
        return f"{self.name}.{self.number}"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PreReleaseTag):
            return NotImplemented
        return (self.name, self.number or 0) < (other.name, other.number or 0)


@total_ordering
class SemanticVersion(BaseModel):
    """An immutable semantic version."""

    model_config = ConfigDict(frozen=True)

    major: int = Field(default=0, ge=0)
    minor: int = Field(default=0, ge=0)
    patch: int = Field(default=0, ge=0)
    pre_release_tag: PreReleaseTag | None = None
    build_metadata: str | None = None

    @classmethod
    def parse(cls, text: str, tag_prefix: str | None = None) -> SemanticVersion:
        """Parse a version string, optionally stripping a tag prefix.

        Args:
            text: Tag or version text, e.g. ``v1.2.3`` or ``1.2.0-beta.1``.
            tag_prefix: Regex matched (and removed) at the start of ``text``.

        Returns:
            The parsed version.

        Raises:
            MalformedTagError: If the text is not a version.
        """
        candidate = text.strip()
        if tag_prefix:
            prefix = re.match(f"^(?:{tag_prefix})", candidate)
            if prefix is not None:
                candidate = candidate[prefix.end() :]

        match = _VERSION_RE.match(candidate)
        if match is None:
            raise MalformedTagError(text)

        pre = match.group("pre")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor") or 0),
            patch=int(match.group("patch") or 0),
            pre_release_tag=PreReleaseTag.parse(pre) if pre else None,
            build_metadata=match.group("meta"),
        )

    @classmethod
    def try_parse(cls, text: str, tag_prefix: str | None = None) -> SemanticVersion | None:
        """Like :meth:`parse` but returns None instead of raising."""
        try:
            return cls.parse(text, tag_prefix)
        except MalformedTagError:
            return None

    @property
    def is_pre_release(self) -> bool:
        """True when a pre-release tag is attached."""
        return self.pre_release_tag is not None and self.pre_release_tag.has_tag

    @property
    def major_minor_patch(self) -> str:
        """The ``MAJOR.MINOR.PATCH`` core."""
        return f"{self.major}.{self.minor}.{self.patch}"

    def increment(self, increment: Increment) -> SemanticVersion:
        """Return the version bumped by one ``increment`` step.

        Bumping major zeroes minor and patch, bumping minor zeroes patch.
        The pre-release tag and build metadata are dropped on any bump.
        """
        if increment == Increment.MAJOR:
            return SemanticVersion(major=self.major + 1)
        if increment == Increment.MINOR:
            return SemanticVersion(major=self.major, minor=self.minor + 1)
        if increment == Increment.PATCH:
            return SemanticVersion(major=self.major, minor=self.minor, patch=self.patch + 1)
        return self

    def with_pre_release(self, name: str, number: int | None) -> SemanticVersion:
        """Return a copy carrying the given pre-release tag."""
        return self.model_copy(update={"pre_release_tag": PreReleaseTag(name=name, number=number)})

    def without_metadata(self) -> SemanticVersion:
        """Return a copy with no pre-release tag and no build metadata."""
        return SemanticVersion(major=self.major, minor=self.minor, patch=self.patch)

    def _sort_key(self) -> tuple:
        pre = self.pre_release_tag if self.is_pre_release else None
        return (
            self.major,
            self.minor,
            self.patch,
            pre is None,
            (pre.name, pre.number or 0) if pre is not None else ("", 0),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._sort_key() == other._sort_key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __hash__(self) -> int:
        return hash(self._sort_key())

    def __str__(self) -> str:
        text = self.major_minor_patch
        if self.is_pre_release:
            text += f"-{self.pre_release_tag}"
        if self.build_metadata:
            text += f"+{self.build_metadata}"
        return text
