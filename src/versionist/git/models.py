"""Data models for commit history."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Commit(BaseModel):
    """A commit in the history graph.

    Two commits are equal when their SHAs are equal.
    """

    model_config = ConfigDict(frozen=True)

    sha: str
    parents: tuple[str, ...] = ()
    message: str = ""
    author_name: str = ""
    authored_at: datetime
    committed_at: datetime

    @property
    def short_sha(self) -> str:
        """First seven characters of the SHA."""
        return self.sha[:7]

    @property
    def is_merge(self) -> bool:
        """True for commits with more than one parent."""
        return len(self.parents) > 1

    @property
    def first_parent(self) -> str | None:
        """SHA of the first parent, or None for a root commit."""
        return self.parents[0] if self.parents else None

    @property
    def subject(self) -> str:
        """First line of the message."""
        return self.message.splitlines()[0] if self.message else ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Commit):
            return NotImplemented
        return self.sha == other.sha

    def __hash__(self) -> int:
        return hash(self.sha)

    def __str__(self) -> str:
        return f"{self.short_sha} {self.subject}".rstrip()


class Branch(BaseModel):
    """A branch reference."""

    model_config = ConfigDict(frozen=True)

    name: str
    tip: str
    is_remote: bool = False

    @property
    def friendly_name(self) -> str:
        """Branch name without a ``refs/heads/`` or remote prefix."""
        name = self.name
        for prefix in ("refs/heads/", "refs/remotes/"):
            if name.startswith(prefix):
                name = name[len(prefix) :]
        if self.is_remote and "/" in name:
            name = name.split("/", 1)[1]
        return name


class Tag(BaseModel):
    """A tag pointing at a commit (annotated tags are peeled)."""

    model_config = ConfigDict(frozen=True)

    name: str
    target: str
    annotated: bool = False
