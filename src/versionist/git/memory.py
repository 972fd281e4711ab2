"""In-memory commit graph.

Useful for hosts that already hold history in memory and for tests that
script a repository step by step (commit, branch, merge, tag).
"""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime, timedelta

from versionist.git.base import CommitGraph, CommitNotFoundError
from versionist.git.models import Branch, Commit, Tag

_EPOCH = datetime(2024, 1, 1, tzinfo=UTC)


class InMemoryRepository(CommitGraph):
    """A mutable commit graph held in dictionaries.

    Commit timestamps advance by one minute per commit so that history
    order is unambiguous.
    """

    def __init__(self, default_branch: str = "main") -> None:
        self._commits: dict[str, Commit] = {}
        self._branches: dict[str, str] = {}
        self._tags: dict[str, Tag] = {}
        self._head_branch: str | None = default_branch
        self._detached_sha: str | None = None
        self._clock = _EPOCH

    # ------------------------------------------------------------------
    # CommitGraph primitives
    # ------------------------------------------------------------------

    def get_commit(self, sha: str) -> Commit:
        try:
            return self._commits[sha]
        except KeyError:
            raise CommitNotFoundError(f"Commit '{sha}' not found") from None

    def branches(self) -> list[Branch]:
        return [Branch(name=name, tip=tip) for name, tip in sorted(self._branches.items())]

    def tags(self) -> list[Tag]:
        return [self._tags[name] for name in sorted(self._tags)]

    def head(self) -> str | None:
        return self._head_branch

    def head_commit(self) -> Commit:
        if self._detached_sha is not None:
            return self.get_commit(self._detached_sha)
        if self._head_branch is None or self._head_branch not in self._branches:
            raise CommitNotFoundError("HEAD does not point at a commit")
        return self.get_commit(self._branches[self._head_branch])

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def commit(self, message: str = "", parents: list[str] | None = None) -> Commit:
        """Create a commit and advance the checked-out branch to it.

        Args:
            message: Commit message.
            parents: Parent SHAs. Defaults to the current HEAD (if any).

        Returns:
            The new commit.
        """
        if parents is None:
            parents = [self._head_sha()] if self._head_sha() else []

        self._clock += timedelta(minutes=1)
        seed = f"{len(self._commits)}|{message}|{','.join(parents)}|{self._clock.isoformat()}"
        sha = hashlib.sha1(seed.encode()).hexdigest()

        commit = Commit(
            sha=sha,
            parents=tuple(parents),
            message=message,
            author_name="Versionist",
            authored_at=self._clock,
            committed_at=self._clock,
        )
        self._commits[sha] = commit

        if self._detached_sha is not None:
            self._detached_sha = sha
        elif self._head_branch is not None:
            self._branches[self._head_branch] = sha
        return commit

    def amend(self, message: str) -> Commit:
        """Replace the HEAD commit with one carrying a new message."""
        current = self.head_commit()
        sha = hashlib.sha1(f"amend|{current.sha}|{message}".encode()).hexdigest()
        replacement = current.model_copy(update={"sha": sha, "message": message})
        self._commits[replacement.sha] = replacement
        for name, tip in self._branches.items():
            if tip == current.sha:
                self._branches[name] = replacement.sha
        if self._detached_sha == current.sha:
            self._detached_sha = replacement.sha
        return replacement

    def create_branch(self, name: str, sha: str | None = None) -> Branch:
        """Create (or move) a branch without checking it out."""
        target = sha or self._head_sha()
        if target is None:
            raise CommitNotFoundError("Cannot create a branch in an empty repository")
        self.get_commit(target)
        self._branches[name] = target
        return Branch(name=name, tip=target)

    def checkout(self, ref: str) -> None:
        """Check out a branch by name, or detach at a commit SHA."""
        if ref in self._branches:
            self._head_branch = ref
            self._detached_sha = None
            return
        self.get_commit(ref)
        self._head_branch = None
        self._detached_sha = ref

    def delete_branch(self, name: str) -> None:
        """Remove a branch reference. Commits stay in the graph."""
        tip = self._branches.pop(name, None)
        if tip is not None and self._head_branch == name:
            # Deleting the checked-out branch leaves HEAD detached at its tip
            self._head_branch = None
            self._detached_sha = tip

    def tag(self, name: str, sha: str | None = None, annotated: bool = False) -> Tag:
        """Tag a commit (HEAD by default)."""
        target = sha or self._head_sha()
        if target is None:
            raise CommitNotFoundError("Cannot tag in an empty repository")
        self.get_commit(target)
        tag = Tag(name=name, target=target, annotated=annotated)
        self._tags[name] = tag
        return tag

    def _head_sha(self) -> str | None:
        if self._detached_sha is not None:
            return self._detached_sha
        if self._head_branch is None:
            return None
        return self._branches.get(self._head_branch)
