"""Abstract commit graph interface.

The calculation engine only talks to a :class:`CommitGraph`. Implementations
provide a handful of primitives (commit lookup, branch and tag listing, the
checked-out branch); everything else is derived here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from versionist.errors import VersionistError
from versionist.git.models import Branch, Commit, Tag


class GitError(VersionistError):
    """Base exception for commit graph errors."""

    pass


class GitCommandError(GitError):
    """A git command failed.

    Attributes:
        command: The command line that failed.
        returncode: Process exit status, if the process ran.
    """

    def __init__(
        self,
        command: list[str],
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        detail = stderr.strip() or "no output"
        super().__init__(f"'{' '.join(command)}' failed ({returncode}): {detail}")


class CommitNotFoundError(GitError):
    """A commit or reference does not exist in the graph."""

    pass


class CommitGraph(ABC):
    """Read-only view of a repository's commit graph."""

    @abstractmethod
    def get_commit(self, sha: str) -> Commit:
        """Get a commit by full SHA.

        Raises:
            CommitNotFoundError: If the SHA is unknown.
        """

    @abstractmethod
    def branches(self) -> list[Branch]:
        """All branches, local first, in a stable order."""

    @abstractmethod
    def tags(self) -> list[Tag]:
        """All tags, peeled to the commit they point at."""

    @abstractmethod
    def head(self) -> str | None:
        """Name of the checked-out branch, or None when detached."""

    @abstractmethod
    def head_commit(self) -> Commit:
        """The checked-out commit."""

    def branch(self, name: str) -> Branch | None:
        """Find a branch by name (exact, then friendly name)."""
        branches = self.branches()
        for branch in branches:
            if branch.name == name:
                return branch
        for branch in branches:
            if branch.friendly_name == name:
                return branch
        return None

    def resolve(self, ref: str) -> Commit:
        """Resolve a branch name, tag name, full SHA or unique SHA prefix.

        Raises:
            CommitNotFoundError: If nothing matches, or a prefix is ambiguous.
        """
        branch = self.branch(ref)
        if branch is not None:
            return self.get_commit(branch.tip)
        for tag in self.tags():
            if tag.name == ref:
                return self.get_commit(tag.target)
        try:
            return self.get_commit(ref)
        except CommitNotFoundError:
            pass

        matches = {sha for sha in self._known_shas() if sha.startswith(ref)}
        if len(matches) == 1:
            return self.get_commit(matches.pop())
        if len(matches) > 1:
            raise CommitNotFoundError(f"Reference '{ref}' is ambiguous")
        raise CommitNotFoundError(f"Reference '{ref}' not found")

    def branches_at(self, sha: str) -> list[Branch]:
        """Branches whose tip is exactly ``sha``."""
        return [branch for branch in self.branches() if branch.tip == sha]

    def _known_shas(self) -> set[str]:
        """SHAs reachable from any branch or tag (used for prefix lookup)."""
        pending = [branch.tip for branch in self.branches()]
        pending.extend(tag.target for tag in self.tags())
        seen: set[str] = set()
        while pending:
            sha = pending.pop()
            if sha in seen:
                continue
            seen.add(sha)
            pending.extend(self.get_commit(sha).parents)
        return seen
