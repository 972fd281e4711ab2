"""Commit graph backed by a real repository through the ``git`` CLI.

The whole graph is read once, with a few bulk commands, and then served from
memory. A repository instance is therefore a snapshot: create a new one to
see later commits.
"""

from __future__ import annotations

import subprocess
from datetime import UTC, datetime
from pathlib import Path

from versionist.git.base import CommitGraph, CommitNotFoundError, GitCommandError
from versionist.git.models import Branch, Commit, Tag
from versionist.logging import get_logger

logger = get_logger(__name__)

# Unit and record separators keep commit messages intact
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%P", "%an", "%at", "%ct", "%B"]) + _RECORD_SEP

_BRANCH_REF_PREFIXES = ("refs/heads/", "refs/remotes/", "refs/pull/")


class GitRepository(CommitGraph):
    """Read-only snapshot of a git repository."""

    def __init__(self, path: Path | str = ".", timeout: int = 60) -> None:
        """Open a repository.

        Args:
            path: Any directory inside the working tree.
            timeout: Seconds allowed for each git command.

        Raises:
            GitCommandError: If ``path`` is not inside a git repository or git
                is not installed.
        """
        self.path = Path(path)
        self._timeout = timeout
        self.root = Path(self._git("rev-parse", "--show-toplevel").strip())

        self._commits: dict[str, Commit] | None = None
        self._branches: list[Branch] | None = None
        self._tags: list[Tag] | None = None
        self._head: str | None = None
        self._head_sha: str | None = None
        self._head_loaded = False

    def _git(self, *args: str, check: bool = True) -> str:
        """Run a git command and return its stdout."""
        command = ["git", *args]
        try:
            result = subprocess.run(
                command,
                cwd=self.path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self._timeout,
            )
        except FileNotFoundError as e:
            raise GitCommandError(command, None, "git executable not found") from e
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(command, None, f"timed out after {self._timeout}s") from e

        if check and result.returncode != 0:
            raise GitCommandError(command, result.returncode, result.stderr)
        return result.stdout

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load_head(self) -> None:
        if self._head_loaded:
            return
        branch = self._git("symbolic-ref", "--quiet", "--short", "HEAD", check=False).strip()
        self._head = branch or None
        sha = self._git("rev-parse", "--verify", "--quiet", "HEAD", check=False).strip()
        self._head_sha = sha or None
        self._head_loaded = True

    def _load_commits(self) -> dict[str, Commit]:
        if self._commits is not None:
            return self._commits

        self._load_head()
        commits: dict[str, Commit] = {}
        if self._head_sha is None and not self.branches():
            self._commits = commits
            return commits

        revisions = ["--all"]
        if self._head_sha is not None:
            revisions.append("HEAD")
        output = self._git("log", f"--format={_LOG_FORMAT}", *revisions)
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            commit = _parse_commit_record(record)
            commits[commit.sha] = commit

        logger.debug("Loaded %d commits from %s", len(commits), self.root)
        self._commits = commits
        return commits

    # ------------------------------------------------------------------
    # CommitGraph primitives
    # ------------------------------------------------------------------

    def get_commit(self, sha: str) -> Commit:
        try:
            return self._load_commits()[sha]
        except KeyError:
            raise CommitNotFoundError(f"Commit '{sha}' not found") from None

    def branches(self) -> list[Branch]:
        if self._branches is not None:
            return self._branches

        output = self._git(
            "for-each-ref",
            f"--format=%(refname){_FIELD_SEP}%(objectname)",
            *_BRANCH_REF_PREFIXES,
        )
        local: list[Branch] = []
        remote: list[Branch] = []
        for line in output.splitlines():
            if not line:
                continue
            refname, sha = line.split(_FIELD_SEP)
            if refname.endswith("/HEAD"):
                continue
            if refname.startswith("refs/heads/"):
                local.append(Branch(name=refname[len("refs/heads/") :], tip=sha))
            elif refname.startswith("refs/remotes/"):
                remote.append(Branch(name=refname[len("refs/remotes/") :], tip=sha, is_remote=True))
            else:
                # Pull request refs fetched by CI systems, e.g. pull/8/merge
                local.append(Branch(name=refname[len("refs/") :], tip=sha))

        self._branches = sorted(local, key=lambda b: b.name) + sorted(remote, key=lambda b: b.name)
        return self._branches

    def tags(self) -> list[Tag]:
        if self._tags is not None:
            return self._tags

        output = self._git(
            "for-each-ref",
            f"--format=%(refname:short){_FIELD_SEP}%(objectname){_FIELD_SEP}%(*objectname)",
            "refs/tags",
        )
        tags: list[Tag] = []
        for line in output.splitlines():
            if not line:
                continue
            name, sha, peeled = line.split(_FIELD_SEP)
            tags.append(Tag(name=name, target=peeled or sha, annotated=bool(peeled)))

        self._tags = sorted(tags, key=lambda t: t.name)
        return self._tags

    def head(self) -> str | None:
        self._load_head()
        return self._head

    def head_commit(self) -> Commit:
        self._load_head()
        if self._head_sha is None:
            raise CommitNotFoundError("HEAD does not point at a commit (empty repository?)")
        return self.get_commit(self._head_sha)


def _parse_commit_record(record: str) -> Commit:
    """Parse one ``git log`` record produced with ``_LOG_FORMAT``."""
    sha, parents, author, authored, committed, message = record.split(_FIELD_SEP, 5)
    return Commit(
        sha=sha,
        parents=tuple(parents.split()),
        message=message.strip(),
        author_name=author,
        authored_at=datetime.fromtimestamp(int(authored), tz=UTC),
        committed_at=datetime.fromtimestamp(int(committed), tz=UTC),
    )
