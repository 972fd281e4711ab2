"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from versionist.calculation import VersionCalculator, VersionResult
from versionist.config import VersioningConfig, VersioningMode, default_config, reset_config
from versionist.git import Commit, InMemoryRepository


class RepositoryFixture:
    """Script a repository the way a developer would at the command line."""

    def __init__(self, default_branch: str = "main") -> None:
        self.repo = InMemoryRepository(default_branch)
        self._counter = 0

    def make_commit(self, message: str | None = None) -> Commit:
        """Commit on the checked-out branch."""
        self._counter += 1
        return self.repo.commit(message or f"commit {self._counter}")

    def make_commits(self, count: int) -> Commit:
        """Make several commits and return the last one."""
        commit = None
        for _ in range(count):
            commit = self.make_commit()
        assert commit is not None
        return commit

    def make_tagged_commit(self, tag: str, message: str | None = None) -> Commit:
        commit = self.make_commit(message)
        self.repo.tag(tag)
        return commit

    def apply_tag(self, tag: str, sha: str | None = None) -> None:
        self.repo.tag(tag, sha)

    def branch_to(self, name: str, checkout: bool = True) -> None:
        """Create a branch at HEAD (``git checkout -b``)."""
        self.repo.create_branch(name)
        if checkout:
            self.repo.checkout(name)

    def checkout(self, ref: str) -> None:
        self.repo.checkout(ref)

    def merge_no_ff(self, branch: str, message: str | None = None) -> Commit:
        """Merge a branch into the checked-out one with a merge commit."""
        head = self.repo.head_commit()
        other = self.repo.resolve(branch)
        return self.repo.commit(
            message or f"Merge branch '{branch}'",
            parents=[head.sha, other.sha],
        )

    def amend_message(self, message: str) -> Commit:
        return self.repo.amend(message)

    def create_pull_request_ref(self, source: str, target: str, number: int) -> Commit:
        """Create and check out ``pull/<number>/merge``, as CI servers do."""
        self.repo.create_branch(f"pull/{number}/merge", self.repo.resolve(target).sha)
        self.repo.checkout(f"pull/{number}/merge")
        return self.merge_no_ff(source, f"Merge pull request #{number} from {source}")

    def remove_branch(self, name: str) -> None:
        self.repo.delete_branch(name)

    def calculate(
        self,
        config: VersioningConfig | None = None,
        branch: str | None = None,
        commit: str | None = None,
        pull_request_number: int | None = None,
    ) -> VersionResult:
        return VersionCalculator(self.repo, config).calculate(
            commit=commit, branch=branch, pull_request_number=pull_request_number
        )

    def assert_full_semver(
        self,
        expected: str,
        config: VersioningConfig | None = None,
        branch: str | None = None,
        commit: str | None = None,
        pull_request_number: int | None = None,
    ) -> None:
        result = self.calculate(config, branch, commit, pull_request_number)
        assert result.full_semver == expected, (
            f"expected {expected}, got {result.full_semver}\n" + "\n".join(result.increment_reasons)
        )


def mainline_config() -> VersioningConfig:
    """Default branches with the common branch types switched to Mainline."""
    config = default_config()
    for name in ("main", "develop", "feature", "support"):
        config = config.with_branch(name, mode=VersioningMode.MAINLINE)
    return config


@pytest.fixture
def fixture() -> RepositoryFixture:
    """An empty repository with ``main`` checked out."""
    return RepositoryFixture()


@pytest.fixture(autouse=True)
def clean_config() -> Iterator[None]:
    """Reset the process-wide configuration around each test."""
    reset_config()
    yield
    reset_config()
