"""Commit graph adapters."""

from versionist.git.base import CommitGraph, CommitNotFoundError, GitCommandError, GitError
from versionist.git.memory import InMemoryRepository
from versionist.git.models import Branch, Commit, Tag
from versionist.git.repository import GitRepository

__all__ = [
    "Branch",
    "Commit",
    "CommitGraph",
    "CommitNotFoundError",
    "GitCommandError",
    "GitError",
    "GitRepository",
    "InMemoryRepository",
    "Tag",
]
