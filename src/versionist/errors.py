"""Exception hierarchy and user-facing error messages.

All errors raised by Versionist derive from :class:`VersionistError` so callers
can catch a single base class. Git adapter errors live in
:mod:`versionist.git` and derive from the same base.
"""

from __future__ import annotations


class VersionistError(Exception):
    """Base exception for all Versionist errors."""

    pass


class ConfigurationError(VersionistError):
    """A configuration file could not be read or does not match the schema."""

    pass


class ConfigurationAmbiguityError(VersionistError):
    """The configuration and the history do not determine a single answer.

    Raised when a branch name matches several patterns of an unordered
    configuration, or when no mainline branch can be found for a commit in
    Mainline mode. Callers should surface this as a warning, not retry.
    """

    pass


class TraversalLimitExceededError(VersionistError):
    """History traversal visited more commits than allowed.

    Attributes:
        limit: The configured maximum number of commit visits.
    """

    def __init__(self, limit: int, message: str | None = None) -> None:
        self.limit = limit
        if message is None:
            message = f"History traversal exceeded the limit of {limit} commits"
        super().__init__(message)


class MalformedTagError(VersionistError):
    """A tag name cannot be parsed as a version.

    Never fatal: the base version locator drops the tag and carries on.

    Attributes:
        tag: The offending tag name.
    """

    def __init__(self, tag: str, message: str | None = None) -> None:
        self.tag = tag
        if message is None:
            message = f"Tag '{tag}' is not a valid version"
        super().__init__(message)


def get_friendly_message(error: Exception) -> str:
    """Get a short, user-friendly description of an error.

    Args:
        error: Any exception raised while calculating a version.

    Returns:
        A one-line message suitable for the console.
    """
    from versionist.git import CommitNotFoundError, GitCommandError

    if isinstance(error, ConfigurationAmbiguityError):
        return f"Ambiguous configuration: {error}"
    if isinstance(error, TraversalLimitExceededError):
        return (
            f"History is larger than the traversal limit ({error.limit} commits). "
            "Raise max-traversal in the configuration if this is expected."
        )
    if isinstance(error, ConfigurationError):
        return f"Invalid configuration: {error}"
    if isinstance(error, CommitNotFoundError):
        return f"Commit not found: {error}"
    if isinstance(error, GitCommandError):
        return f"Git failed: {error}"
    if isinstance(error, VersionistError):
        return str(error)
    return f"Unexpected error: {type(error).__name__}: {error}"
