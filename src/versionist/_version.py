"""Version calculation for Versionist itself.

When running from its own git checkout the version is calculated by
Versionist from its own history. Installed copies fall back to the static
base version, even when installed inside another project's checkout.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

# Base version - bump this manually for releases
BASE_VERSION = "0.1.0"

PROJECT_NAME = "versionist"


def _is_own_checkout(root: Path) -> bool:
    """Check that ``root`` holds the Versionist project itself."""
    try:
        with (root / "pyproject.toml").open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return data.get("project", {}).get("name") == PROJECT_NAME


def _calculate_from_checkout() -> str | None:
    """Calculate the version from the surrounding git checkout.

    Returns:
        The full semantic version, or None if not in a usable checkout.
    """
    from versionist.calculation import VersionCalculator
    from versionist.config import find_config_file, read_config_file
    from versionist.errors import VersionistError
    from versionist.git import GitRepository

    try:
        repository = GitRepository(Path(__file__).resolve().parent, timeout=5)
        if not _is_own_checkout(repository.root):
            return None
        config_path = find_config_file(repository.root)
        config = read_config_file(config_path) if config_path is not None else None
        return VersionCalculator(repository, config).calculate().full_semver
    except (VersionistError, OSError, ValueError):
        return None


def get_version() -> str:
    """Get the full version string.

    Returns:
        The calculated version (e.g., "0.2.0-alpha.3") or BASE_VERSION if
        it cannot be calculated.
    """
    return _calculate_from_checkout() or BASE_VERSION


# Calculate version once at import time
__version__ = get_version()
