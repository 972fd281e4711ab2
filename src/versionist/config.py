"""Configuration management for Versionist.

The engine takes a :class:`VersioningConfig` explicitly. The loader and the
process-wide cache below exist for the CLI.
"""

from __future__ import annotations

import functools
import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from versionist.errors import ConfigurationError
from versionist.semver import Increment


class _CaseInsensitiveEnum(str, Enum):
    """String enum that accepts any casing and kebab/snake spellings."""

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if isinstance(value, str):
            wanted = value.replace("-", "").replace("_", "").lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        return None


class IncrementStrategy(_CaseInsensitiveEnum):
    """Configured increment for a branch. ``Inherit`` defers to the global default."""

    INHERIT = "Inherit"
    NONE = "None"
    PATCH = "Patch"
    MINOR = "Minor"
    MAJOR = "Major"

    def to_increment(self) -> Increment | None:
        """The concrete increment, or None for ``Inherit``."""
        if self is IncrementStrategy.INHERIT:
            return None
        return Increment[self.name]


class VersioningMode(_CaseInsensitiveEnum):
    """How versions are derived on a branch."""

    CONTINUOUS_DELIVERY = "ContinuousDelivery"
    CONTINUOUS_DEPLOYMENT = "ContinuousDeployment"
    MAINLINE = "Mainline"


class CommitMessageIncrementMode(_CaseInsensitiveEnum):
    """Which commit messages are scanned for increment directives."""

    ENABLED = "Enabled"
    MERGE_MESSAGE_ONLY = "MergeMessageOnly"
    DISABLED = "Disabled"


class BranchConfig(BaseModel):
    """Versioning policy for one branch type."""

    model_config = ConfigDict(frozen=True)

    name: str
    regex: str
    mode: VersioningMode | None = None  # None inherits
    increment: IncrementStrategy = IncrementStrategy.INHERIT
    is_mainline: bool = False
    label: str | None = None
    label_number_pattern: str | None = None
    source_branches: tuple[str, ...] = ()
    prevent_increment_of_merged_branch: bool = False
    is_release_branch: bool = False


# Default bump message patterns
MAJOR_BUMP_MESSAGE = r"\+semver:\s?(breaking|major)"
MINOR_BUMP_MESSAGE = r"\+semver:\s?(feature|minor)"
PATCH_BUMP_MESSAGE = r"\+semver:\s?(fix|patch)"
NO_BUMP_MESSAGE = r"\+semver:\s?(none|skip)"

UNKNOWN_BRANCH = "unknown"

DEFAULT_BRANCHES: tuple[BranchConfig, ...] = (
    BranchConfig(
        name="develop",
        regex=r"^dev(elop)?(ment)?$",
        increment=IncrementStrategy.MINOR,
        label="alpha",
        source_branches=(),
    ),
    BranchConfig(
        name="main",
        regex=r"^master$|^main$",
        increment=IncrementStrategy.PATCH,
        is_mainline=True,
        label="",
        source_branches=("develop", "release"),
    ),
    BranchConfig(
        name="release",
        regex=r"^releases?[/-]",
        increment=IncrementStrategy.NONE,
        label="beta",
        source_branches=("develop", "main", "support", "release"),
        is_release_branch=True,
    ),
    BranchConfig(
        name="feature",
        regex=r"^features?[/-]",
        increment=IncrementStrategy.INHERIT,
        label="{BranchName}",
        source_branches=("develop", "main", "release", "feature", "support", "hotfix"),
    ),
    BranchConfig(
        name="pull-request",
        regex=r"^(pull|pull\-requests|pr)[/-]",
        increment=IncrementStrategy.INHERIT,
        label="PullRequest",
        label_number_pattern=r"[/-](?P<number>\d+)",
        source_branches=("develop", "main", "release", "feature", "support", "hotfix"),
    ),
    BranchConfig(
        name="hotfix",
        regex=r"^hotfix(es)?[/-]",
        increment=IncrementStrategy.PATCH,
        label="beta",
        source_branches=("release", "main", "support", "hotfix"),
    ),
    BranchConfig(
        name="support",
        regex=r"^support[/-]",
        increment=IncrementStrategy.PATCH,
        is_mainline=True,
        label="",
        source_branches=("main",),
    ),
    # Fallback for names no other pattern matches; never matched by regex
    BranchConfig(
        name=UNKNOWN_BRANCH,
        regex=r"(?P<BranchName>.+)",
        increment=IncrementStrategy.INHERIT,
        label="{BranchName}",
        source_branches=("main", "develop", "release", "feature", "pull-request", "hotfix", "support"),
    ),
)


class VersioningConfig(BaseModel):
    """Global versioning configuration with its ordered branch policies."""

    model_config = ConfigDict(frozen=True)

    mode: VersioningMode = VersioningMode.CONTINUOUS_DELIVERY
    increment: IncrementStrategy = IncrementStrategy.PATCH
    tag_prefix: str = "[vV]"
    next_version: str | None = None
    major_version_bump_message: str = MAJOR_BUMP_MESSAGE
    minor_version_bump_message: str = MINOR_BUMP_MESSAGE
    patch_version_bump_message: str = PATCH_BUMP_MESSAGE
    no_bump_message: str = NO_BUMP_MESSAGE
    commit_message_incrementing: CommitMessageIncrementMode = CommitMessageIncrementMode.ENABLED
    merge_message_formats: dict[str, str] = Field(default_factory=dict)
    ordered_branches: bool = True
    max_traversal: int = Field(default=1_000_000, gt=0)
    branches: tuple[BranchConfig, ...] = DEFAULT_BRANCHES

    def get_branch(self, name: str) -> BranchConfig | None:
        """Get a branch policy by its configured name."""
        for branch in self.branches:
            if branch.name == name:
                return branch
        return None

    def with_branch(self, name: str, **updates: Any) -> VersioningConfig:
        """Return a copy with one branch policy changed (or added).

        Raises:
            ConfigurationError: If the branch is new and has no ``regex``.
        """
        branches = list(self.branches)
        for i, branch in enumerate(branches):
            if branch.name == name:
                branches[i] = _validate(BranchConfig, {**branch.model_dump(), **updates})
                break
        else:
            branches.append(_validate(BranchConfig, {"name": name, **updates}))
        return self.model_copy(update={"branches": tuple(branches)})

    @property
    def mainline_branch_names(self) -> list[str]:
        """Names of the branch policies flagged as mainline."""
        return [branch.name for branch in self.branches if branch.is_mainline]


def default_config(**updates: Any) -> VersioningConfig:
    """Built-in configuration, optionally with global settings overridden."""
    return _validate(VersioningConfig, updates)


@functools.lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a configured regex (case-insensitive, cached)."""
    return re.compile(pattern, re.IGNORECASE)


# Global config instance
_config: VersioningConfig | None = None
_config_path: Path | None = None  # Track where config was loaded from

CONFIG_FILE_NAMES = ("GitVersion.yml", "versionist.yml", ".versionist.yml")

# Older spellings accepted in configuration files
_KEY_ALIASES = {
    "tag": "label",
    "prevent_increment_of_merged_branch_version": "prevent_increment_of_merged_branch",
    "is_main_branch": "is_mainline",
    "commit_message_incrementing_mode": "commit_message_incrementing",
}


def get_config_paths(directory: Path | None = None) -> list[Path]:
    """Get list of config file paths to search, in priority order.

    Search order:
    1. GitVersion.yml, versionist.yml, .versionist.yml in ``directory``
       (defaults to the current working directory)
    2. User home directory (~/.versionist/config.yml)

    Returns:
        List of paths to check for config files.
    """
    base = directory or Path.cwd()
    paths = [base / name for name in CONFIG_FILE_NAMES]
    paths.append(Path.home() / ".versionist" / "config.yml")
    return paths


def find_config_file(directory: Path | None = None) -> Path | None:
    """Find the first existing config file.

    Returns:
        Path to config file if found, None otherwise.
    """
    for path in get_config_paths(directory):
        if path.exists():
            return path
    return None


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and $VAR syntax. Regex anchors such as ``^main$`` are
    left alone because ``$`` is not followed by a name there.
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, "")

        return pattern.sub(replace, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def _normalize_keys(raw: dict[str, Any]) -> dict[str, Any]:
    """Convert kebab-case keys to snake_case and apply legacy aliases."""
    result: dict[str, Any] = {}
    for key, value in raw.items():
        name = str(key).replace("-", "_")
        result[_KEY_ALIASES.get(name, name)] = value
    return result


def _branch_entries(raw: Any) -> list[dict[str, Any]]:
    """Normalize the ``branches`` section into a list of branch dicts.

    Accepts a mapping of name to settings (declaration order kept) or a list
    of dicts that each carry a ``name``.
    """
    if raw is None:
        return []
    if isinstance(raw, dict):
        entries = []
        for name, settings in raw.items():
            entry = _normalize_keys(settings or {})
            entry["name"] = str(name)
            entries.append(entry)
        return entries
    if isinstance(raw, list):
        entries = []
        for item in raw:
            if not isinstance(item, dict) or "name" not in item:
                raise ConfigurationError("Each entry in 'branches' must be a mapping with a 'name'")
            entries.append(_normalize_keys(item))
        return entries
    raise ConfigurationError("'branches' must be a mapping or a list")


def _validate(model: type[BaseModel], data: dict[str, Any]) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


def build_config(raw: dict[str, Any]) -> VersioningConfig:
    """Build a configuration from a parsed YAML mapping.

    User branch entries are merged over the built-in defaults by name; new
    names are appended after the defaults.

    Raises:
        ConfigurationError: If the data does not match the schema.
    """
    data = _normalize_keys(raw)
    user_branches = _branch_entries(data.pop("branches", None))

    merged = {branch.name: branch.model_dump() for branch in DEFAULT_BRANCHES}
    for entry in user_branches:
        name = entry["name"]
        if name in merged:
            merged[name] = {**merged[name], **entry}
        else:
            merged[name] = entry
    data["branches"] = list(merged.values())
    return _validate(VersioningConfig, data)


def _load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{path}: invalid YAML: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"{path}: {e.strerror or e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")
    return data


def read_config_file(path: Path) -> VersioningConfig:
    """Read and validate one config file without touching the global config.

    Raises:
        ConfigurationError: If the file cannot be parsed or is invalid.
    """
    raw_config = _expand_env_vars(_load_yaml_config(path))
    try:
        return build_config(raw_config)
    except ConfigurationError as e:
        raise ConfigurationError(f"{path}: {e}") from e


def load_config(path: Path | None = None, directory: Path | None = None) -> VersioningConfig:
    """Load configuration from file.

    Environment variables are expanded in all values using ${VAR} syntax.

    Args:
        path: Explicit path to config file. If None, searches default locations.
        directory: Directory to search when ``path`` is None.

    Returns:
        Loaded configuration, or the built-in defaults when no file exists.

    Raises:
        ConfigurationError: If the file cannot be parsed or is invalid.
    """
    global _config, _config_path

    if path is None:
        path = find_config_file(directory)
    elif not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    if path is None:
        # No config file, return defaults
        _config = VersioningConfig()
        _config_path = None
        return _config

    _config = read_config_file(path)
    _config_path = path
    return _config


def get_config_path() -> Path | None:
    """Get the path to the currently loaded config file.

    Returns:
        Path to config file, or None if using defaults.
    """
    return _config_path


def get_config() -> VersioningConfig:
    """Get the current configuration.

    Loads from file if not already loaded.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the cached configuration.

    Useful for testing or when config file changes.
    """
    global _config, _config_path
    _config = None
    _config_path = None


def save_default_config(path: Path | None = None, mode: VersioningMode | None = None) -> Path:
    """Save a starter YAML config file.

    Args:
        path: Where to save. Defaults to ./GitVersion.yml.
        mode: Global versioning mode to write (defaults to ContinuousDelivery).

    Returns:
        Path to saved config file.
    """
    if path is None:
        path = Path.cwd() / "GitVersion.yml"
    mode_value = (mode or VersioningMode.CONTINUOUS_DELIVERY).value

    default_config_text = f"""\
# Versionist configuration
# Keys may be written kebab-case or snake_case.
# You can use environment variables with ${{VAR}} syntax.

# ContinuousDelivery, ContinuousDeployment or Mainline
mode: {mode_value}
# Default increment when a branch says Inherit
increment: Patch
tag-prefix: '[vV]'
# next-version: 1.0.0

# Commit message directives
major-version-bump-message: '{MAJOR_BUMP_MESSAGE}'
minor-version-bump-message: '{MINOR_BUMP_MESSAGE}'
patch-version-bump-message: '{PATCH_BUMP_MESSAGE}'
no-bump-message: '{NO_BUMP_MESSAGE}'
# Enabled, MergeMessageOnly or Disabled
commit-message-incrementing: Enabled

# Branch settings are merged over the built-in defaults by name
# (develop, main, release, feature, pull-request, hotfix, support).
branches:
  main:
    increment: Patch
  feature:
    label: '{{BranchName}}'
"""

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(default_config_text)

    return path
