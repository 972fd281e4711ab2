"""Tests for the configuration module."""

import os
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from versionist.config import (
    DEFAULT_BRANCHES,
    BranchConfig,
    CommitMessageIncrementMode,
    IncrementStrategy,
    VersioningConfig,
    VersioningMode,
    _expand_env_vars,
    build_config,
    find_config_file,
    get_config,
    get_config_path,
    get_config_paths,
    load_config,
    read_config_file,
    reset_config,
    save_default_config,
)
from versionist.errors import ConfigurationError
from versionist.semver import Increment


class TestConfigModels:
    """Tests for configuration models."""

    def test_versioning_config_defaults(self) -> None:
        """Test VersioningConfig has correct defaults."""
        cfg = VersioningConfig()
        assert cfg.mode == VersioningMode.CONTINUOUS_DELIVERY
        assert cfg.increment == IncrementStrategy.PATCH
        assert cfg.tag_prefix == "[vV]"
        assert cfg.next_version is None
        assert cfg.commit_message_incrementing == CommitMessageIncrementMode.ENABLED
        assert cfg.ordered_branches is True
        assert cfg.branches == DEFAULT_BRANCHES

    def test_default_branch_names(self) -> None:
        """Test the built-in branch policies."""
        names = [branch.name for branch in VersioningConfig().branches]
        assert names == [
            "develop",
            "main",
            "release",
            "feature",
            "pull-request",
            "hotfix",
            "support",
            "unknown",
        ]

    def test_mainline_branch_names(self) -> None:
        """Test main and support are mainlines by default."""
        assert VersioningConfig().mainline_branch_names == ["main", "support"]

    def test_config_is_frozen(self) -> None:
        """Test configuration objects are immutable."""
        cfg = VersioningConfig()
        with pytest.raises(ValidationError):
            cfg.mode = VersioningMode.MAINLINE  # type: ignore[misc]

    def test_with_branch_updates_existing(self) -> None:
        """Test with_branch replaces one policy and keeps order."""
        cfg = VersioningConfig().with_branch("feature", mode=VersioningMode.MAINLINE)
        feature = cfg.get_branch("feature")
        assert feature is not None
        assert feature.mode == VersioningMode.MAINLINE
        assert feature.regex == r"^features?[/-]"
        assert [b.name for b in cfg.branches] == [b.name for b in DEFAULT_BRANCHES]

    def test_with_branch_appends_new(self) -> None:
        """Test with_branch adds a new policy at the end."""
        cfg = VersioningConfig().with_branch("major", regex=r"^major[/-]", increment="Major")
        assert cfg.branches[-1].name == "major"
        assert cfg.branches[-1].increment == IncrementStrategy.MAJOR

    def test_with_branch_new_without_regex(self) -> None:
        """Test a new branch needs a regex."""
        with pytest.raises(ConfigurationError):
            VersioningConfig().with_branch("nameless")

    def test_max_traversal_must_be_positive(self) -> None:
        """Test max_traversal is validated."""
        with pytest.raises(ConfigurationError):
            build_config({"max-traversal": 0})

    def test_enums_accept_any_case(self) -> None:
        """Test enum values parse regardless of case or separators."""
        assert VersioningMode("mainline") == VersioningMode.MAINLINE
        assert VersioningMode("continuous-deployment") == VersioningMode.CONTINUOUS_DEPLOYMENT
        assert CommitMessageIncrementMode("merge_message_only") == (
            CommitMessageIncrementMode.MERGE_MESSAGE_ONLY
        )

    def test_increment_strategy_to_increment(self) -> None:
        """Test Inherit has no concrete increment."""
        assert IncrementStrategy.INHERIT.to_increment() is None
        assert IncrementStrategy.NONE.to_increment() == Increment.NONE
        assert IncrementStrategy.MINOR.to_increment() == Increment.MINOR


class TestEnvVarExpansion:
    """Tests for environment variable expansion."""

    def test_expand_simple_var(self) -> None:
        """Test expanding ${VAR} syntax."""
        os.environ["TEST_VAR"] = "test_value"
        try:
            result = _expand_env_vars("prefix_${TEST_VAR}_suffix")
            assert result == "prefix_test_value_suffix"
        finally:
            del os.environ["TEST_VAR"]

    def test_expand_dollar_var(self) -> None:
        """Test expanding $VAR syntax."""
        os.environ["TEST_VAR2"] = "another_value"
        try:
            assert _expand_env_vars("$TEST_VAR2") == "another_value"
        finally:
            del os.environ["TEST_VAR2"]

    def test_regex_anchors_untouched(self) -> None:
        """Test a trailing $ anchor is not treated as a variable."""
        assert _expand_env_vars(r"^master$|^main$") == r"^master$|^main$"

    def test_expand_nested(self) -> None:
        """Test expansion in nested dicts and lists."""
        os.environ["NEXT"] = "2.0.0"
        try:
            result = _expand_env_vars({"next-version": "${NEXT}", "list": ["$NEXT"]})
            assert result == {"next-version": "2.0.0", "list": ["2.0.0"]}
        finally:
            del os.environ["NEXT"]

    def test_missing_var_expands_to_empty(self) -> None:
        """Test an unset variable expands to an empty string."""
        assert _expand_env_vars("${DEFINITELY_NOT_SET_12345}") == ""


class TestBuildConfig:
    """Tests for building configuration from parsed YAML."""

    def test_kebab_case_keys(self) -> None:
        """Test kebab-case keys are accepted."""
        cfg = build_config({"mode": "Mainline", "tag-prefix": "release-", "next-version": "3.0"})
        assert cfg.mode == VersioningMode.MAINLINE
        assert cfg.tag_prefix == "release-"
        assert cfg.next_version == "3.0"

    def test_branches_merge_over_defaults(self) -> None:
        """Test user branch settings merge over the default by name."""
        cfg = build_config({"branches": {"main": {"increment": "Minor", "is-mainline": True}}})
        main = cfg.get_branch("main")
        assert main is not None
        assert main.increment == IncrementStrategy.MINOR
        assert main.regex == r"^master$|^main$"

    def test_new_branches_appended(self) -> None:
        """Test unknown branch names are appended after the defaults."""
        cfg = build_config(
            {
                "branches": {
                    "minor": {
                        "regex": r"^minor[/-]",
                        "increment": "Minor",
                        "source-branches": ["main"],
                    }
                }
            }
        )
        minor = cfg.branches[-1]
        assert minor.name == "minor"
        assert minor.source_branches == ("main",)

    def test_branches_as_list(self) -> None:
        """Test the list form of the branches section."""
        cfg = build_config({"branches": [{"name": "develop", "tag": "dev"}]})
        develop = cfg.get_branch("develop")
        assert develop is not None
        assert develop.label == "dev"

    def test_list_entry_without_name(self) -> None:
        """Test list entries must carry a name."""
        with pytest.raises(ConfigurationError):
            build_config({"branches": [{"regex": "^x"}]})

    def test_invalid_mode(self) -> None:
        """Test an unknown mode is a configuration error."""
        with pytest.raises(ConfigurationError):
            build_config({"mode": "Sometimes"})

    def test_legacy_aliases(self) -> None:
        """Test older key spellings are accepted."""
        cfg = build_config(
            {
                "branches": {
                    "main": {"prevent-increment-of-merged-branch-version": True},
                }
            }
        )
        main = cfg.get_branch("main")
        assert main is not None
        assert main.prevent_increment_of_merged_branch is True


class TestConfigLoading:
    """Tests for config file loading."""

    def test_load_yaml_config(self) -> None:
        """Test loading a YAML config file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "GitVersion.yml"
            config_path.write_text(
                "mode: ContinuousDeployment\n"
                "increment: Minor\n"
                "branches:\n"
                "  feature:\n"
                "    label: useBranchName\n"
            )

            cfg = load_config(config_path)
            assert cfg.mode == VersioningMode.CONTINUOUS_DEPLOYMENT
            assert cfg.increment == IncrementStrategy.MINOR
            feature = cfg.get_branch("feature")
            assert feature is not None
            assert feature.label == "useBranchName"
            assert get_config_path() == config_path

    def test_load_config_with_env_vars(self) -> None:
        """Test loading config with environment variable expansion."""
        os.environ["VERSIONIST_NEXT"] = "4.0.0"
        try:
            with tempfile.TemporaryDirectory() as tmpdir:
                config_path = Path(tmpdir) / "versionist.yml"
                config_path.write_text("next-version: ${VERSIONIST_NEXT}\n")
                cfg = load_config(config_path)
                assert cfg.next_version == "4.0.0"
        finally:
            del os.environ["VERSIONIST_NEXT"]

    def test_load_searches_directory(self) -> None:
        """Test load_config finds a file in the given directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / ".versionist.yml").write_text("mode: Mainline\n")
            cfg = load_config(directory=Path(tmpdir))
            assert cfg.mode == VersioningMode.MAINLINE

    def test_load_missing_explicit_path(self) -> None:
        """Test an explicit path that does not exist is an error."""
        with pytest.raises(ConfigurationError):
            load_config(Path("/nonexistent/GitVersion.yml"))

    def test_invalid_yaml(self) -> None:
        """Test unparseable YAML raises ConfigurationError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "GitVersion.yml"
            config_path.write_text("mode: [unclosed\n")
            with pytest.raises(ConfigurationError):
                read_config_file(config_path)

    def test_non_mapping_yaml(self) -> None:
        """Test a YAML list at the top level is rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "GitVersion.yml"
            config_path.write_text("- one\n- two\n")
            with pytest.raises(ConfigurationError):
                read_config_file(config_path)

    def test_read_config_file_leaves_global(self) -> None:
        """Test read_config_file does not replace the loaded config."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "GitVersion.yml"
            config_path.write_text("mode: Mainline\n")
            read_config_file(config_path)
            assert get_config_path() is None

    def test_get_config_paths_order(self) -> None:
        """Test the directory files come before the home directory file."""
        paths = get_config_paths(Path("/repo"))
        assert paths[0] == Path("/repo/GitVersion.yml")
        assert paths[1] == Path("/repo/versionist.yml")
        assert paths[2] == Path("/repo/.versionist.yml")
        assert paths[-1] == Path.home() / ".versionist" / "config.yml"

    def test_find_config_file_none(self) -> None:
        """Test no file found in an empty directory (ignoring home)."""
        with tempfile.TemporaryDirectory() as tmpdir:
            found = find_config_file(Path(tmpdir))
            assert found is None or found.parent == Path.home() / ".versionist"

    def test_get_config_caches(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test get_config loads once and reset_config clears it."""
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "GitVersion.yml").write_text("increment: Major\n")
            monkeypatch.chdir(tmpdir)
            first = get_config()
            assert first.increment == IncrementStrategy.MAJOR
            assert get_config() is first
            reset_config()
            assert get_config_path() is None

    def test_save_default_config(self) -> None:
        """Test the starter file loads back as a valid configuration."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "sub" / "GitVersion.yml"
            saved = save_default_config(config_path, VersioningMode.MAINLINE)

            assert saved == config_path
            content = config_path.read_text()
            assert "mode: Mainline" in content

            cfg = read_config_file(config_path)
            assert cfg.mode == VersioningMode.MAINLINE
            feature = cfg.get_branch("feature")
            assert feature is not None
            assert feature.label == "{BranchName}"
            assert cfg.major_version_bump_message == VersioningConfig().major_version_bump_message


class TestBranchConfig:
    """Tests for BranchConfig defaults."""

    def test_defaults(self) -> None:
        """Test BranchConfig defaults inherit everything."""
        branch = BranchConfig(name="x", regex="^x")
        assert branch.mode is None
        assert branch.increment == IncrementStrategy.INHERIT
        assert branch.label is None
        assert branch.is_mainline is False
        assert branch.prevent_increment_of_merged_branch is False
