"""Tests for configuration validation."""

from io import StringIO

from rich.console import Console

from versionist.config import BranchConfig, VersioningMode, default_config
from versionist.validation import ValidationIssue, validate_config, validate_configuration


def _errors(issues: list[ValidationIssue]) -> list[str]:
    return [issue.message for issue in issues if issue.is_error]


class TestValidateConfiguration:
    """Tests for validate_configuration."""

    def test_defaults_are_valid(self) -> None:
        """Test the built-in configuration has no issues."""
        assert validate_configuration(default_config()) == []

    def test_invalid_global_pattern(self) -> None:
        """Test a broken bump message pattern is an error."""
        config = default_config(major_version_bump_message="(unclosed")
        (message,) = _errors(validate_configuration(config))
        assert "major-version-bump-message" in message

    def test_invalid_branch_pattern(self) -> None:
        """Test a broken branch regex is reported against the branch."""
        config = default_config().with_branch("feature", regex="[oops")
        issues = [issue for issue in validate_configuration(config) if issue.is_error]
        assert len(issues) == 1
        assert issues[0].branch == "feature"

    def test_invalid_merge_message_format(self) -> None:
        """Test a broken merge message format is an error."""
        config = default_config(merge_message_formats={"Mine": "(?P<x"})
        (message,) = _errors(validate_configuration(config))
        assert "Mine" in message

    def test_invalid_next_version(self) -> None:
        """Test an unparseable next version is an error."""
        (message,) = _errors(validate_configuration(default_config(next_version="soon")))
        assert "next-version" in message

    def test_duplicate_branch_names(self) -> None:
        """Test a branch name defined twice is an error."""
        config = default_config()
        duplicate = BranchConfig(name="feature", regex="^feat/")
        config = config.model_copy(update={"branches": (*config.branches, duplicate)})
        issues = validate_configuration(config)
        assert any("defined 2 times" in message for message in _errors(issues))

    def test_mainline_without_mainline_branch(self) -> None:
        """Test Mainline mode needs at least one mainline branch."""
        config = default_config(mode=VersioningMode.MAINLINE)
        config = config.with_branch("main", is_mainline=False).with_branch(
            "support", is_mainline=False
        )
        assert any("is-mainline" in message for message in _errors(validate_configuration(config)))

    def test_unknown_source_branch_is_warning(self) -> None:
        """Test an unknown source branch only warns."""
        config = default_config().with_branch("hotfix", source_branches=["trunk"])
        issues = validate_configuration(config)
        assert [str(issue) for issue in issues] == [
            "warning: [hotfix] unknown source branch 'trunk'"
        ]

    def test_overlap_in_unordered_config(self) -> None:
        """Test overlapping patterns are errors only when unordered."""
        config = default_config().with_branch("anything-release", regex="release")
        assert _errors(validate_configuration(config)) == []

        unordered = config.model_copy(update={"ordered_branches": False})
        errors = _errors(validate_configuration(unordered))
        assert any("release/1.0.0" in message for message in errors)


class TestValidateConfig:
    """Tests for the console validator."""

    def test_valid(self) -> None:
        """Test a valid configuration prints success."""
        buffer = StringIO()
        assert validate_config(default_config(), Console(file=buffer, width=120))
        output = buffer.getvalue()
        assert "Validating Configuration" in output
        assert "Mainline branches... main, support" in output
        assert "Configuration is valid!" in output

    def test_invalid(self) -> None:
        """Test errors are counted and reported."""
        buffer = StringIO()
        config = default_config(next_version="soon")
        assert not validate_config(config, Console(file=buffer, width=120))
        assert "1 error(s) found." in buffer.getvalue()
