"""Tests for base version discovery."""

import pytest
from conftest import RepositoryFixture, mainline_config

from versionist.calculation import (
    BaseVersionLocator,
    CalculationContext,
    VersionCalculator,
    branch_name,
    configured_next_version,
    merge_messages,
    tagged_commits,
)
from versionist.calculation.base_version import (
    BRANCH_NAME_STRATEGY,
    FALLBACK_STRATEGY,
    MERGE_MESSAGE_STRATEGY,
    NEXT_VERSION_STRATEGY,
    TAG_STRATEGY,
)
from versionist.config import VersioningConfig, default_config
from versionist.errors import ConfigurationError
from versionist.statistics import CalculationStatistics


def _context(
    fixture: RepositoryFixture,
    config: VersioningConfig | None = None,
    branch: str | None = None,
) -> CalculationContext:
    calculator = VersionCalculator(fixture.repo, config)
    name = branch or fixture.repo.head()
    assert name is not None
    target = fixture.repo.resolve(name)
    return calculator._build_context(target, name, None, CalculationStatistics())


class TestTaggedCommits:
    """Tests for the tag strategy."""

    def test_reachable_tags_only(self, fixture: RepositoryFixture) -> None:
        """Test tags on other branches are not candidates."""
        fixture.make_tagged_commit("v1.0.0")
        fixture.branch_to("feature/x")
        fixture.make_tagged_commit("v9.0.0")
        fixture.checkout("main")
        fixture.make_commit()

        found = list(tagged_commits(_context(fixture)))
        assert [str(c.version) for c in found] == ["1.0.0"]
        assert found[0].should_increment
        assert found[0].strategy == TAG_STRATEGY

    def test_tag_on_target_is_not_incremented(self, fixture: RepositoryFixture) -> None:
        """Test a tag on the target commit is the version itself."""
        tagged = fixture.make_tagged_commit("1.2.0")
        (candidate,) = tagged_commits(_context(fixture))
        assert candidate.source == tagged
        assert not candidate.should_increment

    def test_malformed_tags_are_skipped(self, fixture: RepositoryFixture) -> None:
        """Test tags that are not versions are ignored."""
        fixture.make_tagged_commit("latest")
        fixture.apply_tag("v2.0.0")
        found = list(tagged_commits(_context(fixture)))
        assert [str(c.version) for c in found] == ["2.0.0"]

    def test_pre_release_tag_only_on_target(self, fixture: RepositoryFixture) -> None:
        """Test pre-release tags count only on the target itself."""
        fixture.make_tagged_commit("v1.0.0")
        fixture.make_tagged_commit("v1.1.0-beta.1")
        on_target = [str(c.version) for c in tagged_commits(_context(fixture))]
        assert "1.1.0-beta.1" in on_target

        fixture.make_commit()
        later = [str(c.version) for c in tagged_commits(_context(fixture))]
        assert later == ["1.0.0"]

    def test_pre_release_tags_ignored_in_mainline(self, fixture: RepositoryFixture) -> None:
        """Test Mainline mode never uses pre-release tags."""
        fixture.make_tagged_commit("v1.0.0")
        fixture.make_tagged_commit("v1.1.0-beta.1")
        found = [str(c.version) for c in tagged_commits(_context(fixture, mainline_config()))]
        assert found == ["1.0.0"]

    def test_custom_tag_prefix(self, fixture: RepositoryFixture) -> None:
        """Test a configured tag prefix is stripped."""
        fixture.make_tagged_commit("release-3.1.0")
        config = default_config(tag_prefix="release-")
        found = [str(c.version) for c in tagged_commits(_context(fixture, config))]
        assert found == ["3.1.0"]


class TestMergeMessages:
    """Tests for the merge message strategy."""

    def test_release_branch_merge(self, fixture: RepositoryFixture) -> None:
        """Test merging release/2.0.0 yields 2.0.0 at the merge."""
        fixture.make_commit()
        fixture.branch_to("release/2.0.0")
        fixture.make_commit()
        fixture.checkout("main")
        merge = fixture.merge_no_ff("release/2.0.0")

        (candidate,) = merge_messages(_context(fixture))
        assert str(candidate.version) == "2.0.0"
        assert candidate.source == merge
        assert candidate.should_increment
        assert candidate.strategy == MERGE_MESSAGE_STRATEGY

    def test_non_release_branch_merge_ignored(self, fixture: RepositoryFixture) -> None:
        """Test a version in a feature branch name is not a base version."""
        fixture.make_commit()
        fixture.branch_to("feature/1.5.0")
        fixture.make_commit()
        fixture.checkout("main")
        fixture.merge_no_ff("feature/1.5.0")

        assert list(merge_messages(_context(fixture))) == []

    def test_prevent_increment_of_merged_branch(self, fixture: RepositoryFixture) -> None:
        """Test the current policy can mark merged versions as final."""
        config = default_config().with_branch("main", prevent_increment_of_merged_branch=True)
        fixture.make_commit()
        fixture.branch_to("release/2.0.0")
        fixture.make_commit()
        fixture.checkout("main")
        fixture.merge_no_ff("release/2.0.0")

        (candidate,) = merge_messages(_context(fixture, config))
        assert not candidate.should_increment


class TestBranchName:
    """Tests for the version-in-branch-name strategy."""

    def test_release_branch_version(self, fixture: RepositoryFixture) -> None:
        """Test a release branch yields its own version at the branch point."""
        fork = fixture.make_commit()
        fixture.branch_to("release/3.0.0")
        fixture.make_commit()

        (candidate,) = branch_name(_context(fixture))
        assert str(candidate.version) == "3.0.0"
        assert candidate.source == fork
        assert not candidate.should_increment
        assert candidate.strategy == BRANCH_NAME_STRATEGY

    def test_non_release_branch(self, fixture: RepositoryFixture) -> None:
        """Test other branch types yield nothing."""
        fixture.make_commit()
        fixture.branch_to("feature/3.0.0")
        fixture.make_commit()
        assert list(branch_name(_context(fixture))) == []


class TestConfiguredNextVersion:
    """Tests for the next-version strategy."""

    def test_next_version(self, fixture: RepositoryFixture) -> None:
        """Test the configured floor is a candidate with no source."""
        fixture.make_commit()
        (candidate,) = configured_next_version(_context(fixture, default_config(next_version="2.1")))
        assert str(candidate.version) == "2.1.0"
        assert candidate.source is None
        assert not candidate.should_increment
        assert candidate.strategy == NEXT_VERSION_STRATEGY

    def test_invalid_next_version(self, fixture: RepositoryFixture) -> None:
        """Test an unparseable next-version is a configuration error."""
        fixture.make_commit()
        with pytest.raises(ConfigurationError):
            list(configured_next_version(_context(fixture, default_config(next_version="soon"))))


class TestLocator:
    """Tests for choosing among candidates."""

    def test_fallback_when_nothing_found(self, fixture: RepositoryFixture) -> None:
        """Test 0.0.0 is used when no strategy finds anything."""
        fixture.make_commit()
        base = BaseVersionLocator().locate(_context(fixture))
        assert str(base.version) == "0.0.0"
        assert base.source is None
        assert base.should_increment
        assert base.strategy == FALLBACK_STRATEGY

    def test_fallback_not_added_with_candidates(self, fixture: RepositoryFixture) -> None:
        """Test the fallback only appears when the list is otherwise empty."""
        fixture.make_tagged_commit("v0.1.0")
        candidates = BaseVersionLocator().candidates(_context(fixture))
        assert [c.strategy for c in candidates] == [TAG_STRATEGY]

    def test_highest_version_wins(self, fixture: RepositoryFixture) -> None:
        """Test the highest version beats a closer one."""
        fixture.make_tagged_commit("v2.0.0")
        fixture.make_tagged_commit("v1.5.0")
        fixture.make_commit()
        base = BaseVersionLocator().locate(_context(fixture))
        assert str(base.version) == "2.0.0"

    def test_closest_wins_for_equal_versions(self, fixture: RepositoryFixture) -> None:
        """Test equal versions prefer the candidate nearest the target."""
        fixture.make_tagged_commit("v1.0.0")
        near = fixture.make_tagged_commit("1.0.0")
        fixture.make_commit()
        base = BaseVersionLocator().locate(_context(fixture))
        assert base.source == near

    def test_tag_beats_merge_message_on_tie(self, fixture: RepositoryFixture) -> None:
        """Test strategy priority breaks exact ties."""
        fixture.make_commit()
        fixture.branch_to("release/2.0.0")
        fixture.make_commit()
        fixture.checkout("main")
        fixture.merge_no_ff("release/2.0.0")
        fixture.apply_tag("v2.0.0")
        fixture.make_commit()

        base = BaseVersionLocator().locate(_context(fixture))
        assert base.strategy == TAG_STRATEGY

    def test_next_version_beats_lower_tag(self, fixture: RepositoryFixture) -> None:
        """Test next-version raises the floor above existing tags."""
        fixture.make_tagged_commit("v1.0.0")
        fixture.make_commit()
        base = BaseVersionLocator().locate(_context(fixture, default_config(next_version="2.0.0")))
        assert base.strategy == NEXT_VERSION_STRATEGY

    def test_custom_strategies(self, fixture: RepositoryFixture) -> None:
        """Test the locator runs only the strategies it is given."""
        fixture.make_tagged_commit("v1.0.0")
        locator = BaseVersionLocator(strategies=[configured_next_version])
        base = locator.locate(_context(fixture))
        assert base.strategy == FALLBACK_STRATEGY

    def test_candidates_counted(self, fixture: RepositoryFixture) -> None:
        """Test statistics record the number of candidates."""
        fixture.make_tagged_commit("v1.0.0")
        fixture.apply_tag("v1.0.1")
        context = _context(fixture)
        BaseVersionLocator().candidates(context)
        assert context.statistics.base_version_candidates == 2
