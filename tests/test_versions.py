"""Tests for plugin_release.versions."""

from __future__ import annotations

import pytest

from plugin_release.errors import ChangelogVersionConflictError, InvalidVersionError
from plugin_release.versions import (
    BUMP_KEYWORDS,
    bump,
    compare,
    is_prerelease_bump,
    normalize_prerelease,
    parse_version,
    preview_bumps,
    resolve_next_version,
)


class TestParseVersion:
    def test_full_semver(self) -> None:
        v = parse_version("1.2.3")
        assert (v.major, v.minor, v.patch) == (1, 2, 3)

    def test_leading_v_and_whitespace(self) -> None:
        assert str(parse_version("  v2.0.0-rc.1 ")) == "2.0.0-rc.1"

    @pytest.mark.parametrize("value", ["1.2", "banana", "", "1.2.3.4", "01.2.3"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(InvalidVersionError):
            parse_version(value)


class TestBump:
    @pytest.mark.parametrize(
        ("current", "keyword", "preid", "expected"),
        [
            ("1.2.3", "patch", None, "1.2.4"),
            ("1.2.3", "minor", None, "1.3.0"),
            ("1.2.3", "major", None, "2.0.0"),
            ("1.2.3", "premajor", "beta", "2.0.0-beta.0"),
            ("1.2.3", "preminor", "beta", "1.3.0-beta.0"),
            ("1.2.3", "prepatch", "beta", "1.2.4-beta.0"),
            ("1.2.3", "prepatch", None, "1.2.4-0"),
            ("1.2.3", "prerelease", "beta", "1.2.4-beta.0"),
            ("1.2.3", "prerelease", None, "1.2.4-0"),
            ("1.2.4-rc.1", "prerelease", None, "1.2.4-rc.2"),
            ("1.2.4-rc.1", "prerelease", "rc", "1.2.4-rc.2"),
            ("1.2.4-alpha.3", "prerelease", "beta", "1.2.4-beta.0"),
            ("1.2.4-beta0", "prerelease", "beta", "1.2.4-beta.1"),
            ("1.2.4-beta9", "prerelease", None, "1.2.4-beta.10"),
            ("1.2.4-beta.0", "patch", None, "1.2.4"),
            ("1.3.0-beta.0", "minor", None, "1.3.0"),
            ("1.3.1-beta.0", "minor", None, "1.4.0"),
            ("2.0.0-beta.0", "major", None, "2.0.0"),
            ("2.1.0-beta.0", "major", None, "3.0.0"),
        ],
    )
    def test_keywords(
        self, current: str, keyword: str, preid: str | None, expected: str
    ) -> None:
        assert bump(current, keyword, preid) == expected

    def test_unknown_keyword(self) -> None:
        with pytest.raises(InvalidVersionError):
            bump("1.2.3", "micro")


class TestNormalizePrerelease:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1.0.1-beta.0", "1.0.1-beta0"),
            ("1.0.1-rc.12", "1.0.1-rc12"),
            ("1.0.1-alpha.beta.1", "1.0.1-alpha.beta1"),
            ("1.0.1-beta.1+build.5", "1.0.1-beta1+build.5"),
            ("2.0.0-0", "2.0.0-0"),
            ("2.0.0-0.1", "2.0.0-0.1"),
            ("2.0.0-rc.1.2", "2.0.0-rc.1.2"),
            ("1.2.3", "1.2.3"),
        ],
    )
    def test_normalize(self, value: str, expected: str) -> None:
        assert normalize_prerelease(value) == expected


class TestCompare:
    def test_standard_ordering(self) -> None:
        assert compare("1.2.3", "1.2.4") == -1
        assert compare("2.0.0", "2.0.0-rc.1") == 1
        assert compare("1.0.0", "1.0.0") == 0

    def test_normalized_prerelease_numbers_compare_numerically(self) -> None:
        assert compare("1.0.0-beta10", "1.0.0-beta9") == 1
        assert compare("1.0.0-beta0", "1.0.0-beta.0") == 0


class TestIsPrereleaseBump:
    @pytest.mark.parametrize("keyword", ["premajor", "preminor", "prepatch", "prerelease"])
    def test_pre_keywords(self, keyword: str) -> None:
        assert is_prerelease_bump(keyword, "1.2.3")

    def test_release_keyword_from_prerelease(self) -> None:
        assert is_prerelease_bump("patch", "1.2.4-beta0")

    def test_release_keyword_from_release(self) -> None:
        assert not is_prerelease_bump("patch", "1.2.3")

    def test_explicit_version_is_not_a_bump(self) -> None:
        assert not is_prerelease_bump("2.0.0-beta.1", "1.2.3")


class TestResolveNextVersion:
    def test_patch(self) -> None:
        assert resolve_next_version("1.2.3", "patch", recorded=["1.2.0"]) == "1.2.4"

    def test_prerelease_with_preid_drops_dot(self) -> None:
        assert resolve_next_version("1.0.0", "prerelease", "beta") == "1.0.1-beta0"

    def test_consecutive_prereleases(self) -> None:
        first = resolve_next_version("1.0.0", "prerelease", "beta")
        second = resolve_next_version(first, "prerelease", "beta", recorded=[first])

        assert second == "1.0.1-beta1"

    def test_explicit_version(self) -> None:
        assert resolve_next_version("1.2.3", "v2.0.0") == "2.0.0"

    def test_explicit_prerelease_is_normalized(self) -> None:
        assert resolve_next_version("1.2.3", "2.0.0-rc.1") == "2.0.0-rc1"

    def test_numeric_prerelease_stays_valid(self) -> None:
        first = resolve_next_version("1.2.3", "2.0.0-0.1")
        second = resolve_next_version(first, "prerelease", recorded=[first])

        assert first == "2.0.0-0.1"
        assert second == "2.0.0-0.2"

    @pytest.mark.parametrize("target", ["1.2", "latest", "patchy", ""])
    def test_invalid_target(self, target: str) -> None:
        with pytest.raises(InvalidVersionError):
            resolve_next_version("1.2.3", target)

    def test_higher_recorded_version_conflicts(self) -> None:
        with pytest.raises(ChangelogVersionConflictError) as exc_info:
            resolve_next_version("1.2.3", "patch", recorded=["1.3.0", "1.2.0", "2.0.0"])

        assert exc_info.value.conflicts == ["1.3.0", "2.0.0"]
        assert "1.3.0, 2.0.0" in str(exc_info.value)

    def test_equal_recorded_version_conflicts(self) -> None:
        with pytest.raises(ChangelogVersionConflictError):
            resolve_next_version("1.2.3", "patch", recorded=["1.2.4"])

    @pytest.mark.parametrize("current", ["1.2.3", "0.0.1", "1.0.0-beta0", "2.0.0-rc.1"])
    def test_every_keyword_moves_forward(self, current: str) -> None:
        for keyword in BUMP_KEYWORDS:
            assert compare(resolve_next_version(current, keyword), current) == 1


def test_preview_bumps() -> None:
    assert preview_bumps("1.2.3") == {
        "patch": "1.2.4",
        "minor": "1.3.0",
        "major": "2.0.0",
        "prerelease": "1.2.4-beta0",
    }
