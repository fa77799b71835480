"""Tests for semantic version parsing, normalisation and ordering."""

import pytest

from cdnsync import versioning
from cdnsync.versioning import SemVer


class TestParse:
    """Tests for parse()."""

    def test_plain_version(self):
        assert versioning.parse("1.2.3") == SemVer(1, 2, 3)

    def test_leading_v_and_whitespace(self):
        assert versioning.parse("  v1.2.3 ") == SemVer(1, 2, 3)

    def test_prerelease_and_build(self):
        parsed = versioning.parse("1.0.0-beta.2+exp.sha.5114f85")
        assert parsed is not None
        assert parsed.prerelease == ("beta", "2")
        assert parsed.build == ("exp", "sha", "5114f85")

    @pytest.mark.parametrize(
        "value", ["1.2", "1.2.3.4", "not-a-version", "", "01.2.3", "1.2.3-", None]
    )
    def test_invalid_returns_none(self, value):
        assert versioning.parse(value) is None


class TestValidAndClean:
    """Tests for valid() and clean()."""

    def test_valid_normalises_prefix(self):
        assert versioning.valid("v2.0.0") == "2.0.0"

    def test_valid_drops_build_metadata(self):
        assert versioning.valid("1.0.0+20130313144700") == "1.0.0"

    def test_valid_accepts_equals_prefix(self):
        assert versioning.valid("=1.0.0") == "1.0.0"
        assert versioning.valid(" =v1.0.0") == "1.0.0"

    def test_sort_keeps_equals_prefixed_tags(self):
        assert versioning.sort_versions(["=1.2.3", "1.0.0"]) == ["1.0.0", "=1.2.3"]

    def test_clean_strips_loose_prefixes(self):
        assert versioning.clean(" =v1.2.3 ") == "1.2.3"

    def test_clean_invalid(self):
        assert versioning.clean("latest") is None


class TestCompare:
    """Tests for compare() and gt()."""

    def test_numeric_not_lexical(self):
        assert versioning.gt("1.10.0", "1.9.0")

    def test_prerelease_sorts_below_release(self):
        assert versioning.compare("1.0.0-rc.1", "1.0.0") == -1

    def test_prerelease_precedence_chain(self):
        chain = [
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-alpha.beta",
            "1.0.0-beta",
            "1.0.0-beta.2",
            "1.0.0-beta.11",
            "1.0.0-rc.1",
            "1.0.0",
        ]
        for lower, higher in zip(chain, chain[1:], strict=False):
            assert versioning.gt(higher, lower), (higher, lower)

    def test_equal_is_not_greater(self):
        assert versioning.compare("v1.2.0", "1.2.0") == 0
        assert not versioning.gt("1.2.0", "1.2.0")

    def test_build_metadata_ignored(self):
        assert versioning.compare("1.0.0+a", "1.0.0+b") == 0

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            versioning.compare("1.0.0", "nope")


class TestSortVersions:
    """Tests for sort_versions()."""

    def test_filters_and_sorts(self):
        assert versioning.sort_versions(["2.0.0", "junk", "1.10.0", "1.2.0", "latest"]) == [
            "1.2.0",
            "1.10.0",
            "2.0.0",
        ]

    def test_keeps_original_strings(self):
        assert versioning.sort_versions(["v1.1.0", "v1.0.0"]) == ["v1.0.0", "v1.1.0"]

    def test_empty(self):
        assert versioning.sort_versions([]) == []
