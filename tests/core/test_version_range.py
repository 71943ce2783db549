"""
Unit tests for the version range algebra.

Tests cover:
- Constructors and membership
- Intersection and union laws
- Canonical form and equality
- Parsing of Cabal-style range expressions
- Rendering
"""

import pytest

from ghcselect.core.exceptions import InvalidVersionRangeError
from ghcselect.core.version import parse_version
from ghcselect.core.version_range import (
    any_version,
    earlier_version,
    intersect_all,
    intersect_version_ranges,
    is_no_version,
    later_version,
    major_bound_version,
    no_version,
    orearlier_version,
    orlater_version,
    parse_version_range,
    this_version,
    union_version_ranges,
    wildcard_version,
    within_range,
)

v = parse_version
r = parse_version_range

SAMPLE_RANGES = [
    "-any",
    "-none",
    "== 4.14.1.0",
    ">= 4.14 && < 4.15",
    "< 4.13 || >= 4.16",
    "^>= 4.12.0",
    "> 2.0",
    "<= 3.0",
    "== 4.*",
]

# bounds of SAMPLE_RANGES, their .0 successors, and versions in between
SAMPLE_VERSIONS = [
    "0",
    "1.0",
    "2",
    "2.0",
    "2.0.0",
    "2.0.1",
    "3.0",
    "3.0.0",
    "3.0.1",
    "4",
    "4.12",
    "4.12.0",
    "4.12.0.0",
    "4.12.9",
    "4.13",
    "4.13.0",
    "4.14",
    "4.14.0",
    "4.14.1",
    "4.14.1.0",
    "4.14.1.0.0",
    "4.14.1.1",
    "4.15",
    "4.15.0",
    "4.16",
    "4.16.0",
    "5",
    "5.0",
]


class TestConstructors:
    """Test range constructors and membership."""

    def test_any_version_contains_everything(self):
        for text in ["0", "1.0", "4.14.1.0", "999"]:
            assert v(text) in any_version()

    def test_no_version_contains_nothing(self):
        assert v("4.14") not in no_version()
        assert no_version().is_no_version()

    def test_this_version(self):
        rng = this_version(v("4.14.1.0"))
        assert v("4.14.1.0") in rng
        assert v("4.14.1") not in rng
        assert v("4.14.1.0.0") not in rng

    def test_later_version_excludes_bound(self):
        rng = later_version(v("2.0"))
        assert v("2.0") not in rng
        assert v("2.0.0") in rng
        assert v("2.1") in rng

    def test_orlater_version(self):
        assert v("2.0") in orlater_version(v("2.0"))
        assert v("1.9") not in orlater_version(v("2.0"))

    def test_earlier_version(self):
        assert v("1.9.9") in earlier_version(v("2.0"))
        assert v("2.0") not in earlier_version(v("2.0"))

    def test_orearlier_version_includes_bound(self):
        rng = orearlier_version(v("3.0"))
        assert v("3.0") in rng
        assert v("3.0.0") not in rng

    def test_major_bound_version(self):
        rng = major_bound_version(v("4.14.1"))
        assert v("4.14.1") in rng
        assert v("4.14.9") in rng
        assert v("4.15") not in rng
        assert v("4.14.0") not in rng

    def test_wildcard_version(self):
        rng = wildcard_version(v("4.14"))
        assert v("4.14") in rng
        assert v("4.14.3.0") in rng
        assert v("4.15") not in rng

    def test_within_range_helper(self):
        assert within_range(v("4.14.3"), r(">= 4.14 && < 4.15"))
        assert not within_range(v("4.15"), r(">= 4.14 && < 4.15"))


class TestAlgebra:
    """Test intersection and union laws."""

    @pytest.mark.parametrize("text", SAMPLE_RANGES)
    def test_any_is_identity_of_intersection(self, text):
        assert intersect_version_ranges(r(text), any_version()) == r(text)

    @pytest.mark.parametrize("text", SAMPLE_RANGES)
    def test_none_is_absorbing(self, text):
        assert intersect_version_ranges(r(text), no_version()).is_no_version()

    @pytest.mark.parametrize("text", SAMPLE_RANGES)
    def test_intersection_is_idempotent(self, text):
        assert r(text) & r(text) == r(text)

    def test_intersection_is_commutative(self):
        for a in SAMPLE_RANGES:
            for b in SAMPLE_RANGES:
                assert r(a) & r(b) == r(b) & r(a)

    @pytest.mark.parametrize("text", SAMPLE_RANGES)
    @pytest.mark.parametrize("version", SAMPLE_VERSIONS)
    def test_point_range_intersection_matches_membership(self, text, version):
        """this_version(v) & r is unsatisfiable exactly when v is outside r."""
        rng = r(text)
        point = this_version(v(version))
        assert (point & rng).is_no_version() == (v(version) not in rng)
        assert is_no_version(intersect_version_ranges(point, rng)) == (
            not within_range(v(version), rng)
        )

    def test_intersection_is_associative(self):
        a, b, c = r(">= 4.12"), r("< 4.16"), r("^>= 4.14")
        assert (a & b) & c == a & (b & c)

    def test_union_with_none_is_identity(self):
        assert union_version_ranges(r("^>= 4.14"), no_version()) == r("^>= 4.14")

    def test_disjoint_exact_versions_are_unsatisfiable(self):
        rng = this_version(v("4.13.0.0")) & this_version(v("4.14.1.0"))
        assert is_no_version(rng)

    def test_lower_above_upper_is_unsatisfiable(self):
        assert r(">= 4.15 && < 4.14").is_no_version()

    def test_exclusive_bounds_meeting_are_unsatisfiable(self):
        assert r("> 4.14 && < 4.14").is_no_version()

    def test_inclusive_bounds_meeting_is_single_version(self):
        assert r(">= 4.14 && <= 4.14") == this_version(v("4.14"))

    def test_structurally_different_but_equal_ranges(self):
        """Canonical form makes equivalent ranges compare equal."""
        assert r("> 2.0") == r(">= 2.0.0")
        assert r("<= 3.0") == r("< 3.0.0")
        assert r(">= 1 && < 2 || >= 2 && < 3") == r(">= 1 && < 3")
        assert r("^>= 4.14.1") == r(">= 4.14.1 && < 4.15")

    def test_union_merges_overlapping(self):
        rng = r(">= 1 && < 3") | r(">= 2 && < 4")
        assert rng == r(">= 1 && < 4")
        assert len(rng.intervals) == 1

    def test_intersection_distributes_over_union(self):
        rng = r("< 4.13 || >= 4.16") & r(">= 4.12")
        assert v("4.12.0.0") in rng
        assert v("4.14.1.0") not in rng
        assert v("4.16.0.0") in rng

    def test_intersect_all_of_nothing_is_any(self):
        assert intersect_all([]).is_any_version()

    def test_intersect_all(self):
        rng = intersect_all([r(">= 4.12"), r("< 5"), r("^>= 4.14")])
        assert rng == r(">= 4.14 && < 4.15")


class TestParseVersionRange:
    """Test parsing of range expressions."""

    def test_empty_means_any(self):
        assert parse_version_range("").is_any_version()
        assert parse_version_range("   ").is_any_version()

    def test_keywords(self):
        assert r("-any").is_any_version()
        assert r("-none").is_no_version()

    def test_whitespace_insensitive(self):
        assert r(">=4.14&&<4.15") == r(" >= 4.14  &&  < 4.15 ")

    def test_and_binds_tighter_than_or(self):
        rng = r("< 1 || >= 2 && < 3")
        assert v("0.5") in rng
        assert v("2.5") in rng
        assert v("1.5") not in rng
        assert v("3.5") not in rng

    def test_parentheses(self):
        rng = r("(< 1 || >= 2) && < 3")
        assert v("0.5") in rng
        assert v("2.5") in rng
        assert v("3.5") not in rng

    def test_version_set(self):
        rng = r("== { 8.8.4, 8.10.2 }")
        assert v("8.8.4") in rng
        assert v("8.10.2") in rng
        assert v("9.0.1") not in rng

    def test_major_bound_version_set(self):
        rng = r("^>= {4.13, 4.15}")
        assert v("4.13.2") in rng
        assert v("4.15.0") in rng
        assert v("4.14.1") not in rng

    def test_wildcard(self):
        assert r("== 4.14.*") == r(">= 4.14 && < 4.15")

    @pytest.mark.parametrize(
        "text",
        [
            ">=",
            ">= 4.14 &&",
            "4.14",
            "=> 4.14",
            "(>= 4.14",
            ">= 4.14)",
            ">= 4.*",
            "> {1, 2}",
            "== {1, 2",
            ">= 4.14 foo",
        ],
    )
    def test_invalid_ranges(self, text):
        """Test malformed expressions raise InvalidVersionRangeError."""
        with pytest.raises(InvalidVersionRangeError):
            parse_version_range(text)


class TestRendering:
    """Test string rendering of ranges."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("-any", "-any"),
            ("-none", "-none"),
            ("== 4.14.1.0", "==4.14.1.0"),
            (">= 4.14 && < 4.15", ">=4.14 && <4.15"),
            ("< 4.13", "<4.13"),
            (">= 4.13", ">=4.13"),
            ("< 4.13 || >= 4.16", "<4.13 || >=4.16"),
            ("^>= 4.14.1", ">=4.14.1 && <4.15"),
        ],
    )
    def test_str(self, text, expected):
        assert str(r(text)) == expected

    def test_rendered_range_parses_back_to_itself(self):
        for text in SAMPLE_RANGES:
            assert r(str(r(text))) == r(text)

    def test_repr(self):
        assert repr(r(">= 4.14")) == "VersionRange('>=4.14')"
