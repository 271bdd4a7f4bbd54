"""Tests for PEP 440 specifier to range conversion."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from packaging.specifiers import Specifier, SpecifierSet
from packaging.version import Version

from depsolve.exceptions import SpecifierError
from depsolve.index.specifiers import (
    is_prerelease,
    parse_requirement,
    specifier_set_to_range,
    specifier_to_range,
)


def _contains(specifier: str, version: str) -> bool:
    return specifier_to_range(specifier).contains(Version(version))


# ---------------------------------------------------------------------------
# Individual operators
# ---------------------------------------------------------------------------


class TestOperators:
    """Each operator admits exactly the versions PEP 440 says it does."""

    @pytest.mark.parametrize(
        "specifier, version, expected",
        [
            ("==1.0", "1.0", True),
            ("==1.0", "1.0.0", True),
            ("==1.0", "1.0+local", True),
            ("==1.0", "1.0.post1", False),
            ("==1.0", "1.0a1", False),
            ("==1.0+abc", "1.0+abc", True),
            ("==1.0+abc", "1.0", False),
            ("!=1.5", "1.5", False),
            ("!=1.5", "1.5+local", False),
            ("!=1.5", "1.5.post1", True),
            ("!=1.5", "1.4", True),
            ("<2.0", "1.9", True),
            ("<2.0", "2.0a1", False),
            ("<2.0", "2.0.dev1", False),
            ("<2.0", "1.9a1", True),
            ("<2.0a2", "2.0a1", True),
            ("<2.0a2", "2.0.dev3", True),
            ("<=2.0", "2.0+local", True),
            ("<=2.0", "2.0.post1", False),
            (">1.0", "1.0.post1", False),
            (">1.0", "1.0+local", False),
            (">1.0", "1.0.1", True),
            (">1.0", "1.1a1", True),
            (">1.0.post1", "1.0.post1", False),
            (">1.0.post1", "1.0.post2", True),
            (">1.0.dev1", "1.0.dev2", True),
            (">=1.0", "1.0", True),
            (">=1.0", "1.0.dev0", False),
            ("~=1.4.2", "1.4.9", True),
            ("~=1.4.2", "1.4.1", False),
            ("~=1.4.2", "1.5.0", False),
            ("~=1.4", "1.9", True),
            ("~=1.4", "2.0", False),
            ("===1.0", "1.0", True),
            ("==1.*", "1.0a1", True),
            ("==1.*", "1.9.5", True),
            ("==1.*", "2.0", False),
            ("==1.*", "2.0.dev0", False),
            ("!=1.*", "1.3", False),
            ("!=1.*", "2.0", True),
        ],
    )
    def test_membership(self, specifier: str, version: str, expected: bool) -> None:
        assert _contains(specifier, version) is expected

    def test_invalid_specifier(self) -> None:
        with pytest.raises(SpecifierError):
            specifier_to_range("=>1.0")

    def test_compatible_release_needs_two_segments(self) -> None:
        with pytest.raises(SpecifierError):
            specifier_set_to_range("~=1")


class TestSpecifierSets:
    """Comma-separated clauses intersect."""

    def test_empty_set_is_full(self) -> None:
        assert specifier_set_to_range("").is_full()
        assert specifier_set_to_range(SpecifierSet()).is_full()

    def test_clauses_intersect(self) -> None:
        range_ = specifier_set_to_range(">=1.0,<2.0,!=1.5")
        assert range_.contains(Version("1.4"))
        assert not range_.contains(Version("1.5"))
        assert not range_.contains(Version("2.0"))
        assert not range_.contains(Version("0.9"))

    def test_contradiction_is_empty(self) -> None:
        assert specifier_set_to_range(">=2,<1").is_empty()


# ---------------------------------------------------------------------------
# Agreement with packaging
# ---------------------------------------------------------------------------


@st.composite
def versions(draw: st.DrawFn) -> str:
    release = ".".join(str(p) for p in draw(st.lists(st.integers(0, 2), min_size=1, max_size=3)))
    text = release
    if draw(st.booleans()):
        text += draw(st.sampled_from(["a", "b", "rc"])) + str(draw(st.integers(0, 1)))
    if draw(st.booleans()):
        text += f".post{draw(st.integers(0, 1))}"
    if draw(st.booleans()):
        text += f".dev{draw(st.integers(0, 1))}"
    if draw(st.integers(0, 4)) == 0:
        text += "+local"
    return text


@st.composite
def specifiers(draw: st.DrawFn) -> str:
    operator = draw(st.sampled_from(["==", "!=", "<", "<=", ">", ">=", "~=", "==*", "!=*"]))
    min_size = 2 if operator == "~=" else 1
    release = ".".join(
        str(p) for p in draw(st.lists(st.integers(0, 2), min_size=min_size, max_size=3))
    )
    if operator.endswith("*"):
        return f"{operator[:-1]}{release}.*"
    return f"{operator}{release}"


class TestAgreesWithPackaging:
    """For final-release specifiers, membership matches ``packaging``."""

    @given(specifiers(), versions())
    @settings(max_examples=300)
    def test_membership_matches(self, specifier: str, version: str) -> None:
        expected = Specifier(specifier).contains(version, prereleases=True)
        assert _contains(specifier, version) is expected


# ---------------------------------------------------------------------------
# Requirements
# ---------------------------------------------------------------------------


class TestRequirements:

    def test_parses_extras_and_markers(self) -> None:
        requirement = parse_requirement('Requests[socks]>=2; python_version >= "3.8"')
        assert requirement.name == "Requests"
        assert requirement.extras == {"socks"}
        assert requirement.marker is not None

    def test_invalid_requirement(self) -> None:
        with pytest.raises(SpecifierError):
            parse_requirement("not a requirement!!")

    def test_direct_url_is_rejected(self) -> None:
        with pytest.raises(SpecifierError, match="Direct URL"):
            parse_requirement("foo @ https://example.com/foo-1.0.tar.gz")

    @pytest.mark.parametrize(
        "version, expected",
        [("1.0a1", True), ("1.0.dev1", True), ("1.0rc2", True), ("1.0", False), ("1.0.post1", False)],
    )
    def test_is_prerelease(self, version: str, expected: bool) -> None:
        assert is_prerelease(Version(version)) is expected
        assert is_prerelease(version) is False
