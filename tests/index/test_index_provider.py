"""Tests for the index-backed dependency provider."""

from __future__ import annotations

import pytest
from packaging.version import Version

from depsolve.core.ranges import Range
from depsolve.index import (
    CandidateSelector,
    IndexDependencyProvider,
    InMemoryIndex,
    Package,
    Root,
    ROOT_VERSION,
)
from depsolve.index.specifiers import specifier_set_to_range

ROOT = Root()


@pytest.fixture
def index() -> InMemoryIndex:
    index = InMemoryIndex()
    index.add("requests", "2.0", ["urllib3>=1", 'pysocks>=1.5; extra == "socks"'])
    index.add("requests", "2.1", ["urllib3>=1", 'pysocks>=1.5; extra == "socks"'])
    index.add("urllib3", "1.26")
    index.add("pysocks", "1.7")
    index.add("tool", "1.0", ["colorama; sys_platform == 'win32'", "click"])
    index.add("click", "8.0")
    index.add("colorama", "0.4")
    index.add("broken", "1.0", ["not a requirement!!"])
    return index


def _provider(index, requirements=(), **kwargs) -> IndexDependencyProvider:
    return IndexDependencyProvider(index, ROOT, list(requirements), **kwargs)


def _constraints(dependencies) -> dict:
    return {package: range_ for package, range_ in dependencies.constraints}


class TestVersions:

    def test_root_has_one_version(self, index) -> None:
        with _provider(index) as provider:
            assert provider.list_versions(ROOT) == [ROOT_VERSION]

    def test_versions_in_selector_order(self, index) -> None:
        with _provider(index) as provider:
            assert provider.list_versions(Package("requests")) == [Version("2.1"), Version("2.0")]
            assert provider.available_versions("requests") == [Version("2.0"), Version("2.1")]

    def test_unknown_package_has_no_versions(self, index) -> None:
        with _provider(index) as provider:
            assert provider.list_versions(Package("ghost")) == []

    def test_fewest_versions_first(self, index) -> None:
        with _provider(index) as provider:
            package, version = provider.choose_package_version(
                [(Package("requests"), Range.full()), (Package("urllib3"), Range.full())]
            )
        assert (package, version) == (Package("urllib3"), Version("1.26"))

    def test_root_choice(self, index) -> None:
        with _provider(index) as provider:
            assert provider.choose_package_version([(ROOT, Range.full())]) == (ROOT, ROOT_VERSION)

    def test_selector_is_used(self, index) -> None:
        selector = CandidateSelector(preferences={"requests": Version("2.0")})
        with _provider(index, selector=selector) as provider:
            package, version = provider.choose_package_version(
                [(Package("requests"), Range.full())]
            )
        assert version == Version("2.0")


class TestDependencies:

    def test_root_requirements(self, index) -> None:
        with _provider(index, ["requests>=2"]) as provider:
            constraints = _constraints(provider.get_dependencies(ROOT, ROOT_VERSION))
        assert constraints == {Package("requests"): specifier_set_to_range(">=2")}

    def test_extras_add_extra_package(self, index) -> None:
        with _provider(index, ["requests[socks]>=2"]) as provider:
            constraints = _constraints(provider.get_dependencies(ROOT, ROOT_VERSION))
        assert set(constraints) == {Package("requests"), Package("requests", "socks")}

    def test_extra_package_pins_base_and_adds_gated_requirements(self, index) -> None:
        with _provider(index) as provider:
            dependencies = provider.get_dependencies(Package("requests", "socks"), Version("2.1"))
        pairs = list(dependencies.constraints)
        assert pairs[0] == (Package("requests"), Range.singleton(Version("2.1")))
        assert [package for package, _ in pairs] == [Package("requests"), Package("pysocks")]

    def test_base_package_skips_extra_requirements(self, index) -> None:
        with _provider(index) as provider:
            constraints = _constraints(
                provider.get_dependencies(Package("requests"), Version("2.1"))
            )
        assert set(constraints) == {Package("urllib3")}

    @pytest.mark.parametrize(
        "platform, expected",
        [
            ("linux", {Package("click")}),
            ("win32", {Package("click"), Package("colorama")}),
        ],
    )
    def test_markers_follow_environment(self, index, platform, expected) -> None:
        with _provider(index, environment={"sys_platform": platform}) as provider:
            constraints = _constraints(provider.get_dependencies(Package("tool"), Version("1.0")))
        assert set(constraints) == expected

    def test_invalid_requirement_makes_dependencies_unavailable(self, index) -> None:
        with _provider(index) as provider:
            dependencies = provider.get_dependencies(Package("broken"), Version("1.0"))
        assert dependencies.is_unavailable
        assert "not a requirement" in dependencies.reason

    def test_dependencies_are_prefetched(self, index) -> None:
        with _provider(index, ["requests"]) as provider:
            provider.get_dependencies(ROOT, ROOT_VERSION)
            assert "requests" in provider.known_versions()

    def test_string_requirements_are_parsed(self, index) -> None:
        with _provider(index, ["Requests"]) as provider:
            assert provider.requirements[0].name == "Requests"


class TestCancellation:

    def test_not_cancelled_by_default(self, index) -> None:
        with _provider(index) as provider:
            assert not provider.should_cancel()

    def test_cancel(self, index) -> None:
        with _provider(index) as provider:
            provider.cancel()
            assert provider.should_cancel()
