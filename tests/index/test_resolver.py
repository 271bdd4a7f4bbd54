"""End-to-end tests of the high-level resolver."""

from __future__ import annotations

import pytest
from packaging.version import Version

from depsolve import (
    InMemoryIndex,
    NoSolutionError,
    PrereleaseMode,
    ResolutionStrategy,
    Resolver,
    ResolverOptions,
)
from depsolve.exceptions import (
    DependencyOnTheEmptySetError,
    ErrorListingVersions,
    ProviderError,
    SolveCancelled,
    SpecifierError,
)
from depsolve.index import Package, Resolution, Root
from depsolve.index.source import PackageMetadata


def V(text: str) -> Version:
    return Version(text)


@pytest.fixture
def index() -> InMemoryIndex:
    index = InMemoryIndex()
    index.add("flask", "1.0", ["werkzeug<2"])
    index.add("flask", "2.0", ["werkzeug>=2", "click>=8"])
    for version in ("1.0", "2.0", "2.1"):
        index.add("werkzeug", version)
    index.add("click", "8.0")
    index.add("click", "8.1")
    index.add("requests", "2.31", ["urllib3>=1.21", 'pysocks>=1.5; extra == "socks"'])
    index.add("urllib3", "1.26")
    index.add("urllib3", "2.0")
    index.add("pysocks", "1.7")
    index.add("tool", "1.0", ["colorama; sys_platform == 'win32'"])
    index.add("colorama", "0.4")
    index.add("beta", "1.0a1")
    index.add("pre", "1.0")
    index.add("pre", "2.0b1")
    index.add("selfish", "1.0", ["selfish>=1"])
    index.add("loop", "1.0", ["loop>=2"])
    index.add("loop", "0.5")
    return index


# ---------------------------------------------------------------------------
# Successful resolutions
# ---------------------------------------------------------------------------


class TestResolve:

    def test_highest(self, index) -> None:
        result = Resolver(index).resolve(["flask"])
        assert result.packages == {"click": V("8.1"), "flask": V("2.0"), "werkzeug": V("2.1")}
        assert list(result.packages) == ["click", "flask", "werkzeug"]

    def test_lowest(self, index) -> None:
        options = ResolverOptions(resolution=ResolutionStrategy.LOWEST)
        result = Resolver(index, options).resolve(["flask"])
        assert result.packages == {"flask": V("1.0"), "werkzeug": V("1.0")}

    def test_backtracks_to_older_version(self, index) -> None:
        result = Resolver(index).resolve(["flask", "werkzeug<2"])
        assert result.packages == {"flask": V("1.0"), "werkzeug": V("1.0")}

    def test_preferences(self, index) -> None:
        result = Resolver(index, preferences={"werkzeug": "2.0"}).resolve(["flask"])
        assert result["werkzeug"] == V("2.0")
        assert result["flask"] == V("2.0")

    def test_extras(self, index) -> None:
        result = Resolver(index).resolve(["Requests[SOCKS]"])
        assert result.packages == {
            "pysocks": V("1.7"),
            "requests": V("2.31"),
            "urllib3": V("2.0"),
        }
        assert result.extras == {"requests": frozenset({"socks"})}
        assert "REQUESTS" in result
        assert result.solution[Package("requests", "socks")] == V("2.31")

    @pytest.mark.parametrize(
        "platform, expected",
        [("linux", {"tool"}), ("win32", {"colorama", "tool"})],
    )
    def test_markers(self, index, platform, expected) -> None:
        options = ResolverOptions(environment={"sys_platform": platform})
        result = Resolver(index, options).resolve(["tool"])
        assert set(result.packages) == expected

    def test_marker_on_root_requirement(self, index) -> None:
        options = ResolverOptions(environment={"python_version": "3.7"})
        result = Resolver(index, options).resolve(['flask; python_version >= "3.8"', "click"])
        assert result.packages == {"click": V("8.1")}

    def test_self_dependency_is_satisfied_by_itself(self, index) -> None:
        assert Resolver(index).resolve(["selfish"]).packages == {"selfish": V("1.0")}

    def test_unsatisfiable_self_dependency_skips_version(self, index) -> None:
        assert Resolver(index).resolve(["loop"]).packages == {"loop": V("0.5")}

    def test_empty_requirements(self, index) -> None:
        result = Resolver(index).resolve([])
        assert len(result) == 0


class TestPrereleases:

    def test_only_prereleases_are_used_when_necessary(self, index) -> None:
        assert Resolver(index).resolve(["beta"])["beta"] == V("1.0a1")

    def test_stable_preferred(self, index) -> None:
        assert Resolver(index).resolve(["pre"])["pre"] == V("1.0")

    def test_explicit_requirement_opts_in(self, index) -> None:
        assert Resolver(index).resolve(["pre>=2.0b1"])["pre"] == V("2.0b1")

    def test_allow(self, index) -> None:
        options = ResolverOptions(prerelease=PrereleaseMode.ALLOW)
        assert Resolver(index, options).resolve(["pre"])["pre"] == V("2.0b1")


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:

    def test_conflict_is_explained(self, index) -> None:
        with pytest.raises(NoSolutionError) as excinfo:
            Resolver(index).resolve(["flask>=2", "werkzeug<2"])
        error = excinfo.value
        assert error.explanation is not None
        assert "flask" in error.explanation
        assert "werkzeug" in error.explanation
        assert "root 0" not in error.explanation
        assert isinstance(error.__cause__, NoSolutionError)
        assert error.derivation_tree is error.__cause__.derivation_tree

    def test_missing_package(self, index) -> None:
        with pytest.raises(NoSolutionError) as excinfo:
            Resolver(index).resolve(["ghost"])
        assert "there is no available version for ghost" in str(excinfo.value)

    def test_prerelease_hint(self, index) -> None:
        with pytest.raises(NoSolutionError) as excinfo:
            Resolver(index).resolve(["pre>1.0"])
        error = excinfo.value
        assert "there is no version of pre that satisfies pre>1.0" in error.explanation
        assert "root depends on pre>1.0" in error.explanation
        assert error.explanation.endswith("version solving failed.")
        assert len(error.hints) == 1
        assert "pre-releases of pre are available (2.0b1)" in str(error)

    def test_missing_transitive_package(self, index) -> None:
        index.add("needs-ghost", "1.0", ["ghost>=1"])
        with pytest.raises(NoSolutionError) as excinfo:
            Resolver(index).resolve(["needs-ghost"])
        assert "ghost" in excinfo.value.explanation
        assert "needs-ghost" in excinfo.value.explanation

    def test_missing_package_with_yanked_lookup(self, index) -> None:
        # Choosing a version also asks the index for yanked versions.
        with pytest.raises(NoSolutionError):
            Resolver(index).resolve(["flask", "ghost>=1"])

    def test_missing_package_at_end_of_long_chain(self) -> None:
        index = InMemoryIndex()
        depth = 400
        for i in range(depth):
            index.add(f"p{i}", "1.0", [f"p{i + 1}"])
        index.add(f"p{depth}", "1.0", ["missing"])
        with pytest.raises(NoSolutionError) as excinfo:
            Resolver(index).resolve(["p0"])
        explanation = excinfo.value.explanation
        assert "missing" in explanation
        assert "p0" in explanation
        assert explanation.endswith("version solving failed.")

    def test_empty_root_specifier(self, index) -> None:
        with pytest.raises(DependencyOnTheEmptySetError) as excinfo:
            Resolver(index).resolve(["flask>=2,<1"])
        assert excinfo.value.dependent == Package("flask")
        assert isinstance(excinfo.value.package, Root)

    def test_empty_transitive_specifier_makes_version_unavailable(self, index) -> None:
        index.add("broken", "1.0", ["flask>=2,<1"])
        with pytest.raises(NoSolutionError) as excinfo:
            Resolver(index).resolve(["broken"])
        assert "matches no version" in excinfo.value.explanation

    def test_invalid_requirement(self, index) -> None:
        with pytest.raises(SpecifierError):
            Resolver(index).resolve(["flask>=>2"])

    def test_timeout_cancels(self, index) -> None:
        options = ResolverOptions(timeout=1e-9)
        with pytest.raises(SolveCancelled):
            Resolver(index, options).resolve(["flask"])

    def test_index_failure(self) -> None:
        class FlakyIndex(InMemoryIndex):
            def versions(self, name):
                raise RuntimeError("index is down")

        with pytest.raises(ProviderError) as excinfo:
            Resolver(FlakyIndex()).resolve(["flask"])
        assert isinstance(excinfo.value, ErrorListingVersions)
        assert excinfo.value.package == Package("flask")
        assert isinstance(excinfo.value.source, RuntimeError)


class TestResolution:

    def test_from_solution(self) -> None:
        solution = {
            Root(): Version("0"),
            Package("b"): V("1.0"),
            Package("a"): V("2.0"),
            Package("a", "x"): V("2.0"),
            Package("a", "y"): V("2.0"),
        }
        resolution = Resolution.from_solution(solution)
        assert list(resolution) == [("a", V("2.0")), ("b", V("1.0"))]
        assert resolution.extras == {"a": frozenset({"x", "y"})}
        assert Root() in resolution.solution
        assert 3 not in resolution
