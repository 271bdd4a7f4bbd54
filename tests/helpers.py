"""Shared helpers: compact provider builders and a brute-force reference solver."""

from __future__ import annotations

import itertools
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from hypothesis import strategies as st

from depsolve.core.ranges import Range
from depsolve.core.solver import OfflineDependencyProvider

ROOT = "root"
ROOT_VERSION = 0

# name -> version -> [(dependency, Range)]
Registry = Mapping[Any, Mapping[Any, Sequence[Tuple[Any, Range]]]]


def make_provider(registry: Registry) -> OfflineDependencyProvider:
    """Build an ``OfflineDependencyProvider`` from a nested dict."""
    provider: OfflineDependencyProvider = OfflineDependencyProvider()
    for package, versions in registry.items():
        for version, dependencies in versions.items():
            provider.add_dependencies(package, version, list(dependencies))
    return provider


def satisfies(registry: Registry, root: Any, solution: Mapping[Any, Any]) -> bool:
    """True when ``solution`` (root included) picks existing versions and honors every edge."""
    if root not in solution:
        return False
    for package, version in solution.items():
        if version not in registry.get(package, {}):
            return False
        for dependency, allowed in registry[package][version]:
            if dependency not in solution or not allowed.contains(solution[dependency]):
                return False
    return True


def brute_force_solvable(registry: Registry, root: Any, root_version: Any) -> bool:
    """Exhaustive search over every assignment; only for tiny registries.

    Each package is either absent or at one of its versions. A solution
    need not be minimal, so "absent" is only an option, never forced.
    """
    others = [p for p in registry if p != root]
    choices: List[List[Any]] = [[None] + list(registry[p]) for p in others]
    for combo in itertools.product(*choices):
        solution: Dict[Any, Any] = {root: root_version}
        solution.update({p: v for p, v in zip(others, combo) if v is not None})
        if satisfies(registry, root, solution):
            return True
    return False


def exact(version: Any) -> Range:
    return Range.singleton(version)


def at_least(version: Any) -> Range:
    return Range.higher_than(version)


def between(low: Any, high: Any) -> Range:
    return Range.between(low, high)


def all_versions() -> Range:
    return Range.full()


# ---------------------------------------------------------------------------
# Strategies for generating random registries
# ---------------------------------------------------------------------------

PACKAGES = ["a", "b", "c", "d"]


@st.composite
def version_ranges(draw: st.DrawFn) -> Range:
    kind = draw(st.sampled_from(["full", "exact", "between", "at-least", "below"]))
    v = draw(st.integers(1, 3))
    if kind == "full":
        return Range.full()
    if kind == "exact":
        return Range.singleton(v)
    if kind == "between":
        return Range.between(v, v + draw(st.integers(1, 2)))
    if kind == "at-least":
        return Range.higher_than(v)
    return Range.strictly_lower_than(v + 1)


@st.composite
def registries(draw: st.DrawFn) -> Dict[Any, Dict[Any, List]]:
    """Root plus up to four packages with 1-3 versions and up to two deps each."""
    names = draw(st.lists(st.sampled_from(PACKAGES), min_size=1, max_size=4, unique=True))
    registry: Dict[Any, Dict[Any, List]] = {}
    for name in names:
        versions = draw(st.lists(st.integers(1, 3), min_size=1, max_size=3, unique=True))
        registry[name] = {}
        for version in versions:
            targets = draw(
                st.lists(st.sampled_from([n for n in PACKAGES if n != name]), max_size=2, unique=True)
            )
            registry[name][version] = [(t, draw(version_ranges())) for t in targets]
    root_targets = draw(st.lists(st.sampled_from(PACKAGES), min_size=1, max_size=3, unique=True))
    registry[ROOT] = {ROOT_VERSION: [(t, draw(version_ranges())) for t in root_targets]}
    return registry
