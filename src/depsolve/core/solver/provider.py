"""The dependency provider interface and an in-memory implementation.

The solver learns about packages only through a ``DependencyProvider``: which
versions exist, what a given version depends on, which undecided package to
decide next and whether to stop early. Everything that performs I/O lives
behind this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from depsolve.core.ranges import Range
from depsolve.exceptions import ErrorListingVersions

P = TypeVar("P")
V = TypeVar("V")

DependencyConstraints = Union[Mapping[Any, Range[Any]], Iterable[Tuple[Any, Range[Any]]]]


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Dependencies:
    """Answer of ``get_dependencies``: known constraints, or unavailable.

    Build instances with ``Dependencies.known`` or ``Dependencies.unavailable``.

    Attributes:
        constraints: ``(package, range)`` pairs, or ``None`` when unavailable.
            The same package may appear more than once; each pair is a
            separate requirement.
        reason: Optional explanation for unavailable dependencies.
    """

    constraints: Tuple[Tuple[Any, Range[Any]], ...] | None
    reason: str | None = None

    @classmethod
    def known(cls, constraints: DependencyConstraints) -> Dependencies:
        if isinstance(constraints, Mapping):
            pairs = tuple(constraints.items())
        else:
            pairs = tuple(constraints)
        return cls(pairs)

    @classmethod
    def unavailable(cls, reason: str | None = None) -> Dependencies:
        return cls(None, reason)

    @property
    def is_unavailable(self) -> bool:
        return self.constraints is None


# ---------------------------------------------------------------------------
# Provider interface
# ---------------------------------------------------------------------------


def choose_package_with_fewest_versions(
    list_versions: Callable[[Any], Iterable[Any]],
    candidates: Sequence[Tuple[Any, Range[Any]]],
) -> Tuple[Any, Any | None]:
    """Pick the candidate with the fewest allowed versions, and its best version.

    Args:
        list_versions: Versions of a package, most preferred first.
        candidates: Undecided ``(package, allowed_range)`` pairs.

    Returns:
        ``(package, version)``, where ``version`` is the first listed version
        inside the allowed range or ``None`` if there is none. Ties go to the
        earliest candidate.
    """

    def count_valid(candidate: Tuple[Any, Range[Any]]) -> int:
        package, allowed = candidate
        return sum(1 for version in list_versions(package) if allowed.contains(version))

    package, allowed = min(candidates, key=count_valid)
    version = next((v for v in list_versions(package) if allowed.contains(v)), None)
    return package, version


class DependencyProvider(ABC, Generic[P, V]):
    """Source of package metadata for the solver.

    Subclasses implement ``list_versions`` and ``get_dependencies``. The
    decision heuristic (``choose_package_version``) and the cancellation hook
    (``should_cancel``) have defaults and may be overridden.

    Any exception raised by a provider method aborts the solve; the solver
    wraps it in the matching ``ProviderError`` subclass.
    """

    @abstractmethod
    def list_versions(self, package: P) -> Sequence[V]:
        """All known versions of ``package``, most preferred first."""

    @abstractmethod
    def get_dependencies(self, package: P, version: V) -> Dependencies:
        """Dependency constraints of ``package`` at ``version``."""

    def choose_package_version(
        self, candidates: Sequence[Tuple[P, Range[V]]]
    ) -> Tuple[P, V | None]:
        """Pick the next package to decide and a version for it.

        Returns ``(package, None)`` when no version of the chosen package lies
        in its allowed range.
        """
        def listed(package: P) -> Sequence[V]:
            try:
                return self.list_versions(package)
            except Exception as exc:
                raise ErrorListingVersions(package, exc) from exc

        return choose_package_with_fewest_versions(listed, candidates)

    def should_cancel(self) -> bool:
        """Polled before every decision; return True to abort the solve."""
        return False


# ---------------------------------------------------------------------------
# OfflineDependencyProvider
# ---------------------------------------------------------------------------


class OfflineDependencyProvider(DependencyProvider[P, V]):
    """A provider backed by an in-memory table of dependencies.

    Versions are preferred highest first. Unknown packages have no versions;
    unknown versions report unavailable dependencies.

    Example::

        provider = OfflineDependencyProvider()
        provider.add_dependencies("root", 1, [("foo", Range.between(1, 2))])
        provider.add_dependencies("foo", 1, [])
        assert resolve(provider, "root", 1) == {"foo": 1}
    """

    def __init__(self) -> None:
        self._dependencies: Dict[P, Dict[V, Tuple[Tuple[P, Range[V]], ...]]] = {}

    def add_dependencies(
        self, package: P, version: V, dependencies: DependencyConstraints
    ) -> None:
        """Register (or replace) the dependencies of ``package`` at ``version``."""
        self._dependencies.setdefault(package, {})[version] = Dependencies.known(
            dependencies
        ).constraints

    def packages(self) -> List[P]:
        return list(self._dependencies)

    def versions(self, package: P) -> List[V]:
        """Known versions of ``package`` in ascending order."""
        return sorted(self._dependencies.get(package, {}))

    def list_versions(self, package: P) -> List[V]:
        return list(reversed(self.versions(package)))

    def get_dependencies(self, package: P, version: V) -> Dependencies:
        constraints = self._dependencies.get(package, {}).get(version)
        if constraints is None:
            return Dependencies.unavailable()
        return Dependencies(constraints)
