"""Dependency provider backed by a ``PackageIndex``.

Bridges the solver's abstract queries to PEP 440/508 metadata:

* version lists and metadata are fetched at most once per key, through
  ``OnceMap``; version lists of newly discovered dependencies are
  prefetched on a thread pool while the solver keeps working;
* requirement strings are parsed with ``packaging`` and their markers
  evaluated against the configured environment;
* a dependency with extras becomes a dependency on ``Package(name, extra)``,
  which in turn depends on ``Package(name)`` at the very same version;
* version choice is delegated to a ``CandidateSelector``.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, FrozenSet, List, Mapping, Sequence, Tuple

from packaging.markers import default_environment
from packaging.requirements import Requirement
from packaging.version import Version

from depsolve.core.ranges import Range
from depsolve.core.solver.provider import Dependencies, DependencyProvider
from depsolve.exceptions import ErrorListingVersions, PackageNotFound, SpecifierError
from depsolve.index.candidates import CandidateSelector
from depsolve.index.once_map import OnceMap
from depsolve.index.package import Package, Root
from depsolve.index.source import PackageIndex
from depsolve.index.specifiers import parse_requirement, specifier_set_to_range

logger = logging.getLogger(__name__)

ROOT_VERSION = Version("0")


class IndexDependencyProvider(DependencyProvider[Any, Version]):
    """Serve a solve from ``index``.

    Args:
        index: Where versions and metadata come from.
        root: The synthetic root package.
        requirements: Requirements of the root, as parsed ``Requirement``
            objects or PEP 508 strings.
        selector: Version choice policy.
        environment: Marker variables overriding the running interpreter's.
        prefetch_workers: Size of the prefetch thread pool.
        timeout: Seconds after which ``should_cancel`` turns true.

    Use as a context manager (or call ``close``) to stop the thread pool.
    """

    def __init__(
        self,
        index: PackageIndex,
        root: Root,
        requirements: Sequence[Requirement | str],
        selector: CandidateSelector | None = None,
        environment: Mapping[str, str] | None = None,
        prefetch_workers: int = 8,
        timeout: float | None = None,
    ) -> None:
        self.index = index
        self.root = root
        self.requirements = [
            r if isinstance(r, Requirement) else parse_requirement(r) for r in requirements
        ]
        self.selector = selector or CandidateSelector()
        self.environment: Dict[str, str] = dict(default_environment())
        self.environment.update(environment or {})
        self._executor = ThreadPoolExecutor(
            max_workers=prefetch_workers, thread_name_prefix="depsolve-prefetch"
        )
        self._versions: OnceMap[str, List[Version]] = OnceMap()
        self._yanked: OnceMap[str, FrozenSet[Version]] = OnceMap()
        self._metadata: OnceMap[Tuple[str, Version], Any] = OnceMap()
        self._cancelled = threading.Event()
        self._deadline = None if timeout is None else time.monotonic() + timeout

    # -- Lifecycle ----------------------------------------------------------

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> IndexDependencyProvider:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def cancel(self) -> None:
        """Ask the running solve to stop at its next decision."""
        self._cancelled.set()

    def should_cancel(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._deadline is not None and time.monotonic() > self._deadline

    # -- Versions -----------------------------------------------------------

    def _fetch_versions(self, name: str) -> List[Version]:
        logger.debug("Fetching versions of %s", name)
        try:
            return sorted(set(self.index.versions(name)))
        except PackageNotFound:
            logger.warning("Package %s was not found in the index", name)
            return []

    def prefetch(self, name: str) -> None:
        """Start fetching the versions of ``name`` in the background."""
        self._versions.submit(self._executor, name, lambda: self._fetch_versions(name))

    def available_versions(self, name: str) -> List[Version]:
        """Published versions of ``name``, ascending."""
        return self._versions.get(name, lambda: self._fetch_versions(name))

    def _fetch_yanked(self, name: str) -> FrozenSet[Version]:
        try:
            return frozenset(self.index.yanked_versions(name))
        except PackageNotFound:
            return frozenset()

    def yanked_versions(self, name: str) -> FrozenSet[Version]:
        """Yanked versions of ``name``; empty for packages the index lacks."""
        return self._yanked.get(name, lambda: self._fetch_yanked(name))

    def known_versions(self) -> Dict[str, List[Version]]:
        """``name -> versions`` of every package looked up so far."""
        return {name: self.available_versions(name) for name in self._versions.keys()}

    def list_versions(self, package: Any) -> List[Version]:
        if isinstance(package, Root):
            return [ROOT_VERSION]
        return self.selector.ordered(package.name, self.available_versions(package.name))

    def choose_package_version(
        self, candidates: Sequence[Tuple[Any, Range]]
    ) -> Tuple[Any, Version | None]:
        """Fewest allowed versions first; the selector picks the version."""

        def count(candidate: Tuple[Any, Range]) -> int:
            package, allowed = candidate
            try:
                listed = self.list_versions(package)
            except Exception as exc:
                raise ErrorListingVersions(package, exc) from exc
            return sum(1 for v in listed if allowed.contains(v))

        package, allowed = min(candidates, key=count)
        if isinstance(package, Root):
            return package, ROOT_VERSION if allowed.contains(ROOT_VERSION) else None
        try:
            available = self.available_versions(package.name)
            yanked = self.yanked_versions(package.name)
        except Exception as exc:
            raise ErrorListingVersions(package, exc) from exc
        version = self.selector.select(package.name, allowed, available, yanked)
        return package, version

    # -- Dependencies -------------------------------------------------------

    def get_dependencies(self, package: Any, version: Version) -> Dependencies:
        """Constraints of ``package`` at ``version``.

        Metadata the solver cannot use (an unparsable requirement, a
        specifier no version can match, a package requiring itself at another
        version) makes the version unavailable rather than failing the solve.
        The root's own requirements are passed through unchanged, so an empty
        root specifier fails with ``DependencyOnTheEmptySetError``.
        """
        if isinstance(package, Root):
            requirements = self.requirements
        else:
            key = (package.name, version)
            metadata = self._metadata.get(key, lambda: self.index.metadata(*key))
            requirements = []
            for text in metadata.requires_dist:
                try:
                    requirements.append(parse_requirement(text))
                except SpecifierError as exc:
                    logger.warning("Ignoring %s %s: %s", package, version, exc)
                    return Dependencies.unavailable(f"invalid requirement {text!r}")
        extra = None if isinstance(package, Root) else package.extra
        try:
            pairs = self._to_constraints(
                requirements, extra, allow_empty=isinstance(package, Root)
            )
        except SpecifierError as exc:
            logger.warning("Ignoring %s %s: %s", package, version, exc)
            return Dependencies.unavailable(str(exc))

        constraints: List[Tuple[Any, Range]] = []
        if extra is not None:
            constraints.append((package.base, Range.singleton(version)))
        for dependency, range_ in pairs:
            if dependency == package:
                if not range_.contains(version):
                    return Dependencies.unavailable(f"requires {package}{range_}")
                continue
            constraints.append((dependency, range_))
        return Dependencies.known(constraints)

    def _to_constraints(
        self,
        requirements: Sequence[Requirement],
        extra: str | None,
        allow_empty: bool = False,
    ) -> List[Tuple[Package, Range]]:
        pairs: List[Tuple[Package, Range]] = []
        for requirement in requirements:
            if not self._applies(requirement, extra):
                continue
            range_ = specifier_set_to_range(requirement.specifier)
            if range_.is_empty() and not allow_empty:
                raise SpecifierError(f"{requirement} matches no version")
            targets = [Package(requirement.name)]
            targets.extend(Package(requirement.name, e) for e in sorted(requirement.extras))
            for target in targets:
                pairs.append((target, range_))
            self.prefetch(targets[0].name)
        return pairs

    def _applies(self, requirement: Requirement, extra: str | None) -> bool:
        """Marker check; under an extra, only requirements gated by that extra apply."""
        marker = requirement.marker
        if marker is None:
            return extra is None
        base = marker.evaluate({**self.environment, "extra": ""})
        if extra is None:
            return base
        return not base and marker.evaluate({**self.environment, "extra": extra})
