"""High-level entry point: resolve PEP 508 requirements against an index."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Mapping, Tuple

from packaging.requirements import Requirement
from packaging.utils import canonicalize_name
from packaging.version import Version

from depsolve.config import ResolverOptions
from depsolve.core.report import DefaultStringReporter, collapse_no_versions, is_external
from depsolve.core.solver import resolve
from depsolve.exceptions import NoSolutionError
from depsolve.index.candidates import CandidateSelector
from depsolve.index.package import Package, Root
from depsolve.index.provider import ROOT_VERSION, IndexDependencyProvider
from depsolve.index.report import IndexReportFormatter, prerelease_hints
from depsolve.index.source import PackageIndex
from depsolve.index.specifiers import parse_requirement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """A successful resolution.

    Attributes:
        packages: Normalized distribution name -> selected version, sorted
            by name.
        extras: Normalized distribution name -> extras that were activated.
        solution: The raw solver output, ``Package -> Version``, extra
            packages included.
    """

    packages: Dict[str, Version]
    extras: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    solution: Dict[Package, Version] = field(default_factory=dict)

    @classmethod
    def from_solution(cls, solution: Mapping[Any, Version]) -> Resolution:
        packages: Dict[str, Version] = {}
        extras: Dict[str, set] = {}
        for package, version in solution.items():
            if isinstance(package, Root):
                continue
            if package.extra is None:
                packages[package.name] = version
            else:
                extras.setdefault(package.name, set()).add(package.extra)
        return cls(
            packages=dict(sorted(packages.items())),
            extras={name: frozenset(found) for name, found in sorted(extras.items())},
            solution=dict(solution),
        )

    def __iter__(self) -> Iterator[Tuple[str, Version]]:
        return iter(self.packages.items())

    def __len__(self) -> int:
        return len(self.packages)

    def __getitem__(self, name: str) -> Version:
        return self.packages[canonicalize_name(name)]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonicalize_name(name) in self.packages


class Resolver:
    """Resolve requirement strings against a ``PackageIndex``.

    Args:
        index: Where versions and metadata come from.
        options: Strategy, pre-release policy, marker environment, prefetch
            pool size and timeout.
        preferences: ``name -> version`` tried first for each package,
            typically ``Lockfile.preferences()`` of a previous run.
        root_name: Name shown for the project in failure reports.

    Example::

        index = load_registry("registry.yaml")
        resolution = Resolver(index).resolve(["flask>=2", "requests"])
        print(resolution["flask"])
    """

    def __init__(
        self,
        index: PackageIndex,
        options: ResolverOptions | None = None,
        preferences: Mapping[str, Version | str] | None = None,
        root_name: str = "root",
    ) -> None:
        self.index = index
        self.options = options or ResolverOptions()
        self.preferences = {
            name: v if isinstance(v, Version) else Version(v)
            for name, v in (preferences or {}).items()
        }
        self.root = Root(root_name)

    def selector_for(self, requirements: Iterable[Requirement]) -> CandidateSelector:
        """The candidate selector a resolution of ``requirements`` uses.

        Packages whose direct requirement mentions a pre-release count as
        explicitly opted in.
        """
        explicit = [r.name for r in requirements if r.specifier.prereleases]
        return CandidateSelector(
            resolution=self.options.resolution,
            prerelease=self.options.prerelease,
            explicit_prereleases=explicit,
            preferences=self.preferences,
        )

    def resolve(self, requirements: Iterable[Requirement | str]) -> Resolution:
        """Select one version per required distribution.

        Raises:
            SpecifierError: A requirement string is invalid.
            NoSolutionError: The requirements conflict. ``str(error)`` is an
                explanation worded for Python packages, followed by hints.
            SolveCancelled: The configured timeout elapsed.
            ProviderError: The index failed.
        """
        parsed = [r if isinstance(r, Requirement) else parse_requirement(r) for r in requirements]
        selector = self.selector_for(parsed)
        started = time.monotonic()
        logger.info("Resolving %d requirement(s)", len(parsed))
        with IndexDependencyProvider(
            self.index,
            self.root,
            parsed,
            selector=selector,
            environment=self.options.environment,
            prefetch_workers=self.options.prefetch_workers,
            timeout=self.options.timeout,
        ) as provider:
            try:
                solution = resolve(provider, self.root, ROOT_VERSION)
            except NoSolutionError as exc:
                known = provider.known_versions()
                considered = {name: selector.ordered(name, found) for name, found in known.items()}
                tree = collapse_no_versions(exc.derivation_tree)
                if is_external(tree) and not is_external(exc.derivation_tree):
                    # A single merged fact would hide which versions were missing.
                    tree = exc.derivation_tree
                explanation = DefaultStringReporter.report(tree, IndexReportFormatter(considered))
                hints = prerelease_hints(exc.derivation_tree, selector, known)
                logger.info("Resolution failed after %.2fs", time.monotonic() - started)
                raise NoSolutionError(exc.derivation_tree, explanation, tuple(hints)) from exc
        resolution = Resolution.from_solution(solution)
        logger.info(
            "Resolved %d package(s) in %.2fs", len(resolution), time.monotonic() - started
        )
        return resolution
