"""Lockfile factory: constructing lockfiles from resolution results.

The normal workflow::

    resolution = Resolver(index, options).resolve(requirements)
    lockfile = Lockfile.from_resolution(resolution, index, requirements, options)
    lockfile.write(Path("depsolve-lock.json"))
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from packaging.markers import default_environment
from packaging.utils import canonicalize_name

from depsolve.core.lockfile.models import LockedPackage, LockfileMetadata
from depsolve.exceptions import SpecifierError
from depsolve.index.specifiers import parse_requirement

logger = logging.getLogger(__name__)


def _locked_dependencies(
    index: Any, name: str, version: Any, extras: Iterable[str], resolution: Any, environment: dict
) -> dict[str, str]:
    dependencies: dict[str, str] = {}
    active = [""] + sorted(extras)
    for text in index.metadata(name, version).requires_dist:
        try:
            requirement = parse_requirement(text)
        except SpecifierError:
            logger.warning("Skipping invalid requirement %r of %s %s", text, name, version)
            continue
        if requirement.marker is not None and not any(
            requirement.marker.evaluate({**environment, "extra": extra}) for extra in active
        ):
            continue
        dep = canonicalize_name(requirement.name)
        if dep in resolution.packages:
            dependencies[dep] = str(resolution.packages[dep])
    return dependencies


def _from_resolution(
    cls: type,
    resolution: Any,
    index: Any | None = None,
    requirements: Iterable[Any] = (),
    options: Any | None = None,
) -> Any:
    """Create a lockfile from a ``Resolution``.

    Args:
        resolution: The result of ``Resolver.resolve``.
        index: The index the resolution was computed from. When given, each
            entry records the locked versions of its own dependencies.
        requirements: Root requirements, recorded in the metadata.
        options: The ``ResolverOptions`` used, recorded in the metadata and
            used to evaluate dependency markers.

    Returns:
        A new ``Lockfile`` populated from the resolution result.
    """
    environment = dict(default_environment())
    if options is not None:
        environment.update(options.environment)

    lf = cls()
    for name, version in resolution.packages.items():
        extras = sorted(resolution.extras.get(name, ()))
        dependencies: dict[str, str] = {}
        if index is not None:
            dependencies = _locked_dependencies(
                index, name, version, extras, resolution, environment
            )
        lf.add_package(
            LockedPackage(
                name=name,
                version=str(version),
                extras=extras,
                dependencies=dependencies,
            )
        )

    metadata = LockfileMetadata(
        total_packages=lf.package_count,
        requirements=[str(r) for r in requirements],
    )
    if options is not None:
        metadata.resolution_strategy = options.resolution.value
        metadata.prerelease = options.prerelease.value
    lf.metadata = metadata
    return lf
