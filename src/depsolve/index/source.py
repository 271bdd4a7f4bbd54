"""Package index interface and an in-memory index.

A ``PackageIndex`` answers two questions: which versions of a distribution
exist, and what a given version requires. Implementations may be slow (the
adapter calls them from worker threads) but must be safe to call
concurrently.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from packaging.utils import canonicalize_name
from packaging.version import Version

from depsolve.exceptions import PackageNotFound


@dataclass(frozen=True)
class PackageMetadata:
    """Core metadata the resolver needs from one distribution version.

    Attributes:
        requires_dist: PEP 508 requirement strings, markers included.
        yanked: Yanked versions are only selected when pinned exactly.
    """

    requires_dist: tuple[str, ...] = ()
    yanked: bool = False


class PackageIndex(ABC):
    """Read-only view of a package repository."""

    @abstractmethod
    def versions(self, name: str) -> list[Version]:
        """Every published version of ``name``, in any order.

        Raises:
            PackageNotFound: If the index does not know ``name``.
        """

    @abstractmethod
    def metadata(self, name: str, version: Version) -> PackageMetadata:
        """Metadata of ``name`` at ``version``.

        Raises:
            PackageNotFound: If the index does not know ``name`` at ``version``.
        """

    def yanked_versions(self, name: str) -> set[Version]:
        """Versions of ``name`` that were yanked; none by default."""
        return set()


@dataclass
class InMemoryIndex(PackageIndex):
    """An index held in a dict: ``name -> version -> PackageMetadata``."""

    packages: dict[str, dict[Version, PackageMetadata]] = field(default_factory=dict)

    def add(
        self,
        name: str,
        version: Version | str,
        requires_dist: Iterable[str] = (),
        yanked: bool = False,
    ) -> None:
        if not isinstance(version, Version):
            version = Version(version)
        self.packages.setdefault(canonicalize_name(name), {})[version] = PackageMetadata(
            tuple(requires_dist), yanked
        )

    def versions(self, name: str) -> list[Version]:
        return list(self._releases(name))

    def yanked_versions(self, name: str) -> set[Version]:
        return {v for v, meta in self._releases(name).items() if meta.yanked}

    def metadata(self, name: str, version: Version) -> PackageMetadata:
        releases = self._releases(name)
        if version not in releases:
            raise PackageNotFound(f"{name}=={version}")
        return releases[version]

    def _releases(self, name: str) -> Mapping[Version, PackageMetadata]:
        try:
            return self.packages[canonicalize_name(name)]
        except KeyError:
            raise PackageNotFound(name) from None
