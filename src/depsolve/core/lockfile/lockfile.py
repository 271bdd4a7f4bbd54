"""Lockfile core class: package management, serialization and preferences.

The ``Lockfile`` class is the in-memory form of a ``depsolve-lock.json``
file. It provides:

- **Package management:** add, get, count, and list packages.
- **Serialization:** deterministic ``to_dict``, ``to_json``, and ``write``.
- **Preferences:** the locked versions, in the shape the resolver takes
  them, so that a re-resolution changes as little as possible.

Determinism guarantee: package entries are sorted by name and all
dictionary keys are sorted. Two lockfiles with the same content always
produce byte-identical JSON.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from packaging.version import InvalidVersion, Version

from depsolve.core.lockfile.models import LockedPackage, LockfileMetadata
from depsolve.exceptions import LockfileError


class Lockfile:
    """Exact resolved state of a set of requirements.

    Example::

        resolution = Resolver(index).resolve(["flask>=2"])
        lf = Lockfile.from_resolution(resolution, index, requirements=["flask>=2"])
        lf.write(Path("depsolve-lock.json"))

        previous = Lockfile.read(Path("depsolve-lock.json"))
        Resolver(index, preferences=previous.preferences()).resolve(["flask>=2"])
    """

    LOCKFILE_VERSION: str = "1.0"

    def __init__(self) -> None:
        self._packages: dict[str, LockedPackage] = {}
        self._metadata = LockfileMetadata()

    # -- Package management -------------------------------------------------

    def add_package(self, package: LockedPackage) -> None:
        """Add a locked package, replacing any entry with the same name."""
        self._packages[package.name] = package
        self._metadata.total_packages = len(self._packages)

    def get_package(self, name: str) -> LockedPackage | None:
        return self._packages.get(name)

    @property
    def package_count(self) -> int:
        """Return the number of locked packages."""
        return len(self._packages)

    @property
    def package_names(self) -> list[str]:
        """Return sorted list of all package names in the lockfile."""
        return sorted(self._packages.keys())

    # -- Preferences --------------------------------------------------------

    def preferences(self) -> dict[str, Version]:
        """Locked versions as ``name -> Version``.

        Raises:
            LockfileError: If an entry's version is not valid PEP 440.
        """
        preferences: dict[str, Version] = {}
        for name in self.package_names:
            raw = self._packages[name].version
            try:
                preferences[name] = Version(raw)
            except InvalidVersion as exc:
                raise LockfileError(f"Locked version of {name!r} is invalid: {raw!r}") from exc
        return preferences

    # -- Serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize the lockfile to a dict matching the schema.

        The output is deterministic: packages are sorted by name, and all
        dictionary keys are sorted.
        """
        packages_dict: dict[str, Any] = {}
        for name in self.package_names:
            package = self._packages[name]
            entry: dict[str, Any] = {
                "version": package.version,
                "dependencies": dict(sorted(package.dependencies.items())),
            }
            if package.extras:
                entry["extras"] = sorted(package.extras)
            packages_dict[name] = entry

        return {
            "lockfile_version": self.LOCKFILE_VERSION,
            "generated_by": "depsolve",
            "packages": packages_dict,
            "metadata": {
                "total_packages": self._metadata.total_packages,
                "resolution_strategy": self._metadata.resolution_strategy,
                "prerelease": self._metadata.prerelease,
                "requirements": list(self._metadata.requirements),
            },
        }

    def to_json(self, indent: int = 2) -> str:
        """Deterministic JSON string representation of the lockfile."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True) + "\n"

    def write(self, path: Path) -> None:
        """Write lockfile to disk as JSON, creating parent directories.

        Raises:
            LockfileError: If the file cannot be written.
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.to_json(), encoding="utf-8")
        except OSError as exc:
            raise LockfileError(f"Cannot write lockfile {path}: {exc}") from exc

    # -- Metadata access ----------------------------------------------------

    @property
    def metadata(self) -> LockfileMetadata:
        """Return the lockfile metadata."""
        return self._metadata

    @metadata.setter
    def metadata(self, value: LockfileMetadata) -> None:
        self._metadata = value
