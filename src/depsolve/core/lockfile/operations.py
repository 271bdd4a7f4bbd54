"""Lockfile operations: deserialization, validation, and diffing.

These functions are attached to the ``Lockfile`` class in ``__init__.py``
so that callers see a single API while each source file stays focused.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from packaging.version import InvalidVersion, Version

from depsolve.core.lockfile.models import LockedPackage, LockfileMetadata
from depsolve.exceptions import LockfileError


def _from_dict(cls: type, data: dict[str, Any]) -> Any:
    """Deserialize a lockfile from a dict (parsed JSON).

    Fields not present in the dict use default values.

    Raises:
        LockfileError: If the document does not have the lockfile shape.
    """
    if not isinstance(data, dict):
        raise LockfileError("Lockfile must be a JSON object")
    packages_data = data.get("packages", {})
    if not isinstance(packages_data, dict):
        raise LockfileError("Lockfile 'packages' must be an object")

    lf = cls()
    for name, entry in packages_data.items():
        if not isinstance(entry, dict) or "version" not in entry:
            raise LockfileError(f"Lockfile entry {name!r} has no version")
        lf._packages[name] = LockedPackage(
            name=name,
            version=str(entry["version"]),
            extras=list(entry.get("extras", [])),
            dependencies=dict(entry.get("dependencies", {})),
        )

    meta = data.get("metadata", {})
    lf._metadata = LockfileMetadata(
        total_packages=meta.get("total_packages", len(lf._packages)),
        resolution_strategy=meta.get("resolution_strategy", "highest"),
        prerelease=meta.get("prerelease", "if-necessary-or-explicit"),
        requirements=list(meta.get("requirements", [])),
    )
    return lf


def _from_json(cls: type, json_str: str) -> Any:
    """Deserialize from a JSON string.

    Raises:
        LockfileError: If the string is not valid JSON.
    """
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise LockfileError(f"Lockfile is not valid JSON: {exc}") from exc
    return cls.from_dict(data)


def _read(cls: type, path: Path) -> Any:
    """Read a lockfile from disk.

    Raises:
        LockfileError: If the file cannot be read or parsed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise LockfileError(f"Cannot read lockfile {path}: {exc}") from exc
    return cls.from_json(text)


def _validate(self: Any) -> list[str]:
    """Validate the lockfile for internal consistency.

    Checks that every version is valid PEP 440, that every dependency is
    itself locked at the version recorded for it, and that the metadata
    count matches. Dependency cycles are legal in Python packaging and are
    not reported.

    Returns:
        List of validation error messages. Empty means the lockfile is
        valid.
    """
    errors: list[str] = []

    for name, package in self._packages.items():
        try:
            Version(package.version)
        except InvalidVersion:
            errors.append(f"Package {name!r} has invalid version {package.version!r}")

    for name, package in self._packages.items():
        for dep_name, dep_version in package.dependencies.items():
            locked = self._packages.get(dep_name)
            if locked is None:
                errors.append(
                    f"Package {name!r} depends on {dep_name!r} which is not in the lockfile"
                )
            elif locked.version != dep_version:
                errors.append(
                    f"Package {name!r} records {dep_name} {dep_version} but "
                    f"{locked.version} is locked"
                )

    if self._metadata.total_packages != len(self._packages):
        errors.append(
            f"Metadata total_packages ({self._metadata.total_packages}) "
            f"does not match actual count ({len(self._packages)})"
        )

    return errors


def _diff(self: Any, other: Any) -> dict[str, Any]:
    """Compare two lockfiles.

    - **added**: Packages present in ``other`` but not in ``self``.
    - **removed**: Packages present in ``self`` but not in ``other``.
    - **changed**: Packages present in both whose version or extras differ.

    Returns:
        Dict with keys 'added', 'removed', 'changed'.
    """
    self_names = set(self._packages.keys())
    other_names = set(other._packages.keys())

    changes: list[dict[str, Any]] = []
    for name in sorted(self_names & other_names):
        old = self._packages[name]
        new = other._packages[name]
        if old.version != new.version:
            changes.append({"name": name, "field": "version", "old": old.version, "new": new.version})
        if sorted(old.extras) != sorted(new.extras):
            changes.append({
                "name": name,
                "field": "extras",
                "old": sorted(old.extras),
                "new": sorted(new.extras),
            })

    return {
        "added": sorted(other_names - self_names),
        "removed": sorted(self_names - other_names),
        "changed": changes,
    }
