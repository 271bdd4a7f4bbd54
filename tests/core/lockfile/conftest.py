"""Shared helpers for lockfile tests."""

from __future__ import annotations

from depsolve.core.lockfile import LockedPackage, Lockfile


def make_locked_package(
    name: str = "pkg",
    version: str = "1.0.0",
    extras: list[str] | None = None,
    dependencies: dict[str, str] | None = None,
) -> LockedPackage:
    """Convenience factory for LockedPackage instances."""
    return LockedPackage(
        name=name,
        version=version,
        extras=extras or [],
        dependencies=dependencies or {},
    )


def make_lockfile_with_packages(*packages: LockedPackage) -> Lockfile:
    """Build a Lockfile pre-populated with the given packages."""
    lf = Lockfile()
    for package in packages:
        lf.add_package(package)
    return lf
