"""Lockfile data models: ``LockedPackage`` and ``LockfileMetadata``.

Pure data holders with no behaviour, safe to import from anywhere in the
lockfile package.
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# LockedPackage: A single entry in the lockfile
# ---------------------------------------------------------------------------


@dataclass
class LockedPackage:
    """One resolved distribution.

    Attributes:
        name: Normalized distribution name (e.g., "flask").
        version: Selected PEP 440 version, as a string.
        extras: Extras of this distribution that were activated.
        dependencies: Mapping of dependency name to its locked version, for
            the requirements that applied in the resolution environment.
    """

    name: str
    version: str
    extras: list[str] = field(default_factory=list)
    dependencies: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# LockfileMetadata: Top-level metadata section
# ---------------------------------------------------------------------------


@dataclass
class LockfileMetadata:
    """Metadata section of the lockfile.

    Attributes:
        total_packages: Expected number of package entries. Used during
            validation to detect incomplete writes.
        resolution_strategy: "highest" or "lowest".
        prerelease: Pre-release mode used for the resolution.
        requirements: The root requirements, as written by the user.
    """

    total_packages: int = 0
    resolution_strategy: str = "highest"
    prerelease: str = "if-necessary-or-explicit"
    requirements: list[str] = field(default_factory=list)
