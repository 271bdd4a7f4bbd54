"""Resolver configuration.

``ResolverOptions`` gathers every knob of a resolution in one immutable
value. The CLI builds it from flags; library callers construct it directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ResolutionStrategy(str, Enum):
    """Which end of the allowed range to try first."""

    HIGHEST = "highest"
    LOWEST = "lowest"


class PrereleaseMode(str, Enum):
    """When pre-release versions may be selected.

    ``EXPLICIT`` allows them for packages whose direct requirement mentions a
    pre-release (``foo>=2.0b1``). ``IF_NECESSARY`` allows them for packages
    that have no final release at all.
    """

    DISALLOW = "disallow"
    ALLOW = "allow"
    IF_NECESSARY = "if-necessary"
    EXPLICIT = "explicit"
    IF_NECESSARY_OR_EXPLICIT = "if-necessary-or-explicit"


@dataclass(frozen=True)
class ResolverOptions:
    """Options of one resolution.

    Attributes:
        resolution: Prefer the highest or the lowest allowed versions.
        prerelease: Pre-release policy.
        environment: PEP 508 marker variables overriding those of the
            running interpreter (``{"python_version": "3.9"}``).
        prefetch_workers: Threads used to fetch version lists ahead of the
            solver.
        timeout: Seconds after which the solve is cancelled; ``None`` for no
            limit.
    """

    resolution: ResolutionStrategy = ResolutionStrategy.HIGHEST
    prerelease: PrereleaseMode = PrereleaseMode.IF_NECESSARY_OR_EXPLICIT
    environment: Mapping[str, str] = field(default_factory=dict)
    prefetch_workers: int = 8
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.prefetch_workers < 1:
            raise ValueError("prefetch_workers must be at least 1")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")
