"""Pick a version for a package among those an index publishes."""

from __future__ import annotations

import logging
from typing import Collection, Iterable, Mapping, Sequence

from packaging.utils import canonicalize_name
from packaging.version import Version

from depsolve.config import PrereleaseMode, ResolutionStrategy
from depsolve.core.ranges import Range
from depsolve.index.specifiers import specifier_to_range

logger = logging.getLogger(__name__)


class CandidateSelector:
    """Applies the resolution strategy, the pre-release policy and preferences.

    Args:
        resolution: Prefer highest or lowest versions.
        prerelease: Pre-release policy.
        explicit_prereleases: Names whose direct requirement mentions a
            pre-release; consulted by the ``EXPLICIT`` modes.
        preferences: ``name -> version`` tried before anything else, usually
            read from a previous lockfile.
    """

    def __init__(
        self,
        resolution: ResolutionStrategy = ResolutionStrategy.HIGHEST,
        prerelease: PrereleaseMode = PrereleaseMode.IF_NECESSARY_OR_EXPLICIT,
        explicit_prereleases: Iterable[str] = (),
        preferences: Mapping[str, Version] | None = None,
    ) -> None:
        self.resolution = resolution
        self.prerelease = prerelease
        self.explicit_prereleases = frozenset(canonicalize_name(n) for n in explicit_prereleases)
        self.preferences = {
            canonicalize_name(name): version for name, version in (preferences or {}).items()
        }

    def allows_prereleases(self, name: str, versions: Sequence[Version] = ()) -> bool:
        """Whether pre-releases of ``name`` may be selected.

        ``versions`` are the published versions, needed by the
        ``IF_NECESSARY`` modes.
        """
        mode = self.prerelease
        if mode is PrereleaseMode.ALLOW:
            return True
        if mode is PrereleaseMode.DISALLOW:
            return False
        if mode in (PrereleaseMode.EXPLICIT, PrereleaseMode.IF_NECESSARY_OR_EXPLICIT):
            if canonicalize_name(name) in self.explicit_prereleases:
                return True
        if mode in (PrereleaseMode.IF_NECESSARY, PrereleaseMode.IF_NECESSARY_OR_EXPLICIT):
            return not any(not v.is_prerelease for v in versions)
        return False

    def ordered(self, name: str, versions: Iterable[Version]) -> list[Version]:
        """``versions`` in the order they should be tried, ignoring preferences."""
        ordered = sorted(versions, reverse=self.resolution is ResolutionStrategy.HIGHEST)
        if self.allows_prereleases(name, ordered):
            return ordered
        return [v for v in ordered if not v.is_prerelease]

    def select(
        self,
        name: str,
        allowed: Range,
        versions: Sequence[Version],
        yanked: Collection[Version] = (),
    ) -> Version | None:
        """The version of ``name`` to try next, or ``None`` if no candidate is in ``allowed``."""
        preferred = self.preferences.get(canonicalize_name(name))
        if (
            preferred is not None
            and preferred in versions
            and allowed.contains(preferred)
            and self._preference_allowed(name, preferred)
        ):
            logger.debug("Using preference %s %s", name, preferred)
            return preferred
        for version in self.ordered(name, versions):
            if not allowed.contains(version):
                continue
            if version in yanked and not allowed.subset_of(specifier_to_range(f"=={version}")):
                logger.debug("Skipping yanked %s %s", name, version)
                continue
            return version
        return None

    def _preference_allowed(self, name: str, version: Version) -> bool:
        if not version.is_prerelease:
            return True
        if self.prerelease is PrereleaseMode.DISALLOW:
            return False
        if self.prerelease is PrereleaseMode.EXPLICIT:
            return canonicalize_name(name) in self.explicit_prereleases
        return True
