"""depsolve: PubGrub conflict-driven dependency resolution for Python packages."""

from __future__ import annotations

__version__ = "0.1.0"

from depsolve.config import PrereleaseMode, ResolutionStrategy, ResolverOptions
from depsolve.exceptions import DepsolveError, NoSolutionError
from depsolve.index import InMemoryIndex, Resolution, Resolver, load_registry

__all__ = [
    "DepsolveError",
    "InMemoryIndex",
    "NoSolutionError",
    "PrereleaseMode",
    "Resolution",
    "ResolutionStrategy",
    "Resolver",
    "ResolverOptions",
    "__version__",
    "load_registry",
]
