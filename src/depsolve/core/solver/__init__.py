"""PubGrub version solving over an abstract dependency provider."""

from depsolve.core.solver.arena import Arena, IncompatId
from depsolve.core.solver.incompatibility import DerivedFrom, Incompatibility, Kind
from depsolve.core.solver.partial_solution import (
    DifferentDecisionLevels,
    PartialSolution,
    SameDecisionLevels,
)
from depsolve.core.solver.provider import (
    Dependencies,
    DependencyProvider,
    OfflineDependencyProvider,
    choose_package_with_fewest_versions,
)
from depsolve.core.solver.resolve import resolve
from depsolve.core.solver.state import State

__all__ = [
    "Arena",
    "Dependencies",
    "DependencyProvider",
    "DerivedFrom",
    "DifferentDecisionLevels",
    "IncompatId",
    "Incompatibility",
    "Kind",
    "OfflineDependencyProvider",
    "PartialSolution",
    "SameDecisionLevels",
    "State",
    "choose_package_with_fewest_versions",
    "resolve",
]
