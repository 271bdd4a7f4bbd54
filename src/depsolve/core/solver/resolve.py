"""The solve loop.

Alternates unit propagation and decision making until every package that
the root transitively needs is decided, or until conflict resolution proves
that the root itself cannot be selected.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Set

from depsolve.core.solver.incompatibility import Incompatibility
from depsolve.core.solver.provider import DependencyProvider
from depsolve.core.solver.state import State
from depsolve.exceptions import (
    DependencyOnTheEmptySetError,
    ErrorChoosingPackageVersion,
    ErrorInShouldCancel,
    ErrorRetrievingDependencies,
    IncompatibleVersionError,
    ProviderError,
    SelfDependencyError,
    SolveCancelled,
    SolverInvariantError,
)

logger = logging.getLogger(__name__)


def resolve(provider: DependencyProvider, package: Any, version: Any) -> Dict[Any, Any]:
    """Find a version for every package that ``package`` at ``version`` needs.

    Args:
        provider: Source of versions and dependencies.
        package: The root package.
        version: Version of the root package.

    Returns:
        ``package -> version`` for every selected package except the root.

    Raises:
        NoSolutionError: The requirements are unsatisfiable; the exception
            carries the derivation tree explaining why.
        ProviderError: A provider method raised.
        SelfDependencyError: A package version depends on itself.
        DependencyOnTheEmptySetError: A package version depends on an empty range.
        IncompatibleVersionError: The provider chose a version outside the
            allowed range.
        SolveCancelled: ``provider.should_cancel()`` returned True.
    """
    state = State(package, version)
    added_dependencies: Dict[Any, Set[Any]] = {}
    next_package = package
    while True:
        _check_cancelled(provider)

        logger.debug("Unit propagation: %s", next_package)
        state.unit_propagation(next_package)

        candidates = state.partial_solution.potential_packages()
        if not candidates:
            solution = state.partial_solution.extract_solution()
            solution.pop(package, None)
            logger.debug("Solved %d package(s)", len(solution))
            return solution

        try:
            next_package, chosen = provider.choose_package_version(candidates)
        except (ProviderError, SolveCancelled):
            raise
        except Exception as exc:
            raise ErrorChoosingPackageVersion(exc) from exc
        logger.debug("Provider chose %s %s", next_package, chosen)

        term = state.partial_solution.term_intersection_for_package(next_package)
        if term is None:
            raise SolverInvariantError(
                f"Provider chose {next_package}, which has no assignment"
            )

        if chosen is None:
            state.add_incompatibility(Incompatibility.no_versions(next_package, term))
            continue

        if not term.contains(chosen):
            raise IncompatibleVersionError(next_package, chosen)

        seen_versions = added_dependencies.setdefault(next_package, set())
        if chosen in seen_versions:
            logger.debug("Decision (dependencies already added): %s %s", next_package, chosen)
            state.partial_solution.add_decision(next_package, chosen)
            continue
        seen_versions.add(chosen)

        try:
            dependencies = provider.get_dependencies(next_package, chosen)
        except Exception as exc:
            raise ErrorRetrievingDependencies(next_package, chosen, exc) from exc

        if dependencies.is_unavailable:
            state.add_incompatibility(
                Incompatibility.unavailable_dependencies(
                    next_package, chosen, dependencies.reason
                )
            )
            continue

        for dependency, dependency_range in dependencies.constraints:
            if dependency == next_package:
                raise SelfDependencyError(next_package, chosen)
            if dependency_range.is_empty():
                raise DependencyOnTheEmptySetError(next_package, chosen, dependency)

        new_ids = state.add_incompatibility_from_dependencies(
            next_package, chosen, dependencies.constraints
        )
        state.partial_solution.add_version(next_package, chosen, new_ids, state.store)


def _check_cancelled(provider: DependencyProvider) -> None:
    try:
        cancelled = provider.should_cancel()
    except Exception as exc:
        raise ErrorInShouldCancel(exc) from exc
    if cancelled:
        raise SolveCancelled()
