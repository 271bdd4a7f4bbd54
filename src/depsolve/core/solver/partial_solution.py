"""The partial solution: every assignment made so far, grouped by package.

Assignments are either *decisions* (the solver picked a version) or
*derivations* (unit propagation proved a term must hold). For each package we
keep its derivations in chronological order together with the running
intersection of their terms, so that relating an incompatibility to the
partial solution never rescans history.

Every dated derivation also caches the accumulated intersection of all the
package's derivation terms up to and including itself. The accumulated terms
only ever shrink, which turns the satisfier search of conflict resolution
into a binary search.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple, Union

from depsolve.core.ranges import Range
from depsolve.core.solver.arena import Arena, IncompatId
from depsolve.core.solver.incompatibility import Incompatibility
from depsolve.core.term import Relation, Term
from depsolve.exceptions import SolverInvariantError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Assignment records
# ---------------------------------------------------------------------------


@dataclass
class DatedDerivation:
    """A derivation with its position in history.

    Attributes:
        global_index: Position among all assignments of the solve.
        decision_level: Decision level at the time of derivation.
        cause: Incompatibility the term was derived from.
        accumulated_intersection: Intersection of this derivation's term with
            every earlier derivation term of the same package.
    """

    global_index: int
    decision_level: int
    cause: IncompatId
    accumulated_intersection: Term[Any]


@dataclass
class Decision:
    global_index: int
    version: Any
    term: Term[Any]


@dataclass
class PackageAssignments:
    """All assignments of one package."""

    smallest_decision_level: int
    highest_decision_level: int
    dated_derivations: List[DatedDerivation] = field(default_factory=list)
    intersection: Term[Any] = field(default_factory=Term.any)
    decision: Decision | None = None

    def term(self) -> Term[Any]:
        """Intersection of every assignment, the decision included."""
        if self.decision is not None:
            return self.decision.term
        return self.intersection

    def satisfier(
        self,
        package: Any,
        incompat_term: Term[Any],
        start_term: Term[Any],
    ) -> Tuple[int, int, int]:
        """Earliest assignment at which ``start_term`` plus history satisfies ``incompat_term``.

        Returns:
            ``(index, global_index, decision_level)``. ``index`` equals the
            number of derivations when the satisfier is the decision.
        """
        derivations = self.dated_derivations
        low, high = 0, len(derivations)
        while low < high:
            middle = (low + high) // 2
            accumulated = start_term.intersection(derivations[middle].accumulated_intersection)
            if accumulated.subset_of(incompat_term):
                high = middle
            else:
                low = middle + 1
        if low < len(derivations):
            found = derivations[low]
            return low, found.global_index, found.decision_level
        if self.decision is None:
            raise SolverInvariantError(
                f"While processing {package}: the accumulated derivations never "
                f"satisfy {incompat_term}, so the last assignment should have been "
                "a decision. Is the version ordering consistent?"
            )
        return len(derivations), self.decision.global_index, self.highest_decision_level


# ---------------------------------------------------------------------------
# Satisfier search results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DifferentDecisionLevels:
    """The conflict can be learned: backtrack to ``previous_satisfier_level``."""

    previous_satisfier_level: int


@dataclass(frozen=True)
class SameDecisionLevels:
    """Keep resolving with the satisfier's cause."""

    satisfier_cause: IncompatId


SatisfierSearch = Union[DifferentDecisionLevels, SameDecisionLevels]


# ---------------------------------------------------------------------------
# PartialSolution
# ---------------------------------------------------------------------------


class PartialSolution:
    """Assignments of the current solve, organized by package."""

    def __init__(self) -> None:
        self.next_global_index = 0
        self.current_decision_level = 0
        self._assignments: Dict[Any, PackageAssignments] = {}

    # -- Mutation -----------------------------------------------------------

    def add_decision(self, package: Any, version: Any) -> None:
        """Select ``version`` for ``package``, opening a new decision level.

        Raises:
            SolverInvariantError: If the package has no derivation yet, is
                already decided, or ``version`` lies outside its allowed term.
        """
        assignments = self._assignments.get(package)
        if assignments is None:
            raise SolverInvariantError(f"Decision on {package} without any derivation")
        if assignments.decision is not None:
            raise SolverInvariantError(
                f"{package} is already decided at {assignments.decision.version}"
            )
        if not assignments.intersection.contains(version):
            raise SolverInvariantError(
                f"{package} {version} was expected to be contained in "
                f"{assignments.intersection}"
            )
        self.current_decision_level += 1
        assignments.highest_decision_level = self.current_decision_level
        assignments.decision = Decision(self.next_global_index, version, Term.exact(version))
        self.next_global_index += 1

    def add_derivation(
        self, package: Any, cause: IncompatId, store: Arena[Incompatibility]
    ) -> None:
        """Record the negation of ``package``'s term in ``cause``."""
        term = store[cause].package_terms[package].negate()
        assignments = self._assignments.get(package)
        if assignments is None:
            assignments = PackageAssignments(
                smallest_decision_level=self.current_decision_level,
                highest_decision_level=self.current_decision_level,
            )
            self._assignments[package] = assignments
        elif assignments.decision is not None:
            raise SolverInvariantError(
                f"Derivation on {package} after it was decided at "
                f"{assignments.decision.version}"
            )
        assignments.highest_decision_level = self.current_decision_level
        assignments.intersection = assignments.intersection.intersection(term)
        assignments.dated_derivations.append(
            DatedDerivation(
                global_index=self.next_global_index,
                decision_level=self.current_decision_level,
                cause=cause,
                accumulated_intersection=assignments.intersection,
            )
        )
        self.next_global_index += 1

    def add_version(
        self,
        package: Any,
        version: Any,
        new_incompatibilities: Iterable[IncompatId],
        store: Arena[Incompatibility],
    ) -> None:
        """Decide ``package`` at ``version`` unless one of its new dependency clauses would fire."""
        exact = Term.exact(version)

        def lookup(p: Any) -> Term[Any] | None:
            if p == package:
                return exact
            return self.term_intersection_for_package(p)

        for incompat_id in new_incompatibilities:
            relation, _ = store[incompat_id].relation(lookup)
            if relation is Relation.SATISFIED:
                logger.debug(
                    "Not deciding %s %s because of its dependencies", package, version
                )
                return
        logger.debug("Decision: %s %s", package, version)
        self.add_decision(package, version)

    def backtrack(self, decision_level: int) -> None:
        """Drop every assignment made above ``decision_level``."""
        self.current_decision_level = decision_level
        kept: Dict[Any, PackageAssignments] = {}
        for package, assignments in self._assignments.items():
            if assignments.smallest_decision_level > decision_level:
                continue
            if assignments.highest_decision_level > decision_level:
                # Any decision on this package was its last assignment, at a
                # level above the target, so only derivations survive.
                derivations = assignments.dated_derivations
                while derivations and derivations[-1].decision_level > decision_level:
                    derivations.pop()
                if not derivations:
                    raise SolverInvariantError(
                        f"Backtracking emptied the assignments of {package}"
                    )
                assignments.decision = None
                assignments.highest_decision_level = derivations[-1].decision_level
                assignments.intersection = derivations[-1].accumulated_intersection
            kept[package] = assignments
        self._assignments = kept

    # -- Queries ------------------------------------------------------------

    def term_intersection_for_package(self, package: Any) -> Term[Any] | None:
        assignments = self._assignments.get(package)
        if assignments is None:
            return None
        return assignments.term()

    def relation(self, incompat: Incompatibility) -> Tuple[Relation, Any]:
        return incompat.relation(self.term_intersection_for_package)

    def potential_packages(self) -> List[Tuple[Any, Range[Any]]]:
        """Undecided packages with a positive term, in order of first assignment."""
        return [
            (package, assignments.intersection.range)
            for package, assignments in self._assignments.items()
            if assignments.decision is None and assignments.intersection.positive
        ]

    def extract_solution(self) -> Dict[Any, Any]:
        """``package -> version`` for every decided package."""
        return {
            package: assignments.decision.version
            for package, assignments in self._assignments.items()
            if assignments.decision is not None
        }

    def satisfier_search(
        self, incompat: Incompatibility, store: Arena[Incompatibility]
    ) -> Tuple[Any, SatisfierSearch]:
        """Locate the satisfier of a satisfied incompatibility.

        The satisfier is the earliest assignment at which the partial solution
        satisfies ``incompat``. The previous satisfier is the earliest one at
        which the partial solution *plus* the satisfier already satisfies it.

        Returns:
            The satisfier's package and, when the two satisfiers sit on
            different decision levels, the level to backtrack to; otherwise
            the cause of the satisfier, to be resolved against ``incompat``.
        """
        satisfied = self._find_satisfier(incompat)
        satisfier_package = max(satisfied, key=lambda p: satisfied[p][1])
        satisfier_index, _, satisfier_level = satisfied[satisfier_package]
        previous_level = self._find_previous_satisfier(
            incompat, satisfier_package, satisfied, store
        )
        if previous_level < satisfier_level:
            return satisfier_package, DifferentDecisionLevels(previous_level)
        derivations = self._assignments[satisfier_package].dated_derivations
        if satisfier_index >= len(derivations):
            raise SolverInvariantError(
                f"Satisfier of {incompat} is the decision on {satisfier_package} "
                f"but the previous satisfier is on the same level {satisfier_level}"
            )
        return satisfier_package, SameDecisionLevels(derivations[satisfier_index].cause)

    def _find_satisfier(
        self, incompat: Incompatibility
    ) -> Dict[Any, Tuple[int, int, int]]:
        satisfied: Dict[Any, Tuple[int, int, int]] = {}
        for package, incompat_term in incompat.items():
            assignments = self._assignments.get(package)
            if assignments is None:
                raise SolverInvariantError(
                    f"Satisfied incompatibility mentions unassigned package {package}"
                )
            satisfied[package] = assignments.satisfier(package, incompat_term, Term.any())
        return satisfied

    def _find_previous_satisfier(
        self,
        incompat: Incompatibility,
        satisfier_package: Any,
        satisfied: Dict[Any, Tuple[int, int, int]],
        store: Arena[Incompatibility],
    ) -> int:
        assignments = self._assignments[satisfier_package]
        satisfier_index = satisfied[satisfier_package][0]
        if satisfier_index == len(assignments.dated_derivations):
            start_term = assignments.decision.term
        else:
            cause = assignments.dated_derivations[satisfier_index].cause
            start_term = store[cause].package_terms[satisfier_package].negate()
        previous = dict(satisfied)
        previous[satisfier_package] = assignments.satisfier(
            satisfier_package, incompat.package_terms[satisfier_package], start_term
        )
        _, _, level = max(previous.values(), key=lambda entry: entry[1])
        return max(level, 1)

    def __repr__(self) -> str:
        return (
            f"PartialSolution(level={self.current_decision_level}, "
            f"packages={len(self._assignments)})"
        )
