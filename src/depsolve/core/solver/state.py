"""Solver state: unit propagation and conflict resolution.

``State`` owns everything one solve mutates: the incompatibility arena, the
``package -> [incompatibility ids]`` index used by propagation and the
partial solution. It is created per solve and never shared.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Set, Tuple

from depsolve.core.ranges import Range
from depsolve.core.report.tree import DerivationTree
from depsolve.core.solver.arena import Arena, IncompatId
from depsolve.core.solver.incompatibility import Incompatibility
from depsolve.core.solver.partial_solution import (
    DifferentDecisionLevels,
    PartialSolution,
)
from depsolve.core.term import Relation
from depsolve.exceptions import NoSolutionError

logger = logging.getLogger(__name__)


class State:
    """Mutable state of a single PubGrub solve.

    Args:
        root_package: The synthetic root the solve starts from.
        root_version: Version the root is selected at.
    """

    def __init__(self, root_package: Any, root_version: Any) -> None:
        self.root_package = root_package
        self.root_version = root_version
        self.store: Arena[Incompatibility] = Arena()
        self.incompatibilities: Dict[Any, List[IncompatId]] = defaultdict(list)
        # Contradicted incompatibilities stay contradicted until the next backtrack.
        self.contradicted: Set[IncompatId] = set()
        self.partial_solution = PartialSolution()
        self.add_incompatibility(Incompatibility.not_root(root_package, root_version))

    # -- Incompatibility registration ---------------------------------------

    def add_incompatibility(self, incompat: Incompatibility) -> IncompatId:
        incompat_id = self.store.alloc(incompat)
        self._merge_incompatibility(incompat_id)
        return incompat_id

    def add_incompatibility_from_dependencies(
        self,
        package: Any,
        version: Any,
        dependencies: Iterable[Tuple[Any, Range[Any]]],
    ) -> range:
        """Register one ``from_dependency`` clause per dependency pair.

        Returns:
            The contiguous range of ids allocated for the new clauses.
        """
        ids = self.store.alloc_iter(
            Incompatibility.from_dependency(package, version, dependency, dependency_range)
            for dependency, dependency_range in dependencies
        )
        for incompat_id in ids:
            self._merge_incompatibility(IncompatId(incompat_id))
        return ids

    def _merge_incompatibility(self, incompat_id: IncompatId) -> None:
        for package in self.store[incompat_id]:
            self.incompatibilities[package].append(incompat_id)

    def is_terminal(self, incompat_id: IncompatId) -> bool:
        return self.store[incompat_id].is_terminal(self.root_package, self.root_version)

    # -- Propagation --------------------------------------------------------

    def unit_propagation(self, package: Any) -> None:
        """Derive every term forced by the incompatibilities, starting at ``package``.

        Raises:
            NoSolutionError: If a conflict cannot be resolved.
        """
        pending = [package]
        while pending:
            current = pending.pop()
            conflict_id: IncompatId | None = None
            # Newest incompatibilities first: learned clauses fire sooner.
            for incompat_id in reversed(self.incompatibilities[current]):
                if incompat_id in self.contradicted:
                    continue
                incompat = self.store[incompat_id]
                relation, almost = self.partial_solution.relation(incompat)
                if relation is Relation.SATISFIED:
                    logger.debug("Conflict: %s is satisfied", incompat)
                    conflict_id = incompat_id
                    break
                if relation is Relation.ALMOST_SATISFIED:
                    pending.append(almost)
                    self.partial_solution.add_derivation(almost, incompat_id, self.store)
                    self.contradicted.add(incompat_id)
                elif relation is Relation.CONTRADICTED:
                    self.contradicted.add(incompat_id)
            if conflict_id is not None:
                almost, root_cause = self.conflict_resolution(conflict_id)
                pending = [almost]
                self.partial_solution.add_derivation(almost, root_cause, self.store)
                self.contradicted.add(root_cause)

    # -- Conflict resolution ------------------------------------------------

    def conflict_resolution(self, incompat_id: IncompatId) -> Tuple[Any, IncompatId]:
        """Learn a clause from a satisfied incompatibility and backtrack.

        Returns:
            The package whose term the learned clause now derives, and the
            id of the learned clause.

        Raises:
            NoSolutionError: If the learned clause rules out the root.
        """
        current_id = incompat_id
        changed = False
        while True:
            if self.is_terminal(current_id):
                logger.debug("Terminal incompatibility: %s", self.store[current_id])
                raise NoSolutionError(self.build_derivation_tree(current_id))
            package, search = self.partial_solution.satisfier_search(
                self.store[current_id], self.store
            )
            if isinstance(search, DifferentDecisionLevels):
                self._backtrack(current_id, changed, search.previous_satisfier_level)
                logger.debug(
                    "Backtracked to level %d, learned: %s",
                    search.previous_satisfier_level,
                    self.store[current_id],
                )
                return package, current_id
            prior_cause = Incompatibility.prior_cause(
                current_id, search.satisfier_cause, package, self.store
            )
            logger.debug("Prior cause: %s", prior_cause)
            current_id = self.store.alloc(prior_cause)
            changed = True

    def _backtrack(self, incompat_id: IncompatId, changed: bool, decision_level: int) -> None:
        self.partial_solution.backtrack(decision_level)
        self.contradicted.clear()
        if changed:
            self._merge_incompatibility(incompat_id)

    # -- Reporting ----------------------------------------------------------

    def build_derivation_tree(self, incompat_id: IncompatId) -> DerivationTree:
        shared_ids = self.find_shared_ids(incompat_id)
        return Incompatibility.build_derivation_tree(incompat_id, shared_ids, self.store)

    def find_shared_ids(self, incompat_id: IncompatId) -> Set[IncompatId]:
        """Derived incompatibilities reachable along more than one path."""
        seen: Set[IncompatId] = set()
        shared: Set[IncompatId] = set()
        stack = [incompat_id]
        while stack:
            current = stack.pop()
            causes = self.store[current].causes()
            if causes is None:
                continue
            if current in seen:
                shared.add(current)
                continue
            seen.add(current)
            stack.extend(causes)
        return shared
