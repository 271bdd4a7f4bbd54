"""Cross-check the solver against a SAT encoding of the same registry.

Each ``(package, version)`` is a Boolean variable; the root is forced true,
at most one version per package may be true, and a true version implies the
disjunction of the versions each of its dependencies allows. The encoding is
satisfiable iff a solution exists.
"""
from __future__ import annotations

import itertools
from typing import Any, Dict

import pytest
from hypothesis import given, settings

from depsolve.core.solver import resolve
from depsolve.exceptions import NoSolutionError
from tests.helpers import ROOT, ROOT_VERSION, make_provider, registries

pysat_solvers = pytest.importorskip("pysat.solvers")


def sat_solvable(registry: Dict[Any, Dict[Any, list]]) -> bool:
    variables: Dict[tuple, int] = {}
    for package, versions in registry.items():
        for version in versions:
            variables[(package, version)] = len(variables) + 1

    clauses: list[list[int]] = [[variables[(ROOT, ROOT_VERSION)]]]
    for package, versions in registry.items():
        for v1, v2 in itertools.combinations(versions, 2):
            clauses.append([-variables[(package, v1)], -variables[(package, v2)]])
        for version, dependencies in versions.items():
            for dependency, allowed in dependencies:
                options = [
                    variables[(dependency, w)]
                    for w in registry.get(dependency, {})
                    if allowed.contains(w)
                ]
                clauses.append([-variables[(package, version)]] + options)

    solver = pysat_solvers.Solver(name="g3")
    try:
        for clause in clauses:
            solver.add_clause(clause)
        return bool(solver.solve())
    finally:
        solver.delete()


class TestSatOracle:
    """Satisfiability matches a CDCL SAT solver."""

    @given(registry=registries())
    @settings(max_examples=50, deadline=None)
    def test_satisfiability_matches(self, registry: Dict) -> None:
        try:
            resolve(make_provider(registry), ROOT, ROOT_VERSION)
            solved = True
        except NoSolutionError:
            solved = False
        assert solved == sat_solvable(registry)
