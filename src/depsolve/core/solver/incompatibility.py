"""Incompatibilities: sets of terms that must never all hold together.

If ``foo 1`` depends on ``bar >=2``, then selecting ``foo 1`` while not
selecting ``bar >=2`` is impossible, so ``{foo: ==1, bar: not >=2}`` is an
incompatibility. Incompatibilities come either from outside the solver
(external causes, see ``depsolve.core.report.tree``) or are derived during
conflict resolution from two earlier ones, which are then referenced by id.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Tuple, Union

from depsolve.core.ranges import Range
from depsolve.core.report.reporter import ReportFormatter
from depsolve.core.report.tree import (
    DerivationTree,
    Derived,
    FromDependencyOf,
    NoVersions,
    NotRoot,
    UnavailableDependencies,
)
from depsolve.core.solver.arena import Arena, IncompatId
from depsolve.core.term import Relation, Term
from depsolve.exceptions import SolverInvariantError


class Kind(Enum):
    """Where an incompatibility comes from."""

    NOT_ROOT = "not_root"
    NO_VERSIONS = "no_versions"
    UNAVAILABLE_DEPENDENCIES = "unavailable_dependencies"
    FROM_DEPENDENCY_OF = "from_dependency_of"
    DERIVED = "derived"


@dataclass(frozen=True)
class DerivedFrom:
    """Cause of a learned incompatibility: the ids of its two parents."""

    cause1: IncompatId
    cause2: IncompatId


Cause = Union[NotRoot, NoVersions, UnavailableDependencies, FromDependencyOf, DerivedFrom]

_KINDS = {
    NotRoot: Kind.NOT_ROOT,
    NoVersions: Kind.NO_VERSIONS,
    UnavailableDependencies: Kind.UNAVAILABLE_DEPENDENCIES,
    FromDependencyOf: Kind.FROM_DEPENDENCY_OF,
    DerivedFrom: Kind.DERIVED,
}


class Incompatibility:
    """A clause ``not (t1 and t2 and ...)`` over package terms.

    Never holds a term equal to ``Term.any()``: such a term is always
    satisfied and would make the clause meaningless.

    Attributes:
        package_terms: ``package -> Term`` in insertion order.
        cause: External cause or ``DerivedFrom`` parent ids.
    """

    __slots__ = ("package_terms", "cause")

    def __init__(self, package_terms: Dict[Any, Term[Any]], cause: Cause) -> None:
        self.package_terms = package_terms
        self.cause = cause

    # -- Constructors -------------------------------------------------------

    @classmethod
    def not_root(cls, package: Any, version: Any) -> Incompatibility:
        """The seed clause: the root package must be selected at ``version``."""
        return cls(
            {package: Term(False, Range.singleton(version))},
            NotRoot(package, version),
        )

    @classmethod
    def no_versions(cls, package: Any, term: Term[Any]) -> Incompatibility:
        """Remember that no version of ``package`` satisfies ``term``."""
        if not term.positive:
            raise SolverInvariantError(
                f"NoVersions requires a positive term, got {term!r} for {package}"
            )
        return cls({package: term}, NoVersions(package, term.range))

    @classmethod
    def unavailable_dependencies(
        cls, package: Any, version: Any, reason: str | None = None
    ) -> Incompatibility:
        """``package`` at ``version`` cannot be selected: its dependencies are unknown."""
        range_ = Range.singleton(version)
        return cls(
            {package: Term(True, range_)},
            UnavailableDependencies(package, range_, reason),
        )

    @classmethod
    def from_dependency(
        cls, package: Any, version: Any, dependency: Any, dependency_range: Range[Any]
    ) -> Incompatibility:
        """``{package: ==version, dependency: not dependency_range}``."""
        range_ = Range.singleton(version)
        return cls(
            {
                package: Term(True, range_),
                dependency: Term(False, dependency_range),
            },
            FromDependencyOf(package, range_, dependency, dependency_range),
        )

    @classmethod
    def prior_cause(
        cls,
        incompat: IncompatId,
        satisfier_cause: IncompatId,
        package: Any,
        store: Arena[Incompatibility],
    ) -> Incompatibility:
        """Apply the resolution rule to two incompatibilities sharing ``package``.

        Terms of ``package`` are unioned; terms of every other package
        present in both clauses are intersected. A resulting ``package`` term
        equal to ``Term.any()`` is dropped.
        """
        first = store[incompat].package_terms
        second = store[satisfier_cause].package_terms
        package_terms: Dict[Any, Term[Any]] = {
            p: term for p, term in first.items() if p != package
        }
        for p, term in second.items():
            if p == package:
                continue
            if p in package_terms:
                package_terms[p] = package_terms[p].intersection(term)
            else:
                package_terms[p] = term
        pivot = first[package].union(second[package])
        if pivot != Term.any():
            package_terms[package] = pivot
        return cls(package_terms, DerivedFrom(incompat, satisfier_cause))

    # -- Queries ------------------------------------------------------------

    @property
    def kind(self) -> Kind:
        return _KINDS[type(self.cause)]

    def causes(self) -> Tuple[IncompatId, IncompatId] | None:
        """Parent ids of a derived incompatibility, else ``None``."""
        if isinstance(self.cause, DerivedFrom):
            return self.cause.cause1, self.cause.cause2
        return None

    def is_terminal(self, root_package: Any, root_version: Any) -> bool:
        """True when this clause ends the solve: it rules out the root itself."""
        if not self.package_terms:
            return True
        if len(self.package_terms) > 1:
            return False
        ((package, term),) = self.package_terms.items()
        return package == root_package and term.contains(root_version)

    def get(self, package: Any) -> Term[Any] | None:
        return self.package_terms.get(package)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.package_terms)

    def __len__(self) -> int:
        return len(self.package_terms)

    def items(self):
        return self.package_terms.items()

    def relation(
        self, lookup: Callable[[Any], Term[Any] | None]
    ) -> Tuple[Relation, Any]:
        """Relate this clause to a set of assignments.

        Args:
            lookup: Returns the intersection of assigned terms for a package,
                or ``None`` when the package has no assignment.

        Returns:
            ``(relation, package)``. ``package`` is the contradicted term's
            package for ``CONTRADICTED``, the single undetermined package for
            ``ALMOST_SATISFIED`` and ``None`` otherwise.
        """
        relation = Relation.SATISFIED
        undetermined = None
        for package, incompat_term in self.package_terms.items():
            assigned = lookup(package)
            term_relation = (
                Relation.INCONCLUSIVE
                if assigned is None
                else incompat_term.relation_with(assigned)
            )
            if term_relation is Relation.SATISFIED:
                continue
            if term_relation is Relation.CONTRADICTED:
                return Relation.CONTRADICTED, package
            # An unassigned package behaves like Term.any(), which never
            # satisfies a stored term since those are dropped on creation.
            if relation is Relation.SATISFIED:
                relation = Relation.ALMOST_SATISFIED
                undetermined = package
            else:
                relation = Relation.INCONCLUSIVE
                undetermined = None
        return relation, undetermined

    # -- Reporting ----------------------------------------------------------

    @staticmethod
    def build_derivation_tree(
        incompat_id: IncompatId,
        shared_ids: set[IncompatId],
        store: Arena[Incompatibility],
    ) -> DerivationTree:
        """Materialize the causal graph below ``incompat_id`` as a tree.

        Iterative post-order walk; nodes reachable along several paths are
        built once and reused.
        """
        built: dict[IncompatId, DerivationTree] = {}
        stack = [incompat_id]
        while stack:
            current = stack[-1]
            if current in built:
                stack.pop()
                continue
            incompat = store[current]
            parents = incompat.causes()
            if parents is None:
                built[current] = incompat.cause  # type: ignore[assignment]
                stack.pop()
                continue
            pending = [p for p in parents if p not in built]
            if pending:
                stack.extend(pending)
                continue
            built[current] = Derived(
                terms=dict(incompat.package_terms),
                shared_id=current if current in shared_ids else None,
                cause1=built[parents[0]],
                cause2=built[parents[1]],
            )
            stack.pop()
        return built[incompat_id]

    def __str__(self) -> str:
        return ReportFormatter().format_terms(self.package_terms)

    def __repr__(self) -> str:
        return f"Incompatibility({self.package_terms!r}, kind={self.kind.value})"

