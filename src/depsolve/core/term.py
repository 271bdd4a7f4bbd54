"""Terms: positive or negative version constraints on a single package.

A positive term ``Positive(r)`` states "the package is selected at a version
in ``r``". A negative term ``Negative(r)`` states "the package is not
selected at a version in ``r``", which also holds when the package is not
selected at all. Terms are the literals of incompatibility clauses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from depsolve.core.ranges import Range

V = TypeVar("V")


class Relation(Enum):
    """How a set of assignments relates to a term or to an incompatibility.

    Term relations are only ever ``SATISFIED``, ``CONTRADICTED`` or
    ``INCONCLUSIVE``. ``ALMOST_SATISFIED`` is reported for incompatibilities
    whose terms all hold but one, which is then still undetermined.
    """

    SATISFIED = "satisfied"
    CONTRADICTED = "contradicted"
    ALMOST_SATISFIED = "almost_satisfied"
    INCONCLUSIVE = "inconclusive"


@dataclass(frozen=True, repr=False)
class Term(Generic[V]):
    """A signed version range. Immutable."""

    positive: bool
    range: Range[V]

    # -- Constructors -------------------------------------------------------

    @classmethod
    def any(cls) -> Term[V]:
        """The term every assignment satisfies."""
        return cls(False, Range.empty())

    @classmethod
    def empty(cls) -> Term[V]:
        """The term no assignment satisfies."""
        return cls(True, Range.empty())

    @classmethod
    def exact(cls, version: V) -> Term[V]:
        return cls(True, Range.singleton(version))

    # -- Basics -------------------------------------------------------------

    def negate(self) -> Term[V]:
        return Term(not self.positive, self.range)

    def contains(self, version: V) -> bool:
        """Whether selecting ``version`` is compatible with this term."""
        return self.range.contains(version) == self.positive

    def unwrap_positive(self) -> Range[V]:
        if not self.positive:
            raise ValueError(f"Negative term has no positive range: {self}")
        return self.range

    # -- Set operations -----------------------------------------------------

    def intersection(self, other: Term[V]) -> Term[V]:
        if self.positive and other.positive:
            return Term(True, self.range.intersection(other.range))
        if self.positive:
            return Term(True, self.range.intersection(other.range.complement()))
        if other.positive:
            return Term(True, self.range.complement().intersection(other.range))
        return Term(False, self.range.union(other.range))

    def union(self, other: Term[V]) -> Term[V]:
        return self.negate().intersection(other.negate()).negate()

    def subset_of(self, other: Term[V]) -> bool:
        return self.intersection(other) == self

    def is_disjoint(self, other: Term[V]) -> bool:
        return self.intersection(other) == Term.empty()

    # -- Relations ----------------------------------------------------------

    def satisfied_by(self, terms_intersection: Term[V]) -> bool:
        return terms_intersection.subset_of(self)

    def contradicted_by(self, terms_intersection: Term[V]) -> bool:
        return terms_intersection.intersection(self) == Term.empty()

    def relation_with(self, other_terms_intersection: Term[V]) -> Relation:
        """Relate this term to the intersection of a package's assignments."""
        full_intersection = self.intersection(other_terms_intersection)
        if full_intersection == other_terms_intersection:
            return Relation.SATISFIED
        if full_intersection == Term.empty():
            return Relation.CONTRADICTED
        return Relation.INCONCLUSIVE

    def __str__(self) -> str:
        if self.positive:
            return str(self.range)
        return f"Not ( {self.range} )"

    def __repr__(self) -> str:
        kind = "Positive" if self.positive else "Negative"
        return f"{kind}({self.range})"
