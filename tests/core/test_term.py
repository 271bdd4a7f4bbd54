"""Tests for ``depsolve.core.term``: signed ranges and their relations."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from depsolve.core.ranges import Range
from depsolve.core.term import Relation, Term

small_ranges = st.builds(
    lambda lo, hi: Range.between(lo, hi), st.integers(0, 6), st.integers(0, 6)
)
terms = st.builds(Term, st.booleans(), small_ranges)


class TestTermBasics:
    """Construction, negation and membership."""

    def test_any_contains_everything(self) -> None:
        assert all(Term.any().contains(v) for v in range(10))

    def test_empty_contains_nothing(self) -> None:
        assert not any(Term.empty().contains(v) for v in range(10))

    def test_exact(self) -> None:
        term = Term.exact(3)
        assert term.positive
        assert term.contains(3) and not term.contains(4)

    def test_negate_flips_membership(self) -> None:
        term = Term(True, Range.between(1, 3))
        assert term.negate().contains(5)
        assert not term.negate().contains(2)

    def test_str(self) -> None:
        assert str(Term(True, Range.between(1, 3))) == ">=1, <3"
        assert str(Term(False, Range.between(1, 3))) == "Not ( >=1, <3 )"


class TestTermAlgebra:
    """Intersection and union agree with membership."""

    @given(a=terms, b=terms)
    @settings(max_examples=50)
    def test_intersection_pointwise(self, a: Term, b: Term) -> None:
        both = a.intersection(b)
        for v in range(-1, 8):
            assert both.contains(v) == (a.contains(v) and b.contains(v))

    @given(a=terms, b=terms)
    @settings(max_examples=50)
    def test_union_pointwise(self, a: Term, b: Term) -> None:
        either = a.union(b)
        for v in range(-1, 8):
            assert either.contains(v) == (a.contains(v) or b.contains(v))

    def test_positive_and_negative_intersection_is_positive(self) -> None:
        result = Term(True, Range.between(1, 5)).intersection(Term(False, Range.between(2, 3)))
        assert result.positive
        assert result.range == Range.between(1, 2).union(Range.between(3, 5))

    def test_two_negatives_stay_negative(self) -> None:
        result = Term(False, Range.singleton(1)).intersection(Term(False, Range.singleton(2)))
        assert not result.positive


class TestRelations:
    """Satisfied / contradicted / inconclusive."""

    def test_satisfied(self) -> None:
        term = Term(True, Range.between(1, 5))
        assert term.relation_with(Term(True, Range.between(2, 3))) is Relation.SATISFIED
        assert term.satisfied_by(Term(True, Range.between(2, 3)))

    def test_contradicted(self) -> None:
        term = Term(True, Range.between(1, 2))
        assert term.relation_with(Term(True, Range.between(3, 4))) is Relation.CONTRADICTED
        assert term.contradicted_by(Term(True, Range.between(3, 4)))

    def test_inconclusive(self) -> None:
        term = Term(True, Range.between(1, 3))
        assert term.relation_with(Term(True, Range.between(2, 5))) is Relation.INCONCLUSIVE

    def test_negative_term_against_absent_package(self) -> None:
        # A negative assignment allows "not selected", which never satisfies a positive term.
        term = Term(True, Range.full())
        assert term.relation_with(Term(False, Range.singleton(1))) is Relation.INCONCLUSIVE
