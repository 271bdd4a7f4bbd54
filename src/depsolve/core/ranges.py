"""Version ranges: normalized sets of disjoint version intervals.

A ``Range`` is the set of versions satisfying a constraint. It is stored as a
sorted tuple of disjoint, non-adjacent segments, each bounded below and above
by either ``None`` (unbounded) or a ``Bound(value, inclusive)``. Every public
constructor and operation returns a normalized range, so two ranges holding
the same versions always compare (and hash) equal.

Ranges are generic over the version type: any totally ordered value works
(``int`` in tests, ``packaging.version.Version`` in the index adapter).

Complexity: ``intersection`` and ``complement`` are linear in the number of
segments; ``union`` is expressed through them (De Morgan) and is linear too.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterable, Iterator, Optional, Tuple, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class Bound(Generic[V]):
    """One end of a segment: a version and whether it belongs to the segment."""

    value: V
    inclusive: bool

    def flip(self) -> Bound[V]:
        """The same point seen from the other side of a gap."""
        return Bound(self.value, not self.inclusive)


Segment = Tuple[Optional[Bound[Any]], Optional[Bound[Any]]]


# ---------------------------------------------------------------------------
# Bound comparisons
# ---------------------------------------------------------------------------


def _lower_lt(a: Bound | None, b: Bound | None) -> bool:
    """True when lower bound ``a`` starts strictly before lower bound ``b``."""
    if a is None:
        return b is not None
    if b is None:
        return False
    if a.value < b.value:
        return True
    if b.value < a.value:
        return False
    return a.inclusive and not b.inclusive


def _upper_lt(a: Bound | None, b: Bound | None) -> bool:
    """True when upper bound ``a`` ends strictly before upper bound ``b``."""
    if a is None:
        return False
    if b is None:
        return True
    if a.value < b.value:
        return True
    if b.value < a.value:
        return False
    return b.inclusive and not a.inclusive


def _valid_segment(lower: Bound | None, upper: Bound | None) -> bool:
    if lower is None or upper is None:
        return True
    if lower.value < upper.value:
        return True
    if upper.value < lower.value:
        return False
    return lower.inclusive and upper.inclusive


def _segment_str(lower: Bound | None, upper: Bound | None) -> str:
    if lower is None and upper is None:
        return "*"
    if lower is None:
        return f"<={upper.value}" if upper.inclusive else f"<{upper.value}"
    if upper is None:
        return f">={lower.value}" if lower.inclusive else f">{lower.value}"
    if lower.inclusive and upper.inclusive and str(lower.value) == str(upper.value):
        return f"=={lower.value}"
    left = f">={lower.value}" if lower.inclusive else f">{lower.value}"
    right = f"<={upper.value}" if upper.inclusive else f"<{upper.value}"
    return f"{left}, {right}"


# ---------------------------------------------------------------------------
# Range
# ---------------------------------------------------------------------------


@dataclass(frozen=True, repr=False)
class Range(Generic[V]):
    """An immutable, normalized set of version intervals.

    Build ranges with the classmethod constructors rather than by passing
    segments directly; the constructors guarantee normalization.

    Example::

        r = Range.higher_than(1).intersection(Range.strictly_lower_than(3))
        assert r.contains(2) and not r.contains(3)
        assert str(r) == ">=1, <3"
    """

    segments: Tuple[Segment, ...] = ()

    # -- Constructors -------------------------------------------------------

    @classmethod
    def empty(cls) -> Range[V]:
        """The range containing no version."""
        return cls(())

    @classmethod
    def full(cls) -> Range[V]:
        """The range containing every version."""
        return cls(((None, None),))

    @classmethod
    def singleton(cls, version: V) -> Range[V]:
        """Exactly ``version``."""
        return cls(((Bound(version, True), Bound(version, True)),))

    @classmethod
    def higher_than(cls, version: V) -> Range[V]:
        """Versions ``>= version``."""
        return cls(((Bound(version, True), None),))

    @classmethod
    def strictly_higher_than(cls, version: V) -> Range[V]:
        """Versions ``> version``."""
        return cls(((Bound(version, False), None),))

    @classmethod
    def lower_than(cls, version: V) -> Range[V]:
        """Versions ``<= version``."""
        return cls(((None, Bound(version, True)),))

    @classmethod
    def strictly_lower_than(cls, version: V) -> Range[V]:
        """Versions ``< version``."""
        return cls(((None, Bound(version, False)),))

    @classmethod
    def between(cls, low: V, high: V) -> Range[V]:
        """Versions ``>= low`` and ``< high``; empty when ``high <= low``."""
        return cls.from_bounds(Bound(low, True), Bound(high, False))

    @classmethod
    def from_bounds(cls, lower: Bound[V] | None, upper: Bound[V] | None) -> Range[V]:
        """A single-segment range, or the empty range if the bounds cross."""
        if _valid_segment(lower, upper):
            return cls(((lower, upper),))
        return cls.empty()

    # -- Queries ------------------------------------------------------------

    def is_empty(self) -> bool:
        return not self.segments

    def is_full(self) -> bool:
        return self.segments == ((None, None),)

    def contains(self, version: V) -> bool:
        """Check whether ``version`` lies in one of the segments."""
        for lower, upper in self.segments:
            if lower is not None:
                if version < lower.value:
                    return False
                if not lower.inclusive and version == lower.value:
                    return False
            if upper is None or version < upper.value:
                return True
            if upper.inclusive and version == upper.value:
                return True
        return False

    def __contains__(self, version: object) -> bool:
        return self.contains(version)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def subset_of(self, other: Range[V]) -> bool:
        return self.intersection(other) == self

    def is_disjoint(self, other: Range[V]) -> bool:
        return self.intersection(other).is_empty()

    # -- Set algebra --------------------------------------------------------

    def complement(self) -> Range[V]:
        """Every version not in this range."""
        if not self.segments:
            return Range.full()
        segments: list[Segment] = []
        gap_lower: Bound | None = None
        for lower, upper in self.segments:
            if lower is not None:
                gap_upper = lower.flip()
                if _valid_segment(gap_lower, gap_upper):
                    segments.append((gap_lower, gap_upper))
            if upper is None:
                return Range(tuple(segments))
            gap_lower = upper.flip()
        segments.append((gap_lower, None))
        return Range(tuple(segments))

    def intersection(self, other: Range[V]) -> Range[V]:
        """Versions in both ranges."""
        left, right = self.segments, other.segments
        segments: list[Segment] = []
        i = j = 0
        while i < len(left) and j < len(right):
            left_lower, left_upper = left[i]
            right_lower, right_upper = right[j]
            lower = right_lower if _lower_lt(left_lower, right_lower) else left_lower
            upper = left_upper if _upper_lt(left_upper, right_upper) else right_upper
            if _valid_segment(lower, upper):
                segments.append((lower, upper))
            if _upper_lt(left_upper, right_upper):
                i += 1
            else:
                j += 1
        return Range(tuple(segments))

    def union(self, other: Range[V]) -> Range[V]:
        """Versions in either range."""
        return self.complement().intersection(other.complement()).complement()

    # -- Presentation -------------------------------------------------------

    def simplify(self, versions: Iterable[V]) -> Range[V]:
        """Rewrite the bounds against a list of known versions.

        The result contains exactly the same members of ``versions`` as this
        range, with bounds placed on those versions so that it prints
        compactly (``>=1.0, <2.0`` instead of ``>=1.0.dev0, <1.9.5``). A
        range containing none of ``versions`` is returned unchanged.
        """
        known = sorted(set(versions))
        if not known:
            return self
        segments: list[Segment] = []
        run_start: int | None = None
        for index, version in enumerate(known):
            if self.contains(version):
                if run_start is None:
                    run_start = index
            elif run_start is not None:
                segments.append(_run_segment(known, run_start, index))
                run_start = None
        if run_start is not None:
            segments.append(_run_segment(known, run_start, len(known)))
        if not segments:
            return self
        return Range(tuple(segments))

    def __str__(self) -> str:
        if not self.segments:
            return "∅"
        if len(self.segments) == 2:
            (first_lower, first_upper), (second_lower, second_upper) = self.segments
            if (
                first_lower is None
                and second_upper is None
                and not first_upper.inclusive
                and not second_lower.inclusive
                and str(first_upper.value) == str(second_lower.value)
            ):
                return f"!={first_upper.value}"
        return " | ".join(_segment_str(lower, upper) for lower, upper in self.segments)

    def __repr__(self) -> str:
        return f"Range({str(self)!r})"


def _run_segment(known: list[Any], start: int, end: int) -> Segment:
    lower = None if start == 0 else Bound(known[start], True)
    upper = None if end == len(known) else Bound(known[end], False)
    return (lower, upper)
