"""Translate PEP 440 specifiers into version ranges.

A ``packaging`` specifier is a predicate; the solver needs sets it can
intersect and complement. Most operators map directly onto a range bound.
The ones that implicitly admit or exclude a whole *family* of versions
(``==1.0`` admits ``1.0+local``, ``>1.0`` excludes ``1.0.post1``) use a
``_Sup`` bound: a point that sorts just above every member of the family.

==============  ==================================================
Specifier       Range
==============  ==================================================
``==V``         ``[V, V+<locals>]`` (``{V}`` if V has a local part)
``===V``        ``{V}``
``!=V``         complement of ``==V``
``~=V``         ``[V, prefix(V)+1 .dev0)``
``<V``          ``< V.dev0`` unless V is a pre/dev release
``<=V``         ``<= V+<locals>``
``>V``          ``>= V.dev(n+1)`` / ``>= V.post(n+1)`` / ``> V+<posts>``
``>=V``         ``>= V``
``==V.*``       ``[V.dev0, next(V).dev0)``
``!=V.*``       complement of ``==V.*``
==============  ==================================================
"""

from __future__ import annotations

from typing import Tuple

from packaging.requirements import InvalidRequirement, Requirement
from packaging.specifiers import InvalidSpecifier, Specifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from depsolve.core.ranges import Bound, Range
from depsolve.exceptions import SpecifierError


# ---------------------------------------------------------------------------
# Version helpers
# ---------------------------------------------------------------------------


def _trimmed_release(version: Version) -> Tuple[int, ...]:
    release = list(version.release)
    while len(release) > 1 and release[-1] == 0:
        release.pop()
    return tuple(release)


def _build(
    epoch: int,
    release: Tuple[int, ...],
    pre: Tuple[str, int] | None = None,
    post: int | None = None,
    dev: int | None = None,
) -> Version:
    text = f"{epoch}!" if epoch else ""
    text += ".".join(str(part) for part in release)
    if pre is not None:
        text += f"{pre[0]}{pre[1]}"
    if post is not None:
        text += f".post{post}"
    if dev is not None:
        text += f".dev{dev}"
    return Version(text)


def _dev0(version: Version) -> Version:
    """The smallest version of ``version``'s release that is still a dev release of it."""
    return _build(version.epoch, version.release, version.pre, version.post, 0)


def is_prerelease(version: object) -> bool:
    """True for pre and dev releases; ``_Sup`` bounds look at their version."""
    if isinstance(version, _Sup):
        version = version.version
    return isinstance(version, Version) and version.is_prerelease


class _Sup:
    """Upper boundary of a family of versions sharing a base version.

    With ``posts=False`` the family is ``version`` and all its local
    variants. With ``posts=True`` it additionally holds every post release
    (and their dev releases and local variants) of ``version``. ``_Sup`` is
    never equal to a ``Version``: it sorts strictly after every member of
    its family and strictly before every other greater version.
    """

    __slots__ = ("version", "posts")

    def __init__(self, version: Version, posts: bool = False) -> None:
        self.version = version
        self.posts = posts

    def covers(self, other: Version) -> bool:
        """Whether ``other`` is a member of this family."""
        if other < self.version:
            return False
        if self.posts:
            return (
                other.epoch == self.version.epoch
                and _trimmed_release(other) == _trimmed_release(self.version)
                and other.pre == self.version.pre
            )
        return Version(other.public) == Version(self.version.public)

    def _below(self, other: Version) -> bool:
        return other <= self.version or self.covers(other)

    def __lt__(self, other: object) -> bool:
        if isinstance(other, Version):
            return not self._below(other)
        if isinstance(other, _Sup):
            if self == other:
                return False
            if self.version == other.version:
                return not self.posts and other.posts
            if other.covers(self.version):
                return True
            if self.covers(other.version):
                return False
            return self.version < other.version
        return NotImplemented

    def __gt__(self, other: object) -> bool:
        if isinstance(other, Version):
            return self._below(other)
        if isinstance(other, _Sup):
            return other < self
        return NotImplemented

    def __le__(self, other: object) -> bool:
        if isinstance(other, (Version, _Sup)):
            return self == other or self < other
        return NotImplemented

    def __ge__(self, other: object) -> bool:
        if isinstance(other, (Version, _Sup)):
            return self == other or self > other
        return NotImplemented

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _Sup):
            return self.version == other.version and self.posts == other.posts
        return False

    def __hash__(self) -> int:
        return hash((self.version, self.posts))

    def __str__(self) -> str:
        return str(self.version)

    def __repr__(self) -> str:
        family = "posts" if self.posts else "locals"
        return f"_Sup({str(self.version)!r}, {family})"


# ---------------------------------------------------------------------------
# Specifier conversion
# ---------------------------------------------------------------------------


def _wildcard_range(prefix: str) -> Range:
    try:
        version = Version(prefix)
    except InvalidVersion as exc:
        raise SpecifierError(f"Invalid wildcard prefix: {prefix!r}") from exc
    release = version.release
    upper = release[:-1] + (release[-1] + 1,)
    return Range.between(
        _build(version.epoch, release, dev=0),
        _build(version.epoch, upper, dev=0),
    )


def _equal_range(version: Version) -> Range:
    if version.local is not None:
        return Range.singleton(version)
    return Range.from_bounds(Bound(version, True), Bound(_Sup(version), True))


def specifier_to_range(specifier: Specifier | str) -> Range:
    """Convert one PEP 440 specifier clause into a ``Range``.

    Raises:
        SpecifierError: If the specifier cannot be parsed, or uses ``~=``
            with a single release segment.
    """
    if isinstance(specifier, str):
        try:
            specifier = Specifier(specifier)
        except InvalidSpecifier as exc:
            raise SpecifierError(f"Invalid specifier: {specifier!r}") from exc
    operator, text = specifier.operator, specifier.version

    if operator in ("==", "!=") and text.endswith(".*"):
        range_ = _wildcard_range(text[:-2])
        return range_ if operator == "==" else range_.complement()

    if operator == "===":
        try:
            return Range.singleton(Version(text))
        except InvalidVersion as exc:
            raise SpecifierError(
                f"Arbitrary equality is only supported for PEP 440 versions: {text!r}"
            ) from exc

    version = Version(text)
    if operator == "==":
        return _equal_range(version)
    if operator == "!=":
        return _equal_range(version).complement()
    if operator == "~=":
        if len(version.release) < 2:
            raise SpecifierError(
                f"~= requires at least two release segments: {specifier}"
            )
        prefix = version.release[:-1]
        upper = _build(version.epoch, prefix[:-1] + (prefix[-1] + 1,), dev=0)
        return Range.between(version, upper)
    if operator == "<":
        if version.is_prerelease:
            return Range.strictly_lower_than(version)
        return Range.strictly_lower_than(_dev0(version))
    if operator == "<=":
        return Range.lower_than(_Sup(version))
    if operator == ">":
        if version.dev is not None:
            return Range.higher_than(
                _build(version.epoch, version.release, version.pre, version.post, version.dev + 1)
            )
        if version.post is not None:
            return Range.higher_than(
                _build(version.epoch, version.release, version.pre, version.post + 1)
            )
        return Range.strictly_higher_than(_Sup(version, posts=True))
    if operator == ">=":
        return Range.higher_than(version)
    raise SpecifierError(f"Unsupported specifier operator: {operator!r}")


def specifier_set_to_range(specifiers: SpecifierSet | str) -> Range:
    """Intersection of every clause; an empty set allows every version."""
    if isinstance(specifiers, str):
        try:
            specifiers = SpecifierSet(specifiers)
        except InvalidSpecifier as exc:
            raise SpecifierError(f"Invalid specifier set: {specifiers!r}") from exc
    range_ = Range.full()
    for specifier in specifiers:
        range_ = range_.intersection(specifier_to_range(specifier))
    return range_


# ---------------------------------------------------------------------------
# Requirements
# ---------------------------------------------------------------------------


def parse_requirement(text: str) -> Requirement:
    """Parse a PEP 508 requirement string.

    Raises:
        SpecifierError: For unparsable strings and direct URL requirements,
            which cannot be resolved against an index.
    """
    try:
        requirement = Requirement(text)
    except InvalidRequirement as exc:
        raise SpecifierError(f"Invalid requirement {text!r}: {exc}") from exc
    if requirement.url:
        raise SpecifierError(f"Direct URL requirements are not supported: {text!r}")
    return requirement
