"""Derivation trees: the causal proof attached to a failed solve.

Leaves are *external* incompatibilities, facts that came from outside the
solver (the root requirement, a dependency declaration, a missing version).
Inner nodes are *derived* incompatibilities, each learned by conflict
resolution from its two causes. A node reachable along several paths carries
a ``shared_id`` so that reports can refer back to it instead of repeating it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Union

from depsolve.core.ranges import Range
from depsolve.core.term import Term
from depsolve.exceptions import SolverInvariantError


# ---------------------------------------------------------------------------
# External incompatibility causes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NotRoot:
    """Initial incompatibility: the root package must be selected."""

    package: Any
    version: Any


@dataclass(frozen=True)
class NoVersions:
    """No version of ``package`` exists in ``range``."""

    package: Any
    range: Range[Any]


@dataclass(frozen=True)
class UnavailableDependencies:
    """Dependencies of ``package`` in ``range`` could not be obtained.

    Attributes:
        reason: Optional explanation supplied by the dependency provider.
    """

    package: Any
    range: Range[Any]
    reason: str | None = None


@dataclass(frozen=True)
class FromDependencyOf:
    """``package`` in ``range`` depends on ``dependency`` in ``dependency_range``."""

    package: Any
    range: Range[Any]
    dependency: Any
    dependency_range: Range[Any]


External = Union[NotRoot, NoVersions, UnavailableDependencies, FromDependencyOf]
EXTERNAL_TYPES = (NotRoot, NoVersions, UnavailableDependencies, FromDependencyOf)


# ---------------------------------------------------------------------------
# Derived nodes
# ---------------------------------------------------------------------------


@dataclass
class Derived:
    """An incompatibility learned from two causes.

    Attributes:
        terms: The learned clause, ``package -> Term``.
        shared_id: Set when this node is reachable along more than one path.
        cause1: First cause (the incompatibility being resolved).
        cause2: Second cause (the satisfier's cause).
    """

    terms: dict[Any, Term[Any]]
    shared_id: int | None
    cause1: DerivationTree
    cause2: DerivationTree


DerivationTree = Union[NotRoot, NoVersions, UnavailableDependencies, FromDependencyOf, Derived]


def is_external(tree: DerivationTree) -> bool:
    return isinstance(tree, EXTERNAL_TYPES)


def packages(tree: DerivationTree) -> set[Any]:
    """Every package mentioned anywhere in the tree."""
    found: set[Any] = set()
    stack: list[DerivationTree] = [tree]
    while stack:
        node = stack.pop()
        if isinstance(node, Derived):
            found.update(node.terms)
            stack.append(node.cause1)
            stack.append(node.cause2)
        elif isinstance(node, FromDependencyOf):
            found.add(node.package)
            found.add(node.dependency)
        else:
            found.add(node.package)
    return found


# ---------------------------------------------------------------------------
# Simplification
# ---------------------------------------------------------------------------


def collapse_no_versions(tree: DerivationTree) -> DerivationTree:
    """Fold ``NoVersions`` leaves into their sibling.

    "foo depends on bar>=2" together with "there is no version of bar>=2"
    reads better as a single external fact. Returns a new tree; the input is
    left untouched.
    """
    collapsed: dict[int, DerivationTree] = {}
    stack: list[tuple[DerivationTree, bool]] = [(tree, False)]
    while stack:
        node, children_done = stack.pop()
        if id(node) in collapsed:
            continue
        if not isinstance(node, Derived):
            collapsed[id(node)] = node
            continue
        if not children_done:
            stack.append((node, True))
            stack.append((node.cause2, False))
            stack.append((node.cause1, False))
            continue
        if isinstance(node.cause1, NoVersions):
            collapsed[id(node)] = _merge_no_versions(collapsed[id(node.cause2)], node.cause1)
        elif isinstance(node.cause2, NoVersions):
            collapsed[id(node)] = _merge_no_versions(collapsed[id(node.cause1)], node.cause2)
        else:
            collapsed[id(node)] = replace(
                node,
                cause1=collapsed[id(node.cause1)],
                cause2=collapsed[id(node.cause2)],
            )
    return collapsed[id(tree)]


def _merge_no_versions(
    tree: DerivationTree, no_versions: NoVersions
) -> DerivationTree:
    package, range_ = no_versions.package, no_versions.range
    if isinstance(tree, Derived):
        # A derived sibling already explains the failure on its own.
        return tree
    if isinstance(tree, NotRoot):
        raise SolverInvariantError("NoVersions cannot be merged with NotRoot")
    if isinstance(tree, NoVersions):
        return NoVersions(package, range_.union(tree.range))
    if isinstance(tree, UnavailableDependencies):
        return UnavailableDependencies(package, range_.union(tree.range), tree.reason)
    if tree.package == package:
        return replace(tree, range=tree.range.union(range_))
    return replace(tree, dependency_range=tree.dependency_range.union(range_))
