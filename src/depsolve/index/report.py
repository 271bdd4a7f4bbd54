"""Failure reports in the vocabulary of a Python package index.

Ranges are rewritten against the versions the resolver considered, so that
``>=1.0, <1.1.dev0 | >=1.1.post0.dev0`` prints as ``<1.1 | >=1.2`` when 1.0,
1.1 and 1.2 are published, and packages are glued to their range the way
requirements are written (``foo>=2``). The root's version is never shown.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Sequence

from packaging.version import Version

from depsolve.core.ranges import Range
from depsolve.core.report import (
    DerivationTree,
    Derived,
    External,
    FromDependencyOf,
    NoVersions,
    NotRoot,
    ReportFormatter,
    UnavailableDependencies,
)
from depsolve.core.term import Term
from depsolve.index.candidates import CandidateSelector
from depsolve.index.package import Root
from depsolve.index.specifiers import is_prerelease


class IndexReportFormatter(ReportFormatter):
    """Report wording for ``Package``/``Root`` identifiers and PEP 440 ranges.

    Args:
        available_versions: ``name -> versions`` to simplify ranges against,
            usually the versions the candidate selector would consider.
    """

    def __init__(self, available_versions: Mapping[str, Sequence[Version]] | None = None) -> None:
        self.available_versions = dict(available_versions or {})

    def _simplify(self, package: Any, range_: Range) -> Range:
        if isinstance(package, Root):
            return range_
        return range_.simplify(self.available_versions.get(package.name, ()))

    def _requirement(self, package: Any, range_: Range) -> str:
        if isinstance(package, Root):
            return str(package)
        range_ = self._simplify(package, range_)
        if range_.is_full():
            return str(package)
        if range_.is_empty():
            return f"{package} (no version)"
        return f"{package}{range_}"

    def format_external(self, external: External) -> str:
        if isinstance(external, NotRoot):
            return f"we are solving dependencies of {external.package}"
        if isinstance(external, NoVersions):
            if external.range.is_full():
                return f"there is no available version for {external.package}"
            return (
                f"there is no version of {external.package} that satisfies "
                f"{self._requirement(external.package, external.range)}"
            )
        if isinstance(external, UnavailableDependencies):
            text = (
                f"dependencies of {self._requirement(external.package, external.range)} "
                "are unavailable"
            )
            if external.reason:
                text = f"{text}: {external.reason}"
            return text
        return (
            f"{self._requirement(external.package, external.range)} depends on "
            f"{self._requirement(external.dependency, external.dependency_range)}"
        )

    def format_terms(self, terms: Mapping[Any, Term[Any]]) -> str:
        items = [(p, t) for p, t in terms.items() if not isinstance(p, Root)]
        if not items:
            return "version solving failed"
        if len(items) == 1:
            package, term = items[0]
            verb = "cannot be used" if term.positive else "is required"
            return f"{self._requirement(package, term.range)} {verb}"
        if len(items) == 2:
            (p1, t1), (p2, t2) = items
            if t1.positive and not t2.positive:
                return self.format_external(
                    FromDependencyOf(p1, t1.range, p2, t2.range)
                )
            if t2.positive and not t1.positive:
                return self.format_external(
                    FromDependencyOf(p2, t2.range, p1, t1.range)
                )
        parts = [
            self._requirement(p, t.range) if t.positive
            else f"not {self._requirement(p, t.range)}"
            for p, t in items
        ]
        return ", ".join(parts) + " are incompatible"


# ---------------------------------------------------------------------------
# Hints
# ---------------------------------------------------------------------------


def _no_versions_leaves(tree: DerivationTree) -> Iterable[NoVersions]:
    stack: List[DerivationTree] = [tree]
    while stack:
        node = stack.pop()
        if isinstance(node, Derived):
            stack.append(node.cause2)
            stack.append(node.cause1)
        elif isinstance(node, NoVersions):
            yield node


def prerelease_hints(
    tree: DerivationTree,
    selector: CandidateSelector,
    available_versions: Mapping[str, Sequence[Version]],
) -> List[str]:
    """Explain failures that enabling pre-releases would have avoided.

    Looks at every "no version in range" fact of the raw (uncollapsed) tree;
    when the index does publish pre-releases in that range but the selector
    filtered them out, returns one hint per package.
    """
    hints: List[str] = []
    seen: set = set()
    for leaf in _no_versions_leaves(tree):
        package = leaf.package
        if isinstance(package, Root) or package.name in seen:
            continue
        versions = available_versions.get(package.name, ())
        if selector.allows_prereleases(package.name, versions):
            continue
        matching = [v for v in versions if is_prerelease(v) and leaf.range.contains(v)]
        if not matching:
            continue
        seen.add(package.name)
        listed = ", ".join(str(v) for v in sorted(matching, reverse=True)[:3])
        hints.append(
            f"pre-releases of {package.name} are available ({listed}) but were not "
            "considered; pass --prerelease=allow or require one explicitly"
        )
    return hints
