"""Render derivation trees as natural-language explanations.

``DefaultStringReporter`` walks a derivation tree and produces one sentence
per derived node ("Because A depends on B and B depends on C, ..."). Nodes
shared between several branches are explained once and then referred to by a
line number in parentheses.

All wording of individual facts is delegated to a ``ReportFormatter`` so that
adapters can render packages and ranges in their own vocabulary (the index
adapter, for instance, simplifies ranges against the versions that actually
exist).
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Mapping

from depsolve.core.report.tree import (
    DerivationTree,
    Derived,
    External,
    FromDependencyOf,
    NoVersions,
    NotRoot,
    UnavailableDependencies,
    is_external,
)
from depsolve.core.term import Term


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------


class ReportFormatter:
    """Wording of external facts and of incompatibility term sets.

    Subclass and override either method to change how a report reads; the
    sentence structure stays with the reporter.
    """

    def format_external(self, external: External) -> str:
        if isinstance(external, NotRoot):
            return f"we are solving dependencies of {external.package} {external.version}"
        if isinstance(external, NoVersions):
            if external.range.is_full():
                return f"there is no available version for {external.package}"
            return f"there is no version of {external.package} in {external.range}"
        if isinstance(external, UnavailableDependencies):
            if external.range.is_full():
                text = f"dependencies of {external.package} are unavailable"
            else:
                text = (
                    f"dependencies of {external.package} at version "
                    f"{external.range} are unavailable"
                )
            if external.reason:
                text = f"{text}: {external.reason}"
            return text
        return self._format_dependency(external)

    def _format_dependency(self, external: FromDependencyOf) -> str:
        package, range_ = external.package, external.range
        dependency, dependency_range = external.dependency, external.dependency_range
        if range_.is_full() and dependency_range.is_full():
            return f"{package} depends on {dependency}"
        if range_.is_full():
            return f"{package} depends on {dependency} {dependency_range}"
        if dependency_range.is_full():
            return f"{package} {range_} depends on {dependency}"
        return f"{package} {range_} depends on {dependency} {dependency_range}"

    def format_terms(self, terms: Mapping[Any, Term[Any]]) -> str:
        items = list(terms.items())
        if not items:
            return "version solving failed"
        if len(items) == 1:
            package, term = items[0]
            if term.positive:
                return f"{package} {term.range} is forbidden"
            return f"{package} {term.range} is mandatory"
        if len(items) == 2:
            (p1, t1), (p2, t2) = items
            if t1.positive and not t2.positive:
                return self.format_external(FromDependencyOf(p1, t1.range, p2, t2.range))
            if t2.positive and not t1.positive:
                return self.format_external(FromDependencyOf(p2, t2.range, p1, t1.range))
        return ", ".join(f"{package} {term}" for package, term in items) + " are incompatible"


# ---------------------------------------------------------------------------
# Reporter
# ---------------------------------------------------------------------------


class DefaultStringReporter:
    """Turns a derivation tree into a multi-line explanation.

    Use the ``report`` classmethod; instances only hold the state of a single
    rendering (emitted lines and the line numbers given to shared nodes).
    """

    def __init__(self, formatter: ReportFormatter) -> None:
        self._formatter = formatter
        self._ref_count = 0
        self._shared_with_ref: dict[int, int] = {}
        self._lines: list[str] = []
        self._todo: list[Callable[[], None]] = []

    @classmethod
    def report(
        cls, tree: DerivationTree, formatter: ReportFormatter | None = None
    ) -> str:
        """Render ``tree``.

        Args:
            tree: Derivation tree, usually ``NoSolutionError.derivation_tree``.
            formatter: Wording to use; ``ReportFormatter()`` when omitted.

        Returns:
            The explanation, one sentence per line.
        """
        formatter = formatter or ReportFormatter()
        if is_external(tree):
            return formatter.format_external(tree)
        reporter = cls(formatter)
        reporter._run(tree)
        return "\n".join(reporter._lines)

    # -- Tree walk ----------------------------------------------------------
    #
    # Pending steps live on ``self._todo``, not on the call stack.
    # ``_schedule`` queues steps to run in the given order, ahead of
    # everything queued earlier.

    def _run(self, tree: Derived) -> None:
        self._todo = [partial(self._build, tree)]
        while self._todo:
            self._todo.pop()()

    def _schedule(self, *steps: Callable[[], None]) -> None:
        self._todo.extend(reversed(steps))

    def _append(self, line: str) -> None:
        self._lines.append(line)

    def _build(self, derived: Derived) -> None:
        self._schedule(
            partial(self._build_helper, derived),
            partial(self._number_if_shared, derived),
        )

    def _number_if_shared(self, derived: Derived) -> None:
        if derived.shared_id is not None and derived.shared_id not in self._shared_with_ref:
            self._add_line_ref()
            self._shared_with_ref[derived.shared_id] = self._ref_count

    def _build_helper(self, current: Derived) -> None:
        cause1, cause2 = current.cause1, current.cause2
        if is_external(cause1) and is_external(cause2):
            self._lines.append(self._explain_both_external(cause1, cause2, current.terms))
        elif isinstance(cause1, Derived) and is_external(cause2):
            self._report_one_each(cause1, cause2, current.terms)
        elif is_external(cause1) and isinstance(cause2, Derived):
            self._report_one_each(cause2, cause1, current.terms)
        else:
            self._report_both_derived(current, cause1, cause2)

    def _report_both_derived(
        self, current: Derived, derived1: Derived, derived2: Derived
    ) -> None:
        ref1 = self._line_ref_of(derived1.shared_id)
        ref2 = self._line_ref_of(derived2.shared_id)
        if ref1 is not None and ref2 is not None:
            self._lines.append(
                f"Because {self._terms(derived1.terms)} ({ref1}) and "
                f"{self._terms(derived2.terms)} ({ref2}), {self._terms(current.terms)}."
            )
        elif ref1 is not None:
            self._schedule(
                partial(self._build, derived2),
                partial(self._append, self._and_explain_ref(ref1, derived1, current.terms)),
            )
        elif ref2 is not None:
            self._schedule(
                partial(self._build, derived1),
                partial(self._append, self._and_explain_ref(ref2, derived2, current.terms)),
            )
        else:
            self._schedule(
                partial(self._build, derived1),
                partial(self._after_first_derived, current, derived1, derived2),
            )

    def _after_first_derived(
        self, current: Derived, derived1: Derived, derived2: Derived
    ) -> None:
        if derived1.shared_id is not None:
            # derived1 now has a line number; explain current again with it.
            self._lines.append("")
            self._schedule(partial(self._build, current))
            return
        self._add_line_ref()
        ref1 = self._ref_count
        self._lines.append("")
        self._schedule(
            partial(self._build, derived2),
            partial(self._append, self._and_explain_ref(ref1, derived1, current.terms)),
        )

    def _report_one_each(
        self, derived: Derived, external: External, current_terms: Mapping[Any, Term[Any]]
    ) -> None:
        ref = self._line_ref_of(derived.shared_id)
        if ref is not None:
            self._lines.append(
                f"Because {self._terms(derived.terms)} ({ref}) and "
                f"{self._external(external)}, {self._terms(current_terms)}."
            )
            return
        prior1, prior2 = derived.cause1, derived.cause2
        if isinstance(prior1, Derived) and is_external(prior2):
            line = self._and_explain_prior_and_external(prior2, external, current_terms)
            self._schedule(partial(self._build, prior1), partial(self._append, line))
        elif is_external(prior1) and isinstance(prior2, Derived):
            line = self._and_explain_prior_and_external(prior1, external, current_terms)
            self._schedule(partial(self._build, prior2), partial(self._append, line))
        else:
            line = f"And because {self._external(external)}, {self._terms(current_terms)}."
            self._schedule(partial(self._build, derived), partial(self._append, line))

    # -- Sentences ----------------------------------------------------------

    def _explain_both_external(
        self, external1: External, external2: External, current_terms: Mapping[Any, Term[Any]]
    ) -> str:
        return (
            f"Because {self._external(external1)} and {self._external(external2)}, "
            f"{self._terms(current_terms)}."
        )

    def _and_explain_ref(
        self, ref: int, derived: Derived, current_terms: Mapping[Any, Term[Any]]
    ) -> str:
        return (
            f"And because {self._terms(derived.terms)} ({ref}), "
            f"{self._terms(current_terms)}."
        )

    def _and_explain_prior_and_external(
        self,
        prior_external: External,
        external: External,
        current_terms: Mapping[Any, Term[Any]],
    ) -> str:
        return (
            f"And because {self._external(prior_external)} and "
            f"{self._external(external)}, {self._terms(current_terms)}."
        )

    # -- Helpers ------------------------------------------------------------

    def _external(self, external: External) -> str:
        return self._formatter.format_external(external)

    def _terms(self, terms: Mapping[Any, Term[Any]]) -> str:
        return self._formatter.format_terms(terms)

    def _add_line_ref(self) -> None:
        self._ref_count += 1
        if self._lines:
            self._lines[-1] = f"{self._lines[-1]} ({self._ref_count})"

    def _line_ref_of(self, shared_id: int | None) -> int | None:
        if shared_id is None:
            return None
        return self._shared_with_ref.get(shared_id)
