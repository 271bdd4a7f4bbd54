"""depsolve exception hierarchy.

All user-facing exceptions inherit from DepsolveError, giving callers a single
base class to catch when they want to handle any depsolve-specific failure
without swallowing unrelated errors.

``SolverInvariantError`` is the one exception outside that hierarchy: it
signals a corrupted solve (a bug), not a condition the caller can act on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from depsolve.core.report import DerivationTree, ReportFormatter


class DepsolveError(Exception):
    """Base exception for all depsolve errors."""


class NoSolutionError(DepsolveError):
    """Raised when the requirements are provably unsatisfiable.

    This is the expected failure mode of version solving. The exception
    carries the derivation tree of the final learned incompatibility, which
    is enough to render an explanation without running the solver again.

    Attributes:
        derivation_tree: Root of the derivation tree proving failure.
        explanation: Pre-rendered report, set by adapters that know how to
            word their packages; ``str()`` falls back to the default wording.
        hints: Extra advice shown after the explanation.
    """

    def __init__(
        self,
        derivation_tree: DerivationTree,
        explanation: str | None = None,
        hints: tuple[str, ...] = (),
    ) -> None:
        super().__init__("No solution found when resolving dependencies")
        self.derivation_tree = derivation_tree
        self.explanation = explanation
        self.hints = tuple(hints)

    def report(self, formatter: ReportFormatter | None = None) -> str:
        """Render the derivation tree as a natural-language explanation."""
        from depsolve.core.report import DefaultStringReporter

        return DefaultStringReporter.report(self.derivation_tree, formatter)

    def __str__(self) -> str:
        text = self.explanation if self.explanation is not None else self.report()
        for hint in self.hints:
            text = f"{text}\nhint: {hint}"
        return text


class ProviderError(DepsolveError):
    """Raised when the dependency provider fails.

    The original exception is chained as ``__cause__`` and kept in
    ``source``. Provider errors are fatal: the solver never retries them.
    """

    def __init__(self, message: str, source: BaseException) -> None:
        super().__init__(message)
        self.source = source


class ErrorListingVersions(ProviderError):
    """The provider failed to list the versions of a package."""

    def __init__(self, package: Any, source: BaseException) -> None:
        super().__init__(f"Failed to list versions of {package}: {source}", source)
        self.package = package


class ErrorRetrievingDependencies(ProviderError):
    """The provider failed to retrieve the dependencies of a package version."""

    def __init__(self, package: Any, version: Any, source: BaseException) -> None:
        super().__init__(
            f"Failed to retrieve dependencies of {package} {version}: {source}",
            source,
        )
        self.package = package
        self.version = version


class ErrorChoosingPackageVersion(ProviderError):
    """The provider failed while choosing the next package and version."""

    def __init__(self, source: BaseException) -> None:
        super().__init__(f"Failed to choose a package version: {source}", source)


class ErrorInShouldCancel(ProviderError):
    """The provider's cancellation hook raised."""

    def __init__(self, source: BaseException) -> None:
        super().__init__(f"Cancellation check failed: {source}", source)


class SelfDependencyError(DepsolveError):
    """Raised when a package version declares a dependency on itself."""

    def __init__(self, package: Any, version: Any) -> None:
        super().__init__(f"{package} {version} depends on itself")
        self.package = package
        self.version = version


class DependencyOnTheEmptySetError(DepsolveError):
    """Raised when a package version depends on an empty version range."""

    def __init__(self, package: Any, version: Any, dependent: Any) -> None:
        super().__init__(
            f"{package} {version} depends on {dependent} with an empty version range"
        )
        self.package = package
        self.version = version
        self.dependent = dependent


class IncompatibleVersionError(DepsolveError):
    """Raised when the provider picks a version outside the allowed range."""

    def __init__(self, package: Any, version: Any) -> None:
        super().__init__(
            f"Chosen version {version} of {package} is outside its allowed range"
        )
        self.package = package
        self.version = version


class SolveCancelled(DepsolveError):
    """Raised when the provider's cancellation hook requested a stop."""

    def __init__(self) -> None:
        super().__init__("Dependency resolution was cancelled")


class SpecifierError(DepsolveError):
    """Raised when a version specifier or requirement cannot be converted.

    Covers unparsable requirement strings, ``~=`` with a single release
    segment and direct URL requirements.
    """


class PackageIndexError(DepsolveError):
    """Raised when a package index cannot serve a request."""


class PackageNotFound(PackageIndexError):
    """Raised when a package index does not know a package."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Package {name!r} was not found in the index")
        self.name = name


class ParseError(DepsolveError):
    """Raised when a registry file cannot be parsed.

    Covers malformed YAML/JSON, unexpected document structure and invalid
    version strings in registry files.
    """


class LockfileError(DepsolveError):
    """Raised for unreadable or inconsistent lockfiles."""


class SolverInvariantError(RuntimeError):
    """Raised when internal solver state is corrupted.

    Indicates a bug in the solver or a provider breaking its contract in a
    way the solver cannot recover from. Never raised for unsatisfiable input.
    """
