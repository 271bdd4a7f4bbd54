"""Derivation trees and human-readable failure reports."""

from depsolve.core.report.reporter import DefaultStringReporter, ReportFormatter
from depsolve.core.report.tree import (
    EXTERNAL_TYPES,
    DerivationTree,
    Derived,
    External,
    FromDependencyOf,
    NoVersions,
    NotRoot,
    UnavailableDependencies,
    collapse_no_versions,
    is_external,
    packages,
)

__all__ = [
    "DefaultStringReporter",
    "DerivationTree",
    "Derived",
    "EXTERNAL_TYPES",
    "External",
    "FromDependencyOf",
    "NoVersions",
    "NotRoot",
    "ReportFormatter",
    "UnavailableDependencies",
    "collapse_no_versions",
    "is_external",
    "packages",
]
