"""Python packaging adapter: PEP 440 versions, PEP 508 requirements, indexes."""

from depsolve.index.candidates import CandidateSelector
from depsolve.index.once_map import OnceMap
from depsolve.index.package import Package, Root
from depsolve.index.provider import ROOT_VERSION, IndexDependencyProvider
from depsolve.index.registry_file import load_registry, parse_registry
from depsolve.index.report import IndexReportFormatter, prerelease_hints
from depsolve.index.resolver import Resolution, Resolver
from depsolve.index.source import InMemoryIndex, PackageIndex, PackageMetadata
from depsolve.index.specifiers import (
    is_prerelease,
    parse_requirement,
    specifier_set_to_range,
    specifier_to_range,
)

__all__ = [
    "CandidateSelector",
    "IndexDependencyProvider",
    "IndexReportFormatter",
    "InMemoryIndex",
    "OnceMap",
    "Package",
    "PackageIndex",
    "PackageMetadata",
    "ROOT_VERSION",
    "Resolution",
    "Resolver",
    "Root",
    "is_prerelease",
    "load_registry",
    "parse_registry",
    "parse_requirement",
    "prerelease_hints",
    "specifier_set_to_range",
    "specifier_to_range",
]
