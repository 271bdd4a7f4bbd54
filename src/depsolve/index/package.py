"""Package identifiers used by the index adapter."""

from __future__ import annotations

from dataclasses import dataclass

from packaging.utils import canonicalize_name


@dataclass(frozen=True, order=True)
class Package:
    """A distribution, optionally qualified by one of its extras.

    ``Package("Foo_Bar", "Socks")`` and ``Package("foo-bar", "socks")`` are
    the same package: both names are normalized on construction.
    """

    name: str
    extra: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", canonicalize_name(self.name))
        if self.extra is not None:
            object.__setattr__(self, "extra", canonicalize_name(self.extra))

    @property
    def base(self) -> Package:
        """The same distribution without the extra."""
        return Package(self.name)

    def __str__(self) -> str:
        if self.extra:
            return f"{self.name}[{self.extra}]"
        return self.name


@dataclass(frozen=True)
class Root:
    """The synthetic package standing for the project being resolved."""

    name: str = "root"

    def __str__(self) -> str:
        return self.name
