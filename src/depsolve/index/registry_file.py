"""Offline registry files.

A registry file describes a whole package index in YAML (or JSON, which
PyYAML reads as well)::

    packages:
      foo:
        "1.0.0": ["bar>=1,<2"]
        "2.0.0":
          requires_dist: ["bar>=2", "colorama; sys_platform == 'win32'"]
          yanked: true
      bar:
        "1.4.0": []
        "2.1.0": null

A version maps either to its list of requirement strings or to a mapping with
``requires_dist`` and ``yanked`` keys. ``null`` means no requirements.
Quote versions: YAML reads an unquoted ``1.10`` as the number 1.1.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from packaging.utils import canonicalize_name
from packaging.version import InvalidVersion, Version

from depsolve.exceptions import ParseError
from depsolve.index.source import InMemoryIndex

logger = logging.getLogger(__name__)


def load_registry(path: Path | str) -> InMemoryIndex:
    """Read a registry file into an ``InMemoryIndex``.

    Raises:
        ParseError: If the file is unreadable, is not valid YAML/JSON, does
            not have the expected structure or holds an invalid version.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw)
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(f"Cannot read registry file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ParseError(f"Invalid registry file {path}: {exc}") from exc
    return parse_registry(data, source=str(path))


def parse_registry(data: Any, source: str = "<registry>") -> InMemoryIndex:
    """Build an index from an already decoded registry document."""
    if not isinstance(data, dict) or not isinstance(data.get("packages"), dict):
        raise ParseError(f"{source}: expected a mapping with a 'packages' mapping")
    index = InMemoryIndex()
    for name, releases in data["packages"].items():
        if releases is None:
            releases = {}
        if not isinstance(releases, dict):
            raise ParseError(f"{source}: releases of {name!r} must be a mapping")
        index.packages.setdefault(canonicalize_name(str(name)), {})
        for raw_version, entry in releases.items():
            try:
                version = Version(str(raw_version))
            except InvalidVersion as exc:
                raise ParseError(
                    f"{source}: invalid version {raw_version!r} for {name!r}"
                ) from exc
            requires_dist, yanked = _parse_entry(entry, f"{source}: {name} {version}")
            index.add(str(name), version, requires_dist, yanked)
    logger.debug("Loaded %d package(s) from %s", len(index.packages), source)
    return index


def _parse_entry(entry: Any, where: str) -> tuple[list[str], bool]:
    if entry is None:
        return [], False
    if isinstance(entry, list):
        return [str(item) for item in entry], False
    if isinstance(entry, dict):
        requires = entry.get("requires_dist") or []
        if not isinstance(requires, list):
            raise ParseError(f"{where}: 'requires_dist' must be a list")
        return [str(item) for item in requires], bool(entry.get("yanked", False))
    raise ParseError(f"{where}: expected a list of requirements or a mapping")
