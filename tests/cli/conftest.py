"""Shared fixtures for CLI tests.

Provides a Click runner, a small offline registry file and a helper that
writes lockfile documents to disk.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

REGISTRY = """\
packages:
  flask:
    "1.0": ["werkzeug<2"]
    "2.0": ["werkzeug>=2", "click>=8"]
  werkzeug:
    "1.0": []
    "2.0": []
    "2.1": []
  click:
    "8.0": []
    "8.1": []
  requests:
    "2.31": ["urllib3>=1.21", "pysocks>=1.5; extra == 'socks'"]
  urllib3:
    "2.0": []
  pysocks:
    "1.7": []
  pre:
    "1.0": []
    "2.0b1": []
"""


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def registry_file(tmp_path: Path) -> Path:
    """Write the sample registry to a YAML file."""
    path = tmp_path / "registry.yaml"
    path.write_text(REGISTRY, encoding="utf-8")
    return path


def write_lockfile(path: Path, packages: dict[str, Any], **metadata: Any) -> Path:
    """Write a lockfile document with the given ``packages`` section."""
    document = {
        "lockfile_version": "1.0",
        "generated_by": "depsolve",
        "packages": packages,
        "metadata": {"total_packages": len(packages), **metadata},
    }
    path.write_text(json.dumps(document), encoding="utf-8")
    return path
