"""``depsolve lock ...``: inspect lockfiles written by ``depsolve resolve -o``.

Exit Codes:
    0 - Lockfile consistent / diff printed.
    1 - ``check`` found problems.
    2 - A lockfile could not be read.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from depsolve.core.lockfile import Lockfile
from depsolve.exceptions import LockfileError


def _read(path: str) -> Lockfile:
    from depsolve.cli.output import print_error

    try:
        return Lockfile.read(Path(path))
    except LockfileError as exc:
        print_error(str(exc))
        sys.exit(2)


@click.group("lock")
def lock_group() -> None:
    """Inspect depsolve lockfiles."""


@lock_group.command("check")
@click.argument("lockfile", type=click.Path(exists=True, dir_okay=False))
def check_command(lockfile: str) -> None:
    """Check LOCKFILE for internal consistency."""
    from depsolve.cli.output import print_validation

    problems = _read(lockfile).validate()
    print_validation(problems, lockfile)
    sys.exit(1 if problems else 0)


@lock_group.command("diff")
@click.argument("old", type=click.Path(exists=True, dir_okay=False))
@click.argument("new", type=click.Path(exists=True, dir_okay=False))
def diff_command(old: str, new: str) -> None:
    """Show what changed between lockfiles OLD and NEW."""
    from depsolve.cli.output import print_diff

    print_diff(_read(old).diff(_read(new)))
