"""depsolve CLI: PubGrub dependency resolution against offline registries.

Entry point for the ``depsolve`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    resolve    Resolve requirements against a registry file.
    lock       Check or diff lockfiles.

Usage::

    depsolve resolve registry.yaml "flask>=2" requests
    depsolve resolve registry.yaml "flask>=2" -o depsolve-lock.json
    depsolve resolve registry.yaml "flask>=2" --prefer depsolve-lock.json
    depsolve lock check depsolve-lock.json
    depsolve lock diff old-lock.json depsolve-lock.json
"""

from __future__ import annotations

import click

from depsolve import __version__
from depsolve.cli.lock_cmd import lock_group
from depsolve.cli.resolve_cmd import resolve_command


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """depsolve: conflict-driven dependency resolution with readable failures."""


# Register all subcommands
cli.add_command(resolve_command)
cli.add_command(lock_group)
