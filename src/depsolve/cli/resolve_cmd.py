"""``depsolve resolve REGISTRY REQUIREMENT...``: resolve against a registry file.

Loads an offline registry (YAML or JSON), resolves the requirements and
prints the selected versions, or explains why no selection exists.

Exit Codes:
    0 - Resolved.
    1 - No solution; the explanation is printed.
    2 - Invalid input (registry file, requirement, lockfile) or provider failure.
    3 - Cancelled by ``--timeout``.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path

import click

from depsolve.config import PrereleaseMode, ResolutionStrategy, ResolverOptions
from depsolve.core.lockfile import Lockfile
from depsolve.exceptions import (
    DepsolveError,
    LockfileError,
    NoSolutionError,
    ParseError,
    SolveCancelled,
    SpecifierError,
)
from depsolve.index import Resolver, load_registry, parse_requirement

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NO_SOLUTION = 1
EXIT_INVALID_INPUT = 2
EXIT_CANCELLED = 3


def _parse_environment(pairs: tuple[str, ...]) -> dict[str, str]:
    environment: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--env")
        environment[key.strip()] = value.strip()
    return environment


@click.command("resolve")
@click.argument("registry", type=click.Path(exists=True, dir_okay=False))
@click.argument("requirements", nargs=-1, required=True)
@click.option(
    "--resolution",
    type=click.Choice([s.value for s in ResolutionStrategy]),
    default=ResolutionStrategy.HIGHEST.value,
    show_default=True,
    help="Try the highest or the lowest allowed versions first.",
)
@click.option(
    "--prerelease",
    type=click.Choice([m.value for m in PrereleaseMode]),
    default=PrereleaseMode.IF_NECESSARY_OR_EXPLICIT.value,
    show_default=True,
    help="When pre-release versions may be selected.",
)
@click.option(
    "--prefer",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Lockfile whose versions are tried first.",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Write a lockfile of the resolution to this path.",
)
@click.option(
    "--env", "env_pairs",
    multiple=True,
    metavar="KEY=VALUE",
    help="Marker environment override, e.g. python_version=3.9. Repeatable.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Give up after this many seconds.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format: text (default) or json.",
)
@click.option("--verbose", "-v", count=True, help="-v for progress, -vv for solver internals.")
def resolve_command(
    registry: str,
    requirements: tuple[str, ...],
    resolution: str,
    prerelease: str,
    prefer: str | None,
    output: str | None,
    env_pairs: tuple[str, ...],
    timeout: float | None,
    output_format: str,
    verbose: int,
) -> None:
    """Resolve REQUIREMENTS against the packages listed in REGISTRY.

    Each requirement is a PEP 508 string such as 'flask>=2' or
    'requests[socks]; python_version >= "3.8"'.
    """
    from depsolve.cli.output import print_error, print_no_solution, print_resolution

    level = logging.WARNING if verbose == 0 else logging.INFO if verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        index = load_registry(Path(registry))
        parsed = [parse_requirement(r) for r in requirements]
        preferences = Lockfile.read(Path(prefer)).preferences() if prefer else None
    except (ParseError, SpecifierError, LockfileError) as exc:
        print_error(str(exc))
        sys.exit(EXIT_INVALID_INPUT)

    options = ResolverOptions(
        resolution=ResolutionStrategy(resolution),
        prerelease=PrereleaseMode(prerelease),
        environment=_parse_environment(env_pairs),
        timeout=timeout,
    )
    started = time.monotonic()
    try:
        result = Resolver(index, options, preferences).resolve(parsed)
    except NoSolutionError as exc:
        explanation = exc.explanation if exc.explanation is not None else exc.report()
        if output_format == "json":
            click.echo(json.dumps(
                {"resolved": False, "explanation": explanation, "hints": list(exc.hints)},
                indent=2,
            ))
        else:
            print_no_solution(explanation, exc.hints)
        sys.exit(EXIT_NO_SOLUTION)
    except SolveCancelled as exc:
        print_error(str(exc))
        sys.exit(EXIT_CANCELLED)
    except DepsolveError as exc:
        print_error(str(exc))
        sys.exit(EXIT_INVALID_INPUT)

    if output:
        lockfile = Lockfile.from_resolution(result, index, requirements, options)
        try:
            lockfile.write(Path(output))
        except LockfileError as exc:
            print_error(str(exc))
            sys.exit(EXIT_INVALID_INPUT)
        logger.info("Lockfile written to %s", output)

    if output_format == "json":
        click.echo(json.dumps(
            {
                "resolved": True,
                "packages": {name: str(version) for name, version in result},
                "extras": {name: sorted(extras) for name, extras in result.extras.items()},
            },
            indent=2,
        ))
    else:
        print_resolution(result, time.monotonic() - started)
        if output:
            click.echo(f"\nLockfile written to: {output}")
    sys.exit(EXIT_OK)
