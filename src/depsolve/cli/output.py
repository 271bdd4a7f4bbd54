"""Rich output formatting helpers for the depsolve CLI."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def print_resolution(resolution: Any, elapsed: float) -> None:
    """Print the selected versions as a table.

    Args:
        resolution: A ``Resolution``.
        elapsed: Wall-clock seconds the resolution took.
    """
    console.print(
        Panel(
            f"[bold green]Resolved {len(resolution)} package(s)[/bold green] "
            f"[dim]in {elapsed:.2f}s[/dim]",
            title="Dependency Resolution",
        )
    )
    if not len(resolution):
        console.print("[dim]No packages to resolve.[/dim]")
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Version")
    table.add_column("Extras", style="dim")
    for name, version in resolution:
        extras = ", ".join(sorted(resolution.extras.get(name, ())))
        table.add_row(name, str(version), extras or "-")
    console.print(table)


def print_no_solution(explanation: str, hints: tuple[str, ...]) -> None:
    """Print a failure explanation, then any hints."""
    console.print(
        Panel("[bold red]No solution found[/bold red]", title="Dependency Resolution")
    )
    console.print(explanation, markup=False, highlight=False)
    for hint in hints:
        console.print(f"[cyan]hint:[/cyan] {escape(hint)}", highlight=False)


def print_error(message: str) -> None:
    err_console.print(f"[bold red]error:[/bold red] {escape(message)}", highlight=False)


def print_validation(problems: list[str], path: str) -> None:
    """Print the outcome of a lockfile consistency check."""
    if not problems:
        console.print(f"[bold green]{escape(path)} is consistent[/bold green]")
        return
    console.print(f"[bold red]{escape(path)} has {len(problems)} problem(s)[/bold red]")
    for problem in problems:
        console.print(f"  [red]- {escape(problem)}[/red]", highlight=False)


def print_diff(diff: dict[str, Any]) -> None:
    """Print the result of ``Lockfile.diff``."""
    if not (diff["added"] or diff["removed"] or diff["changed"]):
        console.print("[dim]Lockfiles are identical.[/dim]")
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Change")
    table.add_column("Old", style="red")
    table.add_column("New", style="green")
    for name in diff["added"]:
        table.add_row(name, "added", "-", "-")
    for name in diff["removed"]:
        table.add_row(name, "removed", "-", "-")
    for change in diff["changed"]:
        table.add_row(change["name"], change["field"], str(change["old"]), str(change["new"]))
    console.print(table)
