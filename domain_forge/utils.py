"""Shared utility functions for Domain Forge.

Provides identifier case conversion used by both the property parser and the
template layer, plus Rich-based reporting helpers.  Every user-facing message
goes through the shared ``console`` so callers (and tests) can swap it for a
recording console.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def studly(value: str) -> str:
    """Convert ``some_thing`` / ``some-thing`` / ``someThing`` to ``SomeThing``.

    Unlike ``str.capitalize`` the inner casing of each word is preserved, so
    ``"createdAt"`` becomes ``"CreatedAt"`` rather than ``"Createdat"``.

    Examples::

        studly("created_at") -> "CreatedAt"
        studly("fooBar")     -> "FooBar"
    """
    parts = re.split(r"[-_\s]+", value)
    return "".join(part[0].upper() + part[1:] for part in parts if part)


def snake(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


def plural(word: str) -> str:
    """Return a naive English plural of a lower-case *word*.

    E.g. ``'invoice'`` -> ``'invoices'``, ``'category'`` -> ``'categories'``,
    ``'box'`` -> ``'boxes'``.
    """
    if word.endswith("y") and not word.endswith(("ay", "ey", "oy", "uy")):
        return word[:-1] + "ies"
    if word.endswith(("s", "sh", "ch", "x", "z")):
        return word + "es"
    return word + "s"


def relative_to(path: Path, root: Path) -> str:
    """Render *path* relative to *root* when possible, else as given."""
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_creation_summary(
    directories: Iterable[Path],
    files: Iterable[Path],
    root: Path,
) -> None:
    """Print one ``Status | Path`` table per kind of created item.

    Paths are shown relative to *root*.  Empty groups are omitted and the
    grand total is printed last.
    """
    groups = {"Directories": list(directories), "Files": list(files)}
    console.print("[bold]Creation Summary:[/bold]")
    console.print()

    for title, items in groups.items():
        if not items:
            continue
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Status", no_wrap=True)
        table.add_column("Path")
        for item in items:
            table.add_row("[green]+[/green]", escape(relative_to(item, root)))
        console.print(table)

    total = sum(len(items) for items in groups.values())
    console.print(f"[bold]Total items created: {total}[/bold]")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
