"""Tree command for CLI."""

from __future__ import annotations

import typer
from rich.console import Console

from ldpm.cli.formatting import build_tree, exit_with_error
from ldpm.cli.main import app, load_ldpm_context
from ldpm.core.exceptions import LdpmError


@app.command()
def tree(
    ctx: typer.Context,
    identifiers: list[str] = typer.Argument(
        ..., help="Packages to resolve, as 'name' or 'name@version'."
    ),
    cache: bool = typer.Option(
        True,
        "--cache/--no-cache",
        help="Use the local package cache.",
    ),
) -> None:
    """Show the resolved dependency tree without installing anything."""
    ldpm, _config = load_ldpm_context(ctx)

    with ldpm:
        try:
            nodes = ldpm.resolve(identifiers, cache=cache)
        except LdpmError as e:
            exit_with_error(e)

    console = Console(force_terminal=True)
    for node in nodes:
        console.print(build_tree(node))
