"""Cache command for CLI."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from ldpm.cli.formatting import _format_size
from ldpm.cli.main import app, load_ldpm_context


@app.command()
def cache(
    ctx: typer.Context,
    clear: bool = typer.Option(
        False,
        "--clear",
        help="Remove every cached package.",
    ),
) -> None:
    """Show or clear the local package cache."""
    from ldpm.adapters.cache import FileCache

    ldpm, config = load_ldpm_context(ctx)
    ldpm.close()
    store = FileCache(config.cache_dir)

    if clear:
        removed = store.clear()
        typer.echo(f"Removed {removed} cached package(s) from {config.cache_dir}")
        return

    keys = store.list_all_keys()
    if not keys:
        typer.echo(f"Cache is empty ({config.cache_dir})")
        return

    stats = store.statistics()
    table = Table(title=str(config.cache_dir))
    table.add_column("Package")
    for key in keys:
        table.add_row(key)

    console = Console(force_terminal=True)
    console.print(table)
    typer.echo(
        f"{stats['entry_count']} package(s), {stats['file_count']} file(s), "
        f"{_format_size(stats['total_size'])}"
    )
