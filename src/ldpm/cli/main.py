"""CLI commands for ldpm."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import typer

from ldpm.cli.formatting import exit_with_error
from ldpm.core.exceptions import ConfigurationError, LdpmError


if TYPE_CHECKING:
    from ldpm import Ldpm, RegistryConfig


app = typer.Typer(
    name="ldpm",
    help="Linked-data package manager: install and catalog data packages.",
    no_args_is_help=True,
)


@dataclass
class CliState:
    """Global options shared by every command."""

    registry: str | None = None
    cache_dir: Path | None = None
    verbose: bool = False


def _configure_logging(verbose: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main_options(
    ctx: typer.Context,
    registry: str | None = typer.Option(
        None,
        "--registry",
        "-r",
        help="Registry URL or local registry directory (overrides LDPM_REGISTRY_URL).",
    ),
    cache_dir: Path | None = typer.Option(
        None,
        "--cache-dir",
        help="Package cache directory (overrides LDPM_CACHE_DIR).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log fetches, cache hits and file writes.",
    ),
) -> None:
    """Linked-data package manager."""
    ctx.obj = CliState(registry=registry, cache_dir=cache_dir, verbose=verbose)
    _configure_logging(verbose)


def load_ldpm_context(
    ctx: typer.Context, workers: int | None = None
) -> tuple[Ldpm, RegistryConfig]:
    """Build the service from config files, environment and CLI options.

    Raises:
        typer.Exit: If the configuration is invalid.
    """
    from ldpm import Ldpm
    from ldpm.config import load_config

    state = ctx.obj if isinstance(ctx.obj, CliState) else CliState()
    try:
        config = load_config().with_overrides(
            registry_url=state.registry,
            cache_dir=state.cache_dir,
            max_workers=workers,
        )
        return Ldpm.from_config(config), config
    except ConfigurationError as e:
        exit_with_error(e)


@app.command()
def install(
    ctx: typer.Context,
    identifiers: list[str] = typer.Argument(
        ..., help="Packages to install, as 'name' or 'name@version'."
    ),
    directory: Path = typer.Option(
        Path("."),
        "--dir",
        "-d",
        help="Destination directory.",
    ),
    top: bool = typer.Option(
        False,
        "--top",
        "-t",
        help="Install into <dir>/<name> instead of <dir>/datapackages/<name>.",
    ),
    all_files: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Also install script files.",
    ),
    cache: bool = typer.Option(
        True,
        "--cache/--no-cache",
        help="Use the local package cache.",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Maximum concurrent registry fetches.",
    ),
) -> None:
    """Install packages and their data dependencies."""
    from ldpm import InstallOptions, RichProgressReporter
    from ldpm.core.materializer import root_directory

    ldpm, _config = load_ldpm_context(ctx, workers)
    options = InstallOptions(top=top, all_files=all_files, cache=cache)

    with ldpm:
        try:
            with RichProgressReporter() as progress:
                nodes = ldpm.install(identifiers, directory, options, progress=progress)
        except LdpmError as e:
            exit_with_error(e)

    for node in nodes:
        target = root_directory(directory, node.name, top)
        typer.echo(f"{node.identifier} -> {target}")


@app.command()
def cat(
    ctx: typer.Context,
    identifier: str = typer.Argument(help="Package as 'name' or 'name@version'."),
    context: str | None = typer.Option(
        None,
        "--context",
        help="JSON-LD context URL. Defaults to the registry's datapackage context.",
    ),
    cache: bool = typer.Option(
        True,
        "--cache/--no-cache",
        help="Use the local package cache.",
    ),
) -> None:
    """Print a package as a JSON-LD DataCatalog document."""
    from ldpm.jsonld import date_published, dumps, to_transport

    ldpm, config = load_ldpm_context(ctx)

    with ldpm:
        try:
            (node,) = ldpm.resolve([identifier], cache=cache)
        except LdpmError as e:
            exit_with_error(e)

    document = to_transport(
        ldpm.render(node),
        context_url=context or config.context_url,
        published=date_published(node),
    )
    typer.echo(dumps(document))


def main() -> None:
    """Entry point for the CLI."""
    app()
