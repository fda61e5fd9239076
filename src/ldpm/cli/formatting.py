"""Shared formatting helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer
from rich.text import Text
from rich.tree import Tree


if TYPE_CHECKING:
    from ldpm.core.exceptions import LdpmError
    from ldpm.core.models import ResolvedNode


def exit_with_error(error: LdpmError) -> NoReturn:
    """Print an error and its recovery hint to stderr, then exit 1."""
    typer.echo(f"Error: {error}", err=True)
    if error.recovery_hint:
        typer.echo(f"Hint: {error.recovery_hint}", err=True)
    raise typer.Exit(1) from None


def _format_size(size_bytes: int) -> str:
    """Format size in bytes to human-readable format."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} TB"


def _node_label(node: ResolvedNode) -> Text:
    label = Text(str(node.identifier), style="bold")
    data = node.data_files()
    scripts = node.script_files()
    size = sum(len(content) for content in data.values())
    label.append(f"  {len(data)} data file(s), {_format_size(size)}", style="dim")
    if scripts:
        label.append(f", {len(scripts)} script(s)", style="dim")
    return label


def build_tree(node: ResolvedNode, tree: Tree | None = None) -> Tree:
    """Render a resolved package and its dependencies as a Rich tree."""
    branch = Tree(_node_label(node)) if tree is None else tree.add(_node_label(node))
    for child in node.children:
        build_tree(child, branch)
    return branch
