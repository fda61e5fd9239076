"""CLI for ldpm."""

# Importing the command modules registers them with the app
from ldpm.cli.commands import cache as _cache_module  # noqa: F401
from ldpm.cli.commands import tree as _tree_module  # noqa: F401
from ldpm.cli.main import app, main


__all__ = ["app", "main"]
