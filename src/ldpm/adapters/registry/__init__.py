"""Registry adapters."""

from ldpm.adapters.registry.directory import DirectoryRegistry
from ldpm.adapters.registry.http import HttpRegistry
from ldpm.adapters.registry.router import create_registry


__all__ = ["DirectoryRegistry", "HttpRegistry", "create_registry"]
