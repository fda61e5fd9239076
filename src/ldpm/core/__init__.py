"""Core domain module for ldpm.

This module contains pure Python domain models, port definitions and the
resolution, rendering and materialization services built on them. Adapters
for the registry, cache and executor are injected from ``ldpm.adapters``.
"""

from ldpm.core.models import (
    Attachment,
    CacheEntry,
    DatasetEntry,
    InstallOptions,
    Manifest,
    PackageIdentifier,
    ResolvedNode,
)
from ldpm.core.ports import CachePort, ProgressCallback, RegistryPort


__all__ = [
    "Attachment",
    "CacheEntry",
    "CachePort",
    "DatasetEntry",
    "InstallOptions",
    "Manifest",
    "PackageIdentifier",
    "ProgressCallback",
    "RegistryPort",
    "ResolvedNode",
]
