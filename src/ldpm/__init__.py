"""ldpm - a client for a linked-data package registry.

Resolves versioned data packages and their ``dataDependencies``, caches
what it fetches, installs consistent directory trees and renders packages
as JSON-LD catalogs.

Example:
    >>> from ldpm import InstallOptions, Ldpm, load_config
    >>> ldpm = Ldpm.from_config(load_config())
    >>> ldpm.install(["req-test@0.0.0"], "data", InstallOptions(top=True))
    >>> ldpm.cat("req-test")["@id"]
    'req-test/0.0.0'
"""

from ldpm.adapters.cache import FileCache, NullCache
from ldpm.adapters.registry import DirectoryRegistry, HttpRegistry, create_registry
from ldpm.config import RegistryConfig, load_config
from ldpm.core.catalog import CatalogBuilder, CatalogDocument
from ldpm.core.exceptions import (
    CacheCorruptError,
    CacheError,
    ConfigurationError,
    CyclicDependencyError,
    FetchFailedError,
    InvalidIdentifierError,
    InvalidManifestError,
    LayoutConflictError,
    LdpmError,
    PackageNotFoundError,
    WriteFailedError,
)
from ldpm.core.materializer import Materializer
from ldpm.core.models import (
    Attachment,
    CacheEntry,
    DatasetEntry,
    InstallOptions,
    Manifest,
    PackageIdentifier,
    ResolvedNode,
)
from ldpm.core.ports import (
    CachePort,
    NullProgressReporter,
    ProgressCallback,
    ProgressReporter,
    RegistryPort,
)
from ldpm.core.resolver import DependencyResolver, Resolution
from ldpm.core.services import Ldpm
from ldpm.progress import RichProgressReporter


__version__ = "0.1.0"

__all__ = [
    "Attachment",
    "CacheCorruptError",
    "CacheEntry",
    "CacheError",
    "CachePort",
    "CatalogBuilder",
    "CatalogDocument",
    "ConfigurationError",
    "CyclicDependencyError",
    "DatasetEntry",
    "DependencyResolver",
    "DirectoryRegistry",
    "FetchFailedError",
    "FileCache",
    "HttpRegistry",
    "InstallOptions",
    "InvalidIdentifierError",
    "InvalidManifestError",
    "LayoutConflictError",
    "Ldpm",
    "LdpmError",
    "Manifest",
    "Materializer",
    "NullCache",
    "NullProgressReporter",
    "PackageIdentifier",
    "PackageNotFoundError",
    "ProgressCallback",
    "ProgressReporter",
    "RegistryConfig",
    "RegistryPort",
    "Resolution",
    "ResolvedNode",
    "RichProgressReporter",
    "WriteFailedError",
    "__version__",
    "create_registry",
    "load_config",
]
