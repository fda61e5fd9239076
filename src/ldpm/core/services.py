"""Core domain services for ldpm."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from ldpm.core.catalog import CatalogBuilder, CatalogDocument
from ldpm.core.materializer import Materializer
from ldpm.core.models import InstallOptions, PackageIdentifier, ResolvedNode
from ldpm.core.resolver import DependencyResolver, Resolution


if TYPE_CHECKING:
    from ldpm.config import RegistryConfig
    from ldpm.core.ports import (
        CachePort,
        ExecutorPort,
        ProgressReporter,
        RegistryPort,
    )


logger = logging.getLogger(__name__)

IdentifierLike = str | PackageIdentifier


def _as_identifiers(identifiers: Iterable[IdentifierLike]) -> list[PackageIdentifier]:
    return [
        i if isinstance(i, PackageIdentifier) else PackageIdentifier.parse(i)
        for i in identifiers
    ]


class Ldpm:
    """Orchestrates resolution, installation and catalog rendering.

    Args:
        registry: Registry adapter to fetch packages from.
        cache: Durable cache, used unless a call disables caching.
        max_workers: Concurrent registry fetches and directory writes.
            Use 1 for fully sequential operation.
        catalog_base: Namespace prefix for rendered catalog ids.

    Example:
        >>> ldpm = Ldpm.from_config(load_config())
        >>> ldpm.install(["req-test@0.0.0"], Path("."), InstallOptions(top=True))
    """

    def __init__(
        self,
        registry: RegistryPort,
        cache: CachePort,
        max_workers: int = 4,
        catalog_base: str = "",
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._registry = registry
        self._cache = cache
        self._max_workers = max_workers
        self._catalog = CatalogBuilder(catalog_base)

    @classmethod
    def from_config(cls, config: RegistryConfig) -> Ldpm:
        """Create an Ldpm wired to the configured registry and file cache.

        Args:
            config: Registry URL, cache directory and tuning values.

        Returns:
            Ldpm with the registry adapter for the configured location
            and a FileCache.
        """
        from ldpm.adapters.cache import FileCache
        from ldpm.adapters.registry import create_registry

        return cls(
            registry=create_registry(
                config.registry_url,
                timeout=config.timeout,
                verify=config.strict_ssl,
            ),
            cache=FileCache(config.cache_dir),
            max_workers=config.max_workers,
        )

    @property
    def cache(self) -> CachePort:
        return self._cache

    def _make_executor(self) -> ExecutorPort:
        from ldpm.adapters.executor import (
            SynchronousExecutor,
            ThreadPoolExecutorAdapter,
        )

        if self._max_workers == 1:
            return SynchronousExecutor()
        return ThreadPoolExecutorAdapter(max_workers=self._max_workers)

    def _cache_for(self, use_cache: bool) -> CachePort:
        if use_cache:
            return self._cache
        from ldpm.adapters.cache import NullCache

        return NullCache()

    def resolve(
        self,
        identifiers: Iterable[IdentifierLike],
        *,
        cache: bool = True,
        progress: ProgressReporter | None = None,
    ) -> list[ResolvedNode]:
        """Resolve identifiers and their transitive data dependencies.

        Args:
            identifiers: ``name`` / ``name@version`` strings or identifiers.
            cache: If False, always fetch from the registry and store nothing.
            progress: Optional progress reporter for downloads.

        Returns:
            One ResolvedNode per identifier, in the same order.

        Raises:
            InvalidIdentifierError: If a string cannot be parsed.
            PackageNotFoundError: If a package in any graph is missing.
            CyclicDependencyError: If a graph contains a cycle.
            FetchFailedError: If the registry could not be reached.
        """
        roots = _as_identifiers(identifiers)
        with self._make_executor() as executor:
            resolver = DependencyResolver(
                self._registry, self._cache_for(cache), executor, progress
            )
            return resolver.resolve(roots)

    def resolve_each(
        self,
        identifiers: Iterable[IdentifierLike],
        *,
        cache: bool = True,
        progress: ProgressReporter | None = None,
    ) -> list[Resolution]:
        """Like resolve(), but report each root's success or error separately."""
        roots = _as_identifiers(identifiers)
        with self._make_executor() as executor:
            resolver = DependencyResolver(
                self._registry, self._cache_for(cache), executor, progress
            )
            return resolver.resolve_each(roots)

    def install(
        self,
        identifiers: Iterable[IdentifierLike],
        destination: Path | str,
        options: InstallOptions | None = None,
        progress: ProgressReporter | None = None,
    ) -> list[ResolvedNode]:
        """Resolve identifiers and write them under destination.

        Args:
            identifiers: Packages to install.
            destination: Target directory.
            options: top / all_files / cache switches.
            progress: Optional progress reporter for downloads.

        Returns:
            The resolved root nodes that were written.

        Raises:
            WriteFailedError: If a file cannot be written.
            LdpmError: Any resolution error, unchanged.
        """
        options = options or InstallOptions()
        destination = Path(destination)
        nodes = self.resolve(identifiers, cache=options.cache, progress=progress)
        with self._make_executor() as executor:
            Materializer(executor).materialize(nodes, destination, options)
        logger.info(
            "Installed %s into %s", ", ".join(str(n.identifier) for n in nodes), destination
        )
        return nodes

    def cat(
        self,
        identifier: IdentifierLike,
        *,
        cache: bool = True,
    ) -> CatalogDocument:
        """Resolve a package and render it as a JSON-LD catalog document.

        Raises:
            PackageNotFoundError: If the package (or a dependency) is missing.
        """
        (node,) = self.resolve([identifier], cache=cache)
        return self.render(node)

    def render(self, node: ResolvedNode) -> CatalogDocument:
        """Render an already-resolved node; performs no I/O."""
        return self._catalog.render(node)

    def close(self) -> None:
        """Release the registry's connections, if it holds any."""
        close = getattr(self._registry, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> Ldpm:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
