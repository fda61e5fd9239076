"""Dependency resolution over the registry.

The resolver expands each root identifier depth-first into a tree of
ResolvedNode values. Fetches of a node's children are fanned out through an
ExecutorPort; recursion and assembly stay in the calling thread, so worker
threads only ever run leaf fetches and never wait on each other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

from ldpm.core.exceptions import (
    CyclicDependencyError,
    InvalidManifestError,
    LdpmError,
    PackageNotFoundError,
)
from ldpm.core.models import CacheEntry, PackageIdentifier, ResolvedNode
from ldpm.core.ports import NullProgressReporter


if TYPE_CHECKING:
    from collections.abc import Sequence
    from concurrent.futures import Future

    from ldpm.core.ports import (
        CachePort,
        ExecutorPort,
        ProgressReporter,
        RegistryPort,
    )


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving one root identifier.

    Exactly one of ``node`` and ``error`` is set.
    """

    identifier: PackageIdentifier
    node: ResolvedNode | None = None
    error: LdpmError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DependencyResolver:
    """Computes the transitive closure of dataDependencies.

    One resolver instance is one resolution run: every resolved
    ``name@version`` is fetched at most once per instance, no matter how
    many graph positions reference it. Create a new resolver per run.

    Args:
        registry: Source of manifests and attachments.
        cache: Consulted before, and populated after, every registry fetch.
        executor: Runs fetches; a thread pool gives bounded concurrency.
        progress: Optional progress reporter for attachment downloads.
    """

    def __init__(
        self,
        registry: RegistryPort,
        cache: CachePort,
        executor: ExecutorPort,
        progress: ProgressReporter | None = None,
    ) -> None:
        self._registry = registry
        self._cache = cache
        self._executor = executor
        self._progress = progress or NullProgressReporter()
        # Only touched from the calling thread
        self._latest: dict[str, Future[object]] = {}
        self._loads: dict[PackageIdentifier, Future[object]] = {}

    def resolve(self, roots: Sequence[PackageIdentifier]) -> list[ResolvedNode]:
        """Resolve every root, raising the first failure in root order.

        All roots are attempted before raising, so a failing root does not
        prevent the others from being fetched (and cached).

        Raises:
            PackageNotFoundError: If any package in a graph is missing.
            CyclicDependencyError: If a graph contains a cycle.
            FetchFailedError: If the registry could not be reached.
        """
        nodes = []
        for resolution in self.resolve_each(roots):
            if resolution.error is not None:
                raise resolution.error
            assert resolution.node is not None
            nodes.append(resolution.node)
        return nodes

    def resolve_each(self, roots: Sequence[PackageIdentifier]) -> list[Resolution]:
        """Resolve every root independently, capturing per-root errors."""
        results = []
        for root in roots:
            try:
                node = self._resolve_root(root)
            except LdpmError as e:
                logger.debug("Resolution of %s failed: %s", root, e)
                results.append(Resolution(identifier=root, error=e))
            else:
                results.append(Resolution(identifier=root, node=node))
        return results

    def _resolve_root(self, root: PackageIdentifier) -> ResolvedNode:
        (entry,) = self._fetch_all([root])
        return self._expand(entry, path=())

    def _expand(self, entry: CacheEntry, path: tuple[str, ...]) -> ResolvedNode:
        key = str(entry.identifier)
        if key in path:
            cycle = [*path[path.index(key) :], key]
            raise CyclicDependencyError(cycle)

        child_path = (*path, key)
        child_entries = self._fetch_all(entry.manifest.data_dependencies)
        children = tuple(self._expand(child, child_path) for child in child_entries)

        return ResolvedNode(
            manifest=entry.manifest,
            children=children,
            attachments=entry.attachments,
        )

    def _fetch_all(self, requested: Sequence[PackageIdentifier]) -> list[CacheEntry]:
        """Fetch a batch of identifiers concurrently, in declaration order."""
        if not requested:
            return []

        # Pin "latest" references first so loads are keyed by concrete versions
        latest = {
            dep.name: self._schedule_latest(dep.name)
            for dep in requested
            if dep.is_latest
        }
        versions = self._gather(list(latest.values()))
        pinned = dict(zip(latest, versions, strict=True))

        loads = [
            self._schedule_load(
                dep.with_version(pinned[dep.name]) if dep.is_latest else dep, dep
            )
            for dep in requested
        ]
        entries = self._gather(loads)
        return [cast("CacheEntry", e) for e in entries]

    def _schedule_latest(self, name: str) -> Future[object]:
        future = self._latest.get(name)
        if future is None:
            future = self._executor.submit(self._lookup_latest, name)
            self._latest[name] = future
        return future

    def _schedule_load(
        self, resolved: PackageIdentifier, requested: PackageIdentifier
    ) -> Future[object]:
        future = self._loads.get(resolved)
        if future is None:
            future = self._executor.submit(self._load, resolved, requested)
            self._loads[resolved] = future
        return future

    def _gather(self, futures: list[Future[object]]) -> list[object]:
        """Wait for futures in order; on failure cancel the rest and re-raise."""
        results = []
        try:
            for future in futures:
                results.append(future.result())
        except BaseException:
            for future in futures:
                future.cancel()
            self._forget_cancelled()
            raise
        return results

    def _forget_cancelled(self) -> None:
        for memo in (self._latest, self._loads):
            for key in [k for k, f in memo.items() if f.cancelled()]:
                del memo[key]

    def _lookup_latest(self, name: str) -> str:
        version = self._registry.get_latest_version(name)
        logger.debug("Resolved %s@latest to %s", name, version)
        return version

    def _load(
        self, resolved: PackageIdentifier, requested: PackageIdentifier
    ) -> CacheEntry:
        """Return the cached entry for ``resolved``, fetching it on a miss."""
        cached = self._cache.get(resolved)
        if cached is not None:
            logger.debug("Cache hit for %s", resolved)
            return cached

        logger.info("Fetching %s", resolved)
        try:
            manifest = self._registry.get_manifest(resolved.name, resolved.version)
        except PackageNotFoundError as e:
            if e.identifier == str(requested):
                raise
            raise PackageNotFoundError(str(requested)) from e

        if manifest.identifier != resolved:
            raise InvalidManifestError(
                str(resolved),
                f"registry returned manifest for '{manifest.identifier}'",
            )

        total = sum(a.length or 0 for a in manifest.attachments)
        task = str(resolved)
        callback = self._progress.start_task(task, total)
        try:
            attachments = self._registry.get_attachments(
                resolved.name, resolved.version, callback
            )
        finally:
            self._progress.finish_task(task)

        entry = CacheEntry(
            identifier=resolved, manifest=manifest, attachments=attachments
        )
        self._cache.put(entry)
        return entry
