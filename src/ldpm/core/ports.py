"""Ports between the ldpm core and its adapters.

The resolver, materializer and services only see these protocols; the
registry, cache, progress display and thread pool are plugged in from
``ldpm.adapters`` and ``ldpm.progress``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from concurrent.futures import Future

    from ldpm.core.models import CacheEntry, Manifest, PackageIdentifier

ProgressCallback = Callable[[int, int], None]


@runtime_checkable
class RegistryPort(Protocol):
    """Remote package registry (HTTP registry, local directory tree)."""

    def get_latest_version(self, name: str) -> str:
        """Return the current latest version of a package.

        Raises:
            PackageNotFoundError: If the package has never been published.
            FetchFailedError: On transport or registry-side failures.
        """
        ...

    def get_manifest(self, name: str, version: str) -> Manifest:
        """Fetch and validate the manifest of ``name@version``.

        Raises:
            PackageNotFoundError: If that version does not exist.
            InvalidManifestError: If the document is not a valid manifest.
            FetchFailedError: On transport or registry-side failures.
        """
        ...

    def get_attachments(
        self,
        name: str,
        version: str,
        progress: ProgressCallback | None = None,
    ) -> dict[str, bytes]:
        """Fetch every attachment of ``name@version``.

        Args:
            name: Package name.
            version: Exact version.
            progress: Optional callback function(bytes_fetched, total_bytes).

        Returns:
            File contents keyed by attachment filename.
        """
        ...


@runtime_checkable
class CachePort(Protocol):
    """Store of previously fetched packages, keyed by resolved name@version."""

    def get(self, identifier: PackageIdentifier) -> CacheEntry | None:
        """Get the cached entry, or None if not cached."""
        ...

    def put(self, entry: CacheEntry) -> None:
        """Store an entry. Rewriting an existing key is idempotent."""
        ...


@runtime_checkable
class ProgressReporter(Protocol):
    """Shows attachment download progress, one task per fetched package.

    Tasks may be started and finished from resolver worker threads.
    """

    def start_task(self, name: str, total: int) -> ProgressCallback:
        """Begin reporting a package fetch.

        Args:
            name: The ``name@version`` being fetched.
            total: Sum of the declared attachment lengths, 0 if unknown.

        Returns:
            Callback taking (bytes_fetched, total_bytes).
        """
        ...

    def finish_task(self, name: str) -> None:
        """End the task started under ``name``."""
        ...


class NullProgressReporter:
    """Silent ProgressReporter, used when the caller passes none."""

    def start_task(self, name: str, total: int) -> ProgressCallback:  # noqa: ARG002
        return lambda _fetched, _total: None

    def finish_task(self, name: str) -> None:
        _ = name


@runtime_checkable
class ExecutorPort(Protocol):
    """Runs registry fetches and directory writes.

    A thread pool bounds how many fetches are in flight; a synchronous
    executor gives a strictly sequential run. The core never creates
    threads itself.
    """

    def submit(
        self, fn: Callable[..., object], *args: object, **kwargs: object
    ) -> Future[object]:  # type: ignore[name-defined, unused-ignore]
        """Schedule ``fn(*args, **kwargs)`` and return its future."""
        ...

    def __enter__(self) -> ExecutorPort: ...

    def __exit__(
        self, exc_type: object, exc_val: object, exc_tb: object
    ) -> object | None:
        """Wait for running work; queued work may be dropped on error."""
        ...
