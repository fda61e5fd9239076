"""Pass-through cache used when caching is disabled."""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from ldpm.core.models import CacheEntry, PackageIdentifier


class NullCache:
    """A CachePort that always misses and never stores anything."""

    def get(self, identifier: PackageIdentifier) -> CacheEntry | None:  # noqa: ARG002
        """Always miss."""
        return None

    def put(self, entry: CacheEntry) -> None:
        """Discard the entry."""
        _ = entry  # Unused but required by protocol
