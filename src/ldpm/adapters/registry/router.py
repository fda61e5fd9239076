"""Choose a registry adapter from a registry location."""

from __future__ import annotations

from pathlib import Path

from ldpm.adapters.registry.directory import DirectoryRegistry
from ldpm.adapters.registry.http import DEFAULT_TIMEOUT, HttpRegistry
from ldpm.core.exceptions import ConfigurationError


def parse_uri_scheme(uri: str) -> str | None:
    """Extract the URI scheme from a registry location.

    Args:
        uri: Registry URL or directory path.

    Returns:
        The scheme (e.g., 'https', 'file') or None for local paths.
    """
    if "://" in uri:
        scheme = uri.split("://", 1)[0]
        # Avoid confusing Windows drive letters (C:) with schemes
        if len(scheme) > 1:
            return scheme.lower()
    return None


def strip_file_scheme(uri: str) -> str:
    """Strip file:// prefix from URI, returning plain path."""
    if uri.startswith("file://"):
        return uri[len("file://") :]
    return uri


def create_registry(
    location: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    verify: bool = True,
) -> HttpRegistry | DirectoryRegistry:
    """Create the adapter serving ``location``.

    ``http://`` and ``https://`` URLs get an HttpRegistry; ``file://`` URLs
    and plain paths get a DirectoryRegistry.

    Raises:
        ConfigurationError: For any other scheme.
    """
    scheme = parse_uri_scheme(location)
    if scheme in ("http", "https"):
        return HttpRegistry(location, timeout=timeout, verify=verify)
    if scheme in (None, "file"):
        return DirectoryRegistry(Path(strip_file_scheme(location)))
    raise ConfigurationError(f"No registry adapter for scheme '{scheme}' ({location})")
