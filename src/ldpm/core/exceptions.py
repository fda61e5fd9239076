"""Domain exceptions for ldpm.

All library errors inherit from LdpmError, allowing users to catch any
library exception with a single except clause. Each exception provides a
recovery_hint property with guidance on resolving the error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class LdpmError(Exception):
    """Base class for all ldpm exceptions.

    Catch this to handle any error from the library.
    """

    @property
    def recovery_hint(self) -> str | None:
        """Optional guidance on how to resolve this error."""
        return None


class InvalidIdentifierError(LdpmError):
    """Raised when a package reference string cannot be parsed.

    Attributes:
        identifier: The raw reference that failed to parse.
        reason: Why it was rejected.
    """

    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Invalid package identifier '{identifier}': {reason}")

    @property
    def recovery_hint(self) -> str:
        """Show the accepted forms."""
        return "Use 'name' for the latest version or 'name@version' for an exact one"


class InvalidManifestError(LdpmError):
    """Raised when a fetched manifest is missing fields or has wrong types.

    Attributes:
        identifier: The package the manifest belongs to.
        reason: What was wrong with it.
    """

    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Invalid manifest for '{identifier}': {reason}")

    @property
    def recovery_hint(self) -> str:
        """Point at the publisher."""
        return f"The published manifest of '{self.identifier}' must be fixed and republished"


class PackageNotFoundError(LdpmError):
    """Raised when the registry has no such package, version, or latest.

    Attributes:
        identifier: The identifier as originally requested.
    """

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Package '{identifier}' not found")

    @property
    def recovery_hint(self) -> str:
        """Suggest checking the name and version."""
        return f"Check that '{self.identifier}' is published on the registry"


class CyclicDependencyError(LdpmError):
    """Raised when a dataDependencies edge closes a cycle.

    Attributes:
        cycle: Identifiers along the cycle, first and last being equal.
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(f"Cyclic data dependency: {' -> '.join(self.cycle)}")

    @property
    def recovery_hint(self) -> str:
        """Name the package that closes the loop."""
        return f"Remove the dependency on '{self.cycle[-1]}' from '{self.cycle[-2]}'"


class FetchFailedError(LdpmError):
    """Raised for transport or registry-side failures other than not-found.

    These carry no side effects, so callers may retry.

    Attributes:
        identifier: The package (or package/file) being fetched.
        status_code: HTTP status returned by the registry, if any.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        identifier: str,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.identifier = identifier
        self.status_code = status_code
        self.cause = cause
        super().__init__(f"Failed to fetch '{identifier}': {message}")

    @property
    def recovery_hint(self) -> str:
        """Suggest retrying."""
        return "The registry request failed; retry the command"


class CacheError(LdpmError):
    """Base class for cache-related errors."""

    pass


class CacheCorruptError(CacheError):
    """Raised when a cache entry is corrupt or unreadable.

    Attributes:
        key: The cache key for the corrupt entry.
        path: The path to the corrupt file.
    """

    def __init__(
        self,
        message: str,
        key: str,
        path: Path,
        cause: Exception | None = None,
    ) -> None:
        self.key = key
        self.path = path
        self.cause = cause
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Suggest deleting the corrupt cache entry."""
        return f"Delete the cache entry for '{self.key}' and re-run"


class WriteFailedError(LdpmError):
    """Raised when materialization cannot write a file.

    Attributes:
        path: The offending path.
        cause: The underlying exception, if any.
    """

    def __init__(
        self, path: Path, message: str = "", cause: Exception | None = None
    ) -> None:
        self.path = path
        self.cause = cause
        detail = message or (str(cause) if cause else "write failed")
        super().__init__(f"Cannot write '{path}': {detail}")

    @property
    def recovery_hint(self) -> str:
        """Installs are idempotent, so a retry is safe."""
        return "Fix the destination permissions or free space and re-run the install"


class LayoutConflictError(WriteFailedError):
    """Raised when two packages would write different content to one path."""

    @property
    def recovery_hint(self) -> str:
        """Explain the version conflict."""
        return "Install conflicting versions of a package into separate directories"


class ConfigurationError(LdpmError):
    """Raised for configuration problems (bad values, unreadable files)."""

    pass
