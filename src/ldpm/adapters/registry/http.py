"""HTTP registry adapter using httpx.

The registry exposes CouchDB-style documents::

    GET {base}/{name}/latest              latest manifest
    GET {base}/{name}/{version}           manifest with ``_attachments`` stubs
    GET {base}/{name}/{version}/{file}    attachment body
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from ldpm.core.exceptions import (
    FetchFailedError,
    InvalidManifestError,
    PackageNotFoundError,
)
from ldpm.core.models import Manifest


if TYPE_CHECKING:
    from types import TracebackType

    from ldpm.core.ports import ProgressCallback


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class HttpRegistry:
    """Registry adapter for a remote linked-data package registry.

    Implements RegistryPort. The underlying ``httpx.Client`` is shared by
    all worker threads; its connection pool bounds concurrent connections.

    Args:
        base_url: Registry root, e.g. ``"https://registry.example.org"``.
        client: Optional preconfigured httpx client (used as-is).
        timeout: Request timeout in seconds for the default client.
        verify: Verify TLS certificates with the default client.
        max_connections: Connection pool size for the default client.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
        max_connections: int = 10,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(
            timeout=timeout,
            verify=verify,
            follow_redirects=True,
            limits=httpx.Limits(max_connections=max_connections),
        )
        self._owns_client = client is None
        self._manifests: dict[tuple[str, str], Manifest] = {}
        self._lock = threading.Lock()

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        """Close the default client."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpRegistry:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _url(self, name: str, *segments: str) -> str:
        parts = [quote(name, safe="@"), *(quote(s, safe="/") for s in segments)]
        return f"{self._base_url}/{'/'.join(parts)}"

    def _get(self, url: str, identifier: str) -> httpx.Response:
        """GET a url, translating failures into domain errors."""
        logger.debug("GET %s", url)
        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            raise FetchFailedError(identifier, str(e) or type(e).__name__, cause=e) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            raise PackageNotFoundError(identifier)
        if response.is_error:
            raise FetchFailedError(
                identifier,
                f"registry answered {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def _get_json(self, url: str, identifier: str) -> dict[str, Any]:
        response = self._get(url, identifier)
        try:
            document = response.json()
        except ValueError as e:
            raise InvalidManifestError(identifier, "response is not JSON") from e
        if not isinstance(document, dict):
            raise InvalidManifestError(identifier, "response is not a JSON object")
        return document

    def get_latest_version(self, name: str) -> str:
        """Ask the registry which version ``latest`` currently points to."""
        document = self._get_json(self._url(name, "latest"), name)
        version = document.get("version")
        if not isinstance(version, str) or not version:
            raise InvalidManifestError(name, "latest document has no 'version'")
        return version

    def _fetch_manifest(self, name: str, version: str) -> Manifest:
        identifier = f"{name}@{version}"
        document = self._get_json(self._url(name, version), identifier)
        return Manifest.from_dict(document, identifier)

    def get_manifest(self, name: str, version: str) -> Manifest:
        """Fetch the manifest document of ``name@version``."""
        manifest = self._fetch_manifest(name, version)
        with self._lock:
            self._manifests[(name, version)] = manifest
        return manifest

    def get_attachments(
        self,
        name: str,
        version: str,
        progress: ProgressCallback | None = None,
    ) -> dict[str, bytes]:
        """Download every attachment listed in the manifest's stubs.

        Raises:
            FetchFailedError: If a declared attachment cannot be downloaded.
        """
        with self._lock:
            manifest = self._manifests.pop((name, version), None)
        if manifest is None:
            manifest = self._fetch_manifest(name, version)

        identifier = f"{name}@{version}"
        total = sum(a.length or 0 for a in manifest.attachments)
        fetched = 0
        files: dict[str, bytes] = {}
        for attachment in manifest.attachments:
            label = f"{identifier}/{attachment.filename}"
            try:
                response = self._get(
                    self._url(name, version, attachment.filename), label
                )
            except PackageNotFoundError as e:
                raise FetchFailedError(
                    label, "declared attachment is missing", status_code=404, cause=e
                ) from e
            files[attachment.filename] = response.content
            fetched += len(response.content)
            if progress:
                progress(fetched, max(total, fetched))
        return files
