"""Registry adapter backed by a local directory tree."""

from __future__ import annotations

import json
import mimetypes
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ldpm.core.exceptions import (
    FetchFailedError,
    InvalidManifestError,
    PackageNotFoundError,
)
from ldpm.core.models import Manifest


if TYPE_CHECKING:
    from ldpm.core.ports import ProgressCallback


MANIFEST_FILENAME = "package.json"

_VERSION_PART_RE = re.compile(r"[.+-]")


def version_key(version: str) -> tuple[tuple[int, int | str], ...]:
    """Sort key ordering numeric parts numerically: 0.10.0 > 0.9.1."""
    return tuple(
        (0, int(part)) if part.isdigit() else (1, part)
        for part in _VERSION_PART_RE.split(version)
    )


class DirectoryRegistry:
    """Registry adapter reading published packages from a directory.

    Implements RegistryPort over the layout::

        <root>/<name>/<version>/package.json
        <root>/<name>/<version>/<attachment files...>

    ``latest`` is the highest version directory. Attachment stubs are
    derived from the files on disk, overlaid with any ``_attachments``
    declared in package.json (e.g. an explicit ``role``).
    Useful for local development and testing without a registry server.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def _package_dir(self, name: str) -> Path:
        return self._root.joinpath(*name.split("/"))

    def versions(self, name: str) -> list[str]:
        """List published versions of a package, oldest first."""
        package_dir = self._package_dir(name)
        if not package_dir.is_dir():
            return []
        found = [
            p.name for p in package_dir.iterdir() if (p / MANIFEST_FILENAME).is_file()
        ]
        return sorted(found, key=version_key)

    def get_latest_version(self, name: str) -> str:
        """Return the highest published version."""
        versions = self.versions(name)
        if not versions:
            raise PackageNotFoundError(name)
        return versions[-1]

    def _version_dir(self, name: str, version: str) -> Path:
        version_dir = self._package_dir(name) / version
        if not (version_dir / MANIFEST_FILENAME).is_file():
            raise PackageNotFoundError(f"{name}@{version}")
        return version_dir

    def _files(self, version_dir: Path) -> list[Path]:
        return sorted(
            p
            for p in version_dir.rglob("*")
            if p.is_file() and p.relative_to(version_dir).as_posix() != MANIFEST_FILENAME
        )

    def get_manifest(self, name: str, version: str) -> Manifest:
        """Read package.json and attach stubs for the files beside it."""
        identifier = f"{name}@{version}"
        version_dir = self._version_dir(name, version)
        manifest_path = version_dir / MANIFEST_FILENAME
        try:
            document: dict[str, Any] = json.loads(manifest_path.read_text("utf-8"))
        except json.JSONDecodeError as e:
            raise InvalidManifestError(identifier, f"package.json: {e}") from e
        except OSError as e:
            raise FetchFailedError(identifier, str(e), cause=e) from e
        if not isinstance(document, dict):
            raise InvalidManifestError(identifier, "package.json is not an object")

        declared = document.get("_attachments") or {}
        stubs: dict[str, Any] = {}
        for path in self._files(version_dir):
            filename = path.relative_to(version_dir).as_posix()
            content_type, _ = mimetypes.guess_type(filename)
            stubs[filename] = {
                "content_type": content_type or "application/octet-stream",
                "length": path.stat().st_size,
                **(declared.get(filename) or {}),
            }
        document["_attachments"] = stubs
        return Manifest.from_dict(document, identifier)

    def get_attachments(
        self,
        name: str,
        version: str,
        progress: ProgressCallback | None = None,
    ) -> dict[str, bytes]:
        """Read every file beside package.json."""
        version_dir = self._version_dir(name, version)
        paths = self._files(version_dir)
        total = sum(p.stat().st_size for p in paths)
        fetched = 0
        files: dict[str, bytes] = {}
        for path in paths:
            filename = path.relative_to(version_dir).as_posix()
            try:
                files[filename] = path.read_bytes()
            except OSError as e:
                raise FetchFailedError(f"{name}@{version}/{filename}", str(e), cause=e) from e
            fetched += len(files[filename])
            if progress:
                progress(fetched, total)
        return files
