"""File-based cache adapter implementing CachePort."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any

from ldpm.core.exceptions import CacheCorruptError, CacheError, InvalidManifestError
from ldpm.core.models import CacheEntry, Manifest, PackageIdentifier


if TYPE_CHECKING:
    import builtins


logger = logging.getLogger(__name__)

ENTRY_FILENAME = "entry.json"
FILES_DIRNAME = "files"


class FileCache:
    """Durable package cache, one directory per resolved ``name@version``.

    Layout::

        <cache_dir>/<name>/<version>/entry.json
        <cache_dir>/<name>/<version>/files/<attachment filename>

    Published versions are immutable, so entries never expire. Entries are
    assembled in a temporary directory and renamed into place, so readers
    never see a partial entry and concurrent writers of the same key are
    harmless.

    Attributes:
        cache_dir: Directory where cached packages are stored.
    """

    def __init__(self, cache_dir: Path) -> None:
        """Initialize the cache with a directory path.

        Args:
            cache_dir: Directory where cached packages will be stored.
        """
        self.cache_dir = Path(cache_dir)

    def _entry_dir(self, identifier: PackageIdentifier) -> Path:
        """Get the directory for a cached package."""
        if identifier.is_latest:
            raise CacheError(f"Cannot cache unresolved identifier '{identifier}'")
        parts = [*PurePosixPath(identifier.name).parts, identifier.version]
        if ".." in parts or any(p in ("", ".", "/") for p in parts):
            raise CacheError(f"Identifier '{identifier}' is not a safe cache key")
        return self.cache_dir.joinpath(*parts)

    def get(self, identifier: PackageIdentifier) -> CacheEntry | None:
        """Get a cached package, or None if not cached.

        Args:
            identifier: Resolved identifier.

        Returns:
            The cached entry, or None.

        Raises:
            CacheCorruptError: If the entry exists but cannot be read back.
        """
        entry_dir = self._entry_dir(identifier)
        meta_path = entry_dir / ENTRY_FILENAME
        if not meta_path.exists():
            return None

        key = str(identifier)
        try:
            with meta_path.open(encoding="utf-8") as f:
                data = json.load(f)
            document = dict(data["manifest"])
            document["_attachments"] = data.get("attachments", {})
            manifest = Manifest.from_dict(document, key)
            fetched_at = datetime.fromisoformat(data["fetched_at"])
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise CacheCorruptError(
                f"Cache entry corrupt for '{key}'", key=key, path=meta_path, cause=e
            ) from e
        except InvalidManifestError as e:
            raise CacheCorruptError(
                f"Cached manifest invalid for '{key}'", key=key, path=meta_path, cause=e
            ) from e

        attachments: dict[str, bytes] = {}
        for filename in data.get("files", []):
            file_path = entry_dir / FILES_DIRNAME / filename
            try:
                attachments[filename] = file_path.read_bytes()
            except OSError as e:
                raise CacheCorruptError(
                    f"Cached attachment missing for '{key}'",
                    key=key,
                    path=file_path,
                    cause=e,
                ) from e

        return CacheEntry(
            identifier=identifier,
            manifest=manifest,
            attachments=attachments,
            fetched_at=fetched_at,
        )

    def put(self, entry: CacheEntry) -> None:
        """Store a package in the cache.

        If the key is already present the existing entry is kept; the
        registry guarantees a published version never changes.

        Args:
            entry: The fetched package.
        """
        entry_dir = self._entry_dir(entry.identifier)
        if (entry_dir / ENTRY_FILENAME).exists():
            return

        entry_dir.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(dir=entry_dir.parent, prefix=".tmp-"))
        try:
            for filename, content in entry.attachments.items():
                file_path = staging / FILES_DIRNAME / filename
                file_path.parent.mkdir(parents=True, exist_ok=True)
                file_path.write_bytes(content)

            with (staging / ENTRY_FILENAME).open("w", encoding="utf-8") as f:
                json.dump(self._serialize(entry), f)

            try:
                os.rename(staging, entry_dir)
            except OSError:
                # Another writer got there first; content is identical
                if not (entry_dir / ENTRY_FILENAME).exists():
                    raise
                logger.debug("Cache entry for %s already written", entry.identifier)
            else:
                logger.debug("Cached %s in %s", entry.identifier, entry_dir)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    @staticmethod
    def _serialize(entry: CacheEntry) -> dict[str, Any]:
        manifest = entry.manifest
        return {
            "identifier": str(entry.identifier),
            "fetched_at": entry.fetched_at.isoformat(),
            "manifest": manifest.to_dict(),
            "attachments": {
                a.filename: {
                    "content_type": a.content_type,
                    "length": a.length,
                    "role": a.role,
                }
                for a in manifest.attachments
            },
            "files": sorted(entry.attachments),
        }

    def invalidate(self, identifier: PackageIdentifier) -> None:
        """Remove a package from the cache.

        Args:
            identifier: Resolved identifier to drop.
        """
        shutil.rmtree(self._entry_dir(identifier), ignore_errors=True)

    def list_all_keys(self) -> builtins.list[str]:
        """List all cached identifiers as ``name@version`` strings, sorted."""
        if not self.cache_dir.exists():
            return []
        keys = []
        for meta_path in self.cache_dir.rglob(ENTRY_FILENAME):
            relative = meta_path.parent.relative_to(self.cache_dir)
            if any(part.startswith(".tmp-") for part in relative.parts):
                continue
            *name_parts, version = relative.parts
            if name_parts:
                keys.append(f"{'/'.join(name_parts)}@{version}")
        return sorted(keys)

    def clear(self) -> int:
        """Remove every cached package.

        Returns:
            Number of entries removed.
        """
        count = len(self.list_all_keys())
        if self.cache_dir.exists():
            for child in self.cache_dir.iterdir():
                if child.is_dir():
                    shutil.rmtree(child, ignore_errors=True)
                else:
                    child.unlink(missing_ok=True)
        return count

    def size(self) -> int:
        """Calculate total cache size in bytes."""
        return self.statistics()["total_size"]

    def statistics(self) -> dict[str, int]:
        """Get cache statistics.

        Returns:
            Dictionary with 'total_size' (bytes), 'file_count' (number of
            files) and 'entry_count' (number of cached packages).
        """
        total_size = 0
        file_count = 0

        if not self.cache_dir.exists():
            return {"total_size": 0, "file_count": 0, "entry_count": 0}

        for file_path in self.cache_dir.rglob("*"):
            if file_path.is_file():
                with contextlib.suppress(OSError):
                    total_size += file_path.stat().st_size
                    file_count += 1

        return {
            "total_size": total_size,
            "file_count": file_count,
            "entry_count": len(self.list_all_keys()),
        }
