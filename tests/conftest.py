"""Pytest configuration and shared fixtures.

This module registers custom markers for CI job separation and provides
a local directory registry populated with the ``mydpkg-test`` and
``req-test`` packages used throughout the suite.
"""

from __future__ import annotations

import json
import threading
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Callable

    from ldpm.core.models import Manifest
    from ldpm.core.ports import ProgressCallback, RegistryPort


MYDPKG_FILES = {
    "x1.csv": b"a,b\n1,2\n3,4\n",
    "x2.csv": b"a,b\n5,6\n",
    "scripts/test.r": b"print('test')\n",
}

MYDPKG_MANIFEST: dict[str, Any] = {
    "name": "mydpkg-test",
    "version": "0.0.0",
    "description": "my datapackage description",
    "keywords": ["test", "datapackage"],
    "dataset": [
        {"name": "csv1", "path": "x1.csv", "fields": ["a", "b"]},
        {"name": "csv2", "path": "x2.csv", "fields": ["a", "b"]},
    ],
}

REQ_MANIFEST: dict[str, Any] = {
    "name": "req-test",
    "version": "0.0.0",
    "description": "a test for dataDependencies",
    "keywords": ["test", "datapackage"],
    "dataDependencies": {"mydpkg-test": "0.0.0"},
    "dataset": [
        {"name": "azerty", "url": "mydpkg-test/0.0.0/csv1", "fields": ["a"]},
    ],
}


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "core: Core models, ports, and services")
    config.addinivalue_line("markers", "registry: Registry adapters (http, directory)")
    config.addinivalue_line("markers", "cache: File cache adapter")
    config.addinivalue_line("markers", "progress: Rich progress integration")
    config.addinivalue_line("markers", "cli: CLI tests")
    config.addinivalue_line("markers", "e2e: End-to-end tests")
    config.addinivalue_line(
        "markers", "tra: Test Responsibility Anchor (TRA) - namespace.Anchor format"
    )
    config.addinivalue_line(
        "markers",
        "tier: Test tier for CI job separation (0=instant, 1=fast, 2=standard, 3=slow, 4=manual)",
    )


def publish_package(
    root: Path, manifest: dict[str, Any], files: dict[str, bytes] | None = None
) -> Path:
    """Write a package into a directory registry laid out as name/version/."""
    version_dir = root.joinpath(*manifest["name"].split("/"), manifest["version"])
    version_dir.mkdir(parents=True, exist_ok=True)
    (version_dir / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    for filename, content in (files or {}).items():
        path = version_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return version_dir


@pytest.fixture
def publish(tmp_path: Path) -> Callable[..., Path]:
    """Factory publishing packages into the test registry directory."""
    root = tmp_path / "registry"
    root.mkdir(exist_ok=True)

    def _publish(
        manifest: dict[str, Any], files: dict[str, bytes] | None = None
    ) -> Path:
        return publish_package(root, manifest, files)

    return _publish


@pytest.fixture
def registry_root(tmp_path: Path, publish: Callable[..., Path]) -> Path:
    """Directory registry holding mydpkg-test@0.0.0 and req-test@0.0.0."""
    publish(MYDPKG_MANIFEST, MYDPKG_FILES)
    publish(REQ_MANIFEST)
    return tmp_path / "registry"


class CountingRegistry:
    """RegistryPort wrapper recording how often each call is made."""

    def __init__(self, inner: RegistryPort) -> None:
        self._inner = inner
        self._lock = threading.Lock()
        self.calls: Counter[tuple[str, str]] = Counter()

    def _count(self, method: str, key: str) -> None:
        with self._lock:
            self.calls[(method, key)] += 1

    def get_latest_version(self, name: str) -> str:
        self._count("latest", name)
        return self._inner.get_latest_version(name)

    def get_manifest(self, name: str, version: str) -> Manifest:
        self._count("manifest", f"{name}@{version}")
        return self._inner.get_manifest(name, version)

    def get_attachments(
        self,
        name: str,
        version: str,
        progress: ProgressCallback | None = None,
    ) -> dict[str, bytes]:
        self._count("attachments", f"{name}@{version}")
        return self._inner.get_attachments(name, version, progress)

    def count(self, method: str) -> int:
        return sum(n for (m, _), n in self.calls.items() if m == method)


@pytest.fixture
def counting_registry(registry_root: Path) -> CountingRegistry:
    """Counting wrapper around the fixture directory registry."""
    from ldpm.adapters.registry import DirectoryRegistry

    return CountingRegistry(DirectoryRegistry(registry_root))


@pytest.fixture
def mydpkg_files() -> dict[str, bytes]:
    """Attachment contents of mydpkg-test@0.0.0."""
    return dict(MYDPKG_FILES)
