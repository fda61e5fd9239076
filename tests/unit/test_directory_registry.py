"""Unit tests for DirectoryRegistry adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest


if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.mark.registry
class TestVersions:
    """Tests for version listing and latest."""

    def test_versions_sorted_numerically(
        self, tmp_path: Path, publish: Callable[..., Path]
    ) -> None:
        from ldpm.adapters.registry import DirectoryRegistry

        for version in ("0.9.1", "0.10.0", "0.2.0"):
            publish({"name": "tool", "version": version})

        registry = DirectoryRegistry(tmp_path / "registry")

        assert registry.versions("tool") == ["0.2.0", "0.9.1", "0.10.0"]
        assert registry.get_latest_version("tool") == "0.10.0"

    def test_unknown_package_not_found(self, registry_root: Path) -> None:
        from ldpm.adapters.registry import DirectoryRegistry
        from ldpm.core.exceptions import PackageNotFoundError

        registry = DirectoryRegistry(registry_root)

        assert registry.versions("ghost") == []
        with pytest.raises(PackageNotFoundError, match="ghost"):
            registry.get_latest_version("ghost")

    def test_version_key_is_numeric_aware(self) -> None:
        from ldpm.adapters.registry.directory import version_key

        assert version_key("1.0.0") < version_key("1.0.1")
        assert version_key("10.0.0") > version_key("2.0.0")


@pytest.mark.registry
class TestManifest:
    """Tests for get_manifest()."""

    def test_attachment_stubs_come_from_files(self, registry_root: Path) -> None:
        from ldpm.adapters.registry import DirectoryRegistry

        manifest = DirectoryRegistry(registry_root).get_manifest("mydpkg-test", "0.0.0")

        stubs = {a.filename: a for a in manifest.attachments}
        assert sorted(stubs) == ["scripts/test.r", "x1.csv", "x2.csv"]
        assert stubs["x1.csv"].content_type == "text/csv"
        assert stubs["x1.csv"].length == len(b"a,b\n1,2\n3,4\n")
        assert stubs["scripts/test.r"].role == "script"

    def test_declared_stub_overrides_detected_values(
        self, tmp_path: Path, publish: Callable[..., Path]
    ) -> None:
        from ldpm.adapters.registry import DirectoryRegistry

        publish(
            {
                "name": "p",
                "version": "1.0.0",
                "_attachments": {"run.py": {"role": "script"}},
            },
            {"run.py": b"print(1)\n", "data.json": b"{}"},
        )

        manifest = DirectoryRegistry(tmp_path / "registry").get_manifest("p", "1.0.0")

        assert manifest.role_of("run.py") == "script"
        assert manifest.role_of("data.json") == "data"

    def test_missing_version_not_found(self, registry_root: Path) -> None:
        from ldpm.adapters.registry import DirectoryRegistry
        from ldpm.core.exceptions import PackageNotFoundError

        with pytest.raises(PackageNotFoundError) as exc_info:
            DirectoryRegistry(registry_root).get_manifest("req-test", "9.9.9")

        assert exc_info.value.identifier == "req-test@9.9.9"

    def test_broken_package_json(self, tmp_path: Path) -> None:
        from ldpm.adapters.registry import DirectoryRegistry
        from ldpm.core.exceptions import InvalidManifestError

        version_dir = tmp_path / "broken" / "1.0.0"
        version_dir.mkdir(parents=True)
        (version_dir / "package.json").write_text("{oops")

        with pytest.raises(InvalidManifestError, match="broken@1.0.0"):
            DirectoryRegistry(tmp_path).get_manifest("broken", "1.0.0")


@pytest.mark.registry
class TestAttachments:
    """Tests for get_attachments()."""

    def test_reads_every_file(
        self, registry_root: Path, mydpkg_files: dict[str, bytes]
    ) -> None:
        from ldpm.adapters.registry import DirectoryRegistry

        files = DirectoryRegistry(registry_root).get_attachments("mydpkg-test", "0.0.0")

        assert files == mydpkg_files

    def test_reports_progress(
        self, registry_root: Path, mydpkg_files: dict[str, bytes]
    ) -> None:
        from ldpm.adapters.registry import DirectoryRegistry

        calls: list[tuple[int, int]] = []
        DirectoryRegistry(registry_root).get_attachments(
            "mydpkg-test", "0.0.0", lambda done, total: calls.append((done, total))
        )

        total = sum(len(c) for c in mydpkg_files.values())
        assert len(calls) == 3
        assert calls[-1] == (total, total)

    def test_package_without_files(self, registry_root: Path) -> None:
        from ldpm.adapters.registry import DirectoryRegistry

        assert DirectoryRegistry(registry_root).get_attachments("req-test", "0.0.0") == {}

    def test_satisfies_registry_port(self, registry_root: Path) -> None:
        from ldpm.adapters.registry import DirectoryRegistry
        from ldpm.core.ports import RegistryPort

        assert isinstance(DirectoryRegistry(registry_root), RegistryPort)
