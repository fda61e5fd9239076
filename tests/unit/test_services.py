"""Unit tests for the Ldpm service."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def ldpm(counting_registry, tmp_path: Path):
    from ldpm import FileCache, Ldpm

    return Ldpm(counting_registry, FileCache(tmp_path / "cache"), max_workers=2)


@pytest.mark.core
class TestConstruction:
    def test_rejects_zero_workers(self, counting_registry) -> None:
        from ldpm import Ldpm, NullCache

        with pytest.raises(ValueError, match="max_workers"):
            Ldpm(counting_registry, NullCache(), max_workers=0)

    def test_from_config_wires_directory_registry(
        self, registry_root: Path, tmp_path: Path
    ) -> None:
        from ldpm import DirectoryRegistry, FileCache, Ldpm, RegistryConfig

        config = RegistryConfig(
            registry_url=str(registry_root), cache_dir=tmp_path / "c", max_workers=1
        )
        service = Ldpm.from_config(config)

        assert isinstance(service._registry, DirectoryRegistry)
        assert isinstance(service.cache, FileCache)
        assert service.cache.cache_dir == tmp_path / "c"

    def test_from_config_wires_http_registry(self, tmp_path: Path) -> None:
        from ldpm import HttpRegistry, Ldpm, RegistryConfig

        config = RegistryConfig(registry_url="https://registry.test", cache_dir=tmp_path)
        service = Ldpm.from_config(config)

        assert isinstance(service._registry, HttpRegistry)
        service._registry.close()

    def test_context_manager_closes_http_client(self, tmp_path: Path) -> None:
        from ldpm import Ldpm, RegistryConfig

        config = RegistryConfig(registry_url="https://registry.test", cache_dir=tmp_path)
        with Ldpm.from_config(config) as service:
            client = service._registry._client

        assert client.is_closed

    def test_close_tolerates_registry_without_close(self, counting_registry) -> None:
        from ldpm import Ldpm, NullCache

        Ldpm(counting_registry, NullCache()).close()


@pytest.mark.core
class TestResolveAndInstall:
    def test_install_writes_and_returns_roots(self, ldpm, tmp_path: Path) -> None:
        from ldpm import InstallOptions

        nodes = ldpm.install(["req-test@0.0.0"], tmp_path / "d", InstallOptions(top=True))

        assert [str(n.identifier) for n in nodes] == ["req-test@0.0.0"]
        assert (tmp_path / "d" / "req-test" / "package.json").is_file()

    def test_install_accepts_string_destination(self, ldpm, tmp_path: Path) -> None:
        ldpm.install(["mydpkg-test"], str(tmp_path / "d"))
        assert (tmp_path / "d" / "datapackages" / "mydpkg-test" / "x1.csv").is_file()

    def test_second_install_hits_cache(
        self, ldpm, counting_registry, tmp_path: Path
    ) -> None:
        ldpm.install(["req-test@0.0.0"], tmp_path / "a")
        ldpm.install(["req-test@0.0.0"], tmp_path / "b")

        assert counting_registry.count("manifest") == 2

    def test_uncached_install_refetches(
        self, ldpm, counting_registry, tmp_path: Path
    ) -> None:
        from ldpm import InstallOptions

        options = InstallOptions(cache=False)
        ldpm.install(["req-test@0.0.0"], tmp_path / "a", options)
        ldpm.install(["req-test@0.0.0"], tmp_path / "b", options)

        assert counting_registry.count("manifest") == 4
        assert not (tmp_path / "cache").exists()

    def test_failed_resolution_writes_nothing(self, ldpm, tmp_path: Path) -> None:
        from ldpm import PackageNotFoundError

        with pytest.raises(PackageNotFoundError):
            ldpm.install(["req-test@0.0.0", "ghost"], tmp_path / "d")

        assert not (tmp_path / "d").exists()

    def test_resolve_each(self, ldpm) -> None:
        good, bad = ldpm.resolve_each(["req-test", "ghost@2.0.0"])

        assert good.ok
        assert not bad.ok
        assert str(bad.identifier) == "ghost@2.0.0"


@pytest.mark.core
class TestCat:
    def test_cat_renders_catalog(self, ldpm) -> None:
        document = ldpm.cat("req-test")

        assert document["@id"] == "req-test/0.0.0"
        assert document["dataset"][0]["@id"] == "mydpkg-test/0.0.0/csv1"

    def test_catalog_base(self, counting_registry) -> None:
        from ldpm import Ldpm, NullCache

        service = Ldpm(counting_registry, NullCache(), catalog_base="http://r")

        assert service.cat("req-test@0.0.0")["@id"] == "http://r/req-test/0.0.0"
