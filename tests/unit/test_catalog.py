"""Unit tests for CatalogBuilder."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from ldpm.core.models import ResolvedNode


def _node(document: dict[str, Any], *children: ResolvedNode) -> ResolvedNode:
    from ldpm.core.models import Manifest, ResolvedNode

    return ResolvedNode(manifest=Manifest.from_dict(document), children=children)


@pytest.fixture
def req_node() -> ResolvedNode:
    child = _node(
        {
            "name": "mydpkg-test",
            "version": "0.0.0",
            "dataset": [{"name": "csv1", "path": "x1.csv", "fields": ["a", "b"]}],
            "_attachments": {"x1.csv": {"content_type": "text/csv", "length": 12}},
        }
    )
    return _node(
        {
            "name": "req-test",
            "version": "0.0.0",
            "description": "a test for dataDependencies",
            "keywords": ["test", "datapackage"],
            "dataDependencies": {"mydpkg-test": "0.0.0"},
            "dataset": [
                {"name": "azerty", "url": "mydpkg-test/0.0.0/csv1", "fields": ["a"]}
            ],
        },
        child,
    )


@pytest.mark.core
class TestRender:
    """Tests for CatalogBuilder.render()."""

    def test_renders_package_with_one_dependency(self, req_node: ResolvedNode) -> None:
        from ldpm.core.catalog import CatalogBuilder

        assert CatalogBuilder().render(req_node) == {
            "@id": "req-test/0.0.0",
            "@type": "DataCatalog",
            "name": "req-test",
            "description": "a test for dataDependencies",
            "dataDependencies": ["mydpkg-test/0.0.0"],
            "version": "0.0.0",
            "keywords": ["test", "datapackage"],
            "dataset": [
                {
                    "@id": "mydpkg-test/0.0.0/csv1",
                    "@type": "DataSet",
                    "name": "azerty",
                    "url": "mydpkg-test/0.0.0/csv1",
                    "fields": ["a"],
                    "distribution": {
                        "isBasedOnUrl": "mydpkg-test/0.0.0/csv1",
                        "@type": "DataDownload",
                    },
                    "catalog": {
                        "name": "req-test",
                        "version": "0.0.0",
                        "url": "req-test/0.0.0",
                    },
                }
            ],
            "catalog": {"name": "req-test", "url": "req-test"},
        }

    def test_top_level_key_order_is_stable(self, req_node: ResolvedNode) -> None:
        from ldpm.core.catalog import CatalogBuilder

        assert list(CatalogBuilder().render(req_node)) == [
            "@id",
            "@type",
            "name",
            "description",
            "dataDependencies",
            "version",
            "keywords",
            "dataset",
            "catalog",
        ]

    def test_rendering_is_deterministic(self, req_node: ResolvedNode) -> None:
        import json

        from ldpm.core.catalog import CatalogBuilder

        builder = CatalogBuilder()
        assert json.dumps(builder.render(req_node)) == json.dumps(
            builder.render(req_node)
        )

    @pytest.mark.parametrize(
        "url", ["mydpkg-test/csv1", "mydpkg-test/latest/csv1", "mydpkg-test/0.0.0/csv1"]
    )
    def test_child_reference_forms(self, url: str) -> None:
        """Unversioned and latest references resolve to the child's version."""
        from ldpm.core.catalog import CatalogBuilder

        child = _node({"name": "mydpkg-test", "version": "0.0.0"})
        node = _node(
            {
                "name": "req-test",
                "version": "0.0.0",
                "dataDependencies": ["mydpkg-test"],
                "dataset": [{"name": "azerty", "url": url}],
            },
            child,
        )

        (entry,) = CatalogBuilder().render(node)["dataset"]
        assert entry["@id"] == "mydpkg-test/0.0.0/csv1"
        assert entry["distribution"]["isBasedOnUrl"] == url

    @pytest.mark.parametrize("url", ["mydpkg-test/0.0.0", "mydpkg-test/latest"])
    def test_version_without_entry_keeps_own_id(self, url: str) -> None:
        from ldpm.core.catalog import CatalogBuilder

        child = _node({"name": "mydpkg-test", "version": "0.0.0"})
        node = _node(
            {
                "name": "req-test",
                "version": "0.0.0",
                "dataDependencies": ["mydpkg-test"],
                "dataset": [{"name": "azerty", "url": url}],
            },
            child,
        )

        (entry,) = CatalogBuilder().render(node)["dataset"]
        assert entry["@id"] == "req-test/0.0.0/azerty"
        assert entry["url"] == url

    def test_own_entry_keeps_own_namespace(self, req_node: ResolvedNode) -> None:
        """Entries not pointing into a dependency are ids of their own package."""
        from ldpm.core.catalog import CatalogBuilder

        child = req_node.children[0]
        doc = CatalogBuilder().render(child)

        (entry,) = doc["dataset"]
        assert entry["@id"] == "mydpkg-test/0.0.0/csv1"
        assert entry["url"] == "mydpkg-test/0.0.0/csv1"
        assert entry["distribution"] == {
            "contentUrl": "mydpkg-test/0.0.0/x1.csv",
            "encodingFormat": "text/csv",
            "@type": "DataDownload",
        }
        assert doc["dataDependencies"] == []

    def test_absolute_url_is_not_rewritten(self) -> None:
        from ldpm.core.catalog import CatalogBuilder

        node = _node(
            {
                "name": "p",
                "version": "1",
                "dataset": [{"name": "remote", "url": "http://example.org/d.csv"}],
            }
        )

        (entry,) = CatalogBuilder().render(node)["dataset"]
        assert entry["@id"] == "p/1/remote"
        assert entry["url"] == "http://example.org/d.csv"

    def test_base_prefixes_every_id(self, req_node: ResolvedNode) -> None:
        from ldpm.core.catalog import CatalogBuilder

        doc = CatalogBuilder("https://registry.example.org/").render(req_node)

        assert doc["@id"] == "https://registry.example.org/req-test/0.0.0"
        assert doc["dataDependencies"] == [
            "https://registry.example.org/mydpkg-test/0.0.0"
        ]
        assert doc["dataset"][0]["@id"] == (
            "https://registry.example.org/mydpkg-test/0.0.0/csv1"
        )
        assert doc["catalog"]["url"] == "https://registry.example.org/req-test"

    def test_per_call_base_override(self, req_node: ResolvedNode) -> None:
        from ldpm.core.catalog import CatalogBuilder

        doc = CatalogBuilder().render(req_node, base="http://x")
        assert doc["@id"] == "http://x/req-test/0.0.0"

    def test_transport_keys_are_not_set(self, req_node: ResolvedNode) -> None:
        from ldpm.core.catalog import CatalogBuilder

        doc = CatalogBuilder().render(req_node)
        assert "@context" not in doc
        assert "datePublished" not in doc
