"""Unit tests for transport serialization of catalog documents."""

from __future__ import annotations

import json

import pytest


def _node(**extra: object):
    from ldpm.core.models import Manifest, ResolvedNode

    return ResolvedNode(
        manifest=Manifest.from_dict({"name": "p", "version": "1.0.0", **extra})
    )


@pytest.mark.core
class TestTransport:
    def test_adds_context_and_date_without_mutating(self) -> None:
        from ldpm.jsonld import to_transport

        document = {"@id": "p/1.0.0", "@type": "DataCatalog"}
        transport = to_transport(
            document, "http://r/contexts/datapackage.jsonld", "2014-01-06T02:33:53Z"
        )

        assert transport["@context"] == "http://r/contexts/datapackage.jsonld"
        assert transport["datePublished"] == "2014-01-06T02:33:53Z"
        assert transport["@id"] == "p/1.0.0"
        assert "@context" not in document

    def test_declared_date_published_is_used(self) -> None:
        from ldpm.jsonld import date_published

        node = _node(datePublished="2014-01-06T02:33:53.922Z")
        assert date_published(node) == "2014-01-06T02:33:53.922Z"

    def test_date_published_defaults_to_now_utc(self) -> None:
        from datetime import datetime

        from ldpm.jsonld import date_published

        stamp = date_published(_node())

        assert stamp.endswith("Z")
        assert datetime.fromisoformat(stamp.replace("Z", "+00:00")).tzinfo is not None

    def test_dumps_is_valid_json(self) -> None:
        from ldpm.jsonld import dumps

        text = dumps({"name": "données", "n": [1, 2]})

        assert json.loads(text) == {"name": "données", "n": [1, 2]}
        assert "données" in text
