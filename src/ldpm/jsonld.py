"""Transport serialization of catalog documents.

The core renders catalogs without transport keys; this module adds the
JSON-LD ``@context`` and ``datePublished`` before a document leaves the
process.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from ldpm.core.catalog import CatalogDocument
    from ldpm.core.models import ResolvedNode


def date_published(node: ResolvedNode) -> str:
    """Publication date of a package: its manifest's, else now (UTC)."""
    declared = node.manifest.extra.get("datePublished")
    if isinstance(declared, str) and declared:
        return declared
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def to_transport(
    document: CatalogDocument,
    context_url: str,
    published: str,
) -> dict[str, Any]:
    """Return a copy of document with ``@context`` and ``datePublished``.

    Args:
        document: Output of CatalogBuilder.render().
        context_url: URL of the JSON-LD context.
        published: ISO-8601 publication date.
    """
    transport = dict(document)
    transport["datePublished"] = published
    transport["@context"] = context_url
    return transport


def dumps(document: dict[str, Any], indent: int | None = 2) -> str:
    """Serialize a document as JSON text."""
    return json.dumps(document, indent=indent, ensure_ascii=False)
