"""JSON-LD catalog rendering.

CatalogBuilder is a pure transform over an already-resolved graph; it
never talks to the registry. Transport-only keys (``@context``,
``datePublished``) are added by :mod:`ldpm.jsonld`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from ldpm.core.models import DatasetEntry, ResolvedNode


CatalogDocument = dict[str, Any]

_LATEST_SEGMENT = "latest"


class CatalogBuilder:
    """Renders a ResolvedNode as a ``DataCatalog`` JSON-LD document.

    Args:
        base: Namespace prefix prepended to every generated ``@id`` and url,
            e.g. a registry URL. Empty by default, giving relative ids.

    Example:
        >>> doc = CatalogBuilder().render(node)
        >>> doc["@id"]
        'req-test/0.0.0'
    """

    def __init__(self, base: str = "") -> None:
        self._base = base.rstrip("/") + "/" if base else ""

    def render(self, node: ResolvedNode, base: str | None = None) -> CatalogDocument:
        """Render ``node`` and the cross-package links to its children.

        Args:
            node: A resolved package.
            base: Optional per-call override of the namespace prefix.

        Returns:
            The catalog document as a JSON-compatible dict.
        """
        if base is not None:
            return CatalogBuilder(base).render(node)

        manifest = node.manifest
        own_id = self._id(manifest.name, manifest.version)

        return {
            "@id": own_id,
            "@type": "DataCatalog",
            "name": manifest.name,
            "description": manifest.description,
            "dataDependencies": [
                self._id(child.manifest.name, child.manifest.version)
                for child in node.children
            ],
            "version": manifest.version,
            "keywords": list(manifest.keywords),
            "dataset": [self._render_entry(node, entry) for entry in manifest.dataset],
            "catalog": {"name": manifest.name, "url": self._prefixed(manifest.name)},
        }

    def _render_entry(self, node: ResolvedNode, entry: DatasetEntry) -> dict[str, Any]:
        manifest = node.manifest
        target = self._match_child(node, entry.url) if entry.url else None

        if target is not None:
            child, entry_name = target
            entry_id = self._id(child.manifest.name, child.manifest.version, entry_name)
            url = entry_id
        else:
            entry_id = self._id(manifest.name, manifest.version, entry.name)
            url = entry.url or entry_id

        distribution: dict[str, Any] = {}
        if entry.url:
            distribution["isBasedOnUrl"] = entry.url
        if entry.path:
            distribution["contentUrl"] = self._id(
                manifest.name, manifest.version, entry.path
            )
            attachment = manifest.get_attachment(entry.path)
            if attachment is not None:
                distribution["encodingFormat"] = attachment.content_type
        distribution["@type"] = "DataDownload"

        return {
            "@id": entry_id,
            "@type": "DataSet",
            "name": entry.name,
            "url": url,
            "fields": list(entry.fields),
            "distribution": distribution,
            "catalog": {
                "name": manifest.name,
                "version": manifest.version,
                "url": self._id(manifest.name, manifest.version),
            },
        }

    @staticmethod
    def _match_child(node: ResolvedNode, url: str) -> tuple[ResolvedNode, str] | None:
        """Find the child a relative url points into.

        Accepts ``<child>/<entry>`` and ``<child>/<version>/<entry>``, where
        version may be the child's resolved version or ``latest``.
        """
        if "://" in url:
            return None
        for child in node.children:
            prefix = child.manifest.name + "/"
            if not url.startswith(prefix):
                continue
            rest = url[len(prefix) :]
            head, _, tail = rest.partition("/")
            if head in (child.manifest.version, _LATEST_SEGMENT):
                # A bare version segment names no entry
                rest = tail
            if rest:
                return child, rest
        return None

    def _id(self, *segments: str) -> str:
        return self._prefixed("/".join(segments))

    def _prefixed(self, value: str) -> str:
        return f"{self._base}{value}"
