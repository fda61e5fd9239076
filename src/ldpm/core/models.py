"""Core domain models for ldpm.

These models are pure Python dataclasses with no I/O dependencies.
They represent data packages as published on the registry and as
resolved into a dependency graph.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal, Self

from ldpm.core.exceptions import InvalidIdentifierError, InvalidManifestError


LATEST = "latest"

# Registry-internal keys that never end up in an installed package.json
_INTERNAL_KEYS = frozenset({"_id", "_rev", "_attachments"})

_KNOWN_KEYS = frozenset(
    {"name", "version", "description", "keywords", "dataDependencies", "dataset"}
)

_VERSION_RE = re.compile(r"^[0-9A-Za-z][0-9A-Za-z.+_-]*$")

AttachmentRole = Literal["data", "script"]


def _check_version(raw: str, version: str) -> None:
    if version == LATEST:
        return
    if not _VERSION_RE.match(version) or any(
        part in {"x", "X", "*"} for part in version.split(".")
    ):
        raise InvalidIdentifierError(
            raw, f"version '{version}' is not exact (version ranges are not supported)"
        )


@dataclass(frozen=True, slots=True)
class PackageIdentifier:
    """Reference to a data package, optionally pinned to a version.

    Attributes:
        name: Package name, possibly scoped (``@scope/name``).
        version: Exact version, or ``"latest"`` until resolved.

    Example:
        >>> PackageIdentifier.parse("req-test@0.0.0")
        PackageIdentifier(name='req-test', version='0.0.0')
        >>> str(PackageIdentifier.parse("req-test"))
        'req-test@latest'
    """

    name: str
    version: str = LATEST

    def __post_init__(self) -> None:
        """Validate identifier fields after initialization."""
        raw = f"{self.name}@{self.version}"
        if not self.name:
            raise InvalidIdentifierError(raw, "name cannot be empty")
        if any(ch.isspace() for ch in self.name):
            raise InvalidIdentifierError(raw, "name cannot contain whitespace")
        if self.name.startswith("@") and "/" not in self.name:
            raise InvalidIdentifierError(raw, "scoped name must be '@scope/name'")
        if not self.version:
            raise InvalidIdentifierError(raw, "version cannot be empty")
        _check_version(raw, self.version)

    @classmethod
    def parse(cls, value: str) -> Self:
        """Parse ``name`` or ``name@version`` into an identifier.

        The split happens on the last ``@`` that is not the leading
        character of a scoped name.

        Raises:
            InvalidIdentifierError: If the reference is malformed.
        """
        text = value.strip()
        if not text:
            raise InvalidIdentifierError(value, "name cannot be empty")

        index = text.rfind("@")
        if index <= 0:
            return cls(name=text)

        name, version = text[:index], text[index + 1 :]
        if not version:
            raise InvalidIdentifierError(value, "version cannot be empty")
        return cls(name=name, version=version)

    @property
    def is_latest(self) -> bool:
        """True while the version is still the unresolved placeholder."""
        return self.version == LATEST

    @property
    def catalog_id(self) -> str:
        """Linked-data id form, ``name/version``."""
        return f"{self.name}/{self.version}"

    def with_version(self, version: str) -> Self:
        """Return a copy pinned to ``version``."""
        return type(self)(name=self.name, version=version)

    def to_string(self) -> str:
        """Render the canonical ``name@version`` form."""
        return f"{self.name}@{self.version}"

    def __str__(self) -> str:
        return self.to_string()


@dataclass(frozen=True, slots=True)
class DatasetEntry:
    """One dataset declared in a manifest.

    Attributes:
        name: Entry name, unique within the package.
        url: Location relative to the owning package. May reference a
            dependency, e.g. ``"mydpkg-test/0.0.0/csv1"``.
        fields: Column/field names in declaration order.
        path: Optional attachment of the owning package holding the data.
    """

    name: str
    url: str = ""
    fields: tuple[str, ...] = ()
    path: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.url:
            data["url"] = self.url
        if self.path:
            data["path"] = self.path
        data["fields"] = list(self.fields)
        return data


@dataclass(frozen=True, slots=True)
class Attachment:
    """Descriptor of a file bundled with a package.

    Attributes:
        filename: Path of the file relative to the package directory.
        content_type: MIME type reported by the registry.
        length: Size in bytes, if known.
        role: ``"data"`` or ``"script"``.
    """

    filename: str
    content_type: str = "application/octet-stream"
    length: int | None = None
    role: AttachmentRole = "data"

    @staticmethod
    def default_role(filename: str) -> AttachmentRole:
        """Files under ``scripts/`` are scripts, everything else is data."""
        return "script" if filename.startswith("scripts/") else "data"


def _require_str_list(identifier: str, key: str, value: object) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidManifestError(identifier, f"'{key}' must be a list of strings")
    return tuple(value)


def _parse_dependencies(
    identifier: str, value: object
) -> tuple[PackageIdentifier, ...]:
    try:
        if isinstance(value, list):
            if not all(isinstance(v, str) for v in value):
                raise InvalidManifestError(
                    identifier, "'dataDependencies' entries must be strings"
                )
            return tuple(PackageIdentifier.parse(v) for v in value)
        if isinstance(value, dict):
            return tuple(
                PackageIdentifier(name=name, version=str(version or LATEST))
                for name, version in value.items()
            )
    except InvalidIdentifierError as e:
        raise InvalidManifestError(
            identifier, f"bad data dependency: {e.reason} ({e.identifier})"
        ) from e
    raise InvalidManifestError(
        identifier, "'dataDependencies' must be a list or a mapping"
    )


def _parse_fields(identifier: str, value: object) -> tuple[str, ...]:
    # Fields may be plain names or schema objects carrying a name
    if not isinstance(value, list):
        raise InvalidManifestError(identifier, "dataset 'fields' must be a list")
    names = []
    for item in value:
        if isinstance(item, str):
            names.append(item)
        elif isinstance(item, dict) and isinstance(item.get("name"), str):
            names.append(item["name"])
        else:
            raise InvalidManifestError(identifier, f"bad dataset field: {item!r}")
    return tuple(names)


def _parse_dataset(identifier: str, value: object) -> tuple[DatasetEntry, ...]:
    if not isinstance(value, list):
        raise InvalidManifestError(identifier, "'dataset' must be a list")
    entries = []
    for item in value:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise InvalidManifestError(
                identifier, "every dataset entry needs a string 'name'"
            )
        url = item.get("url", "")
        path = item.get("path", "")
        if not isinstance(url, str) or not isinstance(path, str):
            raise InvalidManifestError(
                identifier, f"dataset '{item['name']}' has a non-string url or path"
            )
        entries.append(
            DatasetEntry(
                name=item["name"],
                url=url,
                fields=_parse_fields(identifier, item.get("fields", [])),
                path=path,
            )
        )
    return tuple(entries)


def _parse_attachments(identifier: str, value: object) -> tuple[Attachment, ...]:
    if not isinstance(value, dict):
        raise InvalidManifestError(identifier, "'_attachments' must be a mapping")
    attachments = []
    for filename, stub in value.items():
        stub = stub if isinstance(stub, dict) else {}
        role = stub.get("role") or Attachment.default_role(filename)
        if role not in ("data", "script"):
            raise InvalidManifestError(
                identifier, f"attachment '{filename}' has unknown role '{role}'"
            )
        content_type = stub.get("content_type", "application/octet-stream")
        if not isinstance(content_type, str):
            raise InvalidManifestError(
                identifier, f"attachment '{filename}' has a non-string content_type"
            )
        length = stub.get("length")
        if isinstance(length, bool) or not isinstance(length, int | None):
            raise InvalidManifestError(
                identifier, f"attachment '{filename}' length must be an integer"
            )
        attachments.append(
            Attachment(
                filename=filename,
                content_type=content_type,
                length=length,
                role=role,
            )
        )
    return tuple(attachments)


@dataclass(frozen=True, slots=True)
class Manifest:
    """Declared metadata of one data package, as fetched from the registry.

    Attributes:
        name: Package name.
        version: Exact published version.
        description: Human-readable description.
        keywords: Keywords in declaration order.
        data_dependencies: Packages this one depends on for data.
        dataset: Dataset entries in declaration order.
        attachments: Descriptors of the bundled data and script files.
        extra: Any other manifest keys, carried through untouched.
    """

    name: str
    version: str
    description: str = ""
    keywords: tuple[str, ...] = ()
    data_dependencies: tuple[PackageIdentifier, ...] = ()
    dataset: tuple[DatasetEntry, ...] = ()
    attachments: tuple[Attachment, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], identifier: str = "") -> Self:
        """Build and validate a manifest from its JSON document.

        Args:
            data: The decoded registry document or package.json.
            identifier: Requested identifier, used in error messages.

        Raises:
            InvalidManifestError: If required fields are missing or mistyped.
        """
        if not isinstance(data, Mapping):
            raise InvalidManifestError(
                identifier or "<unknown>", "manifest must be a JSON object"
            )
        label = identifier or str(data.get("name") or "<unknown>")

        name = data.get("name")
        version = data.get("version")
        if not isinstance(name, str) or not name:
            raise InvalidManifestError(label, "missing 'name'")
        if not isinstance(version, str) or not version:
            raise InvalidManifestError(label, "missing 'version'")

        description = data.get("description", "")
        if not isinstance(description, str):
            raise InvalidManifestError(label, "'description' must be a string")

        extra = {
            k: v
            for k, v in data.items()
            if k not in _KNOWN_KEYS and k not in _INTERNAL_KEYS
        }

        return cls(
            name=name,
            version=version,
            description=description,
            keywords=_require_str_list(label, "keywords", data.get("keywords", [])),
            data_dependencies=_parse_dependencies(
                label, data.get("dataDependencies", [])
            ),
            dataset=_parse_dataset(label, data.get("dataset", [])),
            attachments=_parse_attachments(label, data.get("_attachments", {})),
            extra=extra,
        )

    @property
    def identifier(self) -> PackageIdentifier:
        return PackageIdentifier(name=self.name, version=self.version)

    def role_of(self, filename: str) -> AttachmentRole:
        """Classify an attachment file as data or script."""
        for attachment in self.attachments:
            if attachment.filename == filename:
                return attachment.role
        return Attachment.default_role(filename)

    def get_attachment(self, filename: str) -> Attachment | None:
        for attachment in self.attachments:
            if attachment.filename == filename:
                return attachment
        return None

    def to_dict(self) -> dict[str, Any]:
        """Render the manifest as an installed ``package.json`` document."""
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "keywords": list(self.keywords),
            "dataDependencies": [str(dep) for dep in self.data_dependencies],
            "dataset": [entry.to_dict() for entry in self.dataset],
        }
        data.update(self.extra)
        return data


@dataclass(frozen=True, slots=True)
class ResolvedNode:
    """A package with its attachments and resolved dependencies.

    Attributes:
        manifest: The package's manifest.
        children: One node per entry of ``manifest.data_dependencies``,
            in declaration order.
        attachments: File contents keyed by attachment filename.
    """

    manifest: Manifest
    children: tuple[ResolvedNode, ...] = ()
    attachments: Mapping[str, bytes] = field(default_factory=dict)

    @property
    def identifier(self) -> PackageIdentifier:
        return self.manifest.identifier

    @property
    def name(self) -> str:
        return self.manifest.name

    def data_files(self) -> dict[str, bytes]:
        return {
            name: content
            for name, content in self.attachments.items()
            if self.manifest.role_of(name) == "data"
        }

    def script_files(self) -> dict[str, bytes]:
        return {
            name: content
            for name, content in self.attachments.items()
            if self.manifest.role_of(name) == "script"
        }

    def walk(self) -> Iterator[ResolvedNode]:
        """Yield this node and all descendants, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A fetched package as stored in the cache.

    Attributes:
        identifier: Resolved identifier (never ``latest``).
        manifest: The fetched manifest.
        attachments: File contents keyed by attachment filename.
        fetched_at: When the package was fetched from the registry.
    """

    identifier: PackageIdentifier
    manifest: Manifest
    attachments: Mapping[str, bytes] = field(default_factory=dict)
    fetched_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Cache entries are keyed by concrete versions only."""
        if self.identifier.is_latest:
            raise ValueError("CacheEntry identifier must be resolved")


@dataclass(frozen=True, slots=True)
class InstallOptions:
    """Options controlling an install.

    Attributes:
        top: Write roots to ``<dest>/<name>`` instead of
            ``<dest>/datapackages/<name>``.
        all_files: Write script files as well as data files (``--all``).
        cache: Consult and populate the durable cache while resolving.
    """

    top: bool = False
    all_files: bool = False
    cache: bool = True
