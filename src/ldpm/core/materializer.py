"""Materialization of resolved packages into a directory tree.

Layout, applied recursively::

    <root dir>/package.json
    <root dir>/<data files...>
    <root dir>/<script files...>            (only with all_files)
    <root dir>/datapackages/<child>/...     (same layout per child)

where ``<root dir>`` is ``<dest>/<name>`` with ``top`` and
``<dest>/datapackages/<name>`` without it.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from collections import defaultdict
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from ldpm.core.exceptions import LayoutConflictError, WriteFailedError
from ldpm.core.models import InstallOptions


if TYPE_CHECKING:
    from collections.abc import Sequence

    from ldpm.core.models import ResolvedNode
    from ldpm.core.ports import ExecutorPort


logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "package.json"
DEPENDENCIES_DIRNAME = "datapackages"


def manifest_bytes(node: ResolvedNode) -> bytes:
    """Serialize a node's manifest as written to ``package.json``."""
    text = json.dumps(node.manifest.to_dict(), indent=2, ensure_ascii=False)
    return (text + "\n").encode("utf-8")


def root_directory(destination: Path, name: str, top: bool) -> Path:
    """Directory holding a root package's own files."""
    if top:
        return destination / name
    return destination / DEPENDENCIES_DIRNAME / name


def _safe_join(directory: Path, relative: str) -> Path:
    """Join an attachment filename under directory, refusing to escape it."""
    parts = PurePosixPath(relative).parts
    if not parts or PurePosixPath(relative).is_absolute() or ".." in parts:
        raise WriteFailedError(
            directory / relative, "attachment path escapes the package directory"
        )
    return directory.joinpath(*parts)


class Materializer:
    """Writes resolved package trees to disk.

    Args:
        executor: Runs per-directory write groups; writes sharing a
            directory always run sequentially within one group.
    """

    def __init__(self, executor: ExecutorPort) -> None:
        self._executor = executor

    def plan(
        self,
        nodes: Sequence[ResolvedNode],
        destination: Path,
        options: InstallOptions | None = None,
    ) -> dict[Path, bytes]:
        """Compute every path to write and its content, without touching disk.

        Raises:
            LayoutConflictError: If two packages would write different
                content to the same path.
            WriteFailedError: If an attachment path escapes its directory.
        """
        options = options or InstallOptions()
        planned: dict[Path, bytes] = {}
        for node in nodes:
            directory = root_directory(destination, node.name, options.top)
            self._plan_node(node, directory, options, planned)
        return planned

    def _plan_node(
        self,
        node: ResolvedNode,
        directory: Path,
        options: InstallOptions,
        planned: dict[Path, bytes],
    ) -> None:
        files = dict(node.data_files())
        if options.all_files:
            files.update(node.script_files())

        self._add(planned, directory / MANIFEST_FILENAME, manifest_bytes(node))
        for filename, content in sorted(files.items()):
            self._add(planned, _safe_join(directory, filename), content)

        for child in node.children:
            self._plan_node(
                child, directory / DEPENDENCIES_DIRNAME / child.name, options, planned
            )

    @staticmethod
    def _add(planned: dict[Path, bytes], path: Path, content: bytes) -> None:
        existing = planned.get(path)
        if existing is not None and existing != content:
            raise LayoutConflictError(path, "two packages write different content")
        planned[path] = content

    def materialize(
        self,
        nodes: Sequence[ResolvedNode],
        destination: Path,
        options: InstallOptions | None = None,
    ) -> list[Path]:
        """Write resolved nodes under ``destination``.

        Re-running into a populated destination is idempotent: unchanged
        files are left alone and files no longer part of the layout are
        removed from each root directory.

        Args:
            nodes: Resolved root nodes.
            destination: Directory to install into.
            options: Layout options; defaults to InstallOptions().

        Returns:
            Sorted list of every path in the installed layout.

        Raises:
            WriteFailedError: If a file cannot be written (names the path).
            LayoutConflictError: If the layout is inconsistent.
        """
        options = options or InstallOptions()
        planned = self.plan(nodes, destination, options)
        roots = {root_directory(destination, n.name, options.top) for n in nodes}
        for root in sorted(roots):
            self._clear_obstructions(root, planned)

        groups: dict[Path, list[tuple[Path, bytes]]] = defaultdict(list)
        for path, content in planned.items():
            groups[path.parent].append((path, content))

        futures = [
            self._executor.submit(self._write_group, items)
            for _, items in sorted(groups.items())
        ]
        # Surface the first failure after all groups have drained
        errors = [f.exception() for f in futures]
        for error in errors:
            if error is not None:
                raise error

        for root in sorted(roots):
            self._prune(root, planned)

        logger.info(
            "Materialized %d package(s) into %s (%d files)",
            len(nodes),
            destination,
            len(planned),
        )
        return sorted(planned)

    @staticmethod
    def _write_group(items: list[tuple[Path, bytes]]) -> None:
        for path, content in items:
            _write_file(path, content)

    @staticmethod
    def _clear_obstructions(root: Path, planned: dict[Path, bytes]) -> None:
        """Remove entries left by an earlier layout that block planned writes.

        A file where a directory is now needed, or a directory where a file
        is now needed, would otherwise fail every write beneath it.
        """
        for path in sorted(planned):
            if not path.is_relative_to(root):
                continue
            relative = path.relative_to(root)
            try:
                for parent in reversed(relative.parents):
                    directory = root / parent
                    if not directory.is_dir() and (
                        directory.exists() or directory.is_symlink()
                    ):
                        logger.warning("Removing stale file %s", directory)
                        directory.unlink()
                        break
                if path.is_dir() and not path.is_symlink():
                    logger.warning("Removing stale directory %s", path)
                    shutil.rmtree(path)
            except OSError as e:
                raise WriteFailedError(path, cause=e) from e

    @staticmethod
    def _prune(root: Path, planned: dict[Path, bytes]) -> None:
        """Remove files under root that are not part of the layout."""
        if not root.is_dir():
            return
        for path in sorted(root.rglob("*"), reverse=True):
            try:
                if path.is_dir():
                    if not any(path.iterdir()):
                        path.rmdir()
                elif path not in planned:
                    logger.warning("Removing stale file %s", path)
                    path.unlink()
            except OSError as e:
                raise WriteFailedError(path, cause=e) from e


def _write_file(path: Path, content: bytes) -> None:
    """Write content atomically, skipping files that already match."""
    try:
        if path.is_file() and path.read_bytes() == content:
            logger.debug("Up to date: %s", path)
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".ldpm-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmp_name, path)
        finally:
            Path(tmp_name).unlink(missing_ok=True)
    except OSError as e:
        raise WriteFailedError(path, cause=e) from e
    logger.debug("Wrote %s (%d bytes)", path, len(content))
