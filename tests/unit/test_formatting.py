"""Unit tests for CLI formatting helpers."""

from __future__ import annotations

import io

import pytest
import typer
from rich.console import Console


def _node(name: str, attachments: dict[str, bytes], *children):
    from ldpm.core.models import Manifest, ResolvedNode

    return ResolvedNode(
        manifest=Manifest.from_dict({"name": name, "version": "0.0.0"}),
        children=children,
        attachments=attachments,
    )


@pytest.mark.cli
@pytest.mark.tier(0)
class TestFormatSize:
    @pytest.mark.parametrize(
        ("size", "expected"),
        [(0, "0.0 B"), (512, "512.0 B"), (2048, "2.0 KB"), (5 * 1024**3, "5.0 GB")],
    )
    def test_format_size(self, size: int, expected: str) -> None:
        from ldpm.cli.formatting import _format_size

        assert _format_size(size) == expected


@pytest.mark.cli
@pytest.mark.tier(0)
class TestBuildTree:
    def test_tree_lists_packages_and_file_counts(self) -> None:
        from ldpm.cli.formatting import build_tree

        child = _node("mydpkg-test", {"x1.csv": b"abc", "scripts/test.r": b"r"})
        root = _node("req-test", {}, child)

        console = Console(file=io.StringIO(), width=120)
        console.print(build_tree(root))
        output = console.file.getvalue()

        assert "req-test@0.0.0" in output
        assert "mydpkg-test@0.0.0" in output
        assert "1 data file(s), 3.0 B, 1 script(s)" in output

    def test_children_become_branches(self) -> None:
        from ldpm.cli.formatting import build_tree

        root = _node("a", {}, _node("b", {}), _node("c", {}))
        assert len(build_tree(root).children) == 2


@pytest.mark.cli
@pytest.mark.tier(0)
class TestExitWithError:
    def test_exits_with_code_one(self, capsys: pytest.CaptureFixture[str]) -> None:
        from ldpm.cli.formatting import exit_with_error
        from ldpm.core.exceptions import PackageNotFoundError

        with pytest.raises(typer.Exit) as exc_info:
            exit_with_error(PackageNotFoundError("ghost@1.0.0"))

        assert exc_info.value.exit_code == 1
        err = capsys.readouterr().err
        assert "Error: Package 'ghost@1.0.0' not found" in err
        assert "Hint:" in err

    def test_no_hint_line_without_hint(self, capsys: pytest.CaptureFixture[str]) -> None:
        from ldpm.cli.formatting import exit_with_error
        from ldpm.core.exceptions import ConfigurationError

        with pytest.raises(typer.Exit):
            exit_with_error(ConfigurationError("bad"))

        assert "Hint:" not in capsys.readouterr().err
