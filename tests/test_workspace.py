"""Tests for workspace discovery."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest

from forest_pages.errors import WorkspaceError
from forest_pages.workspace import SourceFile, discover_workspace

WriteSources = typ.Callable[[dict[str, str]], Path]


def test_discovers_sources_in_path_order(write_sources: WriteSources) -> None:
    """Markdown and Typst pages are found recursively and sorted."""
    root = write_sources(
        {
            "index.md": "",
            "notes/b.typst": "",
            "notes/a.md": "",
            "notes/deep/c.md": "",
            "image.png": "",
        }
    )
    workspace = discover_workspace(root)
    assert workspace.slugs == ["index", "notes/a", "notes/b", "notes/deep/c"]
    assert workspace.get("notes/b") == SourceFile("notes/b", "notes/b.typst", "typst")
    assert workspace.get("image") is None


def test_skips_hidden_private_and_output_dirs(write_sources: WriteSources) -> None:
    """Caches, private folders, READMEs and the output directory are ignored."""
    root = write_sources(
        {
            "index.md": "",
            "README.md": "",
            ".cache/entry/x.md": "",
            "_drafts/y.md": "",
            "publish/z.md": "",
        }
    )
    workspace = discover_workspace(root, exclude=root / "publish")
    assert workspace.slugs == ["index"]


def test_slug_collision_raises(write_sources: WriteSources) -> None:
    """Two sources may not share a slug."""
    root = write_sources({"page.md": "", "page.typst": ""})
    with pytest.raises(WorkspaceError, match="Slug `page`"):
        discover_workspace(root)


def test_root_must_be_a_directory(tmp_path: Path) -> None:
    """A missing root is reported before walking."""
    with pytest.raises(WorkspaceError, match="not a directory"):
        discover_workspace(tmp_path / "missing")
