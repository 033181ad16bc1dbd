"""Shared fixtures for building in-memory workspaces."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest

from forest_pages.compiler.section import (
    ContentBuilder,
    ContentItem,
    Plain,
    ShallowSection,
)

PageFactory = typ.Callable[..., ShallowSection]


def build_page(
    slug: str, *items: ContentItem | str, **metadata: str
) -> ShallowSection:
    """Return a shallow page; ``str`` items are plain HTML fragments."""
    builder = ContentBuilder()
    for item in items:
        if isinstance(item, str):
            builder.push_str(item)
        else:
            builder.push(item)
    meta = {key.replace("_", "-"): Plain(value) for key, value in metadata.items()}
    meta["slug"] = Plain(slug)
    return ShallowSection(metadata=meta, content=builder.build())


@pytest.fixture
def make_page() -> PageFactory:
    """Return a factory for shallow pages keyed by slug."""
    return build_page


@pytest.fixture
def write_sources(tmp_path: Path) -> typ.Callable[[dict[str, str]], Path]:
    """Return a helper writing ``{relative path: text}`` into a workspace root."""

    def _write(files: dict[str, str]) -> Path:
        for relative, text in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return tmp_path

    return _write
