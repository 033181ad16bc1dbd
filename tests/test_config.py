"""Tests for loading workspace configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from forest_pages.config import (
    CompileConfig,
    ConfigError,
    FooterMode,
    load_compile_config,
)


def test_defaults_without_config_file(tmp_path: Path) -> None:
    """A workspace without ``forest.yaml`` gets the default settings."""
    config = load_compile_config(root_dir=tmp_path)
    assert config.root_dir == tmp_path
    assert config.output_dir == Path("publish")
    assert config.base_url == "/"
    assert config.page_suffix == ""
    assert config.footer_mode is FooterMode.LINK
    assert config.export_css
    assert not config.short_slug


def test_file_values_and_overrides(tmp_path: Path) -> None:
    """Command-line overrides win over file values."""
    (tmp_path / "forest.yaml").write_text(
        "base_url: /notes\n"
        "pretty_urls: false\n"
        "footer_mode: embed\n"
        "output_dir: site\n",
        encoding="utf-8",
    )
    config = load_compile_config(
        root_dir=tmp_path, output_dir=Path("dist"), short_slug=True, base_url=None
    )
    assert config.base_url == "/notes/"
    assert config.page_suffix == ".html"
    assert config.footer_mode is FooterMode.EMBED
    assert config.output_dir == Path("dist")
    assert config.short_slug
    assert config.full_html_url("a/b") == "/notes/a/b.html"


def test_head_includes_are_collected(tmp_path: Path) -> None:
    """``import-*.html`` snippets at the root are injected into pages."""
    (tmp_path / "import-meta.html").write_text("<meta name=a>", encoding="utf-8")
    (tmp_path / "import-math.html").write_text("<script></script>", encoding="utf-8")
    config = load_compile_config(root_dir=tmp_path)
    assert config.head_html == "<meta name=a>\n<script></script>"


@pytest.mark.parametrize(
    "body",
    ["unknown_key: 1\n", "footer_mode: sideways\n", "short_slug: maybe\n"],
)
def test_invalid_values_raise(tmp_path: Path, body: str) -> None:
    """Unknown keys and malformed values are configuration errors."""
    path = tmp_path / "forest.yaml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_compile_config(path, root_dir=tmp_path)


def test_explicit_missing_file_raises(tmp_path: Path) -> None:
    """Passing a config path that does not exist is an error."""
    with pytest.raises(FileNotFoundError):
        load_compile_config(tmp_path / "missing.yaml", root_dir=tmp_path)


def test_non_mapping_file_raises(tmp_path: Path) -> None:
    """The YAML document must be a mapping."""
    path = tmp_path / "forest.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(TypeError):
        load_compile_config(path, root_dir=tmp_path)


def test_config_paths() -> None:
    """Cache and output locations derive from the root."""
    config = CompileConfig(root_dir=Path("site"))
    assert config.hash_dir == Path("site/.cache/hash")
    assert config.entry_dir == Path("site/.cache/entry")
    assert config.output_path("notes/a") == Path("site/publish/notes/a.html")
    assert config.output_key("notes/a") == "publish/notes/a.html"
    assert config.full_url("./main.css") == "/main.css"
