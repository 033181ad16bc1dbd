"""Typed dataclasses describing forest_pages compile configuration."""

from __future__ import annotations

import dataclasses as dc
import enum
from pathlib import Path

from forest_pages._constants import (
    CACHE_DIR_NAME,
    ENTRY_DIR_NAME,
    HASH_DIR_NAME,
)


class ConfigError(ValueError):
    """Raised when the compile configuration is invalid or incomplete."""


class FooterMode(enum.StrEnum):
    """How footer entries (references and backlinks) are rendered."""

    LINK = "link"
    EMBED = "embed"


@dc.dataclass(slots=True)
class CompileConfig:
    """Settings threaded through resolution, rendering, and writing.

    Attributes
    ----------
    root_dir : Path
        Workspace root holding the source pages.
    output_dir : Path
        Directory receiving generated HTML, relative to ``root_dir`` unless
        absolute.
    base_url : str
        Public URL prefix for generated links; always ends with ``/``.
    page_suffix : str
        Suffix appended to page URLs (``""`` for pretty URLs, ``".html"``
        otherwise).
    short_slug : bool
        Hide parent directories in the slug label of page headers.
    footer_mode : FooterMode
        Whether footer entries are short summaries or fully embedded copies.
    export_css : bool
        Write ``main.css`` next to the pages and link it instead of inlining.
    head_html : str
        Extra markup injected into every page ``<head>``.
    """

    root_dir: Path = dc.field(default_factory=lambda: Path("."))
    output_dir: Path = dc.field(default_factory=lambda: Path("publish"))
    base_url: str = "/"
    page_suffix: str = ""
    short_slug: bool = False
    footer_mode: FooterMode = FooterMode.LINK
    export_css: bool = True
    head_html: str = ""

    @property
    def cache_dir(self) -> Path:
        """Return the directory holding hash records and serialized entries."""
        return self.root_dir / CACHE_DIR_NAME

    @property
    def hash_dir(self) -> Path:
        """Return the directory holding content hash records."""
        return self.cache_dir / HASH_DIR_NAME

    @property
    def entry_dir(self) -> Path:
        """Return the directory holding serialized shallow sections."""
        return self.cache_dir / ENTRY_DIR_NAME

    @property
    def output_root(self) -> Path:
        """Return the absolute-or-root-relative output directory."""
        return self.root_dir / self.output_dir

    def output_key(self, slug: str) -> str:
        """Return the cache key used to gate writing the page for ``slug``."""
        return f"{self.output_dir.as_posix()}/{slug}.html"

    def output_path(self, slug: str) -> Path:
        """Return the filesystem path of the page generated for ``slug``."""
        return self.output_root / f"{slug}.html"

    def full_url(self, path: str) -> str:
        """Prefix a site-relative ``path`` with the configured base URL."""
        if path.startswith("/"):
            path = path[1:]
        elif path.startswith("./"):
            path = path[2:]
        return f"{self.base_url}{path}"

    def full_html_url(self, slug: str) -> str:
        """Return the public URL of the page generated for ``slug``."""
        return self.full_url(f"{slug}{self.page_suffix}")


__all__ = ["CompileConfig", "ConfigError", "FooterMode"]
