"""Typst pictures referenced from Markdown pages.

``[caption](figs/plot.typ#:block)`` and ``[alt](figs/plot.typ#:span)`` render a
Typst file to ``<output>/figs/plot.svg``. The SVG is rebuilt only when the
Typst source changed or the SVG is missing; the source hash is recorded under
the ``.typ`` path once the SVG has been written.

``[snippet](inline)`` renders a Typst snippet straight into the page as an
inline SVG, prefixed with the ``#import`` lines collected from
``[items](lib.typ#:shared)`` links earlier on the same page.
"""

from __future__ import annotations

import posixpath
import typing as typ

from forest_pages.compiler import fragments
from forest_pages.errors import ParseError
from forest_pages.slug import pretty_path

from .typst import compile_inline_svg, compile_to_svg

if typ.TYPE_CHECKING:
    from pathlib import Path

    from forest_pages.cache import ContentCache
    from forest_pages.config import CompileConfig

TYPST_IMAGE_EXT = ".typ"
SVG_EXT = ".svg"
INLINE_ACTION = "inline"
MATH_ARGUMENT = "math"
DEFAULT_IMPORTS = "*"


def is_inline_typst(href: str) -> bool:
    """Return True for ``inline`` and ``inline-<args>`` link targets.

    >>> is_inline_typst("inline-math-1em"), is_inline_typst("inline.md")
    (True, False)
    """
    return href == INLINE_ACTION or href.startswith(f"{INLINE_ACTION}-")


def svg_name(typst_path: str) -> str:
    """Return the SVG path generated for a workspace-relative ``.typ`` path.

    >>> svg_name("figs/plot.typ")
    'figs/plot.svg'
    """
    stem, ext = posixpath.splitext(typst_path)
    return f"{stem}{SVG_EXT}" if ext == TYPST_IMAGE_EXT else f"{typst_path}{SVG_EXT}"


def shared_import(url: str, items: str) -> str:
    """Return the ``#import`` line for a shared Typst module.

    >>> shared_import("lib.typ", "")
    '#import "lib.typ": *'
    """
    return f'#import "{url}": {items.strip() or DEFAULT_IMPORTS}'


class TypstAssets:
    """Render Typst pictures for one workspace, gated by the content cache.

    Attributes
    ----------
    written : list[Path]
        SVG files written during this run, in the order they were produced.
    """

    def __init__(self, config: CompileConfig, cache: ContentCache) -> None:
        self.config = config
        self.cache = cache
        self.written: list[Path] = []

    @property
    def root_dir(self) -> Path:
        """Return the workspace root passed to ``typst --root``."""
        return self.config.root_dir

    def svg_url(self, url: str, page: str | Path) -> str:
        """Compile the Typst file behind ``url`` if needed and return the SVG URL.

        Raises
        ------
        ParseError
            If the Typst file cannot be read or fails to compile; ``page``
            names the page that referenced it.
        """
        relative = pretty_path(url.lstrip("/"))
        svg_relative = svg_name(relative)
        target = self.config.output_root / svg_relative
        try:
            source = (self.root_dir / relative).read_bytes()
        except OSError as exc:
            raise ParseError(page, f"cannot read `{relative}`: {exc}") from exc

        stale = self.cache.is_stale(relative, source, commit=False)
        if stale or not target.exists():
            svg = compile_to_svg(relative, self.root_dir)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(svg, encoding="utf-8")
            self.cache.commit(relative, source)
            self.written.append(target)
        return self.config.full_url(svg_relative)

    def image(
        self, url: str, page: str | Path, *, block: bool, caption_html: str = ""
    ) -> str:
        """Return the HTML showing the Typst picture ``url``.

        Block pictures are centred figures carrying ``caption_html``; span
        pictures are bare images using the caption as alternative text.
        """
        src = self.svg_url(url, page)
        if block:
            return fragments.figure(src, caption_html)
        return fragments.image(src, caption_html)

    def inline(
        self,
        href: str,
        source: str,
        page: str | Path,
        shareds: typ.Sequence[str] = (),
    ) -> str:
        """Render the snippet of an ``inline[-math][-x[-y]]`` link to inline SVG.

        ``math`` wraps the snippet in ``$...$``; ``x`` and ``y`` set the page
        margins, ``y`` defaulting to ``x``.
        """
        arguments = href.split("-")[1:]
        if arguments and arguments[0] == MATH_ARGUMENT:
            source = f"${source}$"
            arguments = arguments[1:]
        margin_x = arguments[0] if arguments else None
        margin_y = arguments[1] if len(arguments) > 1 else None
        snippet = "\n".join([*shareds, source])
        svg = compile_inline_svg(
            snippet, self.root_dir, page, margin_x=margin_x, margin_y=margin_y
        )
        return fragments.inline_typst(svg)


__all__ = [
    "TypstAssets",
    "is_inline_typst",
    "shared_import",
    "svg_name",
]
