"""Front ends turning source pages into shallow sections.

Each front end is a callable ``parse(slug, root_dir) -> ShallowSection`` that
raises :class:`~forest_pages.errors.ParseError` on failure. They are keyed by
the source file extension.
"""

from __future__ import annotations

import typing as typ

from .assets import TypstAssets
from .markdown import MarkdownFrontEnd, parse_markdown
from .typst import parse_typst

if typ.TYPE_CHECKING:
    from pathlib import Path

    from forest_pages.compiler.section import ShallowSection

FrontEnd = typ.Callable[[str, "Path"], "ShallowSection"]

FRONT_ENDS: dict[str, FrontEnd] = {
    "md": parse_markdown,
    "typst": parse_typst,
}


def default_front_ends(assets: TypstAssets | None = None) -> dict[str, FrontEnd]:
    """Return the built-in front ends; ``assets`` lets Markdown draw Typst pictures."""
    if assets is None:
        return dict(FRONT_ENDS)
    return {"md": MarkdownFrontEnd(assets=assets).parse, "typst": parse_typst}


__all__ = [
    "FRONT_ENDS",
    "FrontEnd",
    "MarkdownFrontEnd",
    "TypstAssets",
    "default_front_ends",
    "parse_markdown",
    "parse_typst",
]
