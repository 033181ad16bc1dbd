"""Python-Markdown extensions shared by page bodies and titles.

``MathExtension`` keeps ``$...$`` and ``$$...$$`` spans verbatim so that a
client-side renderer such as KaTeX sees the TeX source untouched by emphasis
or escaping. ``FigureExtension`` gives every image a hover title equal to its
alternative text.
"""

from __future__ import annotations

import typing as typ

from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor
from markdown.treeprocessors import Treeprocessor
from markdown.util import AtomicString

if typ.TYPE_CHECKING:
    import re
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any

DISPLAY_MATH_PATTERN = r"\$\$(.+?)\$\$"
INLINE_MATH_PATTERN = r"\$(?=[^\s$])([^$\n]+?)(?<=\S)\$(?!\d)"


class MathInlineProcessor(InlineProcessor):
    """Return a math span as an atomic text node, delimiters included."""

    def handleMatch(  # type: ignore[override]  # noqa: N802
        self, m: re.Match[str], data: str
    ) -> tuple[str, int, int]:
        """Keep the matched TeX, ``$`` signs and all, out of inline parsing."""
        return AtomicString(m.group(0)), m.start(0), m.end(0)


class MathExtension(Extension):
    """Preserve TeX math written between ``$`` or ``$$`` delimiters."""

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the math patterns ahead of backslash escapes and emphasis."""
        md.inlinePatterns.register(
            MathInlineProcessor(DISPLAY_MATH_PATTERN, md), "forest_display_math", 186
        )
        md.inlinePatterns.register(
            MathInlineProcessor(INLINE_MATH_PATTERN, md), "forest_inline_math", 185
        )


class FigureTreeprocessor(Treeprocessor):
    def run(self, root: Element) -> Element:
        """Copy each image's ``alt`` text into a missing ``title``."""
        for image in root.iter("img"):
            alt = image.get("alt")
            if alt and not image.get("title"):
                image.set("title", alt)
        return root


class FigureExtension(Extension):
    """Title images with their alternative text."""

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the image treeprocessor after inline parsing."""
        md.treeprocessors.register(FigureTreeprocessor(md), "forest_figures", 14)


__all__ = [
    "FigureExtension",
    "FigureTreeprocessor",
    "MathExtension",
    "MathInlineProcessor",
]
