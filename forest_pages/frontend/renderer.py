"""Markdown-to-HTML conversion with Pygments highlighting."""

from __future__ import annotations

import re
import typing as typ
from html import escape

from markdown import Markdown
from pygments.formatters.html import HtmlFormatter

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

CODE_FENCE_PATTERN = re.compile(
    r"^[ ]{0,3}(?:```|~~~)([A-Za-z0-9_+#.-]+)?[^\n]*\n.*?^[ ]{0,3}(?:```|~~~)",
    re.DOTALL | re.MULTILINE,
)
FENCE_INDENT_PATTERN = re.compile(r"^[ ]{1,3}([`~]{3,})", re.MULTILINE)
CODEHILITE_OPEN_TAG = re.compile(r'<div class="codehilite">')
PARAGRAPH_WRAPPER = re.compile(r"\A\s*<p>(.*)</p>\s*\Z", re.DOTALL)

BLOCK_EXTENSIONS = ("fenced_code", "codehilite", "tables", "sane_lists", "footnotes")


class HtmlContentRenderer:
    """Render page bodies and inline snippets with consistent styling."""

    def __init__(self, pygments_style: str = "friendly") -> None:
        """Initialize a renderer for the given Pygments style.

        Parameters
        ----------
        pygments_style : str, optional
            Name of the Pygments style used for syntax highlighting.
        """
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._formatter.get_style_defs(".codehilite")

    def markdown(self, text: str, extensions: typ.Sequence[Extension] = ()) -> str:
        """Render a Markdown document body into HTML.

        ``extensions`` are appended after the built-in block extensions; the
        cross-page link extension is passed here.
        """
        normalized = FENCE_INDENT_PATTERN.sub(r"\1", text)
        if not normalized.strip():
            return ""
        md = Markdown(
            extensions=[*BLOCK_EXTENSIONS, *extensions],
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": "codehilite",
                    "pygments_style": self.pygments_style,
                }
            },
        )
        html = md.convert(normalized)
        return self._annotate_codehilite(html, normalized)

    def inline(self, text: str, extensions: typ.Sequence[Extension] = ()) -> str:
        """Render a one-line snippet (such as a title) without a ``<p>`` wrapper."""
        if not text.strip():
            return ""
        md = Markdown(extensions=list(extensions))
        html = md.convert(text.strip())
        match = PARAGRAPH_WRAPPER.match(html)
        return match.group(1) if match else html

    @staticmethod
    def _annotate_codehilite(html: str, source_markdown: str) -> str:
        """Attach ``data-language`` to each highlighted block, in fence order."""
        languages = [
            match.group(1) or "text"
            for match in CODE_FENCE_PATTERN.finditer(source_markdown)
        ]
        if not languages:
            return html
        lang_iter = iter(languages)

        def _repl(_match: re.Match[str]) -> str:
            lang = escape(next(lang_iter, "text"), quote=True)
            return f'<div class="codehilite" data-language="{lang}">'

        return CODEHILITE_OPEN_TAG.sub(_repl, html, len(languages))


__all__ = ["BLOCK_EXTENSIONS", "HtmlContentRenderer"]
