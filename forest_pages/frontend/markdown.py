"""Markdown front end: turn ``.md`` pages into shallow sections.

A page may start with a front-matter block of ``key: value`` lines fenced by
``---``. Links in the body (and in the title) are classified while the
Markdown tree is built:

* ``[+-.title](url#:embed)`` embeds another page; the leading characters of
  the link text set the section options (``+`` numbering, ``-`` collapsed,
  ``.`` hidden from the table of contents) and the rest is an inline title.
* ``http://``, ``https://`` and ``www.`` links become external link spans.
* Other scheme-less links become cross-page links; ``.md`` is stripped.
* ``#:span``, ``#:block`` and ``#:shared`` links to ``.typ`` files and
  ``inline`` links render Typst pictures (see :mod:`.assets`).

``$...$`` and ``$$...$$`` math is passed through verbatim.

Example
-------
>>> from forest_pages.frontend.markdown import parse_markdown_text
>>> shallow = parse_markdown_text("notes", "---\\ntitle: Notes\\n---\\nSee [a](a.md).")
>>> shallow.metadata["title"].html
'Notes'
>>> [type(item).__name__ for item in shallow.content.items]
['Plain', 'Local', 'Plain']
"""

from __future__ import annotations

import re
import typing as typ
from html import escape
from pathlib import Path
from urllib.parse import urlsplit

from markdown.extensions import Extension
from markdown.serializers import to_html_string
from markdown.treeprocessors import Treeprocessor

from forest_pages.compiler import fragments
from forest_pages.compiler.metadata import KEY_SLUG, KEY_TAXON, KEY_TITLE
from forest_pages.compiler.section import (
    Content,
    ContentBuilder,
    ContentItem,
    Embed,
    Local,
    Plain,
    SectionOption,
    ShallowSection,
)
from forest_pages.compiler.taxon import display_taxon
from forest_pages.errors import ParseError
from forest_pages.slug import relativize, to_slug

from .assets import is_inline_typst, shared_import
from .extensions import FigureExtension, MathExtension
from .renderer import HtmlContentRenderer

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown

    from .assets import TypstAssets
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any
    TypstAssets = typ.Any

EMBED_ACTION = "embed"
SPAN_ACTION = "span"
BLOCK_ACTION = "block"
SHARED_ACTION = "shared"
ACTION_SEPARATOR = "#:"
EXTERNAL_PREFIXES = ("http://", "https://", "www.")
FRONT_MATTER_FENCE = "---"
# STX/ETX never survive Python-Markdown's whitespace normalization of the source.
TOKEN_PATTERN = re.compile("\x02forest:(\\d+)\x03")
BLOCK_TOKEN_PATTERN = re.compile(
    "<p>\\s*((?:\x02forest:\\d+\x03\\s*)+)</p>"
)


def _token(index: int) -> str:
    return f"\x02forest:{index}\x03"


def url_action(href: str) -> tuple[str, str | None]:
    """Split a link target into its URL and its ``#:action`` suffix.

    >>> url_action("notes/a.md#:embed"), url_action("notes/a.md")
    (('notes/a.md', 'embed'), ('notes/a.md', None))
    """
    url, sep, action = href.rpartition(ACTION_SEPARATOR)
    if not sep:
        return href, None
    return url, action


def parse_embed_text(text: str) -> tuple[SectionOption, str | None]:
    """Split embed link text into section options and an inline title.

    >>> parse_embed_text("+-Lemma")
    (SectionOption(numbering=True, details_open=False, catalog=True), 'Lemma')
    """
    option = SectionOption()
    index = 0
    for char in text:
        match char:
            case "+":
                option.numbering = True
            case "-":
                option.details_open = False
            case ".":
                option.catalog = False
            case _:
                break
        index += 1
    title = text[index:].strip()
    return option, (title or None)


def is_external_link(url: str) -> bool:
    """Return True for links leaving the site."""
    return url.startswith(EXTERNAL_PREFIXES)


def is_local_link(url: str) -> bool:
    """Return True for scheme-less links pointing at another page."""
    if not url or url.startswith(("#", "//")):
        return False
    parsed = urlsplit(url)
    return not (parsed.scheme or parsed.netloc)


class CrossPageLinkExtension(Extension):
    """Replace classified anchors with content placeholders.

    The tree processor swaps every embed, local, external and Typst anchor for
    a textual token and records the matching content item in :attr:`items`;
    the caller splits the rendered HTML on those tokens. Indices of items that
    render as blocks are kept in :attr:`blocks`.
    """

    def __init__(
        self, path: str | Path = "", assets: TypstAssets | None = None
    ) -> None:
        super().__init__()
        self.path = path
        self.assets = assets
        self.items: list[ContentItem] = []
        self.blocks: set[int] = set()

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the cross-page link treeprocessor on the Markdown instance."""
        processor = CrossPageLinkTreeprocessor(md, self)
        md.treeprocessors.register(processor, "forest_cross_page_links", 15)


class CrossPageLinkTreeprocessor(Treeprocessor):
    """Classify anchors after inline parsing and swap them for tokens."""

    def __init__(self, md: Markdown, extension: CrossPageLinkExtension) -> None:
        super().__init__(md)
        self.extension = extension
        self.shareds: list[str] = []

    def run(self, root: Element) -> Element:
        """Replace every classified anchor in the tree by its token."""
        items = self.extension.items
        parents = {child: parent for parent in root.iter() for child in parent}
        for element in list(root.iter("a")):
            classified = self._classify(element)
            if classified is None:
                continue
            item, block = classified
            index = len(items)
            items.append(item)
            if block:
                self.extension.blocks.add(index)
            _replace_with_text(parents[element], element, _token(index))
        return root

    def _classify(self, element: Element) -> tuple[ContentItem, bool] | None:
        href = element.get("href") or ""
        url, action = url_action(href)
        text = "".join(element.itertext())
        match action:
            case "embed":
                option, title = parse_embed_text(text)
                if title is not None:
                    title = self._unstash(escape(title, quote=False))
                return Embed(url=relativize(url), title=title, option=option), True
            case "span":
                html = self._assets().image(
                    url, self.extension.path, block=False, caption_html=text
                )
                return Plain(html), False
            case "block":
                caption = self._unstash(_inner_html(element))
                html = self._assets().image(
                    url, self.extension.path, block=True, caption_html=caption
                )
                return Plain(html), True
            case "shared":
                self.shareds.append(shared_import(url, text))
                return Plain(""), True
        if is_inline_typst(href):
            html = self._assets().inline(href, text, self.extension.path, self.shareds)
            return Plain(html), False

        text_html = self._unstash(_inner_html(element))
        if is_external_link(href):
            title = href if text == href else f"{text} [{href}]"
            return Plain(fragments.external_link(href, title, text_html)), False
        if is_local_link(href):
            target = urlsplit(href).path
            if target.endswith(".md"):
                target = target[:-3]
            return Local(slug=to_slug(target), text=text_html or None), False
        return None

    def _assets(self) -> TypstAssets:
        assets = self.extension.assets
        if assets is None:
            msg = "Typst pictures can only be compiled as part of a workspace"
            raise ParseError(self.extension.path, msg)
        return assets

    def _unstash(self, html: str) -> str:
        """Restore raw HTML and entities stashed away during inline parsing."""
        for name in ("raw_html", "amp_substitute"):
            if name in self.md.postprocessors:
                html = self.md.postprocessors[name].run(html)
        return html


def _inner_html(element: Element) -> str:
    parts = [escape(element.text or "", quote=False)]
    parts.extend(to_html_string(child) for child in element)
    return "".join(parts)


def _replace_with_text(parent: Element, element: Element, text: str) -> None:
    """Remove ``element`` from ``parent``, leaving ``text`` in its place."""
    children = list(parent)
    index = children.index(element)
    replacement = text + (element.tail or "")
    if index == 0:
        parent.text = (parent.text or "") + replacement
    else:
        previous = children[index - 1]
        previous.tail = (previous.tail or "") + replacement
    parent.remove(element)


def _split_tokens(
    html: str,
    items: list[ContentItem],
    path: str | Path,
    blocks: typ.Container[int] = frozenset(),
) -> Content:
    """Rebuild content from HTML carrying placeholder tokens.

    A paragraph holding nothing but block items (embeds, figures) and
    whitespace is unwrapped.

    Raises
    ------
    ParseError
        If a token names an item that was never recorded.
    """

    def _item(index: int) -> ContentItem:
        if index >= len(items):
            msg = f"unknown content placeholder #{index}"
            raise ParseError(path, msg)
        return items[index]

    def _unwrap(match: re.Match[str]) -> str:
        for found in TOKEN_PATTERN.finditer(match.group(1)):
            index = int(found.group(1))
            if not (isinstance(_item(index), Embed) or index in blocks):
                return match.group(0)
        return match.group(1).rstrip()

    html = BLOCK_TOKEN_PATTERN.sub(_unwrap, html)
    builder = ContentBuilder()
    cursor = 0
    for match in TOKEN_PATTERN.finditer(html):
        builder.push_str(html[cursor : match.start()])
        builder.push(_item(int(match.group(1))))
        cursor = match.end()
    builder.push_str(html[cursor:])
    return builder.build()


def split_front_matter(text: str, path: str | Path) -> tuple[dict[str, str], str]:
    """Return the raw front-matter pairs of a page and the remaining body.

    Raises
    ------
    ParseError
        If a front-matter line is not ``key: value`` or the block is unclosed.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONT_MATTER_FENCE:
        return {}, text
    pairs: dict[str, str] = {}
    for offset, line in enumerate(lines[1:], start=1):
        stripped = line.strip()
        if stripped == FRONT_MATTER_FENCE:
            return pairs, "".join(lines[offset + 1 :])
        if not stripped:
            continue
        key, sep, value = stripped.partition(":")
        if not sep or not key.strip():
            msg = f"metadata item expects `name: value`, got {stripped!r}"
            raise ParseError(path, msg)
        pairs[key.strip()] = value.strip()
    raise ParseError(path, "unterminated metadata block")


def _extensions(links: CrossPageLinkExtension) -> list[Extension]:
    return [MathExtension(), FigureExtension(), links]


class MarkdownFrontEnd:
    """Parse Markdown pages into shallow sections.

    Without ``assets`` pages may not reference Typst pictures or inline Typst
    snippets; parsing such a page raises :class:`ParseError`.
    """

    def __init__(
        self,
        renderer: HtmlContentRenderer | None = None,
        assets: TypstAssets | None = None,
    ) -> None:
        self.renderer = renderer or HtmlContentRenderer()
        self.assets = assets

    def parse_text(
        self, slug: str, text: str, path: str | Path | None = None
    ) -> ShallowSection:
        """Parse the Markdown ``text`` of the page ``slug``."""
        source = path if path is not None else f"{slug}.md"
        pairs, body = split_front_matter(text, source)
        metadata: dict[str, Content] = {}
        for key, value in pairs.items():
            metadata[key] = self._metadata_value(key, value, source)
        metadata[KEY_SLUG] = Plain(slug)
        return ShallowSection(
            metadata=metadata, content=self.parse_body(body, source)
        )

    def parse_body(self, text: str, path: str | Path = "") -> Content:
        """Render a page body, keeping cross-page references unresolved."""
        links = CrossPageLinkExtension(path, self.assets)
        html = self.renderer.markdown(text, _extensions(links))
        return _split_tokens(html, links.items, path, links.blocks)

    def parse_inline(self, text: str, path: str | Path = "") -> Content:
        """Render a one-line snippet, keeping cross-page references unresolved."""
        links = CrossPageLinkExtension(path, self.assets)
        html = self.renderer.inline(text, _extensions(links))
        return _split_tokens(html, links.items, path, links.blocks)

    def parse(self, slug: str, root_dir: Path) -> ShallowSection:
        """Read and parse ``<root_dir>/<slug>.md``."""
        relative = f"{slug}.md"
        try:
            text = (root_dir / relative).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ParseError(relative, str(exc)) from exc
        return self.parse_text(slug, text, relative)

    def _metadata_value(self, key: str, value: str, path: str | Path) -> Content:
        match key:
            case "title":
                return self.parse_inline(value, path)
            case "taxon":
                return Plain(display_taxon(value))
            case _:
                return Plain(value)


_DEFAULT = MarkdownFrontEnd()


def parse_markdown_text(slug: str, text: str) -> ShallowSection:
    """Parse Markdown ``text`` as the page ``slug`` with the default renderer."""
    return _DEFAULT.parse_text(slug, text)


def parse_markdown(slug: str, root_dir: Path) -> ShallowSection:
    """Parse the Markdown page ``slug`` stored under ``root_dir``."""
    return _DEFAULT.parse(slug, root_dir)


__all__ = [
    "CrossPageLinkExtension",
    "CrossPageLinkTreeprocessor",
    "MarkdownFrontEnd",
    "is_external_link",
    "is_local_link",
    "parse_embed_text",
    "parse_markdown",
    "parse_markdown_text",
    "split_front_matter",
    "url_action",
]
