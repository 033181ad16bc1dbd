r"""Data model for shallow (front-end) and resolved page sections.

A front end turns one source page into a :class:`ShallowSection`: metadata plus
a content tree that may still carry unresolved cross-page references
(:class:`Embed` and :class:`Local` items). The resolver turns it into a
:class:`Section` whose children are inert HTML fragments and cloned, embedded
sections.

The shallow shapes are ``msgspec`` structs tagged on ``"type"`` so that cached
entries round-trip exactly through JSON.

Example
-------
>>> from forest_pages.compiler.section import ContentBuilder, Local, Plain
>>> builder = ContentBuilder()
>>> builder.push(Plain("<p>See "))
>>> builder.push(Local("notes/intro"))
>>> builder.push_str("</p>")
>>> content = builder.build()
>>> [type(item).__name__ for item in content.items]
['Plain', 'Local', 'Plain']
"""

from __future__ import annotations

import copy
import dataclasses as dc
import re

import msgspec

from forest_pages._constants import METADATA_SLUG_TEMPLATE

RE_TAGS = re.compile(
    r"<[A-Za-z][A-Za-z0-9-]*(\s+[a-zA-Z_:-]+(=\"([^\"\\]|\\[\s\S])*\")?)*\s*/?>"
    r"|</[A-Za-z][A-Za-z0-9-]*>"
)


class SectionOption(msgspec.Struct):
    """Per-embed display options.

    Attributes
    ----------
    numbering : bool
        Give the embedded section a numeral.
    details_open : bool
        Render the section expanded; also gates reference propagation.
    catalog : bool
        List the section in the table of contents.
    """

    numbering: bool = False
    details_open: bool = True
    catalog: bool = True


class Plain(msgspec.Struct, tag="plain", tag_field="type"):
    """Inert HTML fragment."""

    html: str


class Embed(msgspec.Struct, tag="embed", tag_field="type"):
    """Inline another page as a subsection."""

    url: str
    title: str | None = None
    option: SectionOption = msgspec.field(default_factory=SectionOption)


class Local(msgspec.Struct, tag="local", tag_field="type"):
    """Hyperlink to another page, optionally with an explicit label."""

    slug: str
    text: str | None = None


ContentItem = Plain | Embed | Local


class Lazy(msgspec.Struct, tag="lazy", tag_field="type"):
    """Ordered content items, some of which still need resolving."""

    items: list[ContentItem]


Content = Plain | Lazy


class ShallowSection(msgspec.Struct):
    """A page right after front-end parsing, before references are resolved."""

    metadata: dict[str, Content]
    content: Content

    @property
    def slug(self) -> str:
        """Return the page slug recorded in ``metadata["slug"]``."""
        value = self.metadata.get("slug")
        if not isinstance(value, Plain):
            msg = "shallow section metadata has no plain 'slug' entry"
            raise KeyError(msg)
        return value.html

    def is_resolved(self) -> bool:
        """Return True when the content carries no cross-page references."""
        return isinstance(self.content, Plain) and all(
            isinstance(value, Plain) for value in self.metadata.values()
        )


def metadata_slug(slug: str) -> str:
    """Return the synthetic slug used when resolving ``slug``'s metadata."""
    return METADATA_SLUG_TEMPLATE.format(slug=slug)


def strip_tags(html: str) -> str:
    """Remove HTML tags from ``html``, keeping the text between them."""
    return RE_TAGS.sub("", html)


def remove_all_tags(content: Content) -> str:
    """Return the text of ``content`` with every tag removed.

    Embed items contribute their inline title and local links their explicit
    text; unlabelled items contribute nothing.
    """
    if isinstance(content, Plain):
        return strip_tags(content.html)
    parts: list[str] = []
    for item in content.items:
        match item:
            case Plain(html=html):
                parts.append(strip_tags(html))
            case Embed(title=title):
                parts.append(strip_tags(title or ""))
            case Local(text=text):
                parts.append(strip_tags(text or ""))
    return "".join(parts)


class ContentBuilder:
    """Accumulate content items, merging adjacent HTML fragments."""

    def __init__(self) -> None:
        self._items: list[ContentItem] = []
        self._buffer: list[str] = []

    def push_str(self, html: str) -> None:
        """Append raw HTML to the pending plain fragment."""
        if html:
            self._buffer.append(html)

    def push(self, item: ContentItem) -> None:
        """Append ``item``; plain items join the pending fragment."""
        if isinstance(item, Plain):
            self.push_str(item.html)
            return
        self._flush()
        self._items.append(item)

    def build(self) -> Content:
        """Return ``Plain`` when nothing needs resolving, otherwise ``Lazy``."""
        if not self._items:
            return Plain("".join(self._buffer))
        self._flush()
        return Lazy(list(self._items))

    def _flush(self) -> None:
        if self._buffer:
            self._items.append(Plain("".join(self._buffer)))
            self._buffer.clear()


@dc.dataclass(slots=True)
class Section:
    """A fully resolved page or embedded subsection.

    Attributes
    ----------
    metadata : dict[str, str]
        Resolved metadata; rich values are flattened to HTML strings.
    children : list[str | Section]
        HTML fragments and embedded sections in document order.
    option : SectionOption
        Display options of this occurrence of the section.
    references : set[str]
        Slugs of reference pages cited here or in open embeds.
    """

    metadata: dict[str, str]
    children: list[str | Section] = dc.field(default_factory=list)
    option: SectionOption = dc.field(default_factory=SectionOption)
    references: set[str] = dc.field(default_factory=set)

    @property
    def slug(self) -> str:
        """Return the slug of the page this section was resolved from."""
        return self.metadata["slug"]

    def clone(self) -> Section:
        """Return an independent deep copy of this section tree."""
        return copy.deepcopy(self)

    def spanned(self) -> str:
        """Flatten the section into a single HTML string."""
        parts: list[str] = []
        for child in self.children:
            if isinstance(child, Section):
                parts.append(child.spanned())
            else:
                parts.append(child)
        return "".join(parts)


__all__ = [
    "Content",
    "ContentBuilder",
    "ContentItem",
    "Embed",
    "Lazy",
    "Local",
    "Plain",
    "Section",
    "SectionOption",
    "ShallowSection",
    "metadata_slug",
    "remove_all_tags",
    "strip_tags",
]
