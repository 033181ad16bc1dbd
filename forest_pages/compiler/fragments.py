"""HTML fragments shared by the resolver, the renderer, and the front ends.

Arguments named ``*_html`` (and titles, taxa, metadata values) are trusted
HTML produced by a front end; attribute values and plain-text labels are
escaped here.
"""

from __future__ import annotations

from html import escape


def link(href: str, title: str, text_html: str, kind: str) -> str:
    """Return an inline hyperlink wrapped in a ``link <kind>`` span."""
    return (
        f'<span class="link {escape(kind, quote=True)}">'
        f'<a href="{escape(href, quote=True)}" title="{escape(title, quote=True)}">'
        f"{text_html}</a></span>"
    )


def local_link(href: str, title: str, text_html: str) -> str:
    """Return a hyperlink to another page of the workspace."""
    return link(href, title, text_html, "local")


def external_link(href: str, title: str, text_html: str) -> str:
    """Return a hyperlink leaving the site."""
    return link(href, title, text_html, "external")


def image(src: str, alt: str = "") -> str:
    """Return an ``<img>`` element for a generated or linked picture."""
    return f'<img src="{escape(src, quote=True)}" alt="{escape(alt, quote=True)}" />'


def figure(src: str, caption_html: str = "") -> str:
    """Return a centred figure; the caption is omitted when empty."""
    caption = f"<figcaption>{caption_html}</figcaption>" if caption_html else ""
    return f"<figure>{image(src)}{caption}</figure>"


def inline_typst(svg: str) -> str:
    """Wrap an inline Typst rendering so it flows with the surrounding text."""
    return f'<span class="inline-typst">{svg}</span>'


def metadata_list(values: list[str]) -> str:
    """Return the custom metadata list shown under a section title."""
    items = "".join(f'<li class="meta-item">{value}</li>' for value in values)
    return f'<div class="metadata"><ul>{items}</ul></div>'


def entry_header(
    *,
    title_html: str,
    taxon_html: str,
    slug_url: str,
    slug_label: str,
    custom: list[str],
) -> str:
    """Return the header summarising a section: taxon, title, slug, metadata."""
    return (
        "<header><h1>"
        f'<span class="taxon">{taxon_html}</span>{title_html} '
        f'<a class="slug" href="{escape(slug_url, quote=True)}">'
        f"[{escape(slug_label)}]</a>"
        f"</h1>{metadata_list(custom)}</header>"
    )


def section_block(
    *,
    summary_html: str,
    content_html: str,
    anchor: str,
    data_taxon: str,
    hide_metadata: bool,
    details_open: bool,
) -> str:
    """Return a collapsible section keyed by a stable anchor id."""
    classes = "block hide-metadata" if hide_metadata else "block"
    open_attr = " open" if details_open else ""
    return (
        f'<section class="{classes}" data-taxon="{escape(data_taxon, quote=True)}">'
        f"<details{open_attr}>"
        f'<summary id="{escape(anchor, quote=True)}">{summary_html}</summary>'
        f"{content_html}</details></section>"
    )


def catalog_item(
    *,
    slug: str,
    slug_url: str,
    anchor: str,
    title_html: str,
    page_title: str,
    taxon_html: str,
    details_open: bool,
    child_html: str,
) -> str:
    """Return a table-of-contents entry jumping to the section anchor."""
    class_attr = "" if details_open else ' class="item-summary"'
    hover = escape(f"{page_title} [{slug}]", quote=True)
    onclick = escape(f"window.location.href='#{anchor}'", quote=True)
    return (
        f"<li{class_attr}>"
        f'<a class="bullet" href="{escape(slug_url, quote=True)}" title="{hover}">■</a>'
        f'<span class="link local" onclick="{onclick}">'
        f'<span class="taxon">{taxon_html}</span>{title_html}</span>'
        f"{child_html}</li>"
    )


def catalog_list(items_html: str) -> str:
    """Return a nested catalog list, or nothing for an empty one."""
    if not items_html:
        return ""
    return f'<ul class="block">{items_html}</ul>'


def catalog_block(items_html: str) -> str:
    """Return the table-of-contents block."""
    return f'<div class="block"><h1>Table of Contents</h1>{items_html}</div>'


def footer_section(summary: str, content_html: str) -> str:
    """Return one footer block (references or backlinks)."""
    return (
        '<section class="block"><details open>'
        f"<summary><header><h1>{escape(summary)}</h1></header></summary>"
        f"{content_html}</details></section>"
    )


def summary_block(header_html: str) -> str:
    """Return a footer entry showing only a section header."""
    return f'<section class="block">{header_html}</section>'


def header_nav(title_html: str, page_title: str, href: str) -> str:
    """Return the navigation header linking to the parent page."""
    onclick = escape(f"window.location.href='{href}'", quote=True)
    return (
        '<header class="header"><nav class="nav"><div class="logo">'
        f'<span onclick="{onclick}" title="{escape(page_title, quote=True)}">'
        f"« {title_html}</span></div></nav></header>"
    )


__all__ = [
    "catalog_block",
    "catalog_item",
    "catalog_list",
    "entry_header",
    "external_link",
    "figure",
    "footer_section",
    "header_nav",
    "image",
    "inline_typst",
    "link",
    "local_link",
    "metadata_list",
    "section_block",
    "summary_block",
]
