"""Typst front end: compile ``.typst`` pages to HTML and scrape their tags.

The ``typst`` binary renders a page to HTML; the page marks its metadata and
cross-page references with custom elements which are cut out of that HTML:

``<forest-meta key="title">Body</forest-meta>``
    Metadata entry; ``value="..."`` overrides the (recursively parsed) body.
``<forest-embed url="notes/a" numbering open="false" catalog value="Title">``
    Embed another page.
``<forest-local slug="notes/a">Text</forest-local>``
    Link to another page.
"""

from __future__ import annotations

import dataclasses as dc
import html
import re
import shutil
import subprocess
import typing as typ
from pathlib import Path

from forest_pages.compiler.metadata import KEY_SLUG, KEY_TAXON
from forest_pages.compiler.section import (
    Content,
    ContentBuilder,
    Embed,
    Local,
    Plain,
    SectionOption,
    ShallowSection,
)
from forest_pages.compiler.taxon import display_taxon
from forest_pages.errors import ParseError
from forest_pages.slug import to_slug

TYPST_BINARY = "typst"
TAG_PATTERN = re.compile(
    r"<forest-(?P<open>meta|embed|local)"
    r"(?P<attrs>(?:\s+[a-zA-Z-]+(?:=\"(?:[^\"\\]|\\[\s\S])*\")?)*)\s*>"
    r"|</forest-(?P<close>meta|embed|local)>"
)
ATTR_PATTERN = re.compile(
    r"(?P<key>[a-zA-Z-]+)(?:=\"(?P<value>(?:[^\"\\]|\\[\s\S])*)\")?"
)
BODY_PATTERN = re.compile(r"<body[^>]*>(.*)</body>", re.DOTALL)
XML_DECLARATION = re.compile(r"\A\s*<\?xml[^>]*\?>")
INLINE_MARGIN = "0em"
INLINE_STYLES = (
    "#set page(width: auto, height: auto, "
    "margin: (x: {margin_x}, y: {margin_y}), fill: rgb(0, 0, 0, 0));\n"
    "#set text(size: 15.427pt, top-edge: \"bounds\", bottom-edge: \"bounds\");\n"
)


@dc.dataclass(slots=True)
class TagMatch:
    """One top-level custom element found in Typst output."""

    kind: str
    start: int
    end: int
    attrs: dict[str, str]
    body: str


def parse_bool(value: str | None, *, default: bool) -> bool:
    """Interpret a boolean tag attribute.

    >>> parse_bool(None, default=True), parse_bool("none", default=True)
    (True, False)
    """
    match value:
        case None | "auto":
            return default
        case "false" | "0" | "none":
            return False
        case _:
            return True


def _parse_attrs(text: str) -> dict[str, str]:
    return {
        match.group("key"): html.unescape(match.group("value") or "")
        for match in ATTR_PATTERN.finditer(text)
    }


def iter_tags(html_text: str, path: str | Path) -> typ.Iterator[TagMatch]:
    """Yield the outermost custom elements of ``html_text`` in document order.

    Raises
    ------
    ParseError
        If an element is closed by a different kind or never closed.
    """
    stack: list[tuple[str, re.Match[str]]] = []
    for match in TAG_PATTERN.finditer(html_text):
        opened = match.group("open")
        if opened is not None:
            stack.append((opened, match))
            continue
        closed = match.group("close")
        if not stack:
            msg = f"unexpected closing tag `</forest-{closed}>`"
            raise ParseError(path, msg)
        kind, open_match = stack.pop()
        if kind != closed:
            msg = f"`<forest-{kind}>` closed by `</forest-{closed}>`"
            raise ParseError(path, msg)
        if not stack:
            yield TagMatch(
                kind=kind,
                start=open_match.start(),
                end=match.end(),
                attrs=_parse_attrs(open_match.group("attrs")),
                body=html_text[open_match.end() : match.start()].strip(),
            )
    if stack:
        msg = f"unclosed tag `<forest-{stack[-1][0]}>`"
        raise ParseError(path, msg)


def _required(tag: TagMatch, name: str, path: str | Path) -> str:
    try:
        return tag.attrs[name]
    except KeyError as exc:
        msg = f"missing attribute `{name}` in `<forest-{tag.kind}>`"
        raise ParseError(path, msg) from exc


def _value(tag: TagMatch) -> str | None:
    value = tag.attrs.get("value", tag.body)
    return value or None


def parse_typst_html(
    html_text: str, path: str | Path, metadata: dict[str, Content]
) -> Content:
    """Split Typst HTML into content, collecting ``forest-meta`` into ``metadata``."""
    builder = ContentBuilder()
    cursor = 0
    for tag in iter_tags(html_text, path):
        builder.push_str(html_text[cursor : tag.start])
        cursor = tag.end
        match tag.kind:
            case "meta":
                key = _required(tag, "key", path)
                metadata[key] = _meta_value(tag, key, path)
            case "embed":
                defaults = SectionOption()
                option = SectionOption(
                    numbering=parse_bool(
                        tag.attrs.get("numbering"), default=defaults.numbering
                    ),
                    details_open=parse_bool(
                        tag.attrs.get("open"), default=defaults.details_open
                    ),
                    catalog=parse_bool(
                        tag.attrs.get("catalog"), default=defaults.catalog
                    ),
                )
                url = _required(tag, "url", path)
                builder.push(Embed(url=url, title=_value(tag), option=option))
            case "local":
                slug = to_slug(_required(tag, "slug", path))
                builder.push(Local(slug=slug, text=_value(tag)))
    builder.push_str(html_text[cursor:])
    return builder.build()


def _meta_value(tag: TagMatch, key: str, path: str | Path) -> Content:
    if "value" in tag.attrs:
        value: Content = Plain(tag.attrs["value"])
    else:
        value = parse_typst_html(tag.body, path, {})
    if key == KEY_TAXON and isinstance(value, Plain):
        value = Plain(display_taxon(value.html))
    return value


def html_body(document: str) -> str:
    """Return the inner HTML of ``<body>``, or the whole document without one."""
    match = BODY_PATTERN.search(document)
    return match.group(1) if match else document


def _run_typst(
    arguments: list[str], path: str | Path, *, stdin: str | None = None
) -> str:
    """Run the ``typst`` binary with ``arguments`` and return its stdout.

    Raises
    ------
    ParseError
        If the binary is missing or exits with a non-zero status.
    """
    binary = shutil.which(TYPST_BINARY)
    if binary is None:
        raise ParseError(path, "`typst` executable not found on PATH")
    result = subprocess.run(  # noqa: S603
        [binary, *arguments],
        input=stdin,
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        reason = result.stderr.strip() or f"typst exited with {result.returncode}"
        raise ParseError(path, reason)
    return result.stdout


def compile_to_html(relative_path: str, root_dir: Path) -> str:
    """Run ``typst`` on ``relative_path`` and return the generated HTML."""
    return _run_typst(
        [
            "c",
            "-f=html",
            f"--root={root_dir}",
            "--features=html",
            str(root_dir / relative_path),
            "-",
        ],
        relative_path,
    )


def _strip_xml_declaration(svg: str) -> str:
    return XML_DECLARATION.sub("", svg, count=1).strip()


def compile_to_svg(relative_path: str, root_dir: Path) -> str:
    """Render the Typst file ``relative_path`` to a standalone SVG image."""
    svg = _run_typst(
        ["c", "-f=svg", f"--root={root_dir}", str(root_dir / relative_path), "-"],
        relative_path,
    )
    return _strip_xml_declaration(svg)


def compile_inline_svg(
    source: str,
    root_dir: Path,
    path: str | Path,
    *,
    margin_x: str | None = None,
    margin_y: str | None = None,
) -> str:
    """Render a Typst snippet to SVG sized to its content.

    The snippet is fed through stdin; ``path`` names the page it came from in
    error messages. ``margin_y`` falls back to ``margin_x``.
    """
    margin_x = margin_x or INLINE_MARGIN
    margin_y = margin_y or margin_x
    styles = INLINE_STYLES.format(margin_x=margin_x, margin_y=margin_y)
    svg = _run_typst(
        ["c", "-f=svg", f"--root={root_dir}", "-", "-"],
        path,
        stdin=f"{styles}{source}",
    )
    return _strip_xml_declaration(svg)


def parse_typst(slug: str, root_dir: Path) -> ShallowSection:
    """Compile and parse the Typst page ``slug`` stored under ``root_dir``."""
    relative = f"{slug}.typst"
    document = compile_to_html(relative, root_dir)
    metadata: dict[str, Content] = {}
    content = parse_typst_html(html_body(document), relative, metadata)
    metadata[KEY_SLUG] = Plain(slug)
    return ShallowSection(metadata=metadata, content=content)


__all__ = [
    "TagMatch",
    "compile_inline_svg",
    "compile_to_html",
    "compile_to_svg",
    "html_body",
    "iter_tags",
    "parse_bool",
    "parse_typst",
    "parse_typst_html",
]
