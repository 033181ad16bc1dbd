"""Tests for the Markdown front end."""

from __future__ import annotations

from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from forest_pages.compiler.section import (
    Embed,
    Lazy,
    Local,
    Plain,
    SectionOption,
)
from forest_pages.errors import ParseError
from forest_pages.frontend.markdown import (
    _split_tokens,
    is_external_link,
    is_local_link,
    parse_embed_text,
    parse_markdown,
    parse_markdown_text,
    split_front_matter,
    url_action,
)


def test_front_matter_becomes_metadata() -> None:
    """Titles render inline, taxa are normalised, other values stay verbatim."""
    text = (
        "---\n"
        "title: Hello *world*\n"
        "taxon: theorem\n"
        "author: Ann\n"
        "---\n"
        "\n"
        "Body text.\n"
    )
    shallow = parse_markdown_text("notes", text)
    assert shallow.metadata["title"] == Plain("Hello <em>world</em>")
    assert shallow.metadata["taxon"] == Plain("Theorem. ")
    assert shallow.metadata["author"] == Plain("Ann")
    assert shallow.metadata["slug"] == Plain("notes")
    assert shallow.content == Plain("<p>Body text.</p>")


def test_page_without_front_matter() -> None:
    """A page need not declare any metadata."""
    shallow = parse_markdown_text("a", "Just text.\n")
    assert set(shallow.metadata) == {"slug"}
    assert shallow.is_resolved()


def test_embed_link_is_lifted_out_of_its_paragraph() -> None:
    """An embed alone in a paragraph becomes an unwrapped embed item."""
    shallow = parse_markdown_text("a", "Intro.\n\n[+-Lemma](lemma.md#:embed)\n\nAfter.\n")
    assert isinstance(shallow.content, Lazy)
    before, embed, after = shallow.content.items
    assert embed == Embed(
        url="lemma.md",
        title="Lemma",
        option=SectionOption(numbering=True, details_open=False),
    )
    assert isinstance(before, Plain)
    assert before.html.strip() == "<p>Intro.</p>"
    assert isinstance(after, Plain)
    assert after.html.strip() == "<p>After.</p>"


def test_root_absolute_embed_is_relativized() -> None:
    """Embed targets starting with ``/`` are made relative."""
    shallow = parse_markdown_text("a", "[.](/notes/b#:embed)\n")
    assert isinstance(shallow.content, Lazy)
    embeds = [item for item in shallow.content.items if isinstance(item, Embed)]
    assert [item.url for item in embeds] == ["./notes/b"]
    assert embeds[0].title is None


def test_local_link_keeps_inline_markup() -> None:
    """Local links drop ``.md`` and keep their rendered text."""
    shallow = parse_markdown_text("a", "See [the *intro*](notes/intro.md) now.\n")
    assert isinstance(shallow.content, Lazy)
    assert shallow.content.items == [
        Plain("<p>See "),
        Local(slug="notes/intro", text="the <em>intro</em>"),
        Plain(" now.</p>"),
    ]


def test_external_links_render_immediately() -> None:
    """External links are final HTML carrying a descriptive title."""
    shallow = parse_markdown_text(
        "a", "Visit [site](https://example.com) or <https://example.org>.\n"
    )
    assert isinstance(shallow.content, Plain), "external links need no resolution"
    soup = BeautifulSoup(shallow.content.html, "html.parser")
    anchors = soup.select("span.link.external a")
    assert [anchor["title"] for anchor in anchors] == [
        "site [https://example.com]",
        "https://example.org",
    ]


def test_fragment_and_mailto_links_are_untouched() -> None:
    """Links that are neither pages nor external sites stay plain anchors."""
    shallow = parse_markdown_text("a", "[top](#top) and [mail](mailto:a@b.c)\n")
    assert isinstance(shallow.content, Plain)
    assert 'href="#top"' in shallow.content.html
    assert 'href="mailto:a@b.c"' in shallow.content.html


def test_title_with_local_link_is_lazy() -> None:
    """Cross-page links in a title defer its resolution."""
    shallow = parse_markdown_text("a", "---\ntitle: About [b](b.md)\n---\n")
    assert shallow.metadata["title"] == Lazy(
        [Plain("About "), Local(slug="b", text="b")]
    )


def test_fenced_code_is_highlighted() -> None:
    """Fenced code blocks are highlighted and labelled with their language."""
    shallow = parse_markdown_text("a", "```python\nprint(1)\n```\n")
    assert isinstance(shallow.content, Plain)
    soup = BeautifulSoup(shallow.content.html, "html.parser")
    block = soup.select_one("div.codehilite")
    assert block is not None, "expected a highlighted code block"
    assert block.get("data-language") == "python"


@pytest.mark.parametrize(
    "text",
    ["---\nno colon here\n---\n", "---\ntitle: Open\n"],
)
def test_malformed_front_matter_raises(text: str) -> None:
    """Front matter must be ``key: value`` lines closed by a fence."""
    with pytest.raises(ParseError):
        split_front_matter(text, "a.md")


def test_parse_reads_from_root(tmp_path: Path) -> None:
    """Pages are read from ``<root>/<slug>.md``."""
    (tmp_path / "notes").mkdir()
    (tmp_path / "notes" / "a.md").write_text("Hi.\n", encoding="utf-8")
    shallow = parse_markdown("notes/a", tmp_path)
    assert shallow.slug == "notes/a"
    assert shallow.content == Plain("<p>Hi.</p>")


def test_parse_missing_file_raises(tmp_path: Path) -> None:
    """Unreadable pages surface as parse errors naming the file."""
    with pytest.raises(ParseError) as excinfo:
        parse_markdown("ghost", tmp_path)
    assert excinfo.value.path == "ghost.md"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Lemma", (SectionOption(), "Lemma")),
        ("+Lemma", (SectionOption(numbering=True), "Lemma")),
        ("-.", (SectionOption(details_open=False, catalog=False), None)),
        ("", (SectionOption(), None)),
    ],
)
def test_parse_embed_text(text: str, expected: tuple[SectionOption, str | None]) -> None:
    """Leading option characters are consumed before the title."""
    assert parse_embed_text(text) == expected


def test_link_classification() -> None:
    """Only scheme-less, non-fragment links point at pages."""
    assert is_external_link("www.example.com")
    assert is_external_link("https://example.com")
    assert is_local_link("notes/a.md")
    assert not is_local_link("#top")
    assert not is_local_link("mailto:a@b.c")
    assert not is_local_link("//cdn.example.com/x.js")
    assert not is_local_link("")


def test_consecutive_embeds_are_lifted_together() -> None:
    """A paragraph holding only embeds is unwrapped as a whole."""
    shallow = parse_markdown_text("a", "[A](a1.md#:embed)\n[B](b1.md#:embed)\n")
    assert isinstance(shallow.content, Lazy)
    embeds = [item for item in shallow.content.items if isinstance(item, Embed)]
    assert [item.url for item in embeds] == ["a1.md", "b1.md"]
    plains = [item.html for item in shallow.content.items if isinstance(item, Plain)]
    assert all("<p>" not in html and "</p>" not in html for html in plains)


def test_embed_sharing_a_paragraph_with_a_link_stays_wrapped() -> None:
    """Paragraphs mixing embeds with inline content keep their ``<p>``."""
    shallow = parse_markdown_text("a", "[A](a1.md#:embed)\n[b](b.md)\n")
    assert isinstance(shallow.content, Lazy)
    first, *_rest, last = shallow.content.items
    assert first == Plain("<p>")
    assert last == Plain("</p>")


def test_embed_title_is_escaped() -> None:
    """Inline embed titles are HTML, so markup characters are escaped."""
    shallow = parse_markdown_text("a", "[a < b](x.md#:embed)\n")
    assert isinstance(shallow.content, Lazy)
    (embed,) = [item for item in shallow.content.items if isinstance(item, Embed)]
    assert embed.title == "a &lt; b"


def test_placeholder_lookalikes_stay_text() -> None:
    """Prose resembling an internal placeholder is left alone."""
    shallow = parse_markdown_text("index", "Literal @@FOREST3@@ in prose.\n")
    assert shallow.content == Plain("<p>Literal @@FOREST3@@ in prose.</p>")


def test_control_characters_cannot_forge_placeholders() -> None:
    """STX/ETX in the source are dropped before links are classified."""
    shallow = parse_markdown_text("index", "A \x02forest:7\x03 B [b](b.md)\n")
    assert shallow.content == Lazy(
        [Plain("<p>A forest:7 B "), Local(slug="b", text="b"), Plain("</p>")]
    )


def test_unknown_placeholder_is_a_parse_error() -> None:
    """A token naming no recorded item fails the page instead of the run."""
    with pytest.raises(ParseError) as excinfo:
        _split_tokens("<p>\x02forest:5\x03</p>", [], "a.md")
    assert excinfo.value.path == "a.md"


def test_math_is_kept_verbatim() -> None:
    """TeX between dollar signs escapes emphasis and backslash escapes."""
    shallow = parse_markdown_text("a", "Product $a*b*c$ and $\\{x\\}$.\n")
    assert shallow.content == Plain("<p>Product $a*b*c$ and $\\{x\\}$.</p>")


def test_display_math_spans_lines() -> None:
    """Display math may cover several lines and is HTML-escaped."""
    shallow = parse_markdown_text("a", "$$\na < b\n$$\n")
    assert isinstance(shallow.content, Plain)
    assert "$$\na &lt; b\n$$" in shallow.content.html


def test_currency_is_not_math() -> None:
    """A dollar sign followed by a digit does not open inline math."""
    shallow = parse_markdown_text("a", "It costs $5 and $6.\n")
    assert shallow.content == Plain("<p>It costs $5 and $6.</p>")


def test_images_are_titled_with_their_alt_text() -> None:
    """Images get a hover title from their alt text unless they carry one."""
    shallow = parse_markdown_text(
        "a", '![A plot](plot.png) ![B](b.png "Given")\n'
    )
    assert isinstance(shallow.content, Plain)
    images = BeautifulSoup(shallow.content.html, "html.parser").select("img")
    assert [image["title"] for image in images] == ["A plot", "Given"]


def test_typst_pictures_need_a_workspace() -> None:
    """Without a compile target, Typst picture links fail the page."""
    with pytest.raises(ParseError) as excinfo:
        parse_markdown_text("a", "[x](plot.typ#:span)\n")
    assert excinfo.value.path == "a.md"


@pytest.mark.parametrize(
    ("href", "expected"),
    [
        ("notes/a.md#:embed", ("notes/a.md", "embed")),
        ("figs/plot.typ#:block", ("figs/plot.typ", "block")),
        ("notes/a.md#intro", ("notes/a.md#intro", None)),
    ],
)
def test_url_action(href: str, expected: tuple[str, str | None]) -> None:
    """The ``#:`` suffix names what to do with a link target."""
    assert url_action(href) == expected
