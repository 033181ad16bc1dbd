"""Tests for Typst pictures and inline snippets in Markdown pages."""

from __future__ import annotations

import subprocess
import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from forest_pages import cli
from forest_pages.cache import ContentCache
from forest_pages.compiler.section import Plain
from forest_pages.config import load_compile_config
from forest_pages.errors import ParseError
from forest_pages.frontend.assets import (
    TypstAssets,
    is_inline_typst,
    shared_import,
    svg_name,
)
from forest_pages.frontend.markdown import MarkdownFrontEnd
from forest_pages.pipeline import compile_workspace

if typ.TYPE_CHECKING:
    from unittest.mock import MagicMock

    from pytest_mock import MockerFixture
else:  # pragma: no cover - type-checking fallback
    MagicMock = typ.Any
    MockerFixture = typ.Any

WriteSources = typ.Callable[[dict[str, str]], Path]

SVG_OUTPUT = '<?xml version="1.0" encoding="utf-8"?>\n<svg>plot</svg>\n'


@pytest.fixture
def typst_run(mocker: MockerFixture) -> MagicMock:
    """Stub the ``typst`` binary so that every compile prints one SVG."""
    mocker.patch(
        "forest_pages.frontend.typst.shutil.which", return_value="/usr/bin/typst"
    )
    return mocker.patch(
        "forest_pages.frontend.typst.subprocess.run",
        return_value=subprocess.CompletedProcess([], 0, SVG_OUTPUT, ""),
    )


@pytest.fixture
def root(write_sources: WriteSources) -> Path:
    """Return a workspace holding one Typst picture."""
    return write_sources({"figs/plot.typ": "#circle(radius: 1em)\n"})


@pytest.fixture
def front_end(root: Path) -> MarkdownFrontEnd:
    """Return a Markdown front end able to compile Typst pictures."""
    config = load_compile_config(root_dir=root)
    cache = ContentCache(config.hash_dir, config.entry_dir)
    return MarkdownFrontEnd(assets=TypstAssets(config, cache))


def _html(front_end: MarkdownFrontEnd, text: str) -> str:
    shallow = front_end.parse_text("index", text)
    assert isinstance(shallow.content, Plain), "pictures need no resolution"
    return shallow.content.html


def test_block_picture_becomes_a_figure(
    front_end: MarkdownFrontEnd, root: Path, typst_run: MagicMock
) -> None:
    """Block pictures are compiled to SVG and shown as captioned figures."""
    html = _html(front_end, "[A *plot*](figs/plot.typ#:block)\n")

    soup = BeautifulSoup(html, "html.parser")
    assert soup.select_one("p") is None, "figures are lifted out of paragraphs"
    image = soup.select_one("figure img")
    assert image is not None
    assert image["src"] == "/figs/plot.svg"
    caption = soup.select_one("figure figcaption")
    assert caption is not None
    assert caption.decode_contents() == "A <em>plot</em>"

    svg = root / "publish" / "figs" / "plot.svg"
    assert svg.read_text(encoding="utf-8") == "<svg>plot</svg>"
    assert front_end.assets is not None
    assert front_end.assets.written == [svg]
    assert typst_run.call_args.args[0] == [
        "/usr/bin/typst",
        "c",
        "-f=svg",
        f"--root={root}",
        str(root / "figs/plot.typ"),
        "-",
    ]


def test_span_picture_flows_with_text(
    front_end: MarkdownFrontEnd, typst_run: MagicMock
) -> None:
    """Span pictures stay inside their paragraph as bare images."""
    html = _html(front_end, "See [plot](/figs/plot.typ#:span) here.\n")

    assert html == '<p>See <img src="/figs/plot.svg" alt="plot" /> here.</p>'
    assert typst_run.call_count == 1


def test_unchanged_picture_is_not_recompiled(
    front_end: MarkdownFrontEnd, root: Path, typst_run: MagicMock
) -> None:
    """An SVG is rebuilt only when its source changed or the file is gone."""
    text = "[Plot](figs/plot.typ#:block)\n"
    _html(front_end, text)
    _html(front_end, text)
    assert typst_run.call_count == 1

    (root / "figs" / "plot.typ").write_text("#square()\n", encoding="utf-8")
    _html(front_end, text)
    assert typst_run.call_count == 2

    (root / "publish" / "figs" / "plot.svg").unlink()
    _html(front_end, text)
    assert typst_run.call_count == 3


def test_failed_picture_is_not_recorded(
    front_end: MarkdownFrontEnd, root: Path, typst_run: MagicMock
) -> None:
    """A failing compile fails the page and leaves no hash record behind."""
    typst_run.return_value = subprocess.CompletedProcess([], 1, "", "error: bad\n")

    with pytest.raises(ParseError, match="error: bad"):
        front_end.parse_text("index", "[Plot](figs/plot.typ#:block)\n")

    cache = ContentCache(root / ".cache" / "hash", root / ".cache" / "entry")
    assert cache.stored_hash("figs/plot.typ") == 0
    assert not (root / "publish" / "figs" / "plot.svg").exists()


def test_missing_picture_names_the_page(
    front_end: MarkdownFrontEnd, typst_run: MagicMock
) -> None:
    """A link to a missing Typst file is reported against the linking page."""
    with pytest.raises(ParseError) as excinfo:
        front_end.parse_text("index", "[Plot](figs/ghost.typ#:span)\n")
    assert excinfo.value.path == "index.md"
    typst_run.assert_not_called()


def test_inline_snippet_uses_shared_imports(
    front_end: MarkdownFrontEnd, root: Path, typst_run: MagicMock
) -> None:
    """Shared modules are imported ahead of every later inline snippet."""
    text = (
        "[*](lib.typ#:shared)\n\n"
        "Energy [E = m c^2](inline-math-1pt) here.\n"
    )
    html = _html(front_end, text)

    assert html.strip() == (
        '<p>Energy <span class="inline-typst"><svg>plot</svg></span> here.</p>'
    )
    command = typst_run.call_args.args[0]
    assert command == ["/usr/bin/typst", "c", "-f=svg", f"--root={root}", "-", "-"]
    source = typst_run.call_args.kwargs["input"]
    assert "margin: (x: 1pt, y: 1pt)" in source
    assert source.endswith('#import "lib.typ": *\n$E = m c^2$')


def test_inline_snippet_margins(
    front_end: MarkdownFrontEnd, typst_run: MagicMock
) -> None:
    """Without ``math`` the snippet is passed as is with both margins."""
    _html(front_end, "Box [#rect()](inline-2pt-3pt).\n")

    source = typst_run.call_args.kwargs["input"]
    assert "margin: (x: 2pt, y: 3pt)" in source
    assert source.endswith("\n#rect()")


def test_compile_writes_pictures_once(
    write_sources: WriteSources, typst_run: MagicMock
) -> None:
    """Generated SVGs are reported with the pages and reused on the next run."""
    root = write_sources(
        {
            "index.md": "[Plot](figs/plot.typ#:block)\n",
            "figs/plot.typ": "#circle(radius: 1em)\n",
        }
    )
    config = load_compile_config(root_dir=root)
    publish = root / "publish"

    report = compile_workspace(config)

    assert report.diagnostics == []
    assert report.written == [
        publish / "figs/plot.svg",
        publish / "main.css",
        publish / "index.html",
    ]
    figure = BeautifulSoup(
        (publish / "index.html").read_text(encoding="utf-8"), "html.parser"
    ).select_one("figure img")
    assert figure is not None
    assert figure["src"] == "/figs/plot.svg"

    assert compile_workspace(config).written == []
    assert typst_run.call_count == 1


def test_clean_forgets_picture_hashes(
    write_sources: WriteSources,
    typst_run: MagicMock,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """``clean --typst`` removes the hash records of Typst pictures."""
    root = write_sources(
        {
            "index.md": "[Plot](figs/plot.typ#:span)\n",
            "figs/plot.typ": "#circle(radius: 1em)\n",
        }
    )
    monkeypatch.chdir(root)
    compile_workspace(load_compile_config(root_dir=root))

    cli.clean(root=root, typst=True)

    assert capsys.readouterr().out.splitlines() == [
        "removed .cache/hash/figs/plot.typ.hash"
    ]
    assert typst_run.call_count == 1


def test_helpers() -> None:
    """Link targets and file names follow the Typst picture conventions."""
    assert is_inline_typst("inline")
    assert is_inline_typst("inline-math")
    assert not is_inline_typst("inlined.md")
    assert svg_name("figs/plot.typ") == "figs/plot.svg"
    assert shared_import("lib.typ", "fn1, fn2") == '#import "lib.typ": fn1, fn2'
