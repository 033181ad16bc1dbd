"""Cyclopts CLI entrypoint for compiling forest workspaces.

The ``forest`` console script compiles a workspace of Markdown and Typst pages
into HTML (``forest compile``) and clears cached hash records so the next
compile re-parses or rewrites everything (``forest clean``).

Examples
--------
Compile the workspace in the current directory:

>>> from forest_pages.cli import main
>>> main()  # doctest: +SKIP

Compile into a custom directory with a base URL:

>>> from forest_pages.cli import app
>>> app(["compile", "--root", "notes", "--base", "/notes/"])  # doctest: +SKIP
"""

from __future__ import annotations

import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .cache import ContentCache
from .config import FooterMode, load_compile_config
from .pipeline import compile_workspace

app = App(name="forest", config=cyclopts.config.Env("FOREST_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the path as given."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


@app.command(name="compile", help="Compile the workspace into HTML pages.")
def compile_(
    *,
    root: typ.Annotated[Path, Parameter(help="Workspace root directory")] = Path("."),
    output: typ.Annotated[
        Path | None, Parameter(help="Output directory, relative to the root")
    ] = None,
    base: typ.Annotated[
        str | None, Parameter(help="Base URL prefixed to generated links")
    ] = None,
    config: typ.Annotated[
        Path | None, Parameter(help="Path to the workspace config file")
    ] = None,
    disable_pretty_urls: typ.Annotated[
        bool, Parameter(help="Link pages with an explicit .html suffix")
    ] = False,
    short_slug: typ.Annotated[
        bool | None, Parameter(help="Hide parent directories in slug labels")
    ] = None,
    footer_mode: typ.Annotated[
        FooterMode | None, Parameter(help="Render footer entries as links or embeds")
    ] = None,
    export_css: typ.Annotated[
        bool | None, Parameter(help="Write main.css instead of inlining styles")
    ] = None,
) -> int:
    """Compile every page of the workspace at ``root``.

    Parameters
    ----------
    root : Path, optional
        Workspace root holding the source pages and ``forest.yaml``.
    output : Path or None, optional
        Output directory overriding the config file.
    base : str or None, optional
        Base URL overriding the config file.
    config : Path or None, optional
        Explicit configuration file; defaults to ``<root>/forest.yaml``.
    disable_pretty_urls : bool, optional
        Link pages as ``<slug>.html`` instead of ``<slug>``.
    short_slug : bool or None, optional
        Show only the last slug component in page headers.
    footer_mode : FooterMode or None, optional
        How references and backlinks are rendered.
    export_css : bool or None, optional
        Link an exported stylesheet rather than inlining it.

    Returns
    -------
    int
        ``0`` on success, ``1`` when diagnostics were reported.
    """
    settings = load_compile_config(
        config,
        root_dir=root,
        output_dir=output,
        base_url=base,
        pretty_urls=False if disable_pretty_urls else None,
        short_slug=short_slug,
        footer_mode=footer_mode,
        export_css=export_css,
    )
    report = compile_workspace(settings)
    for path in report.written:
        print(f"wrote {_format_path(path)}")
    for path in report.skipped:
        print(f"skip {_format_path(path)}")
    for diagnostic in report.diagnostics:
        print(f"error: {diagnostic}", file=sys.stderr)
    return 1 if report.diagnostics else 0


@app.command(help="Delete cached hash records so the next compile redoes the work.")
def clean(
    *,
    root: typ.Annotated[Path, Parameter(help="Workspace root directory")] = Path("."),
    markdown: typ.Annotated[
        bool, Parameter(help="Forget Markdown source hashes")
    ] = False,
    typst: typ.Annotated[
        bool, Parameter(help="Forget Typst page and picture hashes")
    ] = False,
    html: typ.Annotated[bool, Parameter(help="Forget generated page hashes")] = False,
) -> None:
    """Delete hash records of the selected kinds; all kinds when none is chosen.

    Parameters
    ----------
    root : Path, optional
        Workspace root whose ``.cache`` directory is cleaned.
    markdown : bool, optional
        Delete ``.md.hash`` records.
    typst : bool, optional
        Delete ``.typst.hash`` and ``.typ.hash`` records.
    html : bool, optional
        Delete ``.html.hash`` records.
    """
    settings = load_compile_config(root_dir=root)
    cache = ContentCache(settings.hash_dir, settings.entry_dir)
    selected = {
        ".md.hash": markdown,
        ".typst.hash": typst,
        ".typ.hash": typst,
        ".html.hash": html,
    }
    if not any(selected.values()):
        selected = dict.fromkeys(selected, True)
    for suffix, enabled in selected.items():
        if not enabled:
            continue
        for path in cache.clear(suffix):
            print(f"removed {_format_path(path)}")


def main() -> None:
    """Invoke the Cyclopts application that powers the ``forest`` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
