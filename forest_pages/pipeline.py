"""Compile a whole workspace: parse, resolve, render and write.

:class:`WorkspaceCompiler` glues the pieces together. Sources are parsed only
when their content hash changed (or their serialized entry is missing), the
resolved pages are rendered in discovery order, and pages are written only when
their HTML changed.

Example
-------
>>> from pathlib import Path
>>> from forest_pages.config import load_compile_config
>>> config = load_compile_config(root_dir=Path("notes"))  # doctest: +SKIP
>>> report = compile_workspace(config)  # doctest: +SKIP
>>> [path.name for path in report.written]  # doctest: +SKIP
['index.html']
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from forest_pages._constants import STYLESHEET_NAME
from forest_pages.cache import ContentCache
from forest_pages.compiler.state import resolve_all
from forest_pages.compiler.writer import Writer
from forest_pages.errors import Diagnostic, ParseError
from forest_pages.frontend import TypstAssets, default_front_ends
from forest_pages.frontend.renderer import HtmlContentRenderer
from forest_pages.workspace import SourceFile, discover_workspace

if typ.TYPE_CHECKING:
    from forest_pages.compiler.section import ShallowSection
    from forest_pages.config import CompileConfig
    from forest_pages.frontend import FrontEnd

STYLESHEET_PATH = Path(__file__).resolve().parent / "static" / STYLESHEET_NAME


@dc.dataclass(slots=True)
class CompileReport:
    """What one compile pass did.

    Attributes
    ----------
    written : list[Path]
        Typst pictures, the stylesheet and pages written to disk.
    skipped : list[Path]
        Pages whose HTML was unchanged.
    parsed : list[str]
        Source paths handed to a front end.
    loaded : list[str]
        Source paths restored from the entry cache.
    diagnostics : list[Diagnostic]
        Recoverable problems, in the order they were found.
    """

    written: list[Path] = dc.field(default_factory=list)
    skipped: list[Path] = dc.field(default_factory=list)
    parsed: list[str] = dc.field(default_factory=list)
    loaded: list[str] = dc.field(default_factory=list)
    diagnostics: list[Diagnostic] = dc.field(default_factory=list)


class WorkspaceCompiler:
    """Run the compile pipeline for one workspace."""

    def __init__(
        self,
        config: CompileConfig,
        *,
        front_ends: typ.Mapping[str, FrontEnd] | None = None,
    ) -> None:
        self.config = config
        self.cache = ContentCache(config.hash_dir, config.entry_dir)
        self.assets = TypstAssets(config, self.cache)
        if front_ends is None:
            front_ends = default_front_ends(self.assets)
        self.front_ends = dict(front_ends)

    def run(self) -> CompileReport:
        """Compile every page of the workspace.

        Raises
        ------
        WorkspaceError
            If the workspace is malformed or has no ``index`` page.
        """
        report = CompileReport()
        workspace = discover_workspace(
            self.config.root_dir, exclude=self.config.output_root
        )
        shallows: dict[str, ShallowSection] = {}
        for source in workspace.sources:
            try:
                shallows[source.slug] = self.load_source(source, report)
            except ParseError as exc:
                report.diagnostics.append(Diagnostic(source.slug, str(exc)))
        report.written.extend(self.assets.written)

        state = resolve_all(shallows, self.config)
        report.diagnostics.extend(state.diagnostics)

        self.config.output_root.mkdir(parents=True, exist_ok=True)
        if self.config.export_css:
            stylesheet = export_css(self.config)
            if stylesheet is not None:
                report.written.append(stylesheet)

        writer = Writer(state.compiled, state.callback, self.config)
        slugs = [slug for slug in workspace.slugs if slug in shallows]
        for result in writer.write_all(slugs, self.cache):
            target = report.written if result.written else report.skipped
            target.append(result.path)
        report.diagnostics.extend(writer.diagnostics)
        return report

    def load_source(
        self, source: SourceFile, report: CompileReport
    ) -> ShallowSection:
        """Return the shallow section of ``source``, parsing only when needed."""
        root = self.config.root_dir
        key = source.relative_path
        content = (root / key).read_bytes()
        if not self.cache.is_stale(key, content, commit=False):
            cached = self.cache.load_entry(key)
            if cached is not None:
                report.loaded.append(key)
                return cached

        front_end = self.front_ends.get(source.ext)
        if front_end is None:
            raise ParseError(key, f"no front end for `.{source.ext}` files")
        shallow = front_end(source.slug, root)
        self.cache.store_entry(key, shallow)
        self.cache.commit(key, content)
        report.parsed.append(key)
        return shallow


def export_css(
    config: CompileConfig, renderer: HtmlContentRenderer | None = None
) -> Path | None:
    """Write the site stylesheet into the output directory unless present.

    The stylesheet bundles the page styles and the Pygments rules used by
    highlighted code blocks.
    """
    target = config.output_root / STYLESHEET_NAME
    if target.exists():
        return None
    renderer = renderer or HtmlContentRenderer()
    target.parent.mkdir(parents=True, exist_ok=True)
    styles = STYLESHEET_PATH.read_text(encoding="utf-8")
    target.write_text(f"{styles}\n{renderer.stylesheet}\n", encoding="utf-8")
    return target


def compile_workspace(
    config: CompileConfig,
    *,
    front_ends: typ.Mapping[str, FrontEnd] | None = None,
) -> CompileReport:
    """Compile the workspace described by ``config``."""
    return WorkspaceCompiler(config, front_ends=front_ends).run()


__all__ = ["CompileReport", "WorkspaceCompiler", "compile_workspace", "export_css"]
