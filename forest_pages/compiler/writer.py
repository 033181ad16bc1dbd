"""Render resolved sections into numbered, cataloged HTML pages.

:class:`Writer` walks a resolved :class:`~forest_pages.compiler.section.Section`
depth-first. Numbered sections step a shared :class:`Counter` and scope a fresh
one to their subtree; the walk also collects a table of contents from the
sections that opt into the catalog. Each page document is assembled from the
``page.jinja`` template: a navigation header pointing at the page's parent, the
article with its references and backlinks footer, and the table of contents.

Example
-------
>>> from forest_pages.compiler.state import resolve_all
>>> from forest_pages.compiler.writer import Writer
>>> state = resolve_all(shallows)  # doctest: +SKIP
>>> writer = Writer(state.compiled, state.callback)  # doctest: +SKIP
>>> html, page_title = writer.render("index")  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from forest_pages._constants import METADATA_SLUG_SUFFIX, STYLESHEET_NAME
from forest_pages.config import CompileConfig, FooterMode
from forest_pages.errors import Diagnostic
from forest_pages.slug import slug_text, to_hash_id

from . import fragments
from .counter import Counter
from .metadata import (
    KEY_DATA_TAXON,
    KEY_PAGE_TITLE,
    KEY_PARENT,
    KEY_TAXON,
    KEY_TITLE,
    custom_values,
    is_collection,
)
from .taxon import Taxon

if typ.TYPE_CHECKING:
    from forest_pages.cache import ContentCache

    from .callback import CallbackGraph
    from .section import Section

PAGE_TEMPLATE = "page.jinja"


@dc.dataclass(slots=True)
class WriteResult:
    """Outcome of writing one page."""

    slug: str
    path: Path
    page_title: str
    written: bool


class Writer:
    """Render and write the pages of one resolved workspace."""

    def __init__(
        self,
        compiled: typ.Mapping[str, Section],
        callback: CallbackGraph,
        config: CompileConfig | None = None,
        *,
        templates_dir: Path | None = None,
    ) -> None:
        """Prepare the Jinja environment used for page documents.

        Parameters
        ----------
        compiled : Mapping[str, Section]
            Resolved sections keyed by slug.
        callback : CallbackGraph
            Parent and backlink relationships of the resolved pass.
        config : CompileConfig, optional
            Site configuration; defaults to :class:`CompileConfig` defaults.
        templates_dir : Path, optional
            Directory containing ``page.jinja``; defaults to the package
            templates.
        """
        self.compiled = compiled
        self.callback = callback
        self.config = config or CompileConfig()
        self.diagnostics: list[Diagnostic] = []
        default_templates = Path(__file__).resolve().parents[1] / "templates"
        self.templates_dir = templates_dir or default_templates
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template(PAGE_TEMPLATE)

    def render(self, slug: str) -> tuple[str, str]:
        """Render the full HTML document for ``slug``.

        Returns
        -------
        tuple[str, str]
            The HTML document and the plain-text page title.

        Raises
        ------
        KeyError
            If ``slug`` has no resolved section.
        """
        section = self.compiled[slug]
        article_html, items_html = self.render_section(
            section, Counter(), toplevel=True, hide_metadata=False
        )
        catalog_html = fragments.catalog_block(items_html) if items_html else ""
        page_title = section.metadata.get(KEY_PAGE_TITLE, "")
        html = self.template.render(
            page_title=page_title,
            head_html=self.config.head_html,
            stylesheet_url=self.config.full_url(STYLESHEET_NAME),
            inline_stylesheet=None if self.config.export_css else _read_stylesheet(),
            header_html=self.header(slug, section),
            article_html=article_html,
            footer_html=self.footer(slug, section),
            catalog_html=catalog_html,
        )
        return html, page_title

    def render_section(
        self,
        section: Section,
        counter: Counter,
        *,
        toplevel: bool = False,
        hide_metadata: bool = False,
    ) -> tuple[str, str]:
        """Render ``section`` and return its HTML and its catalog fragment.

        Numbered sections step ``counter`` and hand a left-shifted copy to
        their children; other sections hand down ``counter`` itself.
        """
        taxon_html = self._taxon(section, counter)
        subcounter = counter.left_shift() if section.option.numbering else counter
        hide_children = is_collection(section.metadata)

        contents: list[str] = []
        items: list[str] = []
        for child in section.children:
            if isinstance(child, str):
                contents.append(child)
                continue
            child_html, child_item = self.render_section(
                child, subcounter, hide_metadata=hide_children
            )
            contents.append(child_html)
            items.append(child_item)

        child_list = fragments.catalog_list("".join(items))
        if toplevel:
            catalog_item = child_list
        elif section.option.catalog:
            catalog_item = fragments.catalog_item(
                slug=section.slug,
                slug_url=self.config.full_html_url(section.slug),
                anchor=to_hash_id(section.slug),
                title_html=section.metadata.get(KEY_TITLE, ""),
                page_title=section.metadata.get(KEY_PAGE_TITLE, ""),
                taxon_html=taxon_html,
                details_open=section.option.details_open,
                child_html=child_list,
            )
        else:
            catalog_item = ""

        article_html = self._article(
            section,
            "".join(contents),
            taxon_html=taxon_html,
            hide_metadata=hide_metadata,
            details_open=section.option.details_open,
        )
        return article_html, catalog_item

    def header(self, slug: str, section: Section) -> str:
        """Return the navigation header linking to the page's parent."""
        parent = section.metadata.get(KEY_PARENT) or self.callback.parent_of(slug)
        if parent is None:
            return ""
        parent_section = self.compiled.get(parent)
        if parent_section is None:
            return ""
        return fragments.header_nav(
            parent_section.metadata.get(KEY_TITLE, ""),
            parent_section.metadata.get(KEY_PAGE_TITLE, ""),
            self.config.full_html_url(parent),
        )

    def footer(self, slug: str, section: Section) -> str:
        """Return the references and backlinks blocks of ``slug``."""
        references = self._footer_entries(sorted(section.references))
        backlinks = self._footer_entries(
            sorted({_strip_metadata_suffix(s) for s in self.callback.backlinks_of(slug)})
        )
        parts: list[str] = []
        if references:
            parts.append(fragments.footer_section("References", references))
        if backlinks:
            parts.append(fragments.footer_section("Backlinks", backlinks))
        return "".join(parts)

    def write_all(
        self, slugs: typ.Iterable[str], cache: ContentCache
    ) -> list[WriteResult]:
        """Render every slug in order and write the pages whose HTML changed.

        A page is rewritten when its HTML hash differs from the recorded one or
        when its output file is missing; the hash is committed only after the
        file was written. Slugs without a resolved section are reported in
        :attr:`diagnostics` and skipped.
        """
        results: list[WriteResult] = []
        for slug in slugs:
            if slug not in self.compiled:
                self.diagnostics.append(
                    Diagnostic(slug, f"slug `{slug}` not in compiled entries.")
                )
                continue
            html, page_title = self.render(slug)
            path = self.config.output_path(slug)
            key = self.config.output_key(slug)
            stale = cache.is_stale(key, html, commit=False)
            if stale or not path.exists():
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(html, encoding="utf-8")
                cache.commit(key, html)
                results.append(WriteResult(slug, path, page_title, written=True))
            else:
                results.append(WriteResult(slug, path, page_title, written=False))
        return results

    def _footer_entries(self, slugs: list[str]) -> str:
        parts: list[str] = []
        for slug in slugs:
            section = self.compiled.get(slug)
            if section is None:
                continue
            parts.append(self._footer_entry(section))
        return "".join(parts)

    def _footer_entry(self, section: Section) -> str:
        match self.config.footer_mode:
            case FooterMode.LINK:
                return fragments.summary_block(self._entry_header(section, None))
            case FooterMode.EMBED:
                return self._article(
                    section,
                    section.spanned(),
                    taxon_html=None,
                    hide_metadata=False,
                    details_open=False,
                )

    def _article(
        self,
        section: Section,
        content_html: str,
        *,
        taxon_html: str | None,
        hide_metadata: bool,
        details_open: bool,
    ) -> str:
        return fragments.section_block(
            summary_html=self._entry_header(section, taxon_html),
            content_html=content_html,
            anchor=to_hash_id(section.slug),
            data_taxon=section.metadata.get(KEY_DATA_TAXON, ""),
            hide_metadata=hide_metadata,
            details_open=details_open,
        )

    def _entry_header(self, section: Section, taxon_html: str | None) -> str:
        metadata = section.metadata
        if taxon_html is None:
            taxon_html = metadata.get(KEY_TAXON, "")
        return fragments.entry_header(
            title_html=metadata.get(KEY_TITLE, ""),
            taxon_html=taxon_html,
            slug_url=self.config.full_html_url(section.slug),
            slug_label=slug_text(section.slug, short=self.config.short_slug),
            custom=custom_values(metadata),
        )

    @staticmethod
    def _taxon(section: Section, counter: Counter) -> str:
        text = section.metadata.get(KEY_TAXON, "")
        if not section.option.numbering:
            return text
        counter.step()
        return Taxon(text, counter.display()).display()


def _strip_metadata_suffix(slug: str) -> str:
    if slug.endswith(METADATA_SLUG_SUFFIX):
        return slug[: -len(METADATA_SLUG_SUFFIX)]
    return slug


def _read_stylesheet() -> str:
    path = Path(__file__).resolve().parents[1] / "static" / STYLESHEET_NAME
    return path.read_text(encoding="utf-8")


__all__ = ["PAGE_TEMPLATE", "WriteResult", "Writer"]
