"""Resolve shallow sections into fully materialized, cross-linked sections.

:class:`CompileState` consumes every page of a workspace as a
:class:`~forest_pages.compiler.section.ShallowSection` and produces one
resolved :class:`~forest_pages.compiler.section.Section` per slug. Embeds are
expanded into independent clones of the target page, local links become
hyperlink fragments, reference pages are collected, and the parent/backlink
relationships discovered on the way are accumulated in a
:class:`~forest_pages.compiler.callback.CallbackGraph`.

Resolution starts from ``index`` and then drains the remaining pages in slug
order, so the result does not depend on the iteration order of the input.

Example
-------
>>> from forest_pages.compiler.section import Plain, ShallowSection
>>> shallows = {
...     "index": ShallowSection({"slug": Plain("index")}, Plain("<p>Hi</p>")),
... }
>>> state = resolve_all(shallows)
>>> state.compiled["index"].children
['<p>Hi</p>']
"""

from __future__ import annotations

import typing as typ

import msgspec

from forest_pages._constants import INDEX_SLUG
from forest_pages.config import CompileConfig
from forest_pages.errors import CyclicEmbedError, Diagnostic, MissingIndexError
from forest_pages.slug import to_slug

from . import fragments
from .callback import CallbackGraph
from .metadata import (
    KEY_PAGE_TITLE,
    KEY_SLUG,
    KEY_TITLE,
    MetadataValue,
    backlinks_enabled,
    get_str,
    is_reference_page,
    with_textual_attrs,
)
from .section import (
    Content,
    Embed,
    Local,
    Plain,
    Section,
    ShallowSection,
    metadata_slug,
)


class CompileState:
    """Memoized resolution of every page in one compile pass.

    Attributes
    ----------
    compiled : dict[str, Section]
        Resolved sections keyed by slug.
    residued : set[str]
        Slugs not resolved yet.
    callback : CallbackGraph
        Parent and backlink relationships gathered so far.
    diagnostics : list[Diagnostic]
        Recoverable problems (dangling targets, cyclic embeds).
    resolution_count : int
        Number of pages resolved; each page is resolved at most once.
    """

    def __init__(
        self,
        shallows: typ.Mapping[str, ShallowSection],
        config: CompileConfig | None = None,
    ) -> None:
        self.config = config or CompileConfig()
        self.shallows: dict[str, ShallowSection] = {
            slug: msgspec.structs.replace(
                shallow, metadata=with_textual_attrs(shallow.metadata)
            )
            for slug, shallow in shallows.items()
        }
        self.compiled: dict[str, Section] = {}
        self.residued: set[str] = set(self.shallows)
        self.callback = CallbackGraph()
        self.diagnostics: list[Diagnostic] = []
        self.resolution_count = 0
        self._in_progress: set[str] = set()

    def resolve_all(self) -> CompileState:
        """Resolve ``index`` and then every remaining page in slug order.

        Raises
        ------
        MissingIndexError
            If the workspace has no ``index`` page.
        """
        if INDEX_SLUG not in self.shallows:
            msg = f"workspace has no `{INDEX_SLUG}` page"
            raise MissingIndexError(msg)
        self.fetch(INDEX_SLUG)
        while self.residued:
            self.fetch(min(self.residued))
        return self

    def fetch(self, slug: str) -> Section | None:
        """Return the resolved section for ``slug``, resolving it on demand.

        Returns ``None`` when the workspace has no page with that slug.

        Raises
        ------
        CyclicEmbedError
            If ``slug`` is already being resolved further up the call stack.
        """
        section = self.compiled.get(slug)
        if section is not None:
            return section
        shallow = self.shallows.get(slug)
        if shallow is None:
            self.residued.discard(slug)
            return None
        if slug in self._in_progress:
            raise CyclicEmbedError(slug)
        return self.resolve(shallow)

    def resolve(self, shallow: ShallowSection) -> Section:
        """Resolve one page, memoize it, and return it."""
        slug = shallow.slug
        self.resolution_count += 1
        self._in_progress.add(slug)
        try:
            children, references, callback = self._resolve_content(
                slug, shallow.content
            )
            self.callback.merge(callback)
            metadata = self._resolve_metadata(slug, shallow.metadata)
        finally:
            self._in_progress.discard(slug)

        section = Section(metadata=metadata, children=children, references=references)
        self.residued.discard(slug)
        self.compiled[slug] = section
        return section

    def _resolve_metadata(
        self, slug: str, metadata: typ.Mapping[str, Content]
    ) -> dict[str, str]:
        """Flatten metadata values, resolving rich ones like page bodies."""
        resolved: dict[str, str] = {KEY_SLUG: slug}
        for key, value in metadata.items():
            if key == KEY_SLUG:
                continue
            if isinstance(value, Plain):
                resolved[key] = value.html
                continue
            spanned = self._metadata_section(value, slug)
            children, _references, callback = self._resolve_content(
                spanned.slug, spanned.content
            )
            self.callback.merge(callback)
            resolved[key] = Section({KEY_SLUG: spanned.slug}, children).spanned()
        return resolved

    @staticmethod
    def _metadata_section(value: Content, slug: str) -> ShallowSection:
        """Wrap a metadata value into a one-off page keyed ``<slug>:metadata``."""
        return ShallowSection(
            metadata={KEY_SLUG: Plain(metadata_slug(slug))}, content=value
        )

    def _resolve_content(
        self, slug: str, content: Content
    ) -> tuple[list[str | Section], set[str], CallbackGraph]:
        """Build children, references, and a local callback delta for ``slug``."""
        callback = CallbackGraph()
        references: set[str] = set()
        if isinstance(content, Plain):
            return [content.html], references, callback

        children: list[str | Section] = []
        for item in content.items:
            match item:
                case Plain(html=html):
                    children.append(html)
                case Embed():
                    child = self._resolve_embed(slug, item, references, callback)
                    if child is not None:
                        children.append(child)
                case Local():
                    html = self._resolve_local(slug, item, references, callback)
                    if html:
                        children.append(html)
        return children, references, callback

    def _resolve_embed(
        self,
        slug: str,
        embed: Embed,
        references: set[str],
        callback: CallbackGraph,
    ) -> Section | None:
        target_slug = to_slug(embed.url)
        try:
            target = self.fetch(target_slug)
        except CyclicEmbedError:
            self._report(slug, f"cyclic embed of [{target_slug}] dropped.")
            return None
        if target is None:
            self._report(
                slug, f"attempting to embed a non-existent [{target_slug}]."
            )
            return None

        if embed.option.details_open:
            references.update(target.references)
        callback.insert_parent(target_slug, slug)

        child = target.clone()
        child.option = msgspec.structs.replace(embed.option)
        if embed.title is not None:
            child.metadata[KEY_TITLE] = embed.title
        return child

    def _resolve_local(
        self,
        slug: str,
        local: Local,
        references: set[str],
        callback: CallbackGraph,
    ) -> str:
        target_slug = local.slug
        target = self.shallows.get(target_slug)
        if target is None:
            self._report(slug, f"attempting to link a non-existent [{target_slug}].")
            return local.text or ""

        metadata: typ.Mapping[str, MetadataValue] = target.metadata
        if is_reference_page(metadata):
            references.add(target_slug)
        is_self = target_slug == slug or metadata_slug(target_slug) == slug
        if not is_self and backlinks_enabled(metadata):
            callback.insert_backlinks(target_slug, [slug])

        page_title = get_str(metadata, KEY_PAGE_TITLE) or ""
        text = local.text if local.text is not None else page_title
        return fragments.local_link(
            self.config.full_html_url(target_slug),
            f"{page_title} [{target_slug}]",
            text,
        )

    def _report(self, slug: str, message: str) -> None:
        self.diagnostics.append(Diagnostic(slug, message))


def resolve_all(
    shallows: typ.Mapping[str, ShallowSection], config: CompileConfig | None = None
) -> CompileState:
    """Resolve a whole workspace and return the finished state.

    Parameters
    ----------
    shallows : Mapping[str, ShallowSection]
        Every page of the workspace keyed by slug; inputs are not mutated.
    config : CompileConfig, optional
        Configuration used to build hyperlink URLs.

    Returns
    -------
    CompileState
        State exposing ``compiled``, ``callback`` and ``diagnostics``.
    """
    return CompileState(shallows, config).resolve_all()


__all__ = ["CompileState", "resolve_all"]
