"""Reserved metadata keys and accessors shared by shallow and resolved pages.

Shallow metadata maps keys to :data:`~forest_pages.compiler.section.Content`
values; resolved metadata maps keys to HTML strings. The accessors below accept
either shape and only read plain values.
"""

from __future__ import annotations

import html
import typing as typ

from .section import Content, Plain, remove_all_tags
from .taxon import is_reference, to_data_taxon

KEY_TITLE = "title"
KEY_SLUG = "slug"
KEY_TAXON = "taxon"
KEY_DATA_TAXON = "data-taxon"
KEY_PARENT = "parent"
KEY_PAGE_TITLE = "page-title"
KEY_BACKLINKS = "backlinks"
KEY_COLLECT = "collect"
KEY_ASREF = "asref"

PRESET_KEYS = frozenset(
    {
        KEY_TITLE,
        KEY_SLUG,
        KEY_TAXON,
        KEY_DATA_TAXON,
        KEY_PARENT,
        KEY_PAGE_TITLE,
        KEY_BACKLINKS,
        KEY_COLLECT,
        KEY_ASREF,
    }
)

MetadataValue = str | Content


def get_str(metadata: typ.Mapping[str, MetadataValue], key: str) -> str | None:
    """Return the plain string stored under ``key``, if any."""
    value = metadata.get(key)
    if isinstance(value, str):
        return value
    if isinstance(value, Plain):
        return value.html
    return None


def get_bool(
    metadata: typ.Mapping[str, MetadataValue], key: str, *, default: bool
) -> bool:
    """Return ``True`` only for the literal string ``"true"``."""
    value = get_str(metadata, key)
    if value is None:
        return default
    return value.strip() == "true"


def is_custom_key(key: str) -> bool:
    """Return True for keys passed through opaquely to the page header."""
    return key not in PRESET_KEYS


def custom_values(metadata: typ.Mapping[str, str]) -> list[str]:
    """Return custom metadata values ordered by key."""
    return [metadata[key] for key in sorted(metadata) if is_custom_key(key)]


def backlinks_enabled(metadata: typ.Mapping[str, MetadataValue]) -> bool:
    """Return whether pages linking here are recorded as backlinks."""
    return get_bool(metadata, KEY_BACKLINKS, default=True)


def is_collection(metadata: typ.Mapping[str, MetadataValue]) -> bool:
    """Return whether the page is a collection page."""
    return get_bool(metadata, KEY_COLLECT, default=False)


def is_reference_page(metadata: typ.Mapping[str, MetadataValue]) -> bool:
    """Return whether the page is tagged as a reference."""
    if get_bool(metadata, KEY_ASREF, default=False):
        return True
    return is_reference(get_str(metadata, KEY_DATA_TAXON) or "")


def with_textual_attrs(metadata: typ.Mapping[str, Content]) -> dict[str, Content]:
    """Return a copy of ``metadata`` with derived plain-text attributes.

    ``page-title`` defaults to the tag-free text of ``title`` and
    ``data-taxon`` to the category token of ``taxon``; explicit values win.
    """
    derived = dict(metadata)
    if KEY_PAGE_TITLE not in derived and KEY_TITLE in derived:
        text = html.unescape(remove_all_tags(derived[KEY_TITLE])).strip()
        derived[KEY_PAGE_TITLE] = Plain(text)
    if KEY_DATA_TAXON not in derived and KEY_TAXON in derived:
        taxon_text = html.unescape(remove_all_tags(derived[KEY_TAXON]))
        derived[KEY_DATA_TAXON] = Plain(to_data_taxon(taxon_text))
    return derived


__all__ = [
    "KEY_ASREF",
    "KEY_BACKLINKS",
    "KEY_COLLECT",
    "KEY_DATA_TAXON",
    "KEY_PAGE_TITLE",
    "KEY_PARENT",
    "KEY_SLUG",
    "KEY_TAXON",
    "KEY_TITLE",
    "PRESET_KEYS",
    "backlinks_enabled",
    "custom_values",
    "get_bool",
    "get_str",
    "is_collection",
    "is_custom_key",
    "is_reference_page",
    "with_textual_attrs",
]
