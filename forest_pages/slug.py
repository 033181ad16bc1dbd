r"""Derive page slugs from workspace paths and link targets.

A slug is the extension-stripped, POSIX-style path of a page relative to the
workspace root, with ``.`` and ``..`` components collapsed. Slugs are the only
currency used to refer from one page to another.

Example
-------
>>> from forest_pages.slug import to_slug, to_hash_id
>>> to_slug("./notes/../notes/intro.md")
'notes/intro'
>>> to_hash_id("notes/intro")
'notes-intro'
"""

from __future__ import annotations

import posixpath
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import PurePath


def posix_style(text: str) -> str:
    """Return ``text`` with Windows separators replaced by ``/``."""
    return text.replace("\\", "/")


def pretty_path(path: str | PurePath) -> str:
    """Return a normalized POSIX path without ``.`` or leading ``..`` parts."""
    normalized = posixpath.normpath(posix_style(str(path)))
    while normalized.startswith("../"):
        normalized = normalized[3:]
    if normalized in ("..", "."):
        return ""
    return normalized


def to_slug(url: str) -> str:
    """Convert a workspace-relative path or link target into a slug."""
    target = posix_style(url)
    if target.startswith("./"):
        target = target[2:]
    elif target.startswith("/"):
        target = target[1:]
    stem, _ext = posixpath.splitext(target)
    return pretty_path(stem)


def path_to_slug(path: str | PurePath) -> tuple[str, str | None]:
    """Split a relative source path into its slug and extension.

    Returns
    -------
    tuple[str, str | None]
        The slug and the extension without its dot, or ``None`` when the path
        has no extension.
    """
    text = posix_style(str(path))
    _stem, ext = posixpath.splitext(text)
    return to_slug(text), (ext[1:] or None)


def to_hash_id(slug: str) -> str:
    """Return the in-page anchor id for ``slug``."""
    return slug.replace("/", "-")


def slug_text(slug: str, *, short: bool = False) -> str:
    """Return the slug label shown next to page titles.

    A trailing ``/index`` is hidden; ``short`` also hides parent directories.
    """
    text = slug[: -len("/index")] if slug.endswith("/index") else slug
    if short:
        text = text.rsplit("/", 1)[-1]
    return text


def relativize(url: str) -> str:
    """Return ``url`` as ``./{url}`` when it is root-absolute."""
    if url.startswith("/"):
        return f".{url}"
    return url


__all__ = [
    "path_to_slug",
    "posix_style",
    "pretty_path",
    "relativize",
    "slug_text",
    "to_hash_id",
    "to_slug",
]
