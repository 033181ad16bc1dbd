"""Discover the source pages of a workspace and derive their slugs."""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

from forest_pages._constants import IGNORED_FILE_NAMES, SOURCE_EXTENSIONS
from forest_pages.errors import WorkspaceError
from forest_pages.slug import path_to_slug


@dc.dataclass(slots=True, frozen=True)
class SourceFile:
    """One source page.

    Attributes
    ----------
    slug : str
        Page slug derived from the path.
    relative_path : str
        POSIX path of the file relative to the workspace root.
    ext : str
        Source extension without the dot (``"md"`` or ``"typst"``).
    """

    slug: str
    relative_path: str
    ext: str


@dc.dataclass(slots=True)
class Workspace:
    """Source pages of a workspace in discovery order."""

    root: Path
    sources: list[SourceFile] = dc.field(default_factory=list)

    @property
    def slugs(self) -> list[str]:
        """Return every slug in discovery order."""
        return [source.slug for source in self.sources]

    def get(self, slug: str) -> SourceFile | None:
        """Return the source of ``slug``, if any."""
        return next((source for source in self.sources if source.slug == slug), None)


def _skip_dir(name: str) -> bool:
    return name.startswith((".", "_"))


def discover_workspace(root: Path, *, exclude: Path | None = None) -> Workspace:
    """Walk ``root`` and collect every Markdown and Typst page.

    Directories starting with ``.`` or ``_`` (and ``exclude``, typically the
    output directory) are skipped, as are ``README.md`` files. Sources are
    ordered by relative path.

    Raises
    ------
    WorkspaceError
        If ``root`` is not a directory or two files map to the same slug.
    """
    if not root.is_dir():
        msg = f"Workspace root '{root}' is not a directory."
        raise WorkspaceError(msg)
    excluded = exclude.resolve() if exclude is not None else None

    found: dict[str, SourceFile] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = sorted(
            name
            for name in dirnames
            if not _skip_dir(name) and (current / name).resolve() != excluded
        )
        for name in sorted(filenames):
            if name in IGNORED_FILE_NAMES:
                continue
            relative = (current / name).relative_to(root).as_posix()
            slug, ext = path_to_slug(relative)
            if ext not in SOURCE_EXTENSIONS:
                continue
            existing = found.get(slug)
            if existing is not None:
                msg = (
                    f"Slug `{slug}` is defined by both "
                    f"`{existing.relative_path}` and `{relative}`."
                )
                raise WorkspaceError(msg)
            found[slug] = SourceFile(slug=slug, relative_path=relative, ext=ext)

    sources = sorted(found.values(), key=lambda source: source.relative_path)
    return Workspace(root=root, sources=sources)


__all__ = ["SourceFile", "Workspace", "discover_workspace"]
