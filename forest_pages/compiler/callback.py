"""Parent and backlink relationships discovered while resolving pages.

The graph maps a target slug to the nearest page embedding it (its ``parent``)
and to the set of pages linking to it (its ``backlinks``). Entries are merged
monotonically during a resolution pass and read by the renderer afterwards.
A ``parent`` of ``None`` is the synthetic root: a placeholder rather than a
real ancestor, so the first non-root parent recorded for a slug wins.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ


@dc.dataclass(slots=True)
class CallbackValue:
    """Relationships recorded for one target page."""

    parent: str | None = None
    backlinks: set[str] = dc.field(default_factory=set)


class CallbackGraph:
    """Accumulate parent and backlink records keyed by target slug."""

    def __init__(self) -> None:
        self._entries: dict[str, CallbackValue] = {}

    def __contains__(self, slug: object) -> bool:
        return slug in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> typ.Iterator[str]:
        return iter(self._entries)

    def get(self, slug: str) -> CallbackValue | None:
        """Return the entry recorded for ``slug``, if any."""
        return self._entries.get(slug)

    def parent_of(self, slug: str) -> str | None:
        """Return the recorded parent of ``slug`` or ``None`` for the root."""
        entry = self._entries.get(slug)
        return entry.parent if entry else None

    def backlinks_of(self, slug: str) -> set[str]:
        """Return a copy of the backlink set recorded for ``slug``."""
        entry = self._entries.get(slug)
        return set(entry.backlinks) if entry else set()

    def insert(self, slug: str, value: CallbackValue) -> None:
        """Merge ``value`` into the entry for ``slug``.

        Backlink sets are unioned; an existing root parent is replaced by a
        real one, but a real parent is never overwritten.
        """
        existing = self._entries.get(slug)
        if existing is None:
            self._entries[slug] = CallbackValue(value.parent, set(value.backlinks))
            return
        existing.backlinks.update(value.backlinks)
        if existing.parent is None and value.parent is not None:
            existing.parent = value.parent

    def insert_parent(self, slug: str, parent: str) -> None:
        """Record that ``parent`` embeds ``slug``."""
        self.insert(slug, CallbackValue(parent=parent))

    def insert_backlinks(self, slug: str, backlinks: typ.Iterable[str]) -> None:
        """Record that every page in ``backlinks`` links to ``slug``."""
        self.insert(slug, CallbackValue(backlinks=set(backlinks)))

    def merge(self, other: CallbackGraph) -> None:
        """Merge every entry of ``other`` into this graph."""
        for slug, value in other._entries.items():
            self.insert(slug, value)


__all__ = ["CallbackGraph", "CallbackValue"]
