"""Content-hash cache gating source parsing and output writing.

Each key (a workspace-relative path such as ``notes/intro.md`` or
``publish/notes/intro.html``) owns a hash record holding the decimal hash of
the content last seen for it. A key is *stale* when the hash of its current
content differs from the record; a missing or unreadable record reads as ``0``
and is therefore always stale.

Parsed pages are also persisted as ``msgspec`` JSON entries so an unchanged
source can be loaded instead of re-parsed.

Example
-------
>>> from pathlib import Path
>>> cache = ContentCache(Path(".cache/hash"), Path(".cache/entry"))  # doctest: +SKIP
>>> cache.is_stale("index.md", "# Hello")  # doctest: +SKIP
True
>>> cache.is_stale("index.md", "# Hello")  # doctest: +SKIP
False
"""

from __future__ import annotations

import hashlib
from pathlib import Path

import msgspec

from forest_pages._constants import ENTRY_SUFFIX_TEMPLATE, HASH_SUFFIX_TEMPLATE
from forest_pages.compiler.section import ShallowSection

_DIGEST_SIZE = 8


def content_hash(content: str | bytes) -> int:
    """Return a 64-bit hash of ``content``; never ``0``."""
    data = content.encode("utf-8") if isinstance(content, str) else content
    digest = hashlib.blake2b(data, digest_size=_DIGEST_SIZE).digest()
    return int.from_bytes(digest, "big") or 1


class ContentCache:
    """Persisted hash records and serialized shallow sections."""

    def __init__(self, hash_dir: Path, entry_dir: Path) -> None:
        self.hash_dir = hash_dir
        self.entry_dir = entry_dir
        self._encoder = msgspec.json.Encoder()
        self._decoder = msgspec.json.Decoder(ShallowSection)

    def hash_path(self, key: str) -> Path:
        """Return the hash record path for ``key``."""
        return self.hash_dir / HASH_SUFFIX_TEMPLATE.format(path=key)

    def entry_path(self, key: str) -> Path:
        """Return the serialized entry path for ``key``."""
        return self.entry_dir / ENTRY_SUFFIX_TEMPLATE.format(path=key)

    def stored_hash(self, key: str) -> int:
        """Return the recorded hash for ``key`` or ``0`` when there is none."""
        try:
            return int(self.hash_path(key).read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            return 0

    def is_stale(self, key: str, content: str | bytes, *, commit: bool = True) -> bool:
        """Return whether ``content`` differs from what was recorded for ``key``.

        Parameters
        ----------
        key : str
            Workspace-relative path identifying the content.
        content : str or bytes
            Current content.
        commit : bool, optional
            Record the new hash right away when stale. Pass ``False`` when the
            content still has to be written and call :meth:`commit` after the
            write succeeds.
        """
        current = content_hash(content)
        stale = current != self.stored_hash(key)
        if stale and commit:
            self._write_hash(key, current)
        return stale

    def commit(self, key: str, content: str | bytes) -> None:
        """Record the hash of ``content`` for ``key``."""
        self._write_hash(key, content_hash(content))

    def is_file_stale(self, relative_path: str, root: Path, *, commit: bool = True) -> bool:
        """Return whether the file at ``root / relative_path`` changed."""
        content = (root / relative_path).read_bytes()
        return self.is_stale(relative_path, content, commit=commit)

    def load_entry(self, key: str) -> ShallowSection | None:
        """Return the serialized section stored for ``key``; corrupt reads as absent."""
        try:
            data = self.entry_path(key).read_bytes()
        except OSError:
            return None
        try:
            return self._decoder.decode(data)
        except msgspec.DecodeError:
            return None

    def store_entry(self, key: str, shallow: ShallowSection) -> Path:
        """Serialize ``shallow`` for ``key`` and return the entry path."""
        path = self.entry_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self._encoder.encode(shallow))
        return path

    def clear(self, suffix: str) -> list[Path]:
        """Delete every hash record whose name ends with ``suffix``."""
        if not self.hash_dir.is_dir():
            return []
        removed: list[Path] = []
        for path in sorted(self.hash_dir.rglob(f"*{suffix}")):
            if path.is_file():
                path.unlink()
                removed.append(path)
        return removed

    def _write_hash(self, key: str, value: int) -> None:
        path = self.hash_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(str(value), encoding="utf-8")


__all__ = ["ContentCache", "content_hash"]
