"""Exception types and reported diagnostics shared by the compile pipeline.

Fatal conditions (a malformed workspace, a missing ``index`` page) are raised
as exceptions and abort the run. Recoverable conditions are collected as
:class:`Diagnostic` values so the pass can continue and the CLI can report
them once the pass completes.
"""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path


class WorkspaceError(RuntimeError):
    """Raised when the workspace cannot be compiled as a whole."""


class MissingIndexError(WorkspaceError):
    """Raised when the workspace has no ``index`` page to root the site."""


class ParseError(RuntimeError):
    """Raised by a front end when a source page cannot be parsed.

    The offending file path is kept on :attr:`path`; the underlying cause is
    chained through ``raise ... from`` when one exists.
    """

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path).as_posix()
        self.reason = message
        super().__init__(f"failed to parse file `{self.path}`: {message}")


class CyclicEmbedError(RuntimeError):
    """Raised when a page embeds itself, directly or transitively."""

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(f"cyclic embed of [{slug}]")


@dc.dataclass(slots=True, frozen=True)
class Diagnostic:
    """A recoverable problem reported during a compile pass.

    Attributes
    ----------
    slug : str
        Page (or source path) the problem was found in.
    message : str
        Human-readable description of the problem.
    """

    slug: str
    message: str

    def __str__(self) -> str:
        return f"[{self.slug}] {self.message}"


__all__ = [
    "CyclicEmbedError",
    "Diagnostic",
    "MissingIndexError",
    "ParseError",
    "WorkspaceError",
]
