"""Compile workspaces of interlinked Markdown and Typst pages into HTML sites.

This package exposes the CLI entry points behind the ``forest`` console
script; the compiler itself lives in :mod:`forest_pages.compiler` and the
end-to-end pipeline in :mod:`forest_pages.pipeline`.

Exports
-------
- ``app``: Cyclopts application with the ``compile`` and ``clean`` commands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from forest_pages import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
