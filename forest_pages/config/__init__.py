"""Load and validate workspace configuration for forest_pages builds.

This subpackage parses the optional ``forest.yaml`` file at the workspace root,
merges it with command-line overrides and defaults, and produces a
:class:`CompileConfig` that is threaded explicitly through resolution,
rendering, and writing. The primary entry point is
:func:`load_compile_config`.

Examples
--------
>>> from pathlib import Path
>>> from forest_pages.config import load_compile_config
>>> config = load_compile_config(root_dir=Path("notes"))  # doctest: +SKIP
>>> config.full_html_url("index")  # doctest: +SKIP
'/index'
"""

from .loader import load_compile_config
from .models import CompileConfig, ConfigError, FooterMode

__all__ = [
    "CompileConfig",
    "ConfigError",
    "FooterMode",
    "load_compile_config",
]
