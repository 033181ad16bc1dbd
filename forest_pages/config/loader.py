"""Load compile configuration YAML into a typed :class:`CompileConfig`."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from forest_pages._constants import DEFAULT_CONFIG_NAME

from .helpers import (
    normalize_base_url,
    parse_bool,
    parse_footer_mode,
    read_head_includes,
    to_page_suffix,
)
from .models import CompileConfig, ConfigError

KNOWN_KEYS = frozenset(
    {
        "output_dir",
        "base_url",
        "pretty_urls",
        "short_slug",
        "footer_mode",
        "export_css",
    }
)


def load_compile_config(
    path: Path | None = None,
    *,
    root_dir: Path | None = None,
    **overrides: typ.Any,
) -> CompileConfig:
    """Load the workspace configuration and apply command-line overrides.

    Parameters
    ----------
    path : Path, optional
        Explicit YAML configuration file. When ``None``, ``forest.yaml`` inside
        ``root_dir`` is used if it exists; otherwise defaults apply.
    root_dir : Path, optional
        Workspace root; defaults to the current directory.
    **overrides : Any
        Values taking precedence over the file (``None`` values are ignored).
        Accepted keys are ``output_dir``, ``base_url``, ``pretty_urls``,
        ``short_slug``, ``footer_mode`` and ``export_css``.

    Returns
    -------
    CompileConfig
        Fully resolved configuration, including head snippets read from the
        workspace root.

    Raises
    ------
    FileNotFoundError
        If ``path`` is given explicitly but does not exist.
    TypeError
        If the top-level YAML structure is not a mapping.
    ConfigError
        If a key is unknown or a value has the wrong type.

    Examples
    --------
    >>> from pathlib import Path
    >>> config = load_compile_config(root_dir=Path("site"), base_url="/blog")  # doctest: +SKIP
    >>> config.base_url  # doctest: +SKIP
    '/blog/'
    """
    root = root_dir if root_dir is not None else Path(".")
    if path is None:
        candidate = root / DEFAULT_CONFIG_NAME
        raw = _read_yaml(candidate) if candidate.exists() else {}
    else:
        if not path.exists():
            msg = f"Configuration file '{path}' not found."
            raise FileNotFoundError(msg)
        raw = _read_yaml(path)

    unknown = sorted(set(raw) - KNOWN_KEYS)
    if unknown:
        msg = f"Unknown configuration keys: {', '.join(unknown)}."
        raise ConfigError(msg)
    unexpected = sorted(set(overrides) - KNOWN_KEYS)
    if unexpected:
        msg = f"Unknown configuration overrides: {', '.join(unexpected)}."
        raise ConfigError(msg)

    values: dict[str, typ.Any] = dict(raw)
    values.update({key: val for key, val in overrides.items() if val is not None})
    return _build_config(root, values)


def _read_yaml(path: Path) -> dict[str, typ.Any]:
    """Parse ``path`` as YAML 1.2 and return its top-level mapping."""
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    return dict(loaded)


def _build_config(root: Path, values: typ.Mapping[str, typ.Any]) -> CompileConfig:
    """Build a CompileConfig from merged raw values."""
    defaults = CompileConfig()
    output_dir = values.get("output_dir", defaults.output_dir)
    if not isinstance(output_dir, (str, Path)) or not str(output_dir).strip():
        msg = f"Configuration key 'output_dir' must be a path, got {output_dir!r}."
        raise ConfigError(msg)
    base_url = values.get("base_url", defaults.base_url)
    if not isinstance(base_url, str):
        msg = f"Configuration key 'base_url' must be a string, got {base_url!r}."
        raise ConfigError(msg)

    pretty_urls = parse_bool("pretty_urls", values.get("pretty_urls", True))
    short_slug = parse_bool("short_slug", values.get("short_slug", defaults.short_slug))
    export_css = parse_bool("export_css", values.get("export_css", defaults.export_css))
    footer_mode = parse_footer_mode(values.get("footer_mode", defaults.footer_mode))

    return CompileConfig(
        root_dir=root,
        output_dir=Path(output_dir),
        base_url=normalize_base_url(base_url),
        page_suffix=to_page_suffix(pretty_urls=pretty_urls),
        short_slug=short_slug,
        footer_mode=footer_mode,
        export_css=export_css,
        head_html=read_head_includes(root),
    )


__all__ = ["KNOWN_KEYS", "load_compile_config"]
