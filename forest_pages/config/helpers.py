"""Utility helpers shared by the forest_pages configuration loader."""

from __future__ import annotations

from pathlib import Path

from forest_pages._constants import HEAD_INCLUDE_NAMES

from .models import ConfigError, FooterMode

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "off", "0"})


def normalize_base_url(base_url: str) -> str:
    """Return ``base_url`` with exactly one trailing slash."""
    text = base_url.strip() or "/"
    if text.endswith("/"):
        return text
    return f"{text}/"


def to_page_suffix(*, pretty_urls: bool) -> str:
    """Return the page URL suffix for the pretty-URL setting."""
    return "" if pretty_urls else ".html"


def parse_footer_mode(value: object) -> FooterMode:
    """Coerce ``value`` into a :class:`FooterMode`."""
    if isinstance(value, FooterMode):
        return value
    text = str(value).strip().lower()
    try:
        return FooterMode(text)
    except ValueError as exc:
        choices = ", ".join(mode.value for mode in FooterMode)
        msg = f"Invalid footer_mode {value!r}; expected one of: {choices}."
        raise ConfigError(msg) from exc


def parse_bool(key: str, value: object) -> bool:
    """Coerce YAML-ish boolean values, rejecting anything ambiguous."""
    match value:
        case bool():
            return value
        case int() if value in (0, 1):
            return bool(value)
        case str() as text if text.strip().lower() in _TRUE_STRINGS:
            return True
        case str() as text if text.strip().lower() in _FALSE_STRINGS:
            return False
        case _:
            msg = f"Configuration key '{key}' must be a boolean, got {value!r}."
            raise ConfigError(msg)


def read_head_includes(root_dir: Path) -> str:
    """Concatenate the optional ``import-*.html`` head snippets in ``root_dir``."""
    parts: list[str] = []
    for name in HEAD_INCLUDE_NAMES:
        path = root_dir / name
        if path.is_file():
            parts.append(path.read_text(encoding="utf-8"))
    return "\n".join(parts)


__all__ = [
    "normalize_base_url",
    "parse_bool",
    "parse_footer_mode",
    "read_head_includes",
    "to_page_suffix",
]
