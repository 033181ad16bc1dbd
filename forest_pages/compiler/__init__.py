"""Resolve shallow sections and render them into HTML pages."""

from .callback import CallbackGraph, CallbackValue
from .counter import Counter
from .section import (
    Content,
    ContentBuilder,
    Embed,
    Lazy,
    Local,
    Plain,
    Section,
    SectionOption,
    ShallowSection,
)
from .state import CompileState, resolve_all
from .taxon import Taxon
from .writer import WriteResult, Writer

__all__ = [
    "CallbackGraph",
    "CallbackValue",
    "CompileState",
    "Content",
    "ContentBuilder",
    "Counter",
    "Embed",
    "Lazy",
    "Local",
    "Plain",
    "Section",
    "SectionOption",
    "ShallowSection",
    "Taxon",
    "WriteResult",
    "Writer",
    "resolve_all",
]
