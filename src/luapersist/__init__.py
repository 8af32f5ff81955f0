"""Persist python data graphs as Lua code"""
from __future__ import annotations

from importlib import metadata

from .debug import dump
from .lua import check_syntax, load_text
from .persist import PersistError, Strategy, serialize_full
from .values import Table
from .writer import AUTO, COMPACT, PRETTY, Layout, serialize_inline

__version__ = metadata.version(__name__)

__all__ = (
    "serialize_inline",
    "serialize_full",
    "dump",
    "load_text",
    "check_syntax",
    "Table",
    "Layout",
    "Strategy",
    "PersistError",
    "COMPACT",
    "PRETTY",
    "AUTO",
)
