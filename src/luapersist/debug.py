from __future__ import annotations

import functools
from typing import Any, Callable, Literal

import pygments
import pygments.formatters
import pygments.lexers

from . import values
from .writer import serialize_inline

__all__ = ("dump", "highlight", "FAILED")

#: What :func:`dump` prints for the values it cannot serialise
FAILED = "(serialization failed)"


@functools.lru_cache()
def _formatter(kind: str) -> Any:
    if kind == "html":
        return pygments.formatters.HtmlFormatter(cssclass="luapersist")
    return pygments.formatters.TerminalFormatter()


def highlight(code: str, kind: Literal["terminal", "html"] = "terminal") -> str:
    """Syntax highlight some Lua code.

    Args:
      code(str):
      kind: ``"terminal"`` for ANSI escape sequences, ``"html"`` for an html
        snippet.
    """
    res: str = pygments.highlight(
        code, pygments.lexers.LuaLexer(), _formatter(kind)
    )
    # Pygments always ends its output with a newline
    if kind == "terminal" and not code.endswith("\n"):
        res = res.rstrip("\n")
    return res


def dump(
    *args: Any,
    printer: Callable[..., Any] = print,
    color: bool = False,
) -> None:
    """Print *args*, tables are printed as Lua table constructors.

    Tables that cannot be printed on one line (because they are not trees, or
    they are too large) are replaced by ``"(serialization failed)"``. Other
    values are passed to *printer* untouched.

      >>> dump("value:", {"a": [1, 2]}, 3)
      value: {a = {1, 2}} 3
    """
    stringized: list[Any] = []
    for arg in args:
        if values.kind_of(arg) is values.Kind.TABLE:
            text = serialize_inline(arg)
            if text is None:
                text = FAILED
            elif color:
                text = highlight(text)
            stringized.append(text)
        else:
            stringized.append(arg)
    printer(*stringized)
