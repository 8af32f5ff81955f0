"""Lua literals for the primitive values."""

from __future__ import annotations

import math
import re
from typing import Final

__all__ = ("quote", "number", "comment", "NIL", "TRUE", "FALSE")

NIL: Final = "nil"
TRUE: Final = "true"
FALSE: Final = "false"

_ESCAPES: Final = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_UNSAFE_TEXT: Final = re.compile(r'[\x00-\x1f\x7f"\\]')
_UNSAFE_BYTES: Final = re.compile(rb'[^\x20-\x7e]|["\\]')
_SURROGATES: Final = re.compile(r"[\ud800-\udfff]")


def _escape(char: str) -> str:
    # Always use three digits so a digit following the escape can't be
    # swallowed.
    return _ESCAPES.get(char) or f"\\{ord(char):03d}"


def quote(s: str | bytes) -> str:
    r"""Quote a string so Lua reads it back as the same bytes.

    :class:`str` values are written as UTF-8 (non ASCII characters are kept as
    is), :class:`bytes` are written in pure ASCII. Strings with lone surrogates
    aren't valid UTF-8, they are written like the bytes python would use for
    them (``"surrogatepass"``).

      >>> print(quote('say "hi"\n'))
      "say \"hi\"\n"
      >>> print(quote(b"\x00\xff1"))
      "\000\2551"
    """
    if isinstance(s, str) and _SURROGATES.search(s):
        s = s.encode("utf-8", "surrogatepass")
    if isinstance(s, bytes):
        escaped = _UNSAFE_BYTES.sub(
            lambda m: _escape(chr(m.group()[0])).encode("ascii"), s
        )
        return '"' + escaped.decode("ascii") + '"'
    return '"' + _UNSAFE_TEXT.sub(lambda m: _escape(m.group()), s) + '"'


def number(n: int | float) -> str:
    """Canonical text for a number.

    Floats use python's shortest representation that round-trips. Lua has no
    literal for the non finite values so we use expressions.

    Integers are always written in decimal. Lua reads the ones that don't fit
    in 64 bits as floats, so they come back rounded to the nearest double.

      >>> number(0.1), number(-math.inf), number(2**53)
      ('0.1', '-math.huge', '9007199254740992')
    """
    if isinstance(n, float) and not math.isfinite(n):
        if math.isnan(n):
            return "(0/0)"
        return "math.huge" if n > 0 else "-math.huge"
    return repr(n)


def comment(content: str) -> str:
    """A block comment that *content* cannot terminate early."""
    level = 0
    while f"]{'=' * level}]" in content or content.endswith("]" + "=" * level):
        level += 1
    eq = "=" * level
    return f"--[{eq}[{content}]{eq}]"
