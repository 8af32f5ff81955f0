"""``luapersist.writer``: Lua expressions for values
=================================================

Turns a single value into a Lua expression. Tables are written as table
constructors unless they appear in the reference table, in which case they are
written as ``ref[<index>]``.

"""

from __future__ import annotations

import enum
from typing import Any, Final, Mapping

from . import literals, pretty, values
from .buffer import TokenBuffer

__all__ = (
    "Layout",
    "Writer",
    "InlineError",
    "serialize_inline",
    "INLINE_MAX_TABLES",
)

#: How many tables :func:`serialize_inline` is willing to write
INLINE_MAX_TABLES: Final = 10_000

COL_SEP: Final = pretty.text(",") + pretty.BREAK


class Layout(enum.Enum):
    """How table constructors are laid out"""

    #: Everything on one line, entries separated by ``", "``.
    COMPACT = pretty.Mode.FLAT

    #: One entry per line.
    PRETTY = pretty.Mode.BREAK

    #: Tables that fit in the width stay on one line.
    AUTO = pretty.Mode.AUTO


COMPACT: Final = Layout.COMPACT
PRETTY: Final = Layout.PRETTY
AUTO: Final = Layout.AUTO


class InlineError(ValueError):
    """Raised when a value cannot be written as a single expression."""


class Writer:
    """Build the documents for the values.

    Args:
      refs: Maps the :func:`id` of the tables in the reference table to their
        index.
      layout:
      inline: Refuse to write the same table twice. This is used when there's
        no reference table to fall back on.
      max_tables: Only used with *inline*, how many tables can be written
        before we give up.
    """

    refs: Mapping[int, int]
    mode: pretty.Mode
    seen: set[int] | None
    max_tables: int | None

    def __init__(
        self,
        refs: Mapping[int, int] | None = None,
        layout: Layout = Layout.PRETTY,
        inline: bool = False,
        max_tables: int | None = None,
    ) -> None:
        self.refs = {} if refs is None else refs
        self.mode = layout.value
        self.seen = set() if inline else None
        self.max_tables = max_tables

    def value(self, v: Any) -> pretty.Doc:
        match values.kind_of(v):
            case values.Kind.NIL:
                return pretty.text(literals.NIL)
            case values.Kind.BOOLEAN:
                return pretty.text(literals.TRUE if v else literals.FALSE)
            case values.Kind.NUMBER:
                return pretty.text(literals.number(v))
            case values.Kind.STRING:
                return pretty.text(literals.quote(v))
            case values.Kind.TABLE:
                return self.table(v)
            case values.Kind.FUNCTION | values.Kind.OPAQUE:
                return pretty.text(
                    f"{literals.NIL} {literals.comment(values.display(v))}"
                )
        assert False, v  # pragma: no cover

    def reference(self, index: int) -> pretty.Doc:
        return pretty.text(f"ref[{index}]")

    def _check_inline(self, t: Any) -> None:
        seen = self.seen
        assert seen is not None
        addr = id(t)
        if addr in seen:
            raise InlineError("Shared or recursive table found")
        if self.max_tables is not None and len(seen) >= self.max_tables:
            raise InlineError(f"More than {self.max_tables} tables")
        seen.add(addr)

    def table(self, t: Any) -> pretty.Doc:
        if self.seen is not None:
            self._check_inline(t)
        index = self.refs.get(id(t))
        if index is not None:
            return self.reference(index)
        size, entries = values.ordered_items(t)
        if not entries:
            return pretty.text("{}")
        body = pretty.NULL_BREAK
        for pos, (key, value) in enumerate(entries):
            if pos > 0:
                body += COL_SEP
            if pos >= size:
                body += self.field(key)
            body += self.value(value)
        return pretty.group(
            self.mode,
            pretty.text("{")
            + pretty.nest(1, body)
            + pretty.NULL_BREAK
            + pretty.text("}"),
        )

    def field(self, key: Any) -> pretty.Doc:
        "The ``key = `` part of an entry in a table constructor"
        if values.is_identifier(key):
            return pretty.text(f"{key} = ")
        return pretty.text("[") + self.value(key) + pretty.text("] = ")


def serialize_inline(
    value: Any,
    *,
    max_tables: int | None = INLINE_MAX_TABLES,
) -> str | None:
    """Write *value* as a single Lua expression on one line.

    This only works on trees: if a table is reachable more than once (because
    it's shared or because there's a cycle) this returns :const:`None`. It also
    gives up if more than *max_tables* tables would be written or if the value
    is nested too deeply.

      >>> print(serialize_inline({"b": [1, 2], "a": True, 3: "c"}))
      {[3] = "c", a = true, b = {1, 2}}
      >>> x = {}
      >>> serialize_inline([x, x]) is None
      True

    Args:
      value:
      max_tables(int | None):
    """
    writer = Writer(layout=Layout.COMPACT, inline=True, max_tables=max_tables)
    try:
        doc = writer.value(value)
    except (InlineError, RecursionError):
        return None
    out = TokenBuffer()
    pretty.render(doc, out)
    return out.getvalue()
