"""``luapersist.pretty``: Layout of the generated Lua
==================================================

A small document algebra used by the writer to describe how a table literal
can be broken across lines. It follows Christian Lindig's "strictly pretty"
[`pdf <https://lindig.github.io/papers/strictly-pretty-2000.pdf>`_] article,
with the explicit group modes of the `QuickC-- implementation
<https://github.com/nrnrnr/qc--/blob/master/cllib/pp.nw>`_.

Documents are rendered straight into a writable sink (anything with a
``write`` method) so that large dumps never build an intermediate string.

"""

from __future__ import annotations

import dataclasses
import enum
from typing import Callable, Protocol

__all__ = (
    "Doc",
    "Mode",
    "EMPTY",
    "BREAK",
    "NULL_BREAK",
    "text",
    "nest",
    "group",
    "render",
)


class Sink(Protocol):
    def write(self, s: str, /) -> int:  # pragma: no cover
        ...


class Mode(enum.Enum):
    "How the breaks of a group are laid out"

    #: Breaks are printed as their text
    FLAT = enum.auto()
    #: Every break is a newline
    BREAK = enum.auto()
    #: FLAT if the whole group fits in the remaining width, BREAK otherwise
    AUTO = enum.auto()


class Doc:
    """A document. Use the helper functions to build them.

    Documents can be concatenated via the ``+`` operator.
    """

    __slots__ = ()

    def __add__(self, other: Doc) -> Doc:
        return DocCons(self, other)


@dataclasses.dataclass(slots=True)
class DocNil(Doc):
    pass


@dataclasses.dataclass(slots=True)
class DocCons(Doc):
    left: Doc
    right: Doc


@dataclasses.dataclass(slots=True)
class DocText(Doc):
    text: str


@dataclasses.dataclass(slots=True)
class DocNest(Doc):
    indent: int
    doc: Doc


@dataclasses.dataclass(slots=True)
class DocBreak(Doc):
    text: str


@dataclasses.dataclass(slots=True)
class DocGroup(Doc):
    mode: Mode
    doc: Doc


#: The empty document
EMPTY: Doc = DocNil()

text: Callable[[str], Doc] = DocText

#: A space, or a newline when its group is broken
BREAK: Doc = DocBreak(" ")

#: Nothing, or a newline when its group is broken
NULL_BREAK: Doc = DocBreak("")


def nest(levels: int, doc: Doc) -> Doc:
    """Indent the lines started inside *doc* by *levels* indentation units.

    Args:
      levels(int):
      doc(Doc):
    """
    return DocNest(levels, doc)


def group(mode: Mode, doc: Doc) -> Doc:
    return DocGroup(mode, doc)


# The algorithm keeps a stack of (indentation, mode, document) triples. Python
# lists would turn the O(1) push/pop of the cons lists in the paper into copies, so
# we use a linked list.
@dataclasses.dataclass(slots=True)
class _Frame:
    level: int
    mode: Mode
    doc: Doc
    tail: _Frame | None = None


def _fits(width: int, frames: _Frame | None) -> bool:
    while width >= 0:
        match frames:
            case None:
                return True
            case _Frame(_, _, DocNil(), rest):
                frames = rest
            case _Frame(i, m, DocCons(left, right), rest):
                frames = _Frame(i, m, left, _Frame(i, m, right, rest))
            case _Frame(i, m, DocNest(j, doc), rest):
                frames = _Frame(i + j, m, doc, rest)
            case _Frame(_, _, DocText(s), rest):
                width -= len(s)
                frames = rest
            case _Frame(_, Mode.FLAT, DocBreak(s), rest):
                width -= len(s)
                frames = rest
            case _Frame(_, _, DocBreak(_), _):
                return True
            case _Frame(i, _, DocGroup(_, doc), rest):
                frames = _Frame(i, Mode.FLAT, doc, rest)
            case _:  # pragma: no cover
                assert False, frames
    return False


def render(
    doc: Doc, out: Sink, width: int = 80, indent: str = "\t"
) -> None:
    """Write *doc* to *out*.

    Args:
      doc(Doc):
      out: Where the text is written
      width(int): Only used by :attr:`Mode.AUTO` groups
      indent(str): The text of one indentation level
    """
    write = out.write
    # Column accounting treats every indentation unit as its printed width.
    unit = len(indent)
    column = 0
    frames: _Frame | None = _Frame(0, Mode.FLAT, doc)
    while frames is not None:
        match frames:
            case _Frame(_, _, DocNil(), rest):
                frames = rest
            case _Frame(i, m, DocCons(left, right), rest):
                frames = _Frame(i, m, left, _Frame(i, m, right, rest))
            case _Frame(i, m, DocNest(j, doc), rest):
                frames = _Frame(i + j, m, doc, rest)
            case _Frame(_, _, DocText(s), rest):
                write(s)
                column += len(s)
                frames = rest
            case _Frame(_, Mode.FLAT, DocBreak(s), rest):
                write(s)
                column += len(s)
                frames = rest
            case _Frame(i, _, DocBreak(_), rest):
                write("\n")
                write(indent * i)
                column = i * unit
                frames = rest
            case _Frame(i, _, DocGroup(Mode.AUTO, doc), rest):
                flat = _Frame(i, Mode.FLAT, doc, rest)
                if _fits(width - column, flat):
                    frames = flat
                else:
                    frames = _Frame(i, Mode.BREAK, doc, rest)
            case _Frame(i, _, DocGroup(mode, doc), rest):
                frames = _Frame(i, mode, doc, rest)
            case _:  # pragma: no cover
                assert False, frames
