"""``luapersist.persist``: Persist a set of named values
=====================================================

:func:`serialize_full` writes Lua code that assigns every binding to a global
variable. It can represent any graph of tables: shared tables and cycles are
written out in a reference table that's populated before the bindings are
assigned.

The output is checked with a real Lua compiler. Lua implementations limit the
number of constants a function can have so large values might not compile. If
the generated code doesn't compile we move up the :class:`Strategy` ladder and
try again:

+ :const:`Strategy.TREE`: Tables that are used only once are written inline.
+ :const:`Strategy.REFERENCE`: Every table goes in the reference table.
+ :const:`Strategy.SPLIT`: On top of that the statements populating the
  reference table are spread across several functions.

"""

from __future__ import annotations

import enum
import logging
import math
from typing import Any, Callable, Final, Iterable, Mapping, NamedTuple

from . import lua, pretty, values
from .analyze import RefCounter
from .buffer import TokenBuffer
from .writer import Layout, Writer

__all__ = (
    "Strategy",
    "PersistError",
    "Output",
    "attempt",
    "persist",
    "serialize_full",
    "MAX_TABLES",
    "SPLIT_LITERALS",
)

logger = logging.getLogger(__name__)

#: Above that many tables we go straight to :const:`Strategy.SPLIT`
MAX_TABLES: Final = 65_000

#: How many literals a block of statements filling the reference table can hold
SPLIT_LITERALS: Final = 65_500

SPLIT_OPEN: Final = (
    ";(function ()  -- split up the constants to stay within the limits "
    "of the Lua compiler\n"
)
SPLIT_CLOSE: Final = "end)()\n"

SyntaxCheck = Callable[[str], bool]


class Strategy(enum.IntEnum):
    "How hard we try to stay within the limits of the Lua compiler"

    TREE = 0
    REFERENCE = 1
    SPLIT = 2


class PersistError(RuntimeError):
    """We could not generate code that compiles.

    This means the :class:`Strategy` ladder is broken and is a bug.
    """


_UNWRITABLE_KEYS: Final = frozenset(
    (values.Kind.NIL, values.Kind.FUNCTION, values.Kind.OPAQUE)
)


def _writable(key: Any) -> bool:
    kind = values.kind_of(key)
    if kind is values.Kind.NUMBER:
        return not math.isnan(key)
    return kind not in _UNWRITABLE_KEYS


class Output(NamedTuple):
    "The result of an :func:`attempt`"

    text: str
    #: The strategy that was actually used
    strategy: Strategy


def _bindings(
    bindings: Mapping[Any, Any], must_exist: Iterable[Any]
) -> list[tuple[Any, Any]]:
    res = [(key, value) for key, value in bindings.items() if _writable(key)]
    present = values.Table((key, True) for key, _ in res)
    for key in must_exist:
        if not _writable(key) or key in present:
            continue
        present[key] = True
        res.append((key, None))
    res.sort(key=lambda kv: values.sort_key(kv[0]))
    return res


def _target(writer: Writer, key: Any) -> pretty.Doc:
    if values.is_identifier(key):
        return pretty.text(key)
    return pretty.text("_G[") + writer.value(key) + pretty.text("]")


def _fill_target(writer: Writer, index: int, key: Any) -> pretty.Doc:
    doc = writer.reference(index)
    if values.is_identifier(key):
        return doc + pretty.text(f".{key}")
    return doc + pretty.text("[") + writer.value(key) + pretty.text("]")


def attempt(
    bindings: Mapping[Any, Any],
    must_exist: Iterable[Any] = (),
    strategy: Strategy = Strategy.TREE,
    *,
    layout: Layout = Layout.PRETTY,
    width: int = 80,
    indent: str = "\t",
) -> Output:
    """Generate the code for *bindings* with a given strategy.

    This doesn't check that the code compiles (see :func:`persist`). The
    strategy used might be higher than *strategy* for very large values.
    """
    strategy = Strategy(strategy)
    entries = _bindings(bindings, must_exist)

    counter = RefCounter()
    for key, value in entries:
        counter.visit(key)
        counter.visit(value)

    if len(counter) > MAX_TABLES:
        strategy = max(strategy, Strategy.SPLIT)
    if strategy >= Strategy.REFERENCE:
        counter.share_all()

    refs: dict[int, int] = {}
    shared: list[Any] = []
    if counter.shared:
        for table in counter.iter_shared():
            shared.append(table)
            refs[id(table)] = len(shared)

    writer = Writer(refs, layout=layout)
    out = TokenBuffer()

    def emit(doc: pretty.Doc) -> None:
        pretty.render(doc, out, width=width, indent=indent)
        out.write("\n")

    if shared:
        out.write("local ref = {}\n")
        out.write(f"for k=1,{len(shared)} do ref[k] = {{}} end\n")
        # All the tables in `ref` have to exist before we can fill them.
        split = strategy >= Strategy.SPLIT
        if split:
            out.write(SPLIT_OPEN)
        literals = 0
        for index, table in enumerate(shared, start=1):
            _, items = values.ordered_items(table)
            for key, value in items:
                literals += 2
                emit(
                    _fill_target(writer, index, key)
                    + pretty.text(" = ")
                    + writer.value(value)
                )
                if split and literals > SPLIT_LITERALS:
                    literals = 0
                    out.write(SPLIT_CLOSE)
                    out.write(SPLIT_OPEN)
        if split:
            out.write(SPLIT_CLOSE)

    for key, value in entries:
        emit(_target(writer, key) + pretty.text(" = ") + writer.value(value))

    return Output(out.getvalue(), strategy)


def persist(
    bindings: Mapping[Any, Any],
    must_exist: Iterable[Any] = (),
    strategy: Strategy = Strategy.TREE,
    *,
    check: SyntaxCheck,
    layout: Layout = Layout.PRETTY,
    width: int = 80,
    indent: str = "\t",
) -> str:
    """Generate code for *bindings* that passes *check*.

    Starts at *strategy* and moves up the ladder until the code passes the
    check. Values nested too deeply to be written inline also move up the
    ladder.

    Raises:
      PersistError: if the code fails the check with the last strategy.
    """
    # must_exist might be a one shot iterator and we might need several passes
    must_exist = list(must_exist)
    strategy = Strategy(strategy)
    while True:
        try:
            text, strategy = attempt(
                bindings,
                must_exist,
                strategy,
                layout=layout,
                width=width,
                indent=indent,
            )
        except RecursionError:
            # Only inline tables nest. From REFERENCE on every table is a
            # `ref[i]` and the writer never goes more than one table deep.
            if strategy >= Strategy.REFERENCE:
                raise
            logger.debug(
                "Value nested too deeply for strategy %s", strategy.name
            )
            strategy = Strategy(strategy + 1)
            continue
        if check(text):
            return text
        logger.debug(
            "Generated code failed the syntax check with strategy %s",
            strategy.name,
        )
        if strategy >= Strategy.SPLIT:
            break
        strategy = Strategy(strategy + 1)
    logger.error(
        "Cannot persist %d bindings: the generated code never compiles",
        len(bindings),
    )
    raise PersistError("Cannot persist properly, please report this")


def serialize_full(
    bindings: Mapping[Any, Any],
    must_exist: Iterable[Any] | None = None,
    *,
    layout: Layout = Layout.PRETTY,
    width: int = 80,
    indent: str = "\t",
    check: SyntaxCheck | None = None,
) -> str:
    """Write Lua code that assigns every value in *bindings* to a global.

    Keys that are valid identifiers are assigned directly (``name = ...``),
    others via ``_G[...] = ...``.

      >>> v = {"b": "x", "a": 1, "c": [1, 2, 3]}
      >>> print(serialize_full(v, layout=Layout.AUTO), end="")
      a = 1
      b = "x"
      c = {1, 2, 3}

    With the default layout (:const:`~luapersist.PRETTY`) every entry of a
    table goes on its own line, indented with *indent*.

    Shared tables and cycles are supported:

      >>> node = {"name": "loop"}
      >>> node["next"] = node
      >>> print(serialize_full({"node": node}), end="")
      local ref = {}
      for k=1,1 do ref[k] = {} end
      ref[1].name = "loop"
      ref[1].next = ref[1]
      node = ref[1]

    Args:
      bindings: The values to persist, indexed by name.
      must_exist: Names that are written out even if they are not in
        *bindings* (as ``name = nil``). Mappings contribute their keys.
      layout(Layout):
      width(int): Line width for :const:`~luapersist.AUTO`.
      indent(str): Text used for one level of indentation.
      check: Function that tells whether a piece of code compiles, defaults to
        :func:`luapersist.lua.check_syntax`.

    Raises:
      PersistError: if we failed to generate code that compiles.
    """
    if check is None:
        check = lua.check_syntax
    return persist(
        bindings,
        () if must_exist is None else must_exist,
        Strategy.TREE,
        check=check,
        layout=layout,
        width=width,
        indent=indent,
    )
