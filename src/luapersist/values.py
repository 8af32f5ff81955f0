"""``luapersist.values``: The values we know how to persist
========================================================

Python values are mapped onto the Lua value model:

+ :const:`None` is ``nil``
+ :class:`int` and :class:`float` are numbers
+ :class:`str` and :class:`bytes` are strings
+ :class:`bool` are booleans
+ :class:`Table`, any :class:`~collections.abc.Mapping` and :class:`list` or
  :class:`tuple` are tables. Lists and tuples are keyed by ``1..n``.

Everything else (functions, sets, arbitrary objects...) is *opaque*: it can't
be persisted and is written out as ``nil`` with a comment.

Only :class:`Table` can be used as the key of another table since python's
containers aren't hashable.
"""

from __future__ import annotations

import enum
import math
import re
import types
from collections.abc import Mapping, MutableMapping
from typing import Any, Final, Iterable, Iterator

__all__ = (
    "Kind",
    "Table",
    "KEYWORDS",
    "kind_of",
    "is_identifier",
    "items",
    "ordered_items",
    "sort_key",
    "display",
)


class Kind(enum.Enum):
    "The category of a value, the values are the names Lua's ``type`` uses"

    NIL = "nil"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    TABLE = "table"
    FUNCTION = "function"
    OPAQUE = "userdata"


_FUNCTION_TYPES: Final = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.BuiltinMethodType,
    types.MethodWrapperType,
)


def kind_of(v: Any) -> Kind:
    ty = type(v)
    # Exact type comparisons: subclasses of int (e.g. enums) might not print
    # back to themselves.
    if v is None:
        return Kind.NIL
    if ty is bool:
        return Kind.BOOLEAN
    if ty in (int, float):
        return Kind.NUMBER
    if ty in (str, bytes):
        return Kind.STRING
    if ty in (list, tuple) or isinstance(v, Mapping):
        return Kind.TABLE
    if isinstance(v, _FUNCTION_TYPES):
        return Kind.FUNCTION
    return Kind.OPAQUE


def _slot(key: Any) -> tuple[bool, Any]:
    # Lua doesn't conflate `true` and `1` but python's hashing does, we also
    # normalise floats with an integral value the same way Lua 5.3+ does.
    if type(key) is bool:
        return True, key
    if type(key) is float and key.is_integer():
        return False, int(key)
    return False, key


class Table(MutableMapping[Any, Any]):
    """A mutable mapping with the semantics of a Lua table.

    Tables are compared and hashed by identity, so they can be used as keys
    (including as keys of themselves):

      >>> t = Table(name="root")
      >>> t[t] = True
      >>> t[t]
      True

    Unlike :class:`dict`, ``True`` and ``1`` are different keys, ``2.0`` is the
    same key as ``2`` and assigning :const:`None` removes the key:

      >>> t = Table([(1, "one"), (True, "yes")])
      >>> len(t), t[1.0]
      (2, 'one')
      >>> t[1] = None
      >>> list(t)
      [True]
    """

    __slots__ = ("_data", "__weakref__")

    _data: dict[tuple[bool, Any], tuple[Any, Any]]

    def __init__(
        self,
        data: Mapping[Any, Any] | Iterable[tuple[Any, Any]] = (),
        /,
        **kwargs: Any,
    ) -> None:
        self._data = {}
        self.update(data, **kwargs)

    @classmethod
    def sequence(cls, values: Iterable[Any]) -> Table:
        "Build a table keyed by ``1..n``"
        return cls(enumerate(values, start=1))

    def __getitem__(self, key: Any) -> Any:
        try:
            return self._data[_slot(key)][1]
        except TypeError:
            raise KeyError(key) from None

    def __setitem__(self, key: Any, value: Any) -> None:
        if key is None or (type(key) is float and math.isnan(key)):
            raise KeyError(f"Invalid table key: {key!r}")
        if value is None:
            self._data.pop(_slot(key), None)
        else:
            slot = _slot(key)
            self._data[slot] = (slot[1], value)

    def __delitem__(self, key: Any) -> None:
        del self._data[_slot(key)]

    def __iter__(self) -> Iterator[Any]:
        for key, _ in self._data.values():
            yield key

    def __len__(self) -> int:
        return len(self._data)

    __hash__ = object.__hash__

    def __eq__(self, other: object) -> bool:
        return self is other

    def __ne__(self, other: object) -> bool:
        return self is not other

    def __repr__(self) -> str:
        return f"<Table {id(self):#x} ({len(self)} entries)>"


KEYWORDS: Final = frozenset(
    (
        "and", "break", "do", "else", "elseif", "end", "false", "for",
        "function", "goto", "if", "in", "local", "nil", "not", "or", "repeat",
        "return", "then", "true", "until", "while",
    )
)  # fmt: skip

_IDENTIFIER: Final = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def is_identifier(key: Any) -> bool:
    """Can *key* be written as ``name = ...`` rather than ``[key] = ...``?"""
    return (
        type(key) is str
        and _IDENTIFIER.fullmatch(key) is not None
        and key not in KEYWORDS
    )


def _is_valid_entry(key: Any, value: Any) -> bool:
    # Lua tables cannot hold nil values, nil keys or NaN keys. Keys we cannot
    # write back are dropped as well since they would be read as nil.
    if value is None:
        return False
    match kind_of(key):
        case Kind.NIL | Kind.FUNCTION | Kind.OPAQUE:
            return False
        case Kind.NUMBER:
            return not math.isnan(key)
    return True


def items(container: Any) -> Iterator[tuple[Any, Any]]:
    """Iterate over the entries of a table in no particular order."""
    if type(container) in (list, tuple):
        it: Iterable[tuple[Any, Any]] = enumerate(container, start=1)
    else:
        it = container.items()
    for key, value in it:
        if _is_valid_entry(key, value):
            yield key, value


def _as_index(key: Any) -> int | None:
    if type(key) is int:
        return key
    if type(key) is float and key.is_integer():
        return int(key)
    return None


def ordered_items(container: Any) -> tuple[int, list[tuple[Any, Any]]]:
    """Get the entries of a table in the order they should be written.

    Returns the length of the sequence run (the values at keys ``1, 2, 3...``
    up to the first missing one) along with the entries: first the sequence
    run, then every other entry sorted by :func:`sort_key`.

      >>> ordered_items({"b": 1, 2: "y", 1: "x", 4: "z", "a": 2})
      (2, [(1, 'x'), (2, 'y'), (4, 'z'), ('a', 2), ('b', 1)])
    """
    numbered: dict[int, Any] = {}
    rest: list[tuple[Any, Any]] = []
    for key, value in items(container):
        idx = _as_index(key)
        if idx is not None and idx >= 1:
            numbered[idx] = value
        else:
            rest.append((key, value))
    size = 0
    while size + 1 in numbered:
        size += 1
    head = [(idx, numbered.pop(idx)) for idx in range(1, size + 1)]
    rest.extend(numbered.items())
    rest.sort(key=lambda kv: sort_key(kv[0]))
    return size, head + rest


def display(v: Any) -> str:
    """Human readable text for values that don't have a literal."""
    if kind_of(v) is Kind.TABLE:
        return f"table: {id(v):#x}"
    return repr(v)


def _as_bytes(s: str | bytes) -> bytes:
    if isinstance(s, bytes):
        return s
    return s.encode("utf-8", "surrogatepass")


def sort_key(v: Any) -> tuple[Any, ...]:
    """Key function for a deterministic total order on table keys.

    Numbers come first, then strings (ordered by their bytes), then
    booleans (``true`` first) and finally all the other values, ordered by
    category and then by their :func:`display` text.

      >>> sorted(["b", False, 2, "a", True, 1.5], key=sort_key)
      [1.5, 2, 'a', 'b', True, False]
    """
    kind = kind_of(v)
    match kind:
        case Kind.NUMBER:
            return (0, v)
        case Kind.STRING:
            return (1, _as_bytes(v))
        case Kind.BOOLEAN:
            return (2, not v)
    return (3, kind.value, display(v))
