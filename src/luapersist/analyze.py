"""``luapersist.analyze``: Find the shared tables in a value graph
==============================================================

"""

from __future__ import annotations

from typing import Any, Iterator

from . import values

__all__ = ("RefCounter",)


class RefCounter:
    """Count how many times every table is reachable.

    A table that's reached more than once (because it's shared or because it's
    part of a cycle) has to be written out in the reference table.

    Tables are tracked by identity. Since we rely on :func:`id` we hold on to
    every table we've seen to make sure addresses do not get reused while we're
    counting.

      >>> shared = {}
      >>> rc = RefCounter()
      >>> rc.visit([shared, shared])
      True
      >>> sorted(rc.counts.values())
      [1, 2]
    """

    counts: dict[int, int]
    tables: dict[int, Any]
    shared: bool

    def __init__(self) -> None:
        self.counts = {}
        # Insertion order is the order in which tables were first discovered
        self.tables = {}
        self.shared = False

    def __len__(self) -> int:
        return len(self.tables)

    def visit(self, root: Any) -> bool:
        """Count every table reachable from *root*.

        Returns whether any table was visited more than once (during this call
        or a previous one).
        """
        counts = self.counts
        tables = self.tables
        # Explicit stack (rather than recursion) so deep values don't overflow
        # python's stack. Children are pushed in reverse to get the same
        # pre-order as the writer.
        stack = [root]
        while stack:
            v = stack.pop()
            if values.kind_of(v) is not values.Kind.TABLE:
                continue
            addr = id(v)
            if addr in counts:
                counts[addr] += 1
                self.shared = True
                continue
            counts[addr] = 1
            tables[addr] = v
            _, entries = values.ordered_items(v)
            for key, value in reversed(entries):
                stack.append(value)
                stack.append(key)
        return self.shared

    def share_all(self) -> None:
        "Make every table look like it's referenced more than once."
        for addr in self.counts:
            self.counts[addr] += 1
        if self.counts:
            self.shared = True

    def iter_shared(self) -> Iterator[Any]:
        "The tables that need an entry in the reference table"
        counts = self.counts
        for addr, table in self.tables.items():
            if counts[addr] > 1:
                yield table
