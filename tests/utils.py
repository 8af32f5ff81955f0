from __future__ import annotations

import re
from typing import Any

from luapersist import Table, persist

NUMBER = re.compile(r"\b\d+(?:\.\d+)?\b")

SPLIT = re.compile(
    f"{re.escape(persist.SPLIT_OPEN)}|{re.escape(persist.SPLIT_CLOSE)}"
)


def plain(v: Any) -> Any:
    """Turn the tables returned by `load_text` into lists and dicts.

    Tables keyed by `1..n` become lists, other tables become dicts.
    """
    if not isinstance(v, Table):
        return v
    if all(type(k) is int for k in v) and set(v) == set(range(1, len(v) + 1)):
        return [plain(v[idx]) for idx in range(1, len(v) + 1)]
    return {k: plain(x) for k, x in v.items()}


def constant_ceiling(limit: int):
    """A syntax check that mimics a compiler with a limit on the number of
    constants per function.

    The statements in split blocks count against the block they are in,
    everything else counts against the main chunk.
    """

    def check(text: str) -> bool:
        pieces = SPLIT.split(text)
        chunks = ["".join(pieces[::2]), *pieces[1::2]]
        return all(len(NUMBER.findall(chunk)) <= limit for chunk in chunks)

    return check


def accept(text: str) -> bool:
    return True


def nested(depth: int) -> list[Any]:
    "A list nested *depth* levels deep: `[[[...[]...]]]`"
    v: list[Any] = []
    for _ in range(depth):
        v = [v]
    return v


def depth(t: Any) -> int:
    "How many times we can follow the key `1` starting from *t*"
    res = 0
    while 1 in t:
        t = t[1]
        res += 1
    return res
