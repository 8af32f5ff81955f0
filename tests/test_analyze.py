from __future__ import annotations

from luapersist import Table
from luapersist.analyze import RefCounter


def test_scalars():
    rc = RefCounter()
    assert not rc.visit(1)
    assert not rc.visit("x")
    assert not rc.visit(None)
    assert len(rc) == 0


def test_tree():
    v = {"a": {"b": {}}, "c": [1, 2, [3]]}
    rc = RefCounter()
    assert not rc.visit(v)
    assert len(rc) == 5
    assert set(rc.counts.values()) == {1}
    assert list(rc.iter_shared()) == []


def test_shared():
    x = {}
    rc = RefCounter()
    assert rc.visit({"a": x, "b": x})
    assert rc.counts[id(x)] == 2
    assert list(rc.iter_shared()) == [x]


def test_shared_across_roots():
    x = [1]
    rc = RefCounter()
    assert not rc.visit(x)
    assert rc.visit({"x": x})
    assert rc.counts[id(x)] == 2


def test_cycle():
    t = {}
    t["self"] = t
    rc = RefCounter()
    assert rc.visit(t)
    assert len(rc) == 1
    assert rc.counts[id(t)] == 2


def test_long_cycle():
    first = last = Table()
    for _ in range(100):
        nxt = Table()
        last["next"] = nxt
        last = nxt
    last["next"] = first
    rc = RefCounter()
    assert rc.visit(first)
    assert len(rc) == 101
    assert list(rc.iter_shared()) == [first]


def test_keys_are_counted():
    k = Table()
    t = Table()
    t[k] = k
    rc = RefCounter()
    assert rc.visit(t)
    assert rc.counts[id(k)] == 2


def test_discovery_order():
    a, b, c = [], [], []
    pair = [b, c]
    root = {"z": a, "y": pair, "x": c, 1: b}
    rc = RefCounter()
    rc.visit(root)
    # sequence run first, then sorted keys: 1, "x", "y", "z"
    assert list(rc.tables) == [id(root), id(b), id(c), id(pair), id(a)]
    assert [id(t) for t in rc.iter_shared()] == [id(b), id(c)]


def test_share_all():
    v = {"a": {}}
    rc = RefCounter()
    assert not rc.visit(v)
    rc.share_all()
    assert rc.shared
    assert set(rc.counts.values()) == {2}
    assert len(list(rc.iter_shared())) == 2


def test_share_all_no_tables():
    rc = RefCounter()
    rc.visit(5)
    rc.share_all()
    assert not rc.shared


def test_deep():
    v = []
    for _ in range(50_000):
        v = [v]
    rc = RefCounter()
    assert not rc.visit(v)
    assert len(rc) == 50_001
