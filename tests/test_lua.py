from __future__ import annotations

import threading

import lupa
import pytest

from luapersist import Table, check_syntax, literals, load_text
from luapersist.lua import LuaEngine, get_engine

from . import utils


def test_check_syntax():
    assert check_syntax("x = 1")
    assert check_syntax("")
    assert not check_syntax("x = ")
    assert not check_syntax("x = {1, 2")


def test_check_syntax_does_not_run():
    assert check_syntax("error('boom')")


def test_compile_error():
    engine = get_engine()
    assert engine.compile_error("x = 1") is None
    err = engine.compile_error("x = = 1")
    assert err is not None
    assert "persisted" in err


def test_load_text():
    env = load_text('x = 1\ny = "two"\nz = {1, 2, k = true}\n')
    assert set(env) == {"x", "y", "z"}
    assert env["x"] == 1
    assert env["y"] == "two"
    z = env["z"]
    assert isinstance(z, Table)
    assert dict(z) == {1: 1, 2: 2, "k": True}


def test_load_text_invalid():
    with pytest.raises(ValueError, match="Invalid Lua chunk"):
        load_text("x = ")


def test_load_text_runtime_error():
    with pytest.raises(lupa.LuaError):
        load_text("error('boom')")


def test_load_text_global_table():
    env = load_text('_G.x = 1\n_G["not a name"] = 2\n')
    assert dict(env) == {"x": 1, "not a name": 2}


def test_load_text_sees_builtins():
    env = load_text("x = math.huge\ny = type(print)\n")
    assert env["x"] == float("inf")
    assert env["y"] == "function"


def test_load_text_isolated():
    load_text("print = 5\nleak = true\n")
    runtime = get_engine().runtime
    assert runtime.eval("type(print)") == "function"
    assert runtime.eval("leak") is None
    assert "leak" not in load_text("x = leak")


def test_load_text_identity():
    env = load_text("local t = {}\nt.me = t\na = t\nb = {t, t}\n")
    a = env["a"]
    assert a["me"] is a
    assert env["b"][1] is a
    assert env["b"][2] is a


def test_load_text_table_keys():
    env = load_text("local k = {}\nt = {[k] = k}\n")
    ((key, value),) = env["t"].items()
    assert key is value
    assert isinstance(key, Table)


def test_load_text_deep():
    env = load_text(
        "local t = {}\nv = t\n"
        "for i=1,5000 do local n = {} t[1] = n t = n end\n"
    )
    assert utils.depth(env["v"]) == 5000


def test_quote_roundtrip():
    s = "".join(chr(c) for c in range(128)) + "é☃9"
    assert load_text(f"s = {literals.quote(s)}")["s"] == s


def test_engines_per_thread():
    engines = []

    def run():
        engines.append(get_engine())
        assert check_syntax("x = 1")

    thread = threading.Thread(target=run)
    thread.start()
    thread.join()
    assert len(engines) == 1
    assert engines[0] is not get_engine()
    assert get_engine() is get_engine()


def test_engine_module():
    engine = LuaEngine("lupa")
    assert engine.check_syntax("x = 1")
    assert engine is not get_engine()
