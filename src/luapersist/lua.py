"""``luapersist.lua``: Talking to an actual Lua interpreter
=======================================================

We use :mod:`lupa` to embed a Lua interpreter. It's used to check that the
text we generate compiles and to read that text back into python values.

Lua runtimes are not thread safe: every thread gets its own runtime.

By default we use whatever Lua :mod:`lupa` considers to be its default. Pass
the name of one of lupa's modules (e.g. ``"lupa.luajit21"``) to
:class:`LuaEngine` to check against the limits of a specific implementation.
"""

from __future__ import annotations

import importlib
import threading
from typing import Any, Final

from .values import Table

__all__ = ("LuaEngine", "check_syntax", "load_text", "get_engine")

DEFAULT_MODULE: Final = "lupa"

CHUNK_NAME: Final = "=persisted"

_CHECK: Final = """
local load, name = load, ...
return function(text)
  local fn, err = load(text, name)
  return fn ~= nil, err
end
"""

_RUN: Final = """
local name = ...
local load, setfenv, setmetatable, rawget, G = load, setfenv, setmetatable, rawget, _G
return function(text)
  local env = setmetatable({}, {__index = G})
  env._G = env
  local fn, err = load(text, name, "t", env)
  if not fn then
    return nil, err
  end
  if setfenv then
    setfenv(fn, env)
  end
  fn()
  if rawget(env, "_G") == env then
    env._G = nil
  end
  return setmetatable(env, nil), nil
end
"""

_IDENTIFY: Final = """
local ids, count = setmetatable({}, {__mode = "k"}), 0
return function(t)
  local id = ids[t]
  if id == nil then
    count = count + 1
    id = count
    ids[t] = id
  end
  return id
end
"""


class LuaEngine:
    """A Lua interpreter.

    Args:
      module(str): The lupa module providing the ``LuaRuntime``.
    """

    module: Any
    runtime: Any

    def __init__(self, module: str = DEFAULT_MODULE) -> None:
        self.module = importlib.import_module(module)
        self.runtime = self.module.LuaRuntime(unpack_returned_tuples=True)
        self._check = self.runtime.execute(_CHECK, CHUNK_NAME)
        self._run = self.runtime.execute(_RUN, CHUNK_NAME)

    def check_syntax(self, text: str) -> bool:
        """Does *text* compile?

        The text is never executed.
        """
        ok, _ = self._check(text)
        return bool(ok)

    def compile_error(self, text: str) -> str | None:
        "The error message from compiling *text* (if any)."
        ok, err = self._check(text)
        return None if ok else str(err)

    def load_text(self, text: str) -> Table:
        """Run *text* and return the globals it assigned.

        The text runs in a fresh environment (where ``_G`` is the environment
        itself) so it cannot clobber the interpreter's globals. Lua tables are
        converted to :class:`~luapersist.Table` preserving shared references
        and cycles.

        Raises:
          ValueError: if *text* doesn't compile
        """
        env, err = self._run(text)
        if env is None:
            raise ValueError(f"Invalid Lua chunk: {err}")
        return self._convert(env)

    def _convert(self, root: Any) -> Any:
        lua_type = self.module.lua_type
        identify = self.runtime.execute(_IDENTIFY)
        memo: dict[int, Table] = {}
        # Tables are created when first seen and filled later from this
        # stack, deep values don't overflow python's stack.
        pending: list[tuple[Any, Table]] = []

        def convert(v: Any) -> Any:
            if lua_type(v) != "table":
                return v
            tid = identify(v)
            res = memo.get(tid)
            if res is None:
                res = memo[tid] = Table()
                pending.append((v, res))
            return res

        result = convert(root)
        while pending:
            src, dst = pending.pop()
            for key, value in src.items():
                dst[convert(key)] = convert(value)
        return result


_local = threading.local()


def get_engine(module: str = DEFAULT_MODULE) -> LuaEngine:
    "Get the engine for the current thread"
    engines: dict[str, LuaEngine] | None = getattr(_local, "engines", None)
    if engines is None:
        engines = _local.engines = {}
    engine = engines.get(module)
    if engine is None:
        engine = engines[module] = LuaEngine(module)
    return engine


def check_syntax(text: str) -> bool:
    """Default syntax check used by :func:`luapersist.serialize_full`."""
    return get_engine().check_syntax(text)


def load_text(text: str) -> Table:
    """Read back the output of :func:`luapersist.serialize_full`.

      >>> env = load_text('x = {1, 2}\\nname = "y"\\n')
      >>> env["name"], dict(env["x"])
      ('y', {1: 1, 2: 2})
    """
    return get_engine().load_text(text)
