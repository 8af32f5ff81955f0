from __future__ import annotations

import math

from luapersist import literals


def test_quote():
    assert literals.quote("") == '""'
    assert literals.quote('say "hi"\n') == '"say \\"hi\\"\\n"'
    assert literals.quote("a\\b") == '"a\\\\b"'
    assert literals.quote("\r\t") == '"\\r\\t"'
    assert literals.quote("\x001") == '"\\0001"'
    assert literals.quote("\x7f") == '"\\127"'
    assert literals.quote("héllo ☃") == '"héllo ☃"'
    assert literals.quote("a\ud800b") == '"a\\237\\160\\128b"'
    assert literals.quote("é\udfff") == '"\\195\\169\\237\\191\\191"'


def test_quote_bytes():
    assert literals.quote(b"abc") == '"abc"'
    assert literals.quote(b"\xff") == '"\\255"'
    assert literals.quote(b'a"b\n') == '"a\\"b\\n"'
    assert literals.quote("é".encode()) == '"\\195\\169"'


def test_number():
    assert literals.number(1) == "1"
    assert literals.number(-3) == "-3"
    assert literals.number(2**64) == "18446744073709551616"
    assert literals.number(0.1) == "0.1"
    assert literals.number(2.0) == "2.0"
    assert literals.number(1e100) == "1e+100"
    assert literals.number(math.inf) == "math.huge"
    assert literals.number(-math.inf) == "-math.huge"
    assert literals.number(math.nan) == "(0/0)"


def test_comment():
    assert literals.comment("x") == "--[[x]]"
    assert literals.comment("a]]b") == "--[=[a]]b]=]"
    assert literals.comment("a]") == "--[=[a]]=]"
    assert literals.comment("x]=]") == "--[==[x]=]]==]"
