from __future__ import annotations

import struct

# Empty / whitespace-only prompts all map to this token before hashing.
DEFAULT_PROMPT_TOKEN = "sora"

# ECMAScript WhiteSpace + LineTerminator, the set String.prototype.trim removes
_JS_WHITESPACE = (
    " \t\n\v\f\r\xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)

_INT32 = 2**32
_INT32_MIN = 2**31


def to_int32(x: int) -> int:
    """Wrap an arbitrary int to a signed 32-bit value (two's complement)."""
    return ((x + _INT32_MIN) % _INT32) - _INT32_MIN


def normalize_prompt(prompt: str | None) -> str:
    text = (prompt or "").strip(_JS_WHITESPACE).lower()
    return text or DEFAULT_PROMPT_TOKEN


def _code_units(text: str):
    # UTF-16 code units, so astral characters hash as surrogate pairs
    data = text.encode("utf-16-le", "surrogatepass")
    for (unit,) in struct.iter_unpack("<H", data):
        yield unit


def hash_prompt(text: str) -> int:
    """
    31-multiplier rolling hash over the UTF-16 code units of `text`.
    Accumulates in signed 32-bit arithmetic and returns the absolute value.
    """
    h = 0
    for unit in _code_units(text):
        h = to_int32(h * 31 + unit)
    return abs(h)


def prompt_seed(prompt: str | None) -> int:
    return hash_prompt(normalize_prompt(prompt))
