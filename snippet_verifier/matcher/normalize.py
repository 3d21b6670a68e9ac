"""Canonical text form of console lines for comparison."""

from __future__ import annotations

import re
from typing import List

_STRUCTURED = re.compile(r"^(?:[A-Za-z_$][\w$]*\s*(?:\(\d+\)\s*)?)?[\[{].*[\]}]$", re.DOTALL)
_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")
_QUOTES = "'\"`"
_CLOSERS = "]}"


class _Unbalanced(ValueError):
    pass


def canonicalize(line: str) -> str:
    """Return the comparison form of one output line.

    Plain lines are only trimmed. Renderings of arrays, objects and other
    bracketed values lose incidental whitespace and trailing commas, string
    literals switch to double quotes, and identifier-like keys are unquoted,
    so ``[ 'a', 'b', ]`` and ``["a","b"]`` compare equal.
    """
    text = line.strip()
    if not _STRUCTURED.match(text):
        return text
    try:
        return _canonical_structure(text)
    except _Unbalanced:
        return text


def _canonical_structure(text: str) -> str:
    out: List[str] = []
    index = 0
    length = len(text)

    while index < length:
        char = text[index]

        if char in _QUOTES:
            literal, index = _read_string(text, index)
            if _next_significant(text, index) == ":" and _IDENTIFIER.match(literal):
                out.append(literal)
            else:
                out.append('"' + literal.replace('"', '\\"') + '"')
            continue

        if char.isspace():
            index += 1
            continue

        if char == "," and _next_significant(text, index + 1) in _CLOSERS:
            index += 1
            continue

        out.append(char)
        index += 1

    return "".join(out)


def _read_string(text: str, start: int) -> tuple[str, int]:
    quote = text[start]
    chars: List[str] = []
    index = start + 1
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text):
            escaped = text[index + 1]
            chars.append(escaped if escaped in _QUOTES else char + escaped)
            index += 2
            continue
        if char == quote:
            return "".join(chars), index + 1
        chars.append(char)
        index += 1
    raise _Unbalanced(text)


def _next_significant(text: str, index: int) -> str:
    while index < len(text) and text[index].isspace():
        index += 1
    return text[index] if index < len(text) else ""


__all__ = ["canonicalize"]
