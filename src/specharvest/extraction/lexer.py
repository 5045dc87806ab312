#!/usr/bin/env python3
"""
SPECHARVEST LEXER - Delimiter Scanners (Phase 1.1)
--------------------------------------------------
Escape-aware character scanners shared by every later phase:
comment stripping, bracket matching, top-level splitting and
string-literal decoding.

All scanners track double-quoted string literals so delimiters inside
a string never count. A backslash escapes the next character.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import re
from typing import List, Optional

QUASI_OPEN = "[json|"
QUASI_CLOSE = "|]"

_OPENERS = "(["
_CLOSERS = ")]"


def strip_comments(text: str) -> str:
    """
    Removes `--` line comments from every line of a block.

    A `--` is kept when it sits inside a string literal or inside a
    `[json| ... |]` span, including a span opened on an earlier line.
    """
    cleaned = []
    in_quasi = False

    for line in text.split("\n"):
        in_string = escaped = False
        cut = -1
        i = 0
        while i < len(line):
            char = line[i]
            if escaped:
                escaped = False
                i += 1
                continue
            if char == "\\":
                escaped = True
                i += 1
                continue

            if in_quasi:
                if line.startswith(QUASI_CLOSE, i):
                    in_quasi = False
                    i += len(QUASI_CLOSE)
                    continue
            elif char == '"':
                in_string = not in_string
            elif not in_string:
                if line.startswith(QUASI_OPEN, i):
                    in_quasi = True
                    i += len(QUASI_OPEN)
                    continue
                if line.startswith("--", i):
                    cut = i
                    break
            i += 1

        cleaned.append(line[:cut] if cut != -1 else line)

    return "\n".join(cleaned)


def find_matching(text: str, start: int, open_char: str, close_char: str) -> int:
    """
    Returns the index of the delimiter closing the one at `start`,
    or -1 when the input ends first.
    """
    depth = 0
    in_string = escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return i
    return -1


def split_top_level(text: str, delimiter: str = ",") -> List[str]:
    """
    Splits at `delimiter` outside brackets, parentheses and strings.
    Blank trailing pieces are dropped.
    """
    parts = []
    depth = 0
    in_string = escaped = False
    current = []

    for char in text:
        if escaped:
            escaped = False
            current.append(char)
            continue
        if char == "\\":
            escaped = True
            current.append(char)
            continue
        if char == '"':
            in_string = not in_string
        elif not in_string:
            if char in _OPENERS:
                depth += 1
            elif char in _CLOSERS:
                depth -= 1
            elif char == delimiter and depth == 0:
                parts.append("".join(current))
                current = []
                continue
        current.append(char)

    tail = "".join(current)
    if tail.strip():
        parts.append(tail)
    return parts


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


# A double-quoted literal allowing backslash escapes; group 1 is the raw content.
STRING_LITERAL = r'"((?:[^"\\]|\\.)*)"'

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\", "'": "'"}


def unescape(raw: str) -> str:
    """Decodes the common backslash escapes of a host-language string."""
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(0)), raw)


def unescape_path(raw: str) -> str:
    """Paths only ever carry escaped quotes and backslashes."""
    return re.sub(r'\\(["\\])', r"\1", raw)


def quasi_span(text: str) -> Optional[str]:
    """Content of the first `[json| ... |]` span, or None if there is none."""
    start = text.find(QUASI_OPEN)
    if start == -1:
        return None
    content_start = start + len(QUASI_OPEN)
    end = text.find(QUASI_CLOSE, content_start)
    if end == -1:
        return None
    return text[content_start:end].strip()
