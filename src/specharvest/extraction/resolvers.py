#!/usr/bin/env python3
"""
SPECHARVEST RESOLVERS - Expression Interpreters (Phase 2)
---------------------------------------------------------
Turns the small helper vocabulary of hspec-wai specs (request methods,
header helpers, response header matchers, `[json|...|]` literals) into
concrete values.

Every resolver is an ordered list of matchers tried first-match-wins.
A resolver that cannot interpret its input returns None (or the
UNPARSEABLE sentinel for JSON); none of them raise.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

from specharvest.core.models import UNPARSEABLE, Header, HeaderMatcher
from specharvest.extraction.lexer import split_top_level

METHOD_ALIASES: Dict[str, str] = {
    "get": "GET",
    "post": "POST",
    "patch": "PATCH",
    "put": "PUT",
    "delete": "DELETE",
    "methodGet": "GET",
    "methodPost": "POST",
    "methodPatch": "PATCH",
    "methodPut": "PUT",
    "methodDelete": "DELETE",
    "methodHead": "HEAD",
    "methodOptions": "OPTIONS",
}

PLAN_MEDIA_TYPE = "application/vnd.pgrst.plan+json"

CT_JSON = "application/json; charset=utf-8"
CT_SINGULAR = "application/vnd.pgrst.object+json; charset=utf-8"
CT_ARRAY_STRIP = "application/vnd.pgrst.array+json;nulls=stripped; charset=utf-8"
CT_SINGULAR_STRIP = "application/vnd.pgrst.object+json;nulls=stripped; charset=utf-8"


def resolve_method(token: str) -> str:
    """Maps `methodPost` / `post` style tokens to the HTTP method name."""
    return METHOD_ALIASES.get(token, token.upper())


# --- Header expressions ---

HeaderMatcherFn = Callable[[str], Optional[List[Header]]]

_TUPLE = re.compile(r'^\(\s*"([^"]+)"\s*,\s*"([^"]+)"\s*\)$')
_ACCEPT = re.compile(r'^acceptHdrs\s+"([^"]+)"$')
_AUTH = re.compile(r'^authHeaderJWT\s+"([^"]+)"$')
_RANGE_FROM_TO = re.compile(r"^rangeHdrs\s+[($]\s*ByteRangeFromTo\s+(\d+)\s+(\d+)\s*\)?$")
_RANGE_FROM = re.compile(r"^rangeHdrs\s+[($]\s*ByteRangeFrom\s+(\d+)\s*\)?$")
_RANGE_COUNT_FROM_TO = re.compile(
    r"^rangeHdrsWithCount\s+[($]\s*ByteRangeFromTo\s+(\d+)\s+(\d+)\s*\)?$"
)
_IDENTIFIER = re.compile(r"^\w+$")


def _tuple_header(expr: str) -> Optional[List[Header]]:
    m = _TUPLE.match(expr)
    return [(m.group(1), m.group(2))] if m else None


def _accept_header(expr: str) -> Optional[List[Header]]:
    m = _ACCEPT.match(expr)
    return [("Accept", m.group(1))] if m else None


def _auth_header(expr: str) -> Optional[List[Header]]:
    m = _AUTH.match(expr)
    return [("Authorization", f"Bearer {m.group(1)}")] if m else None


def _plan_header(expr: str) -> Optional[List[Header]]:
    return [("Accept", PLAN_MEDIA_TYPE)] if expr == "planHdr" else None


def _range_from_to(expr: str) -> Optional[List[Header]]:
    m = _RANGE_FROM_TO.match(expr)
    if not m:
        return None
    return [("Range-Unit", "items"), ("Range", f"{m.group(1)}-{m.group(2)}")]


def _range_from(expr: str) -> Optional[List[Header]]:
    m = _RANGE_FROM.match(expr)
    if not m:
        return None
    return [("Range-Unit", "items"), ("Range", f"{m.group(1)}-")]


def _range_with_count(expr: str) -> Optional[List[Header]]:
    m = _RANGE_COUNT_FROM_TO.match(expr)
    if not m:
        return None
    return [
        ("Prefer", "count=exact"),
        ("Range-Unit", "items"),
        ("Range", f"{m.group(1)}-{m.group(2)}"),
    ]


HEADER_MATCHERS: Tuple[HeaderMatcherFn, ...] = (
    _tuple_header,
    _accept_header,
    _auth_header,
    _plan_header,
    _range_from_to,
    _range_from,
    _range_with_count,
)


def resolve_header_expr(
    expr: str,
    let_bindings: Dict[str, str],
    _seen: FrozenSet[str] = frozenset(),
) -> Optional[List[Header]]:
    """
    Resolves one header expression to its header pairs.

    A bare identifier bound by `let` is resolved through its bound text.
    Each name is followed at most once per chain, so a cycle resolves to None.
    """
    e = expr.strip()

    for matcher in HEADER_MATCHERS:
        headers = matcher(e)
        if headers is not None:
            return headers

    if _IDENTIFIER.match(e) and e in let_bindings and e not in _seen:
        return resolve_header_expr(let_bindings[e], let_bindings, _seen | {e})

    return None


def parse_header_list(raw: str, let_bindings: Dict[str, str]) -> Optional[List[Header]]:
    """
    Resolves a header-list argument: `[]`, a `[a, b]` literal, or a single
    helper call. Any unresolvable element makes the whole list unresolvable.
    """
    s = raw.strip()
    if s == "[]":
        return []

    if not s.startswith("["):
        return resolve_header_expr(s, let_bindings)

    inner = s[1:-1].strip() if s.endswith("]") else s[1:].strip()
    if not inner:
        return []

    headers: List[Header] = []
    for element in split_top_level(inner, ","):
        resolved = resolve_header_expr(element, let_bindings)
        if resolved is None:
            return None
        headers.extend(resolved)
    return headers


# --- Response header matchers ---

_EXACT = re.compile(r'"([^"]+)"\s*<:>\s*"([^"]+)"')
_ABSENT_CONTENT_TYPE = re.compile(r"matchHeaderAbsent\s+hContentType\b")
_ABSENT = re.compile(r'matchHeaderAbsent\s+"([^"]+)"')

_CONTENT_TYPE_HELPERS: Tuple[Tuple[str, str], ...] = (
    ("matchContentTypeJson", CT_JSON),
    ("matchContentTypeSingular", CT_SINGULAR),
    ("matchCTArrayStrip", CT_ARRAY_STRIP),
    ("matchCTSingularStrip", CT_SINGULAR_STRIP),
)


def resolve_matcher_expr(expr: str) -> Optional[HeaderMatcher]:
    e = expr.strip()

    m = _EXACT.search(e)
    if m:
        return HeaderMatcher("exact", m.group(1), m.group(2))

    if _ABSENT_CONTENT_TYPE.search(e):
        return HeaderMatcher("absent", "Content-Type")

    m = _ABSENT.search(e)
    if m:
        return HeaderMatcher("absent", m.group(1))

    for helper, content_type in _CONTENT_TYPE_HELPERS:
        if re.search(rf"\b{helper}\b", e):
            return HeaderMatcher("exact", "Content-Type", content_type)

    return None


@dataclass
class MatchHeaders:
    """Header constraints of a match-attributes block, split by kind."""
    headers: List[Header] = field(default_factory=list)
    absent: List[str] = field(default_factory=list)
    contain: List[Header] = field(default_factory=list)


def parse_match_headers(raw: str) -> Optional[MatchHeaders]:
    result = MatchHeaders()

    s = raw.strip()
    if not s or s == "[]":
        return result

    content = s[1:-1] if s.startswith("[") and s.endswith("]") else s
    for element in split_top_level(content, ","):
        matcher = resolve_matcher_expr(element)
        if matcher is None:
            return None
        if matcher.kind == "exact":
            result.headers.append((matcher.name, matcher.value))
        elif matcher.kind == "absent":
            result.absent.append(matcher.name)
        else:
            result.contain.append((matcher.name, matcher.value))
    return result


# --- Relaxed JSON ---

_BARE_KEY_CONTEXT = re.compile(r"([{,]\s*)([A-Za-z_]\w*)(\s*:)")


def _quote_bare_keys(text: str) -> str:
    """
    Quotes identifiers that directly follow `{` or `,` and precede `:`.
    Occurrences inside string literals are left alone.
    """
    out = []
    segment_start = 0
    in_string = escaped = False

    for i, char in enumerate(text):
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char != '"':
            continue
        if not in_string:
            out.append(_BARE_KEY_CONTEXT.sub(r'\1"\2"\3', text[segment_start:i]))
            segment_start = i
        else:
            out.append(text[segment_start:i])
            segment_start = i
        in_string = not in_string

    tail = text[segment_start:]
    out.append(tail if in_string else _BARE_KEY_CONTEXT.sub(r'\1"\2"\3', tail))
    return "".join(out)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def strict_loads(text: str) -> Any:
    """json.loads without the NaN/Infinity extension; raises ValueError."""
    return json.loads(text, parse_constant=_reject_constant)


def _loads(text: str) -> Any:
    try:
        return strict_loads(text)
    except ValueError:
        return UNPARSEABLE



def parse_relaxed_json(raw: str) -> Any:
    """
    Parses a `[json|...|]` body. Strict JSON first, then with bare keys
    quoted, then with single quotes swapped for double quotes.

    Returns UNPARSEABLE on failure so that a JSON `null` stays distinguishable.
    Empty input is read as null.
    """
    text = raw.strip()
    if not text:
        return None

    value = _loads(text)
    if value is not UNPARSEABLE:
        return value

    fixed = _quote_bare_keys(text)
    value = _loads(fixed)
    if value is not UNPARSEABLE:
        return value

    return _loads(fixed.replace("'", '"'))


def dump_json(value: Any) -> str:
    """Compact serialization used for extracted request bodies."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
