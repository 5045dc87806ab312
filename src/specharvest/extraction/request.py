#!/usr/bin/env python3
"""
SPECHARVEST REQUEST PARSER (Phase 4.1)
--------------------------------------
Reads the request side of a `shouldRespondWith` expression.

Three shapes are tried in order, first match wins:
  get "/path"
  post "/path" <body>
  request <method> "/path" <headers> <body>

A body argument that is present but cannot be interpreted fails the
request rather than producing a test without its body.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from specharvest.core.models import HTTP_METHODS, UNPARSEABLE, Header, RequestSpec
from specharvest.extraction.lexer import (
    STRING_LITERAL,
    collapse_whitespace,
    find_matching,
    quasi_span,
    unescape,
    unescape_path,
)
from specharvest.extraction.resolvers import (
    dump_json,
    parse_header_list,
    parse_relaxed_json,
    resolve_header_expr,
    resolve_method,
    strict_loads,
)

_GET = re.compile(rf"\bget\s+{STRING_LITERAL}")
_POST = re.compile(rf"\bpost\s+{STRING_LITERAL}\s+(.+)")
_REQUEST = re.compile(rf"\brequest\s+(\w+)\s+{STRING_LITERAL}\s+(.+)")
_QUOTED_BODY = re.compile(rf"^{STRING_LITERAL}$")

# Order matters: an empty literal must win over a generic quote.
BODY_MARKERS = ("[json|", '""', "mempty", '"')

RequestShape = Callable[[str, Dict[str, str]], Optional[RequestSpec]]


def _get_shape(s: str, let_bindings: Dict[str, str]) -> Optional[RequestSpec]:
    m = _GET.search(s)
    if not m:
        return None
    return RequestSpec(method="GET", path=unescape_path(m.group(1)))


def _post_shape(s: str, let_bindings: Dict[str, str]) -> Optional[RequestSpec]:
    m = _POST.search(s)
    if not m:
        return None
    body = extract_body(m.group(2))
    if body is UNPARSEABLE:
        return None
    return RequestSpec(method="POST", path=unescape_path(m.group(1)), body=body)


def _generic_shape(s: str, let_bindings: Dict[str, str]) -> Optional[RequestSpec]:
    m = _REQUEST.search(s)
    if not m:
        return None
    split = split_headers_and_body(m.group(3), let_bindings)
    if split is None:
        return None
    headers, body = split
    return RequestSpec(
        method=resolve_method(m.group(1)),
        path=unescape_path(m.group(2)),
        headers=headers,
        body=body,
    )


REQUEST_SHAPES: Tuple[RequestShape, ...] = (_get_shape, _post_shape, _generic_shape)


def parse_request(text: str, let_bindings: Dict[str, str]) -> Optional[RequestSpec]:
    """
    Returns the request described by `text`, or None when no shape fits or
    the method is not a known HTTP method.
    """
    s = collapse_whitespace(text)
    for shape in REQUEST_SHAPES:
        request = shape(s, let_bindings)
        if request is not None:
            return request if request.method in HTTP_METHODS else None
    return None


def split_headers_and_body(
    rest: str, let_bindings: Dict[str, str]
) -> Optional[Tuple[List[Header], Optional[str]]]:
    """
    Separates the header argument from the body argument of a generic
    request. Unresolvable headers become an empty list; an unbalanced
    header argument or an uninterpretable body gives None.
    """
    s = rest.strip()

    if s.startswith("["):
        close = find_matching(s, 0, "[", "]")
        if close == -1:
            return None
        body_str = s[close + 1:]
        headers = parse_header_list(s[:close + 1], let_bindings)
    elif s.startswith("("):
        close = find_matching(s, 0, "(", ")")
        if close == -1:
            return None
        body_str = s[close + 1:]
        # A tuple literal keeps its parens; a wrapped helper call loses them.
        headers = resolve_header_expr(s[:close + 1], let_bindings)
        if headers is None:
            headers = parse_header_list(s[1:close], let_bindings)
    else:
        split_at = -1
        for marker in BODY_MARKERS:
            split_at = s.find(marker)
            if split_at != -1:
                break
        if split_at == -1:
            return None
        body_str = s[split_at:]
        headers = parse_header_list(s[:split_at], let_bindings)

    body = extract_body(body_str)
    if body is UNPARSEABLE:
        return None
    return headers or [], body


def extract_body(expr: str) -> Any:
    """
    Serializes a request body argument.

    `""`, `mempty` and a missing argument mean no body (None). JSON content
    is re-serialized compactly, other string literals pass verbatim.
    Anything else is UNPARSEABLE.
    """
    s = expr.strip()
    if not s or s in ('""', "mempty"):
        return None

    content = quasi_span(s)
    if content is not None:
        value = parse_relaxed_json(content)
        return UNPARSEABLE if value is UNPARSEABLE else dump_json(value)

    m = _QUOTED_BODY.match(s)
    if m:
        literal = unescape(m.group(1))
        if not literal:
            return None
        try:
            return dump_json(strict_loads(literal))
        except ValueError:
            return literal

    return UNPARSEABLE
