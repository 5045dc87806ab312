#!/usr/bin/env python3
"""
SPECHARVEST ASSERTION PARSER (Phase 4.2)
----------------------------------------
Reads the expected side of a `shouldRespondWith` expression:

  404                                   status only
  [json|...|] { matchStatus = 201 }     JSON body + match attributes
  "" { matchHeaders = [...] }           literal body + match attributes

Author: SpecHarvest Team
Date: 2026-10-19
"""

import logging
import re
from typing import Optional

from specharvest.core.models import UNPARSEABLE, ExpectedResponse
from specharvest.extraction.lexer import (
    QUASI_CLOSE,
    QUASI_OPEN,
    STRING_LITERAL,
    find_matching,
    unescape,
)
from specharvest.extraction.resolvers import parse_match_headers, parse_relaxed_json, strict_loads

logger = logging.getLogger("specharvest.assertion")

_STATUS_ONLY = re.compile(r"^(\d+)$")
_LEADING_STRING = re.compile(rf"^{STRING_LITERAL}")
_MATCH_BLOCK_START = re.compile(r"\{\s*match(?:Status|Headers)")
_MATCH_STATUS = re.compile(r"matchStatus\s*=\s*(\d+)")
_MATCH_HEADERS = re.compile(r"matchHeaders\s*=\s*")


def parse_expected(text: str, strict_match_headers: bool = False) -> Optional[ExpectedResponse]:
    """
    Returns the expected response, or None when a present body literal
    cannot be read or the status falls outside 100..599.
    """
    s = text.strip()

    # 1. Bare status shorthand
    status_only = _STATUS_ONLY.match(s)
    if status_only:
        return _checked(ExpectedResponse(status=int(status_only.group(1))))

    expected = ExpectedResponse()

    # 2. Body: quasi-literal JSON first, then a leading string literal
    json_start = s.find(QUASI_OPEN)
    json_end = s.find(QUASI_CLOSE, json_start + len(QUASI_OPEN)) if json_start != -1 else -1
    if json_start != -1 and json_end != -1:
        value = parse_relaxed_json(s[json_start + len(QUASI_OPEN):json_end])
        if value is UNPARSEABLE:
            return None
        expected.body = value
        if value is None:
            logger.debug("Expected body decodes to null; the body will not be checked")
    else:
        m = _LEADING_STRING.match(s)
        if m:
            expected.body = _string_body(unescape(m.group(1)))
            if expected.body is None:
                logger.debug("Expected body decodes to null; the body will not be checked")

    # 3. Optional { matchStatus = N, matchHeaders = [...] }
    block = extract_match_block(s)
    if block is not None:
        status = _MATCH_STATUS.search(block)
        if status:
            expected.status = int(status.group(1))

        headers_at = _MATCH_HEADERS.search(block)
        if headers_at and not _apply_match_headers(block, headers_at.end(), expected):
            if strict_match_headers:
                return None
            logger.warning(f"Dropping unresolvable matchHeaders: {block.strip()}")

    return _checked(expected)


def _string_body(literal: str):
    if not literal:
        return ""
    try:
        return strict_loads(literal)
    except ValueError:
        return literal


def _apply_match_headers(block: str, start: int, expected: ExpectedResponse) -> bool:
    """Parses the matchHeaders list at `start`; False when it cannot be resolved."""
    if not block.startswith("[", start):
        return False
    close = find_matching(block, start, "[", "]")
    if close == -1:
        return False

    parsed = parse_match_headers(block[start:close + 1])
    if parsed is None:
        return False

    expected.headers = parsed.headers
    expected.headers_absent = parsed.absent
    expected.headers_contain = parsed.contain
    return True


def extract_match_block(text: str) -> Optional[str]:
    """The inside of the `{ matchStatus/matchHeaders ... }` block, if any."""
    m = _MATCH_BLOCK_START.search(text)
    if not m:
        return None
    end = find_matching(text, m.start(), "{", "}")
    if end == -1:
        return None
    return text[m.start() + 1:end]


def _checked(expected: ExpectedResponse) -> Optional[ExpectedResponse]:
    return expected if 100 <= expected.status <= 599 else None
