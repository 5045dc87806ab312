#!/usr/bin/env python3
"""
SPECHARVEST SPLITTER - Multi-Assertion Decomposer (Phase 3.2)
-------------------------------------------------------------
A block with several `shouldRespondWith` assertions is cut at each line
that starts a new request. Splitting is refused when any piece performs
a write, because later requests may observe the earlier mutation.

This is a syntactic allow-list, not a side-effect analysis.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import re
from typing import List, Optional

REQUEST_START = re.compile(
    r'^[ \t]*(?:get\s+"|post\s+"|put\s+"|patch\s+"|delete\s+"|request\s+)',
    re.MULTILINE,
)

MUTATING = re.compile(
    r"\b(?:post|put|patch|delete|request\s+method(?:Delete|Put|Post|Patch))\b"
)


def split_requests(text: str) -> List[str]:
    """
    Slices `text` at request boundaries. Fewer than two boundaries leaves
    the text whole, as a single span.
    """
    starts = [m.start() for m in REQUEST_START.finditer(text)]
    if len(starts) < 2:
        return [text]

    ends = starts[1:] + [len(text)]
    return [text[start:end] for start, end in zip(starts, ends)]


def split_safely(text: str) -> Optional[List[str]]:
    """The request spans of `text`, or None if any span mutates state."""
    spans = split_requests(text)
    for span in spans:
        if MUTATING.search(span):
            return None
    return spans


def numbered(description: List[str], index: int) -> List[str]:
    """Appends ` (n)` to the innermost description element (1-based)."""
    return description[:-1] + [f"{description[-1]} ({index})"]
