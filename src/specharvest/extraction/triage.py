#!/usr/bin/env python3
"""
SPECHARVEST TRIAGE - Complexity Gate (Phase 3.1)
------------------------------------------------
Rejects blocks whose behavior the JSON schema cannot express
(side effects, skipped tests, lambdas, shell-outs, custom predicates)
before any structural parsing is attempted.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import re
from typing import Optional, Pattern, Tuple

ASSERTION_SEPARATOR = "`shouldRespondWith`"

# Flag reasons
REASON_NO_ASSERTION = "no assertion found"
REASON_PARSE_FAILURE = "parse failure"
REASON_SPLIT_PARSE_FAILURE = "parse failure in split block"
REASON_MUTATIONS = "multiple assertions with mutations"

# Ordered; the first hit decides the reason.
DISALLOWED: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"\bliftIO\b"), "liftIO: side-effect"),
    (re.compile(r"\bpendingWith\b"), "pendingWith: skipped upstream"),
    (re.compile(r"\\\s*_\s*->"), "lambda pattern"),
    (re.compile(r"\banalyzeTable\b"), "analyzeTable: psql shell-out"),
    (re.compile(r"\bsimpleBody\b"), "simpleBody: custom assertion"),
    (re.compile(r"\bsimpleHeaders\b"), "simpleHeaders: custom assertion"),
    (re.compile(r"\bsimpleStatus\b"), "simpleStatus: custom assertion"),
    (re.compile(r"\bshouldSatisfy\b"), "shouldSatisfy: custom predicate"),
    (re.compile(r"\bshouldBe\b"), "shouldBe: custom assertion"),
)


def find_disallowed(cleaned: str) -> Optional[str]:
    """Reason for the first disallowed construct in a comment-stripped block."""
    for pattern, reason in DISALLOWED:
        if pattern.search(cleaned):
            return reason
    return None


def count_assertions(cleaned: str) -> int:
    return cleaned.count(ASSERTION_SEPARATOR)
