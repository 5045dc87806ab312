#!/usr/bin/env python3
"""
SPECHARVEST RESPONSE MATCHERS
-----------------------------
Checks a live response against the expected side of a test case.
Every mismatch is collected before raising, so one report shows them all.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import json
from typing import Any, List

import httpx

from specharvest.core.errors import ReplayAssertionError
from specharvest.core.models import ExpectedResponse


def matches_subset(actual: Any, expected: Any) -> bool:
    """
    Partial match: objects may carry extra keys, arrays must have the
    same length and match element-wise, scalars must be equal.
    """
    if isinstance(expected, dict):
        return isinstance(actual, dict) and all(
            key in actual and matches_subset(actual[key], value)
            for key, value in expected.items()
        )
    if isinstance(expected, list):
        return (
            isinstance(actual, list)
            and len(actual) == len(expected)
            and all(matches_subset(a, e) for a, e in zip(actual, expected))
        )
    return actual == expected


def _body_mismatch(text: str, expected: ExpectedResponse) -> List[str]:
    if expected.body is None:
        return []
    if isinstance(expected.body, str):
        if text != expected.body:
            return [f"body: expected {expected.body!r}, got {text[:200]!r}"]
        return []

    try:
        actual = json.loads(text)
    except ValueError:
        return [f"body: expected JSON but got {text[:200]!r}"]

    if expected.body_exact:
        ok = actual == expected.body
    else:
        ok = matches_subset(actual, expected.body)
    if not ok:
        return [f"body: expected {json.dumps(expected.body)}, got {json.dumps(actual)[:200]}"]
    return []


def check_response(response: httpx.Response, expected: ExpectedResponse):
    """Raises ReplayAssertionError listing every unmet expectation."""
    mismatches: List[str] = []

    if response.status_code != expected.status:
        mismatches.append(f"status: expected {expected.status}, got {response.status_code}")

    mismatches.extend(_body_mismatch(response.text, expected))

    for name, value in expected.headers:
        actual = response.headers.get(name)
        if actual != value:
            mismatches.append(f"header {name}: expected {value!r}, got {actual!r}")

    for name in expected.headers_absent:
        if name in response.headers:
            mismatches.append(f"header {name}: expected absent, got {response.headers.get(name)!r}")

    for name, fragment in expected.headers_contain:
        actual = response.headers.get(name)
        if actual is None or fragment not in actual:
            mismatches.append(f"header {name}: expected to contain {fragment!r}, got {actual!r}")

    if mismatches:
        raise ReplayAssertionError(mismatches)
