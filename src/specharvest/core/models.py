#!/usr/bin/env python3
"""
SPECHARVEST CORE MODELS
-----------------------
Defines the fundamental data structures shared by the extraction core,
the surrounding engine and the replay harness.

Everything here is plain data: created fresh per source file, compared
structurally, and serialized through `to_dict()` into the canonical JSON
test schema.

Author: SpecHarvest Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# An ordered (name, value) pair. Names may repeat within a header list.
Header = Tuple[str, str]

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


class _Unparseable:
    """Sentinel returned by the relaxed-JSON resolver on failure."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNPARSEABLE"

    def __bool__(self) -> bool:
        return False


UNPARSEABLE = _Unparseable()


@dataclass(frozen=True)
class SourceLine:
    """
    One line of input. `indent` is None for blank lines.
    """
    line_no: int            # 1-based position in the source file
    indent: Optional[int]   # Column of the first non-blank character
    text: str               # The raw, unmodified line


@dataclass(frozen=True)
class ScopeFrame:
    """An open describe/context scope on the segmenter's stack."""
    indent: int
    text: str


@dataclass(frozen=True)
class RawBlock:
    """
    A leaf `it` block before parsing: its full scope path, the collected
    text (declaration line included) and its 1-based source line.
    """
    description: Tuple[str, ...]
    text: str
    line: int


@dataclass(frozen=True)
class HeaderMatcher:
    """
    Tagged variant for response header checks.
    kind is one of 'exact', 'absent', 'contain'; value is None for 'absent'.
    """
    kind: str
    name: str
    value: Optional[str] = None


@dataclass
class RequestSpec:
    method: str
    path: str
    headers: List[Header] = field(default_factory=list)
    body: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "headers": [[name, value] for name, value in self.headers],
            "body": self.body,
        }


@dataclass
class ExpectedResponse:
    """
    The expected side of a test case.

    `body is None` means the body is not checked at all, while an empty
    string is a real expectation of an empty body.
    """
    status: int = 200
    body: Any = None
    body_exact: bool = True
    headers: List[Header] = field(default_factory=list)
    headers_absent: List[str] = field(default_factory=list)
    headers_contain: List[Header] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "body": self.body,
            "bodyExact": self.body_exact,
            "headers": [[name, value] for name, value in self.headers],
            "headersAbsent": list(self.headers_absent),
            "headersContain": [[name, value] for name, value in self.headers_contain],
        }


@dataclass
class TestCase:
    # Keeps pytest from collecting this class when imported into test modules
    __test__ = False

    description: List[str]
    request: RequestSpec
    expected: ExpectedResponse

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": list(self.description),
            "request": self.request.to_dict(),
            "expected": self.expected.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TestCase":
        req = data["request"]
        exp = data["expected"]
        return cls(
            description=list(data["description"]),
            request=RequestSpec(
                method=req["method"],
                path=req["path"],
                headers=[(h[0], h[1]) for h in req.get("headers", [])],
                body=req.get("body"),
            ),
            expected=ExpectedResponse(
                status=exp["status"],
                body=exp.get("body"),
                body_exact=exp.get("bodyExact", True),
                headers=[(h[0], h[1]) for h in exp.get("headers", [])],
                headers_absent=list(exp.get("headersAbsent", [])),
                headers_contain=[(h[0], h[1]) for h in exp.get("headersContain", [])],
            ),
        )


@dataclass
class FlaggedTest:
    """A leaf block the extractor declined to convert, with the reason why."""
    description: List[str]
    reason: str
    line: int
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": list(self.description),
            "reason": self.reason,
            "line": self.line,
            "source": self.source,
        }


@dataclass
class ParseResult:
    """The output unit for one source file."""
    file: str
    config: str
    tests: List[TestCase] = field(default_factory=list)
    flagged: List[FlaggedTest] = field(default_factory=list)

    def to_spec_dict(self) -> Dict[str, Any]:
        """The per-file spec artifact. Flagged tests are reported separately."""
        return {
            "file": self.file,
            "config": self.config,
            "tests": [t.to_dict() for t in self.tests],
        }


@dataclass
class TestSpec:
    """A spec file as loaded back from disk by the replay harness."""
    __test__ = False

    file: str
    config: str
    tests: List[TestCase] = field(default_factory=list)
