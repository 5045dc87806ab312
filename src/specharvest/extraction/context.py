#!/usr/bin/env python3
"""
SPECHARVEST PARSE CONTEXT
-------------------------
The mutable state of a single file's parse: the open scope stack and
the let-binding table. One instance is created per source file and
dropped when that file is done.

Author: SpecHarvest Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from typing import Dict, List

from specharvest.core.models import ScopeFrame


@dataclass
class ParseContext:
    """
    Threaded through the segmenter and the request parser.
    """
    filename: str
    scopes: List[ScopeFrame] = field(default_factory=list)   # Lexical nesting, outermost first
    let_bindings: Dict[str, str] = field(default_factory=dict)  # name -> bound expression text
    strict_match_headers: bool = False   # Flag blocks whose matchHeaders list is unresolvable

    def close_scopes(self, indent: int):
        """Pops every scope opened at `indent` or deeper."""
        while self.scopes and self.scopes[-1].indent >= indent:
            self.scopes.pop()

    def open_scope(self, indent: int, text: str):
        self.close_scopes(indent)
        self.scopes.append(ScopeFrame(indent=indent, text=text))

    def bind(self, name: str, expr: str):
        self.let_bindings[name] = expr.strip()

    def scope_path(self) -> List[str]:
        return [frame.text for frame in self.scopes if frame.text]
