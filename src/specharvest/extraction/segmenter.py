#!/usr/bin/env python3
"""
SPECHARVEST SEGMENTER - Block Collector (Phase 1.2)
---------------------------------------------------
Indentation-driven state machine that turns a flat spec file into leaf
`it` blocks, each carrying its full describe/context path.

States:
  scanning          skip boilerplate, track scopes and `let` bindings
  collecting-block  gather lines deeper than the current `it`

A scope or leaf declared at indent i closes every open scope at indent
>= i, so same-indent declarations are siblings, never children.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import logging
import re
from typing import Iterator, List

from specharvest.core.models import RawBlock, SourceLine
from specharvest.extraction.context import ParseContext
from specharvest.extraction.lexer import STRING_LITERAL

logger = logging.getLogger("specharvest.segmenter")

BOILERPLATE = re.compile(r"^(?:module |import |spec\s*::|\{-#|--|spec\s*=)")
LET_BINDING = re.compile(r"^let\s+(\w+)\s*=\s*(.+)")
SCOPE_DECL = re.compile(rf"^(?:describe|context)\s+{STRING_LITERAL}")
LEAF_DECL = re.compile(rf"^it\s+{STRING_LITERAL}")


def to_source_lines(source: str) -> List[SourceLine]:
    """Splits text into SourceLines; blank lines carry no indent."""
    lines = []
    for i, raw in enumerate(source.replace("\r\n", "\n").split("\n"), 1):
        content = raw.lstrip()
        indent = len(raw) - len(content) if content else None
        lines.append(SourceLine(line_no=i, indent=indent, text=raw))
    return lines


class SpecSegmenter:
    """
    Walks the source once and yields RawBlocks in source order.
    Scope and binding state live on the ParseContext, never on the segmenter.
    """

    def segment(self, source: str, context: ParseContext) -> Iterator[RawBlock]:
        lines = to_source_lines(source)
        i = 0

        while i < len(lines):
            line = lines[i]
            if line.indent is None:
                i += 1
                continue

            stripped = line.text.lstrip()

            # 1. Module headers, imports, signatures, pragmas, comments
            if BOILERPLATE.match(stripped):
                i += 1
                continue

            # 2. let name = expr (last write wins)
            let_match = LET_BINDING.match(stripped)
            if let_match:
                context.bind(let_match.group(1), let_match.group(2))
                i += 1
                continue

            # 3. describe / context
            scope_match = SCOPE_DECL.match(stripped)
            if scope_match:
                context.open_scope(line.indent, scope_match.group(1))
                i += 1
                continue

            # 4. it -> collecting-block
            leaf_match = LEAF_DECL.match(stripped)
            if leaf_match:
                context.close_scopes(line.indent)
                block, i = self._collect(lines, i)
                yield RawBlock(
                    description=tuple(self._description(context, leaf_match.group(1), line)),
                    text=block,
                    line=line.line_no,
                )
                continue

            i += 1

    def _collect(self, lines: List[SourceLine], start: int):
        """
        Gathers the leaf line and every following line indented deeper than
        it. Blank lines are always taken. Returns (text, index of the
        terminating line).
        """
        leaf_indent = lines[start].indent
        collected = [lines[start].text]
        i = start + 1
        while i < len(lines):
            nxt = lines[i]
            if nxt.indent is not None and nxt.indent <= leaf_indent:
                break
            collected.append(nxt.text)
            i += 1
        return "\n".join(collected), i

    def _description(self, context: ParseContext, leaf_text: str, line: SourceLine) -> List[str]:
        path = context.scope_path()
        if not leaf_text:
            logger.debug(f"{context.filename}:{line.line_no}: unnamed it block")
            leaf_text = f"line {line.line_no}"
        return path + [leaf_text]


def count_leaf_declarations(source: str) -> int:
    """Number of `it` declarations the segmenter will report for `source`."""
    context = ParseContext(filename="<count>")
    return sum(1 for _ in SpecSegmenter().segment(source, context))
