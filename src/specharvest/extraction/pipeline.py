#!/usr/bin/env python3
"""
SPECHARVEST EXTRACTION PIPELINE - The Coordinator
-------------------------------------------------
Runs one spec file through the extraction phases in a fixed order:

  segmentation -> comment stripping -> triage -> assertion dispatch
  -> (split) -> request/assertion parsing -> TestCase assembly

Every leaf block ends up as exactly one outcome per assertion span:
a TestCase or a FlaggedTest. Nothing is dropped and nothing raises.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import logging
import re
from typing import List, Optional, Tuple

from specharvest.core.models import FlaggedTest, ParseResult, RawBlock, TestCase
from specharvest.extraction.assertion import parse_expected
from specharvest.extraction.context import ParseContext
from specharvest.extraction.lexer import STRING_LITERAL, strip_comments
from specharvest.extraction.request import parse_request
from specharvest.extraction.segmenter import SpecSegmenter
from specharvest.extraction.splitter import numbered, split_safely
from specharvest.extraction.triage import (
    ASSERTION_SEPARATOR,
    REASON_MUTATIONS,
    REASON_NO_ASSERTION,
    REASON_PARSE_FAILURE,
    REASON_SPLIT_PARSE_FAILURE,
    count_assertions,
    find_disallowed,
)

logger = logging.getLogger("specharvest.pipeline")

_LEAF_HEADER = re.compile(rf"^\s*it\s+{STRING_LITERAL}")


def spec_file_name(filename: str) -> str:
    """`QuerySpec.hs` -> `Query`."""
    name = re.sub(r"Spec\.hs$", "", filename)
    return re.sub(r"\.hs$", "", name)


class ExtractionPipeline:
    """
    Stateless between files: every call to run() builds its own ParseContext.
    """

    def __init__(self, strict_match_headers: bool = False):
        self.segmenter = SpecSegmenter()
        self.strict_match_headers = strict_match_headers

    def run(self, filename: str, source: str, config: str = "default") -> ParseResult:
        context = ParseContext(filename=filename, strict_match_headers=self.strict_match_headers)
        result = ParseResult(file=spec_file_name(filename), config=config)

        for block in self.segmenter.segment(source, context):
            tests, flagged = self.process_block(block, context)
            result.tests.extend(tests)
            result.flagged.extend(flagged)

        logger.debug(f"{filename}: {len(result.tests)} tests, {len(result.flagged)} flagged")
        return result

    def process_block(
        self, block: RawBlock, context: ParseContext
    ) -> Tuple[List[TestCase], List[FlaggedTest]]:
        description = list(block.description)
        source = block.text.strip()
        cleaned = strip_comments(block.text)

        def flag(reason: str):
            return [], [FlaggedTest(description, reason, block.line, source)]

        # --- PHASE 1: TRIAGE ---
        reason = find_disallowed(cleaned)
        if reason:
            return flag(reason)

        # --- PHASE 2: ASSERTION DISPATCH ---
        assertions = count_assertions(cleaned)
        if assertions == 0:
            return flag(REASON_NO_ASSERTION)

        body = _LEAF_HEADER.sub("", cleaned, count=1)

        if assertions == 1:
            test = self.parse_single(body, description, context)
            return ([test], []) if test else flag(REASON_PARSE_FAILURE)

        # --- PHASE 3: SPLIT ---
        spans = split_safely(body)
        if spans is None:
            return flag(REASON_MUTATIONS)
        if len(spans) == 1:
            # Several assertions that cannot be attributed to separate requests
            return flag(REASON_SPLIT_PARSE_FAILURE)

        tests: List[TestCase] = []
        flagged: List[FlaggedTest] = []
        for index, span in enumerate(spans, 1):
            span_desc = numbered(description, index)
            test = None
            if count_assertions(span) == 1:
                test = self.parse_single(span, span_desc, context)
            if test:
                tests.append(test)
            else:
                flagged.append(FlaggedTest(span_desc, REASON_SPLIT_PARSE_FAILURE, block.line, span.strip()))
        return tests, flagged

    def parse_single(
        self, text: str, description: List[str], context: ParseContext
    ) -> Optional[TestCase]:
        """Parses `<request> `shouldRespondWith` <expected>`; None on failure."""
        at = text.find(ASSERTION_SEPARATOR)
        if at == -1:
            return None

        request = parse_request(text[:at], context.let_bindings)
        if request is None:
            return None

        expected = parse_expected(
            text[at + len(ASSERTION_SEPARATOR):],
            strict_match_headers=context.strict_match_headers,
        )
        if expected is None:
            return None

        return TestCase(description=description, request=request, expected=expected)
