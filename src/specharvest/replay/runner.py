#!/usr/bin/env python3
"""
SPECHARVEST REPLAY RUNNER
-------------------------
Replays loaded specs against a target and records one outcome per test.
A failing or erroring test never stops the run.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import logging
from typing import Any, Dict, List, Sequence

import httpx

from specharvest.core.errors import ReplayAssertionError
from specharvest.core.models import TestSpec
from specharvest.core.settings import ReplaySettings
from specharvest.replay.client import Target, build_client, send
from specharvest.replay.loader import iter_cases
from specharvest.replay.matchers import check_response

logger = logging.getLogger("specharvest.replay")


class ReplayRunner:
    def __init__(self, target: Target, settings: ReplaySettings):
        self.target = target
        self.settings = settings

    def run(self, specs: Sequence[TestSpec]) -> List[Dict[str, Any]]:
        outcomes = []
        with build_client(self.target, timeout=self.settings.timeout) as client:
            for spec, test in iter_cases(specs, self.settings.skip_tests, self.settings.skip_configs):
                outcome = {
                    "file": spec.file,
                    "config": spec.config,
                    "description": " > ".join(test.description),
                    "passed": False,
                    "error": None,
                }
                try:
                    response = send(client, test.request)
                    check_response(response, test.expected)
                    outcome["passed"] = True
                except ReplayAssertionError as e:
                    outcome["error"] = str(e)
                except httpx.HTTPError as e:
                    logger.error(f"Request failed for {outcome['description']}: {e}")
                    outcome["error"] = f"request error: {e}"
                outcomes.append(outcome)
        return outcomes

    @staticmethod
    def summarize(outcomes: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        per_file: Dict[str, Dict[str, int]] = {}
        for o in outcomes:
            entry = per_file.setdefault(o["file"], {"passed": 0, "failed": 0})
            entry["passed" if o["passed"] else "failed"] += 1
        passed = sum(1 for o in outcomes if o["passed"])
        return {
            "total": len(outcomes),
            "passed": passed,
            "failed": len(outcomes) - passed,
            "files": per_file,
        }
