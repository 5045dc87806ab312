#!/usr/bin/env python3
"""
SPECHARVEST SPEC LOADER
-----------------------
Reads extracted spec JSON back from disk and applies the replay filters.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import json
import logging
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from specharvest.core.errors import SpecLoadError
from specharvest.core.models import TestCase, TestSpec

logger = logging.getLogger("specharvest.replay")


def load_specs(
    specs_dir: str,
    only: Optional[Sequence[str]] = None,
    skip: Optional[Sequence[str]] = None,
) -> List[TestSpec]:
    """
    Loads every `*.json` spec in `specs_dir`, ignoring `_`-prefixed
    artifacts. `only` and `skip` are case-insensitive substrings of the
    spec's `file` field.
    """
    root = Path(specs_dir)
    if not root.is_dir():
        logger.warning(f"No specs directory found at {root}")
        return []

    specs = []
    for path in sorted(root.glob("*.json")):
        if path.name.startswith("_"):
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            specs.append(TestSpec(
                file=data["file"],
                config=data.get("config", "default"),
                tests=[TestCase.from_dict(t) for t in data.get("tests", [])],
            ))
        except (OSError, ValueError, KeyError, TypeError, IndexError) as e:
            raise SpecLoadError(f"Cannot load spec {path.name}: {e}")

    if only:
        wanted = [name.lower() for name in only]
        specs = [s for s in specs if any(name in s.file.lower() for name in wanted)]
    if skip:
        unwanted = [name.lower() for name in skip]
        specs = [s for s in specs if not any(name in s.file.lower() for name in unwanted)]

    return specs


def iter_cases(
    specs: Sequence[TestSpec],
    skip_tests: Optional[Sequence[str]] = None,
    skip_configs: Optional[Sequence[str]] = None,
) -> Iterator[Tuple[TestSpec, TestCase]]:
    """Yields (spec, test) pairs that survive the config and description filters."""
    skip_tests = list(skip_tests or [])
    skip_configs = set(skip_configs or [])

    for spec in specs:
        if spec.config in skip_configs:
            continue
        for test in spec.tests:
            label = " > ".join(test.description)
            if any(pattern in label for pattern in skip_tests):
                continue
            yield spec, test
