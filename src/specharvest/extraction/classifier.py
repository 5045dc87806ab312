#!/usr/bin/env python3
"""
SPECHARVEST CLASSIFIER - Config Mapper
--------------------------------------
Reads the upstream test driver (Main.hs) and works out which server
configuration each spec file runs under.

  specs = uncurry describe <$> [("Feature.Query.QuerySpec", ...), ...]   -> "default"
  before maxRowsApp $ describe "Feature.Query.LimitedSpec" ...            -> "max-rows"

Pure string matching, independent of the block segmenter.

Author: SpecHarvest Team
Date: 2026-10-19
"""

import re
from typing import Dict, Pattern, Tuple

DEFAULT_CONFIG = "default"

_DEFAULT_LIST = re.compile(r"specs\s*=\s*uncurry\s+describe\s*<\$>\s*\[(.*?)\]", re.DOTALL)
_DEFAULT_ENTRY = re.compile(r'\("([^"]+)"\s*,\s*\S+\)')


def _fixture(name: str) -> Pattern[str]:
    return re.compile(rf'before\s+{name}.*?describe\s+"([^"]+)"', re.DOTALL)


FIXTURE_CONFIGS: Tuple[Tuple[Pattern[str], str], ...] = (
    (_fixture("maxRowsApp"), "max-rows"),
    (_fixture("planEnabledApp"), "plan-enabled"),
    (_fixture("aggregatesEnabled"), "aggregates-enabled"),
    (_fixture("noAnonApp"), "no-anon"),
    (_fixture("pgSafeUpdateApp"), "pg-safe-update"),
    (_fixture("serverTiming"), "server-timing"),
    (_fixture("unicodeApp"), "unicode"),
    (_fixture("multipleSchemaApp"), "multiple-schema"),
    (_fixture("obsApp"), "observability"),
)


class ConfigClassifier:
    """
    Maps spec module names to configuration tags. Fixture overrides win
    over the default list.
    """

    def __init__(self, mapping_source: str = ""):
        self.config_map: Dict[str, str] = self.parse(mapping_source)

    @staticmethod
    def parse(mapping_source: str) -> Dict[str, str]:
        config_map: Dict[str, str] = {}
        if not mapping_source:
            return config_map

        block = _DEFAULT_LIST.search(mapping_source)
        if block:
            for entry in _DEFAULT_ENTRY.finditer(block.group(1)):
                config_map[entry.group(1)] = DEFAULT_CONFIG

        for pattern, config in FIXTURE_CONFIGS:
            for match in pattern.finditer(mapping_source):
                config_map[match.group(1)] = config

        return config_map

    def classify(self, spec_name: str) -> str:
        """
        Config tag for a spec module name such as `QuerySpec`.
        Exact last-segment matches beat substring matches.
        """
        for key, config in self.config_map.items():
            if key.split(".")[-1] == spec_name:
                return config

        short = re.sub(r"Spec$", "", spec_name)
        for key, config in self.config_map.items():
            if spec_name in key or (short and short in key):
                return config

        return DEFAULT_CONFIG
