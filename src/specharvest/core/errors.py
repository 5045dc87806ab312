"""
SPECHARVEST ERRORS
------------------
Exceptions raised at the outer layers (settings, spec loading, replay).
The extraction core never raises: it reports absence with None and
declines blocks with FlaggedTest records.
"""

from typing import List


class SpecHarvestError(Exception):
    """Base class for all specharvest errors."""


class ConfigError(SpecHarvestError):
    """The settings file is missing, malformed or has invalid values."""


class SpecLoadError(SpecHarvestError):
    """An extracted spec JSON file could not be read back."""


class ReplayAssertionError(SpecHarvestError):
    """A live response did not satisfy the expected side of a test case."""

    def __init__(self, mismatches: List[str]):
        self.mismatches = list(mismatches)
        super().__init__("; ".join(self.mismatches))
