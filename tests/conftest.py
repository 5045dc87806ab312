import os
import sys
from pathlib import Path

import pytest

# Allow running the suite from a checkout without installing the package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def query_spec_source() -> str:
    return (FIXTURES / "QuerySpec.hs").read_text(encoding="utf-8")


@pytest.fixture
def main_hs_source() -> str:
    return (FIXTURES / "Main.hs").read_text(encoding="utf-8")
