"""
Pytest configuration and fixtures for themeforge tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path to allow importing themeforge
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from themeforge.config import PipelineConfig  # noqa: E402


@pytest.fixture
def config(tmp_path: Path) -> PipelineConfig:
    """Config writing into a temporary datasets directory."""
    return PipelineConfig(
        datasets_dir=tmp_path / "datasets",
        cldr_path=tmp_path / "territories.json",
    )
