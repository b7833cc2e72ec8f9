"""
Dataset sources, in the order the generator runs them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import CanonicalBatch, SourceBase, SourceCapability, SourceError
from .cldr import CldrTerritoriesSource
from .derived import DerivedThemesSource
from .fixture import FixtureSource
from .rest_countries import RestCountriesSource

if TYPE_CHECKING:
    from ..config import PipelineConfig


def default_sources(config: PipelineConfig) -> list[SourceBase]:
    """Build the standard source list. Order matters: derived themes come last."""
    sources: list[SourceBase] = [
        FixtureSource(config.fixture_path),
        CldrTerritoriesSource(config.cldr_path),
    ]
    if not config.skip_remote:
        sources.append(RestCountriesSource(url=config.rest_countries_url, timeout=config.fetch_timeout))
    sources.append(
        DerivedThemesSource(
            canonical_path=config.canonical_dir / f"{config.canonical_dataset_id}.json",
            dataset_id=config.canonical_dataset_id,
            min_answers=config.min_answers,
            require_membership=config.require_membership,
        )
    )
    return sources


__all__ = [
    "CanonicalBatch",
    "SourceBase",
    "SourceCapability",
    "SourceError",
    "CldrTerritoriesSource",
    "DerivedThemesSource",
    "FixtureSource",
    "RestCountriesSource",
    "default_sources",
]
