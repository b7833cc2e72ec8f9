"""
Abstract base class for dataset sources.

Every source declares one capability: it either produces quiz themes or
canonical dictionary candidates. The pipeline dispatches on that tag
instead of probing for methods.
"""

from abc import ABC
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..models import ThemeSpec


class SourceError(Exception):
    """Error fetching, reading or parsing source data."""
    pass


class SourceCapability(str, Enum):
    """What a source produces."""
    THEMES = "themes"
    CANONICAL = "canonical"


ThemeCandidate = ThemeSpec | Mapping[str, Any]


@dataclass
class CanonicalBatch:
    """Raw canonical candidate rows for one dataset id.

    Rows use the artifact keys (id, label_primary, label_fallback, region,
    subregion, trait_flag, membership_flag, capital) but are not yet
    type-checked; that is the ingestor's job.
    """
    id: str
    entities: list[Mapping[str, Any]] = field(default_factory=list)


class SourceBase(ABC):
    """
    Base class for all sources.

    Subclasses set ``capability`` and implement the matching coroutine:
    ``fetch_themes`` for THEMES, ``fetch_datasets`` for CANONICAL.
    Sources only read; they never write artifacts.
    """

    capability: SourceCapability | None = None

    def __init__(self, source_id: str, name: str | None = None):
        """
        Initialize the source.

        Args:
            source_id: Unique identifier for this source (e.g., "rest-countries")
            name: Human-readable name for logging
        """
        self.source_id = source_id
        self.name = name or source_id

    async def fetch_themes(self) -> Sequence[ThemeCandidate]:
        """
        Produce theme candidates.

        Raises:
            SourceError: If the source cannot be read
        """
        raise NotImplementedError(f"{self.source_id} does not produce themes")

    async def fetch_datasets(self) -> Sequence[CanonicalBatch]:
        """
        Produce canonical dictionary candidates.

        Raises:
            SourceError: If the source cannot be read
        """
        raise NotImplementedError(f"{self.source_id} does not produce canonical datasets")

    async def close(self) -> None:
        """
        Clean up any resources (e.g., HTTP connections).

        Override this if your source needs cleanup.
        """
        pass

    def __repr__(self) -> str:
        capability = self.capability.value if self.capability else None
        return f"{self.__class__.__name__}(id={self.source_id!r}, capability={capability!r})"


__all__ = [
    "SourceError",
    "SourceCapability",
    "ThemeCandidate",
    "CanonicalBatch",
    "SourceBase",
]
