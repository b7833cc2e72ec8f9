"""
Theme source that derives themes from the canonical country dictionary.

The pipeline hands over the dictionary ingested earlier in the same run.
When no canonical source ran (e.g. ``--skip-remote``), the previously
written artifact is read from disk instead.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from ..derive import MIN_ANSWERS, derive_themes
from ..models import CanonicalDataset, ThemeSpec
from .base import SourceBase, SourceCapability, SourceError

logger = logging.getLogger(__name__)


class DerivedThemesSource(SourceBase):
    """Produces continent/sub-region/landlocked/initial themes."""

    capability = SourceCapability.THEMES
    consumes_canonical = True

    def __init__(
        self,
        canonical_path: Path | str,
        dataset_id: str = "countries_base",
        min_answers: int = MIN_ANSWERS,
        require_membership: bool = True,
    ):
        """
        Args:
            canonical_path: Artifact to read when no in-run dataset is provided
            dataset_id: Canonical dataset this source consumes
            min_answers: Minimum distinct answers per derived theme
            require_membership: Only include entities with membership_flag True
        """
        super().__init__(source_id=f"derived-{dataset_id.replace('_', '-')}", name=f"Derived from {dataset_id}")
        self.canonical_path = Path(canonical_path)
        self.dataset_id = dataset_id
        self.min_answers = min_answers
        self.require_membership = require_membership
        self._dataset: CanonicalDataset | None = None

    def use_dataset(self, dataset: CanonicalDataset) -> None:
        """Derive from an in-memory dataset instead of the artifact on disk."""
        self._dataset = dataset

    async def fetch_themes(self) -> list[ThemeSpec]:
        dataset = self._dataset if self._dataset is not None else self._load_from_disk()
        return derive_themes(
            dataset,
            min_answers=self.min_answers,
            require_membership=self.require_membership,
        )

    def _load_from_disk(self) -> CanonicalDataset:
        logger.info("No in-run %s dataset, reading %s", self.dataset_id, self.canonical_path)
        try:
            data = json.loads(self.canonical_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise SourceError(
                f"Canonical dataset not found: {self.canonical_path}. "
                "Run the generator with the REST Countries source enabled first."
            ) from None
        except (OSError, json.JSONDecodeError) as e:
            raise SourceError(f"Failed to read canonical dataset {self.canonical_path}: {e}") from e

        try:
            return CanonicalDataset.model_validate(data)
        except ValidationError as e:
            raise SourceError(f"Malformed canonical dataset {self.canonical_path}: {e}") from e
