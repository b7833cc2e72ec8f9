"""
Read-side access to generated artifacts.

The quiz app treats artifacts as pre-validated input, but it must fail
closed: a missing or malformed artifact raises ArtifactError instead of
being replaced by placeholder data.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from .models import CanonicalDataset, ManifestEntry, ThemeSpec
from .persistence import MANIFEST_FILENAME

logger = logging.getLogger(__name__)


class ArtifactError(Exception):
    """A generated artifact is missing or does not match its schema."""
    pass


class ThemeCatalog:
    """Loads themes and canonical datasets from a datasets directory."""

    def __init__(self, datasets_dir: Path | str, canonical_dirname: str = "canonical"):
        self.datasets_dir = Path(datasets_dir)
        self.canonical_dir = self.datasets_dir / canonical_dirname

    def list_themes(self) -> list[ManifestEntry]:
        """All themes listed in the manifest, sorted by id."""
        data = self._read_json(self.datasets_dir / MANIFEST_FILENAME)
        rows = data.get("themes") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise ArtifactError(f"Manifest {MANIFEST_FILENAME} has no 'themes' list")
        entries = [self._parse(ManifestEntry, row, MANIFEST_FILENAME) for row in rows]
        return sorted(entries, key=lambda e: e.id)

    def load_theme(self, theme_id: str) -> ThemeSpec:
        """
        Load a single theme.

        Raises:
            ArtifactError: If the file is missing, unreadable, malformed,
                           stored under another id or has no answers
        """
        path = self.datasets_dir / f"{theme_id}.json"
        theme = self._parse(ThemeSpec, self._read_json(path), path.name)
        if theme.id != theme_id:
            raise ArtifactError(f"{path.name} contains theme {theme.id!r}, expected {theme_id!r}")
        if not theme.answers:
            raise ArtifactError(f"{path.name} has no answers")
        return theme

    def load_dataset(self, dataset_id: str) -> CanonicalDataset:
        """Load a canonical dataset (reference data, not a quiz)."""
        path = self.canonical_dir / f"{dataset_id}.json"
        dataset = self._parse(CanonicalDataset, self._read_json(path), path.name)
        if dataset.id != dataset_id:
            raise ArtifactError(f"{path.name} contains dataset {dataset.id!r}, expected {dataset_id!r}")
        return dataset

    @staticmethod
    def _read_json(path: Path) -> Any:
        logger.debug("Loading %s", path)
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            raise ArtifactError(f"Artifact not found: {path}") from None
        except json.JSONDecodeError as e:
            raise ArtifactError(f"Invalid JSON in {path}: {e}") from None
        except OSError as e:
            raise ArtifactError(f"Failed to read {path}: {e}") from None

    @staticmethod
    def _parse(model: type[BaseModel], data: Any, name: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ArtifactError(f"Malformed artifact {name}: {e}") from None
