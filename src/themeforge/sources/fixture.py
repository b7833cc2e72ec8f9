"""
Fixture source for hand-maintained themes stored in local JSON/YAML files.

Expected file structure:
```yaml
themes:
  - id: demo_fruits
    title: フルーツ
    categoryId: demo
    categoryTitle: デモ
    answers: [りんご, バナナ]
```
Answers are passed through untouched; trimming and deduplication are done
by the quality gate.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .base import SourceBase, SourceCapability, SourceError, ThemeCandidate

logger = logging.getLogger(__name__)

BUNDLED_FIXTURE = Path(__file__).resolve().parent.parent / "data" / "demo_themes.yaml"


class FixtureSource(SourceBase):
    """Theme source backed by a local JSON or YAML file."""

    capability = SourceCapability.THEMES
    SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}

    def __init__(self, path: Path | str = BUNDLED_FIXTURE, source_id: str | None = None):
        """
        Args:
            path: Path to the fixture file (defaults to the bundled demo themes)
            source_id: Optional id; derived from the filename if omitted
        """
        self.path = Path(path)
        if source_id is None:
            source_id = f"fixture-{self.path.stem.replace('_', '-').lower()}"
        super().__init__(source_id=source_id, name=f"Fixture ({self.path.name})")

    async def fetch_themes(self) -> list[ThemeCandidate]:
        """Read theme candidates from the fixture file."""
        if not self.path.exists():
            raise SourceError(f"Fixture file not found: {self.path}")

        suffix = self.path.suffix.lower()
        if suffix not in self.SUPPORTED_EXTENSIONS:
            raise SourceError(
                f"Unsupported fixture format: {suffix}. "
                f"Supported: {', '.join(sorted(self.SUPPORTED_EXTENSIONS))}"
            )

        try:
            raw_content = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise SourceError(f"Failed to read fixture {self.path}: {e}") from e

        data = self._parse(raw_content, suffix)

        themes = data.get("themes") if isinstance(data, dict) else None
        if not isinstance(themes, list):
            raise SourceError(f"Fixture {self.path} must contain a 'themes' list")

        logger.info("Loaded %d themes from %s", len(themes), self.path.name)
        return themes

    def _parse(self, raw_content: str, suffix: str) -> Any:
        try:
            if suffix == ".json":
                return json.loads(raw_content)
            return yaml.safe_load(raw_content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SourceError(f"Invalid {suffix.lstrip('.').upper()} in {self.path}: {e}") from e
