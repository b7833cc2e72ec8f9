"""
Unicode CLDR territory names (ja) source.

Reads a local copy of ``cldr-localenames-full/main/ja/territories.json`` so
that generation works without network access.
"""

import json
import logging
import re
from pathlib import Path

from ..models import ThemeSpec
from ..text import sort_localized
from .base import SourceBase, SourceCapability, SourceError

logger = logging.getLogger(__name__)

DEFAULT_CLDR_PATH = Path("data") / "cldr" / "ja" / "territories.json"
ISO_ALPHA2_RE = re.compile(r"^[A-Z]{2}$")


class CldrTerritoriesSource(SourceBase):
    """Produces the "countries_world" theme from CLDR territory names."""

    capability = SourceCapability.THEMES

    def __init__(self, path: Path | str = DEFAULT_CLDR_PATH, locale: str = "ja"):
        super().__init__(source_id=f"cldr-{locale}-territories", name=f"CLDR territories ({locale})")
        self.path = Path(path)
        self.locale = locale

    async def fetch_themes(self) -> list[ThemeSpec]:
        territories = self._read_territories()

        names: list[str] = []
        seen: set[str] = set()
        for key, value in territories.items():
            # Numeric region codes ("001") and alt keys ("GB-alt-short") are excluded
            if not ISO_ALPHA2_RE.match(key):
                continue
            if not isinstance(value, str):
                continue
            name = value.strip()
            if not name or name in seen:
                continue
            seen.add(name)
            names.append(name)

        logger.info("CLDR %s: %d territory names", self.locale, len(names))
        return [
            ThemeSpec(
                id="countries_world",
                title="世界の国",
                category_id="geography",
                category_title="地理",
                answers=tuple(sort_localized(names)),
            )
        ]

    def _read_territories(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise SourceError(
                f"CLDR territories.json not found. Expected path: {self.path}. "
                "Copy main/ja/territories.json from cldr-localenames-full "
                "or set THEMEFORGE_CLDR_PATH."
            ) from None
        except (OSError, json.JSONDecodeError) as e:
            raise SourceError(f"Failed to read CLDR territories from {self.path}: {e}") from e

        try:
            territories = data["main"][self.locale]["localeDisplayNames"]["territories"]
        except (KeyError, TypeError):
            territories = None
        if not isinstance(territories, dict):
            raise SourceError(
                f"CLDR territories not found at main.{self.locale}.localeDisplayNames.territories "
                f"in {self.path}"
            )
        return territories
