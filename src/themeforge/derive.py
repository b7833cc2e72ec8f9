"""
Theme derivation from the canonical country dictionary.

Themes are generated deterministically along four axes:

- continent (``countries_continent_<slug>``)
- sub-region (``countries_subregion_<slug>``)
- landlocked flag (``countries_landlocked_true`` / ``_false``)
- initial of the Japanese name, both the exact character
  (``countries_initial_<token>``) and the kana row (``countries_kana_row_<row>``)

Answers are the localized names of member countries, deduplicated and
sorted. Groups with fewer than ``min_answers`` names are not emitted.
Only UN members take part; countries with an unknown membership flag are
left out rather than assumed to be members. Titles are localized only
through LABEL_JA; unknown labels are shown as-is.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from types import MappingProxyType

from .models import CanonicalDataset, EntityRecord, ThemeSpec
from .text import (
    get_initial,
    initial_to_id_token,
    kana_row,
    kana_row_label,
    slugify_snake,
    sort_localized,
)

logger = logging.getLogger(__name__)

MIN_ANSWERS = 10
CATEGORY_ID = "geography"
CATEGORY_TITLE = "地理"

LABEL_JA = MappingProxyType({
    "Asia": "アジア",
    "Europe": "ヨーロッパ",
    "Africa": "アフリカ",
    "Oceania": "オセアニア",
    "Americas": "アメリカ大陸",
    "South-Eastern Asia": "東南アジア",
    "Eastern Asia": "東アジア",
    "Western Asia": "西アジア",
    "North America": "北アメリカ",
    "South America": "南アメリカ",
    "Antarctica": "南極",
})

LANDLOCKED_TITLES = MappingProxyType({
    True: "内陸国",
    False: "沿岸国",
})


def label_ja(raw: str) -> str:
    """Localized label for a region name, or the name itself if unknown."""
    text = raw.strip()
    return LABEL_JA.get(text, text)


def unique_sorted(names: Iterable[str]) -> list[str]:
    """Trim, drop blanks, dedupe and sort names for display."""
    return sort_localized({n.strip() for n in names if n and n.strip()})


class ThemeDeriver:
    """
    Groups the entities of one canonical dataset and builds themes.

    Usage:
        themes = ThemeDeriver(dataset).derive()
    """

    def __init__(
        self,
        dataset: CanonicalDataset,
        min_answers: int = MIN_ANSWERS,
        require_membership: bool = True,
    ):
        self.dataset = dataset
        self.min_answers = min_answers
        self.require_membership = require_membership

    def eligible_entities(self) -> list[EntityRecord]:
        """Entities allowed into derived themes."""
        if not self.require_membership:
            return list(self.dataset.entities)
        return [e for e in self.dataset.entities if e.membership_flag is True]

    def derive(self) -> list[ThemeSpec]:
        by_region: dict[str, list[str]] = defaultdict(list)
        by_subregion: dict[str, list[str]] = defaultdict(list)
        by_landlocked: dict[bool, list[str]] = defaultdict(list)
        by_initial: dict[str, list[str]] = defaultdict(list)
        by_row: dict[str, list[str]] = defaultdict(list)

        entities = self.eligible_entities()
        for entity in entities:
            name = entity.label_primary.strip()
            if not name:
                continue
            if entity.region:
                by_region[entity.region].append(name)
            if entity.subregion:
                by_subregion[entity.subregion].append(name)
            # None means unknown and must not land in the coastal group
            if entity.trait_flag is not None:
                by_landlocked[entity.trait_flag].append(name)
            initial = get_initial(name)
            if initial:
                by_initial[initial].append(name)
                row = kana_row(initial)
                if row is not None:
                    by_row[row].append(name)

        themes: list[ThemeSpec] = []
        for region, names in by_region.items():
            self._add(themes, f"countries_continent_{slugify_snake(region)}", f"{label_ja(region)}の国", names)
        for subregion, names in by_subregion.items():
            self._add(
                themes, f"countries_subregion_{slugify_snake(subregion)}", f"{label_ja(subregion)}の国", names
            )
        for landlocked, names in by_landlocked.items():
            self._add(
                themes, f"countries_landlocked_{'true' if landlocked else 'false'}",
                LANDLOCKED_TITLES[landlocked], names,
            )
        for initial, names in by_initial.items():
            token = initial_to_id_token(initial)
            if not token:
                continue
            self._add(themes, f"countries_initial_{token}", f"{initial}で始まる国", names)
        for row, names in by_row.items():
            self._add(themes, f"countries_kana_row_{row}", f"{kana_row_label(row)}で始まる国", names)

        themes.sort(key=lambda t: t.id)
        logger.info(
            "Derived %d themes from %s (%d of %d entities eligible)",
            len(themes), self.dataset.id, len(entities), len(self.dataset.entities),
        )
        return themes

    def _add(self, themes: list[ThemeSpec], theme_id: str, title: str, names: list[str]) -> None:
        answers = unique_sorted(names)
        if len(answers) < self.min_answers:
            logger.debug("Skipping %s: %d answers (< %d)", theme_id, len(answers), self.min_answers)
            return

        themes.append(
            ThemeSpec(
                id=theme_id,
                title=title,
                category_id=CATEGORY_ID,
                category_title=CATEGORY_TITLE,
                answers=tuple(answers),
            )
        )


def derive_themes(
    dataset: CanonicalDataset,
    min_answers: int = MIN_ANSWERS,
    require_membership: bool = True,
) -> list[ThemeSpec]:
    """Derive all themes from a canonical dataset, sorted by id."""
    return ThemeDeriver(dataset, min_answers=min_answers, require_membership=require_membership).derive()
