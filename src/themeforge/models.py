"""
Data models for quiz datasets.

These models describe the two artifact kinds produced by the generator:
canonical datasets (reference-only entity dictionaries) and themes
(quiz-ready answer sets). Field order here is the serialized key order.
"""

import re

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Patterns
# =============================================================================

SNAKE_CASE_RE = re.compile(r"^[a-z][a-z0-9]*(_[a-z0-9]+)*$")
ENTITY_CODE_RE = re.compile(r"^[A-Z]{2}$")
SCHEMA_TAG_RE = re.compile(r"^[a-z][a-z0-9_]*_v[0-9]+$")

SCHEMA_VERSION = 1


def schema_tag(dataset_id: str, version: int = SCHEMA_VERSION) -> str:
    """Build the schema tag for a canonical dataset (e.g. "countries_base_v1")."""
    return f"{dataset_id}_v{version}"


# =============================================================================
# Canonical Dictionary
# =============================================================================

class EntityRecord(BaseModel):
    """A single canonical dictionary row.

    Unknown attributes are stored as None and serialized as null. They are
    never defaulted to False or an empty string.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="ISO 3166-1 alpha-2 code, two uppercase letters")
    label_primary: str = Field(description="Localized (Japanese) display name")
    label_fallback: str = Field(description="English common name")
    region: str | None = Field(default=None, description="Broad region (continent)")
    subregion: str | None = Field(default=None, description="Finer sub-region")
    trait_flag: bool | None = Field(default=None, description="Landlocked flag")
    membership_flag: bool | None = Field(default=None, description="UN membership flag")
    capital: str | None = Field(default=None, description="Capital city name")


class CanonicalDataset(BaseModel):
    """A canonical dictionary, entities sorted by code."""
    id: str = Field(description="Dataset identifier (snake_case)")
    schema_: str = Field(alias="schema", description='Schema tag, "<id>_v<N>"')
    entities: tuple[EntityRecord, ...] = Field(default=(), description="Entities sorted by id")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_artifact(self) -> dict:
        """Convert to the JSON artifact shape."""
        return {
            "id": self.id,
            "schema": self.schema_,
            "entities": [e.model_dump() for e in self.entities],
        }


# =============================================================================
# Themes
# =============================================================================

class ThemeSpec(BaseModel):
    """A quiz-ready theme: a named set of acceptable answers."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(description="Theme identifier (snake_case)")
    title: str = Field(description="Human-readable title")
    category_id: str = Field(alias="categoryId", description="Category identifier (snake_case)")
    category_title: str = Field(alias="categoryTitle", description="Category display title")
    answers: tuple[str, ...] = Field(default=(), description="Unique, non-blank answers in display order")

    def to_artifact(self) -> dict:
        """Convert to the JSON artifact shape."""
        return {
            "id": self.id,
            "title": self.title,
            "categoryId": self.category_id,
            "categoryTitle": self.category_title,
            "answers": list(self.answers),
        }


class ManifestEntry(BaseModel):
    """One row of the theme manifest written next to the theme artifacts."""
    id: str
    title: str
    category_id: str = Field(alias="categoryId")
    category_title: str = Field(alias="categoryTitle")
    path: str
    answer_count: int = Field(alias="answerCount", ge=1)

    model_config = ConfigDict(populate_by_name=True)

    def to_artifact(self) -> dict:
        return self.model_dump(by_alias=True)


__all__ = [
    "SNAKE_CASE_RE",
    "ENTITY_CODE_RE",
    "SCHEMA_TAG_RE",
    "SCHEMA_VERSION",
    "schema_tag",
    "EntityRecord",
    "CanonicalDataset",
    "ThemeSpec",
    "ManifestEntry",
]
