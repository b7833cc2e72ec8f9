"""
Quality gates applied to every theme and canonical dataset before writing.

Validation never stops at the first problem: every candidate is checked and
every issue is recorded on the RunRegistry, so one run reports all faults.
The pipeline refuses to write anything once the registry has failed.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .models import (
    ENTITY_CODE_RE,
    SCHEMA_TAG_RE,
    SNAKE_CASE_RE,
    CanonicalDataset,
    ThemeSpec,
)
from .text import normalize_answer

logger = logging.getLogger(__name__)


# =============================================================================
# Validation Models
# =============================================================================

class ValidationSeverity(Enum):
    """Severity level for validation issues."""
    ERROR = "error"      # Fails the run
    WARNING = "warning"  # Suspicious, output still written
    INFO = "info"        # Informational note (skipped record, etc.)


@dataclass
class ValidationIssue:
    """A single problem found while collecting or validating."""
    severity: ValidationSeverity
    type: str           # e.g., "duplicate_id", "category_title_conflict"
    message: str        # Human-readable message
    field: str          # e.g., "theme[countries_world].categoryTitle"

    def __str__(self) -> str:
        return f"[{self.type}] {self.field}: {self.message}"


@dataclass
class RunRegistry:
    """
    Accumulator shared by every validation step of a single run.

    Holds the identifier namespace (themes and canonical datasets share it),
    the category id -> title map and all issues found so far. A new registry
    is created per run; nothing here is module-level state.
    """
    ids: dict[str, str] = field(default_factory=dict)  # id -> "theme" | "dataset"
    category_titles: dict[str, str] = field(default_factory=dict)
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        """True if any ERROR-level issue was recorded."""
        return any(i.severity == ValidationSeverity.ERROR for i in self.issues)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    def error(self, type: str, field: str, message: str) -> None:
        """Record a fatal issue and log it."""
        issue = ValidationIssue(ValidationSeverity.ERROR, type, message, field)
        self.issues.append(issue)
        logger.error("%s", issue, extra={"issue_type": type, "issue_field": field})

    def warning(self, type: str, field: str, message: str) -> None:
        issue = ValidationIssue(ValidationSeverity.WARNING, type, message, field)
        self.issues.append(issue)
        logger.warning("%s", issue, extra={"issue_type": type, "issue_field": field})

    def info(self, type: str, field: str, message: str) -> None:
        issue = ValidationIssue(ValidationSeverity.INFO, type, message, field)
        self.issues.append(issue)
        logger.info("%s", issue, extra={"issue_type": type, "issue_field": field})

    def claim_id(self, id: str, kind: str, field: str) -> bool:
        """
        Register an identifier in the shared namespace.

        Returns:
            False (and records an error) if the id is already taken by any
            theme or dataset.
        """
        existing = self.ids.get(id)
        if existing is not None:
            self.error("duplicate_id", field, f'id "{id}" is already used by a {existing}')
            return False
        self.ids[id] = kind
        return True

    def claim_category(self, category_id: str, category_title: str, field: str) -> bool:
        """Register a category title; a different title for a known id is an error."""
        existing = self.category_titles.get(category_id)
        if existing is not None and existing != category_title:
            self.error(
                "category_title_conflict",
                field,
                f'categoryId "{category_id}" has both "{existing}" and "{category_title}"',
            )
            return False
        self.category_titles[category_id] = category_title
        return True


# =============================================================================
# Helpers
# =============================================================================

def is_snake_case(value: Any) -> bool:
    return isinstance(value, str) and SNAKE_CASE_RE.match(value) is not None


def _non_blank(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def find_normalized_collisions(answers: Iterable[str]) -> dict[str, list[str]]:
    """
    Group answers that are different strings but equal after normalize_answer.

    The quiz grades by normalized form, so such answers cannot be told apart.
    """
    groups: dict[str, list[str]] = defaultdict(list)
    for answer in answers:
        groups[normalize_answer(answer)].append(answer)
    return {key: values for key, values in groups.items() if len(values) > 1}


def sanitize_answers(answers: Sequence[Any]) -> list[str]:
    """Trim, drop blanks and non-strings, and dedupe while keeping order."""
    out: list[str] = []
    seen: set[str] = set()
    for answer in answers:
        if not isinstance(answer, str):
            continue
        text = answer.strip()
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
    return out


# =============================================================================
# Theme Gate
# =============================================================================

def validate_theme(candidate: ThemeSpec | Mapping[str, Any], registry: RunRegistry) -> ThemeSpec | None:
    """
    Validate and normalize one theme candidate.

    Args:
        candidate: A ThemeSpec or a raw mapping with the artifact keys
                   (id, title, categoryId, categoryTitle, answers)
        registry: The run registry (ids, category titles, issues)

    Returns:
        The cleaned ThemeSpec, or None if the candidate was rejected.
    """
    if isinstance(candidate, ThemeSpec):
        candidate = candidate.to_artifact()
    if not isinstance(candidate, Mapping):
        registry.error("invalid_theme", "theme", f"expected a mapping, got {type(candidate).__name__}")
        return None

    raw_id = candidate.get("id")
    ctx = f"theme[{raw_id!r}]" if not isinstance(raw_id, str) else f"theme[{raw_id}]"

    theme_id = _non_blank(raw_id)
    if theme_id is None:
        registry.error("missing_id", ctx, "id is empty")
        return None
    if not is_snake_case(raw_id):
        registry.error("invalid_id", f"{ctx}.id", f'id is not snake_case: "{raw_id}"')
        return None
    if not registry.claim_id(theme_id, "theme", f"{ctx}.id"):
        return None

    title = _non_blank(candidate.get("title"))
    if title is None:
        registry.error("missing_title", f"{ctx}.title", "title is empty")
        return None

    category_id = candidate.get("categoryId")
    if _non_blank(category_id) is None:
        registry.error("missing_category_id", f"{ctx}.categoryId", "categoryId is empty")
        return None
    if not is_snake_case(category_id):
        registry.error(
            "invalid_category_id", f"{ctx}.categoryId",
            f'categoryId is not snake_case: "{category_id}"',
        )
        return None

    category_title = _non_blank(candidate.get("categoryTitle"))
    if category_title is None:
        registry.error("missing_category_title", f"{ctx}.categoryTitle", "categoryTitle is empty")
        return None
    if not registry.claim_category(category_id, category_title, f"{ctx}.categoryTitle"):
        return None

    raw_answers = candidate.get("answers")
    if isinstance(raw_answers, (str, bytes)) or not isinstance(raw_answers, Sequence):
        registry.error("invalid_answers", f"{ctx}.answers", "answers is not a list")
        return None
    answers = sanitize_answers(raw_answers)
    if not answers:
        registry.error(
            "empty_answers", f"{ctx}.answers",
            "answers is empty after trimming, blank removal and deduplication",
        )
        return None
    dropped = len(raw_answers) - len(answers)
    if dropped:
        logger.debug("%s: dropped %d blank or duplicate answers", ctx, dropped)

    for normalized, clashing in find_normalized_collisions(answers).items():
        registry.warning(
            "indistinguishable_answers", f"{ctx}.answers",
            f"answers {clashing} are the same after normalization ({normalized!r})",
        )

    return ThemeSpec(
        id=theme_id,
        title=title,
        category_id=category_id,
        category_title=category_title,
        answers=tuple(answers),
    )


# =============================================================================
# Canonical Gate
# =============================================================================

def validate_dataset(dataset: CanonicalDataset, registry: RunRegistry) -> bool:
    """
    Check a canonical dataset before it is written.

    Returns:
        True if no new error was recorded for this dataset.
    """
    ctx = f"dataset[{dataset.id}]"
    errors_before = len(registry.errors)

    if not is_snake_case(dataset.id):
        registry.error("invalid_id", f"{ctx}.id", f'id is not snake_case: "{dataset.id}"')
    else:
        registry.claim_id(dataset.id, "dataset", f"{ctx}.id")

    if not SCHEMA_TAG_RE.match(dataset.schema_) or not dataset.schema_.startswith(f"{dataset.id}_v"):
        registry.error("invalid_schema", f"{ctx}.schema", f'unexpected schema tag "{dataset.schema_}"')

    seen: set[str] = set()
    for entity in dataset.entities:
        field = f"{ctx}.entities[{entity.id}]"
        if not ENTITY_CODE_RE.match(entity.id):
            registry.error("invalid_code", field, f'code does not match [A-Z]{{2}}: "{entity.id}"')
        if entity.id in seen:
            registry.error("duplicate_code", field, f'code "{entity.id}" appears twice')
        seen.add(entity.id)
        if not entity.label_fallback.strip():
            registry.error("missing_label", f"{field}.label_fallback", "label_fallback is empty")
        if not entity.label_primary.strip():
            registry.error("missing_label", f"{field}.label_primary", "label_primary is empty")

    return len(registry.errors) == errors_before


__all__ = [
    "ValidationSeverity",
    "ValidationIssue",
    "RunRegistry",
    "is_snake_case",
    "sanitize_answers",
    "find_normalized_collisions",
    "validate_theme",
    "validate_dataset",
]
