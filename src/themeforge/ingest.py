"""
Canonical dictionary ingestion.

Merges the raw candidate rows produced by canonical sources into one
dictionary per dataset id, keyed by entity code, and normalizes every row
into an EntityRecord. Unknown attributes become None; nothing is guessed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .models import ENTITY_CODE_RE, CanonicalDataset, EntityRecord, schema_tag
from .sources.base import CanonicalBatch
from .validation import RunRegistry

logger = logging.getLogger(__name__)


def as_trimmed_str(value: Any) -> str | None:
    """Return a trimmed non-empty string, or None for anything else."""
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


def as_bool(value: Any) -> bool | None:
    """Return ``value`` if it is a real bool, otherwise None."""
    return value if isinstance(value, bool) else None


class CanonicalIngestor:
    """
    Builds canonical datasets from CanonicalBatch objects.

    Batches sharing a dataset id are merged. A code seen twice is a fatal
    content fault; rows without a code or without a fallback name are
    skipped and reported as INFO.
    """

    def __init__(self, registry: RunRegistry):
        self.registry = registry
        self._entities: dict[str, dict[str, EntityRecord]] = {}
        self._localized: dict[str, int] = {}

    @property
    def dataset_ids(self) -> list[str]:
        return sorted(self._entities)

    def add_batch(self, batch: CanonicalBatch) -> int:
        """
        Merge one batch of candidate rows.

        Returns:
            Number of rows accepted from this batch.
        """
        entities = self._entities.setdefault(batch.id, {})
        self._localized.setdefault(batch.id, 0)
        accepted = 0

        for position, row in enumerate(batch.entities):
            ctx = f"dataset[{batch.id}].entities[{position}]"
            if not isinstance(row, Mapping):
                self.registry.error("invalid_row", ctx, f"expected a mapping, got {type(row).__name__}")
                continue

            record, localized = self._normalize_row(row, ctx)
            if record is None:
                continue

            if record.id in entities:
                self.registry.error(
                    "duplicate_code", f"dataset[{batch.id}].entities[{record.id}]",
                    f'code "{record.id}" was already ingested',
                )
                continue

            entities[record.id] = record
            if localized:
                self._localized[batch.id] += 1
            accepted += 1

        logger.debug("Ingested %d of %d rows into %s", accepted, len(batch.entities), batch.id)
        return accepted

    def _normalize_row(self, row: Mapping[str, Any], ctx: str) -> tuple[EntityRecord | None, bool]:
        raw_code = row.get("id")
        code = as_trimmed_str(raw_code)
        if code is None:
            self.registry.info("missing_code", ctx, "row has no code, skipped")
            return None, False
        if not ENTITY_CODE_RE.match(code):
            self.registry.error("invalid_code", ctx, f'code does not match [A-Z]{{2}}: "{code}"')
            return None, False

        label_fallback = as_trimmed_str(row.get("label_fallback"))
        if label_fallback is None:
            self.registry.info("missing_label", f"{ctx}[{code}]", "row has no fallback name, skipped")
            return None, False

        localized = as_trimmed_str(row.get("label_primary"))
        record = EntityRecord(
            id=code,
            label_primary=localized or label_fallback,
            label_fallback=label_fallback,
            region=as_trimmed_str(row.get("region")),
            subregion=as_trimmed_str(row.get("subregion")),
            trait_flag=as_bool(row.get("trait_flag")),
            membership_flag=as_bool(row.get("membership_flag")),
            capital=as_trimmed_str(row.get("capital")),
        )
        return record, localized is not None

    def get(self, dataset_id: str) -> CanonicalDataset | None:
        """Build a single dataset, or None if no batch with that id was seen."""
        entities = self._entities.get(dataset_id)
        if entities is None:
            return None
        return CanonicalDataset(
            id=dataset_id,
            schema=schema_tag(dataset_id),
            entities=tuple(entities[code] for code in sorted(entities)),
        )

    def build(self) -> list[CanonicalDataset]:
        """Build all datasets, sorted by id, and log a summary for each."""
        datasets = []
        for dataset_id in self.dataset_ids:
            dataset = self.get(dataset_id)
            logger.info(
                "Canonical %s: %d entities (%d with a localized name)",
                dataset_id, len(dataset.entities), self._localized.get(dataset_id, 0),
            )
            datasets.append(dataset)
        return datasets
