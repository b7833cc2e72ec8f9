"""
Atomic, idempotent artifact writer.

Each artifact is serialized deterministically, written to a temporary file
in the target directory and renamed over the final path, so readers only
ever see the old or the new complete file. The previous content is read
first to classify the write as created, updated or unchanged; that
comparison is only reported and never changes what gets written.
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from .models import CanonicalDataset, ManifestEntry, ThemeSpec

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "_manifest.json"


class WriteOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class WriteResult:
    """Result of writing one artifact."""
    path: Path
    outcome: WriteOutcome

    @property
    def changed(self) -> bool:
        return self.outcome != WriteOutcome.UNCHANGED


def serialize_artifact(data: Any) -> str:
    """JSON with 2-space indent, UTF-8 text kept as-is, trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def _temp_path(target: Path) -> Path:
    stamp = int(time.time() * 1000)
    return target.with_name(f".{target.name}.tmp-{os.getpid()}-{stamp}")


def write_json_atomic(target: Path, data: Any) -> WriteResult:
    """
    Write ``data`` as JSON to ``target`` atomically.

    Args:
        target: Final artifact path (parent directories are created)
        data: JSON-serializable object

    Returns:
        WriteResult classifying the write against the previous content
    """
    target = Path(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    content = serialize_artifact(data)

    try:
        before: str | None = target.read_text(encoding="utf-8")
    except FileNotFoundError:
        before = None

    tmp_path = _temp_path(target)
    try:
        with open(tmp_path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(target)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise

    if before is None:
        outcome = WriteOutcome.CREATED
    elif before != content:
        outcome = WriteOutcome.UPDATED
    else:
        outcome = WriteOutcome.UNCHANGED
    return WriteResult(path=target, outcome=outcome)


class ArtifactWriter:
    """
    Writes theme and canonical artifacts to their separate locations.

    Layout:
        <datasets_dir>/<theme_id>.json
        <datasets_dir>/_manifest.json
        <datasets_dir>/<canonical_dirname>/<dataset_id>.json
    """

    def __init__(self, datasets_dir: Path | str, canonical_dirname: str = "canonical"):
        self.datasets_dir = Path(datasets_dir)
        self.canonical_dir = self.datasets_dir / canonical_dirname

    def theme_path(self, theme_id: str) -> Path:
        return self.datasets_dir / f"{theme_id}.json"

    def dataset_path(self, dataset_id: str) -> Path:
        return self.canonical_dir / f"{dataset_id}.json"

    @property
    def manifest_path(self) -> Path:
        return self.datasets_dir / MANIFEST_FILENAME

    def relative(self, path: Path) -> str:
        """Path relative to the datasets directory's parent, for reports."""
        try:
            return path.relative_to(self.datasets_dir.parent).as_posix()
        except ValueError:
            return path.as_posix()

    def write_theme(self, theme: ThemeSpec) -> WriteResult:
        return self._write(self.theme_path(theme.id), theme.to_artifact())

    def write_dataset(self, dataset: CanonicalDataset) -> WriteResult:
        return self._write(self.dataset_path(dataset.id), dataset.to_artifact())

    def write_manifest(self, themes: list[ThemeSpec]) -> WriteResult:
        """Write the theme index consumed by the quiz app."""
        entries = [
            ManifestEntry(
                id=t.id,
                title=t.title,
                category_id=t.category_id,
                category_title=t.category_title,
                path=self.theme_path(t.id).name,
                answer_count=len(t.answers),
            ).to_artifact()
            for t in sorted(themes, key=lambda t: t.id)
        ]
        return self._write(self.manifest_path, {"themes": entries})

    def _write(self, path: Path, data: Any) -> WriteResult:
        result = write_json_atomic(path, data)
        logger.info("%s: %s", result.outcome.value.upper(), self.relative(path))
        return result

    def find_stale_themes(self, keep_ids: set[str]) -> list[Path]:
        """Theme artifacts on disk that are not in ``keep_ids``."""
        if not self.datasets_dir.is_dir():
            return []
        stale = []
        for path in sorted(self.datasets_dir.glob("*.json")):
            if path.name == MANIFEST_FILENAME or path.name.startswith("."):
                continue
            if path.stem not in keep_ids:
                stale.append(path)
        return stale

    def prune(self, paths: list[Path]) -> int:
        """Delete the given artifacts. Returns the number removed."""
        removed = 0
        for path in paths:
            if path.exists():
                path.unlink()
                logger.info("DELETED: %s", self.relative(path))
                removed += 1
        return removed
