"""
Dataset generation pipeline.

collect (sources in list order) -> validate canonical datasets -> validate
themes -> write everything or nothing -> report.

Structural faults (a source with no usable capability, a failing fetch, a
non-list result) and content faults (bad ids, duplicates, conflicting
category titles, empty answers) both fail the run. A run that fails
validation writes no artifact at all, so the last good output stays on disk.
An I/O error while writing also fails the run; files replaced before it
are complete, since every write is atomic.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel, Field

from .config import PipelineConfig
from .ingest import CanonicalIngestor
from .models import CanonicalDataset, ThemeSpec
from .persistence import ArtifactWriter, WriteOutcome, WriteResult
from .sources.base import CanonicalBatch, SourceBase, SourceCapability, SourceError, ThemeCandidate
from .validation import RunRegistry, validate_dataset, validate_theme

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Raised for misuse of the pipeline itself (not for data faults)."""
    pass


# =============================================================================
# Report
# =============================================================================

class ArtifactOutcome(BaseModel):
    """Outcome of one written artifact."""
    kind: str = Field(description='"theme", "dataset" or "manifest"')
    id: str
    path: str
    outcome: WriteOutcome


class GenerationReport(BaseModel):
    """Structured run report with per-artifact outcomes and issues."""

    success: bool = Field(description="True if validation passed and all artifacts were written")
    artifacts: list[ArtifactOutcome] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list, description="Fatal issues")
    warnings: list[str] = Field(default_factory=list, description="Non-fatal issues")
    stale: list[str] = Field(default_factory=list, description="Theme artifacts no longer produced")
    pruned: int = Field(default=0, description="Stale artifacts deleted")

    def count(self, kind: str, outcome: WriteOutcome | None = None) -> int:
        return sum(
            1 for a in self.artifacts
            if a.kind == kind and (outcome is None or a.outcome == outcome)
        )

    def changed(self, kind: str) -> int:
        return self.count(kind) - self.count(kind, WriteOutcome.UNCHANGED)

    def format(self) -> str:
        """Format the report as the text printed at the end of a run."""
        lines: list[str] = []

        if not self.success:
            if self.artifacts:
                lines.append(f"FAILED: {len(self.errors)} error(s) after writing {len(self.artifacts)} artifact(s)")
            else:
                lines.append(f"FAILED: {len(self.errors)} error(s), nothing was written")
            for error in self.errors:
                lines.append(f"  - {error}")
            return "\n".join(lines)

        for artifact in self.artifacts:
            lines.append(f"{artifact.outcome.value.upper()}: {artifact.path}")

        for path in self.stale:
            lines.append(f"STALE: {path}")

        if self.warnings:
            lines.append(f"Warnings ({len(self.warnings)}):")
            for warning in self.warnings:
                lines.append(f"  - {warning}")

        for kind, label in (("dataset", "canonical datasets"), ("theme", "themes")):
            total = self.count(kind)
            lines.append(
                f"{label}: {total} "
                f"(created {self.count(kind, WriteOutcome.CREATED)}, "
                f"updated {self.count(kind, WriteOutcome.UPDATED)}, "
                f"unchanged {self.count(kind, WriteOutcome.UNCHANGED)})"
            )
        lines.append(f"OK: generated {self.count('theme')} themes ({self.changed('theme')} changed)")
        return "\n".join(lines)


# =============================================================================
# Pipeline
# =============================================================================

class GenerationPipeline:
    """
    Runs the sources and writes validated artifacts.

    A pipeline object can be run more than once; every run gets a fresh
    RunRegistry.
    """

    def __init__(self, sources: Sequence[SourceBase], config: PipelineConfig):
        if not sources:
            raise PipelineError("At least one source is required")
        self.sources = list(sources)
        self.config = config
        self.writer = ArtifactWriter(config.datasets_dir, config.canonical_dirname)

    async def run(self) -> GenerationReport:
        registry = RunRegistry()
        ingestor = CanonicalIngestor(registry)

        candidates = await self._collect(registry, ingestor)

        # Pass 1: canonical datasets
        datasets = ingestor.build()
        for dataset in datasets:
            validate_dataset(dataset, registry)

        # Pass 2: themes
        themes: list[ThemeSpec] = []
        for candidate in candidates:
            theme = validate_theme(candidate, registry)
            if theme is not None:
                themes.append(theme)

        if registry.failed:
            logger.error("Validation failed with %d error(s); no artifacts written", len(registry.errors))
            return self._report(registry, success=False)

        return self._write(registry, datasets, themes)

    async def _collect(self, registry: RunRegistry, ingestor: CanonicalIngestor) -> list[ThemeCandidate]:
        """Run every source in order, feeding canonical output to later consumers."""
        candidates: list[ThemeCandidate] = []

        for source in self.sources:
            field = f"source[{source.source_id}]"
            capability = getattr(source, "capability", None)

            if capability not in (SourceCapability.THEMES, SourceCapability.CANONICAL):
                registry.error(
                    "missing_capability", field,
                    "source produces neither themes nor canonical datasets",
                )
                continue

            if getattr(source, "consumes_canonical", False):
                dataset = ingestor.get(source.dataset_id)
                if dataset is not None:
                    source.use_dataset(dataset)
                else:
                    # Read from disk; its id still belongs to the dataset namespace.
                    registry.claim_id(source.dataset_id, "dataset", f"{field}.dataset_id")

            logger.info("Collecting from %s (%s)", source.name, capability.value)
            try:
                if capability == SourceCapability.THEMES:
                    result = await source.fetch_themes()
                else:
                    result = await source.fetch_datasets()
            except NotImplementedError as e:
                registry.error("missing_capability", field, str(e))
                continue
            except SourceError as e:
                registry.error("source_failed", field, str(e))
                continue
            except Exception as e:
                logger.exception("Unexpected error from %s", source.name)
                registry.error("source_failed", field, f"{type(e).__name__}: {e}")
                continue
            finally:
                await source.close()

            if isinstance(result, (str, bytes)) or not isinstance(result, Sequence):
                registry.error(
                    "invalid_result", field,
                    f"expected a list, got {type(result).__name__}",
                )
                continue

            if capability == SourceCapability.THEMES:
                candidates.extend(result)
                continue

            for batch in result:
                if not isinstance(batch, CanonicalBatch):
                    registry.error(
                        "invalid_result", field,
                        f"expected CanonicalBatch, got {type(batch).__name__}",
                    )
                    continue
                ingestor.add_batch(batch)

        return candidates

    def _write(
        self,
        registry: RunRegistry,
        datasets: list[CanonicalDataset],
        themes: list[ThemeSpec],
    ) -> GenerationReport:
        outcomes: list[ArtifactOutcome] = []

        def record(kind: str, id: str, result: WriteResult) -> None:
            outcomes.append(ArtifactOutcome(
                kind=kind, id=id, path=self.writer.relative(result.path), outcome=result.outcome,
            ))

        themes = sorted(themes, key=lambda t: t.id)
        try:
            for dataset in sorted(datasets, key=lambda d: d.id):
                record("dataset", dataset.id, self.writer.write_dataset(dataset))
            for theme in themes:
                record("theme", theme.id, self.writer.write_theme(theme))
            record("manifest", "_manifest", self.writer.write_manifest(themes))

            stale = self.writer.find_stale_themes({t.id for t in themes})
            if self.config.prune_stale:
                pruned = self.writer.prune(stale)
            else:
                pruned = 0
                for path in stale:
                    logger.warning("STALE: %s is no longer generated", self.writer.relative(path))
        except OSError as e:
            logger.error("Writing artifacts failed after %d artifact(s): %s", len(outcomes), e)
            target = e.filename or self.config.datasets_dir
            registry.error("write_failed", str(target), e.strerror or str(e))
            report = self._report(registry, success=False)
            report.artifacts = outcomes
            return report

        report = self._report(registry, success=True)
        report.artifacts = outcomes
        report.stale = [self.writer.relative(p) for p in stale]
        report.pruned = pruned
        return report

    @staticmethod
    def _report(registry: RunRegistry, success: bool) -> GenerationReport:
        return GenerationReport(
            success=success,
            errors=[str(i) for i in registry.errors],
            warnings=[str(i) for i in registry.warnings],
        )

