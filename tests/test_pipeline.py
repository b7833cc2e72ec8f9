"""
Tests for the generation pipeline: collection, validation, writing and reporting.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from themeforge.config import PipelineConfig
from themeforge.persistence import ArtifactWriter, WriteOutcome
from themeforge.pipeline import GenerationPipeline, GenerationReport, PipelineError
from themeforge.sources.base import CanonicalBatch, SourceBase, SourceCapability, SourceError
from themeforge.sources.derived import DerivedThemesSource


# =============================================================================
# Test Sources
# =============================================================================

class StaticThemes(SourceBase):
    capability = SourceCapability.THEMES

    def __init__(self, themes, source_id="static-themes"):
        super().__init__(source_id=source_id)
        self.themes = themes
        self.closed = False

    async def fetch_themes(self):
        return self.themes

    async def close(self):
        self.closed = True


class StaticCanonical(SourceBase):
    capability = SourceCapability.CANONICAL

    def __init__(self, rows):
        super().__init__(source_id="static-canonical")
        self.rows = rows

    async def fetch_datasets(self):
        return [CanonicalBatch(id="countries_base", entities=self.rows)]


class FailingSource(SourceBase):
    capability = SourceCapability.THEMES

    async def fetch_themes(self):
        raise SourceError("upstream is down")


class BrokenSource(SourceBase):
    capability = SourceCapability.THEMES

    async def fetch_themes(self):
        raise RuntimeError("unexpected payload")


class NoCapability(SourceBase):
    pass


# =============================================================================
# Sample Data
# =============================================================================

FRUITS = {
    "id": "demo_fruits",
    "title": "フルーツ",
    "categoryId": "demo",
    "categoryTitle": "デモ",
    "answers": ["りんご", " バナナ ", "", "りんご"],
}

COLORS = {
    "id": "demo_colors",
    "title": "色",
    "categoryId": "demo",
    "categoryTitle": "デモ",
    "answers": ["赤", "青"],
}

EUROPE_ROWS = [
    {
        "id": f"E{chr(ord('A') + i)}",
        "label_primary": f"国{i}",
        "label_fallback": f"Country {i}",
        "region": "Europe",
        "trait_flag": i % 2 == 0,
        "membership_flag": True,
    }
    for i in range(10)
]


def derived(config: PipelineConfig) -> DerivedThemesSource:
    return DerivedThemesSource(config.canonical_dir / "countries_base.json")


def read_dir(path: Path) -> dict[str, str]:
    return {
        p.relative_to(path).as_posix(): p.read_text(encoding="utf-8")
        for p in sorted(path.rglob("*.json"))
    }


class TestPipelineSuccess:
    """Test successful runs."""

    @pytest.mark.asyncio
    async def test_writes_themes_and_manifest(self, config: PipelineConfig):
        report = await GenerationPipeline([StaticThemes([FRUITS, COLORS])], config).run()

        assert report.success
        fruits = json.loads((config.datasets_dir / "demo_fruits.json").read_text(encoding="utf-8"))
        assert fruits["answers"] == ["りんご", "バナナ"]

        manifest = json.loads((config.datasets_dir / "_manifest.json").read_text(encoding="utf-8"))
        assert [e["id"] for e in manifest["themes"]] == ["demo_colors", "demo_fruits"]
        assert report.count("theme", WriteOutcome.CREATED) == 2

    @pytest.mark.asyncio
    async def test_canonical_feeds_derived_in_same_run(self, config: PipelineConfig):
        sources = [StaticCanonical(EUROPE_ROWS), derived(config)]
        report = await GenerationPipeline(sources, config).run()

        assert report.success
        assert (config.canonical_dir / "countries_base.json").exists()
        assert (config.datasets_dir / "countries_continent_europe.json").exists()
        assert not (config.canonical_dir / "countries_continent_europe.json").exists()
        assert report.count("dataset") == 1

    @pytest.mark.asyncio
    async def test_second_run_is_unchanged(self, config: PipelineConfig):
        """Running twice on the same inputs produces byte-identical output."""
        sources = [StaticThemes([FRUITS]), StaticCanonical(EUROPE_ROWS), derived(config)]
        pipeline = GenerationPipeline(sources, config)

        first = await pipeline.run()
        snapshot = read_dir(config.datasets_dir)
        second = await pipeline.run()

        assert first.success and second.success
        assert read_dir(config.datasets_dir) == snapshot
        assert all(a.outcome == WriteOutcome.UNCHANGED for a in second.artifacts)
        assert second.changed("theme") == 0
        assert "OK: generated" in second.format()

    @pytest.mark.asyncio
    async def test_sources_closed(self, config: PipelineConfig):
        source = StaticThemes([FRUITS])
        await GenerationPipeline([source], config).run()
        assert source.closed

    @pytest.mark.asyncio
    async def test_collision_warning_reported(self, config: PipelineConfig):
        theme = {**COLORS, "answers": ["イタリア", "いたりあ"]}
        report = await GenerationPipeline([StaticThemes([theme])], config).run()

        assert report.success
        assert len(report.warnings) == 1
        assert "indistinguishable_answers" in report.warnings[0]


class TestPipelineFailure:
    """Test that faulty runs write nothing."""

    @pytest.mark.asyncio
    async def test_category_conflict_writes_nothing(self, config: PipelineConfig):
        bad = {**COLORS, "categoryTitle": "Demo"}
        report = await GenerationPipeline([StaticThemes([FRUITS, bad])], config).run()

        assert not report.success
        assert not config.datasets_dir.exists()
        assert "category_title_conflict" in report.format()
        assert report.format().startswith("FAILED: 1 error(s)")

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_output(self, config: PipelineConfig):
        await GenerationPipeline([StaticThemes([FRUITS])], config).run()
        snapshot = read_dir(config.datasets_dir)

        report = await GenerationPipeline([StaticThemes([FRUITS, FRUITS])], config).run()

        assert not report.success
        assert read_dir(config.datasets_dir) == snapshot

    @pytest.mark.asyncio
    async def test_source_error(self, config: PipelineConfig):
        sources = [StaticThemes([FRUITS]), FailingSource("failing")]
        report = await GenerationPipeline(sources, config).run()

        assert not report.success
        assert "upstream is down" in report.errors[0]

    @pytest.mark.asyncio
    async def test_unexpected_source_exception(self, config: PipelineConfig):
        """Any exception from a source becomes a reported error."""
        source = BrokenSource("broken")
        report = await GenerationPipeline([StaticThemes([FRUITS]), source], config).run()

        assert not report.success
        assert report.errors == ["[source_failed] source[broken]: RuntimeError: unexpected payload"]
        assert not config.datasets_dir.exists()

    @pytest.mark.asyncio
    async def test_source_without_capability(self, config: PipelineConfig):
        report = await GenerationPipeline([NoCapability("bare")], config).run()

        assert not report.success
        assert "[missing_capability]" in report.errors[0]

    @pytest.mark.asyncio
    async def test_result_not_a_list(self, config: PipelineConfig):
        report = await GenerationPipeline([StaticThemes("demo_fruits")], config).run()

        assert not report.success
        assert "[invalid_result]" in report.errors[0]

    @pytest.mark.asyncio
    async def test_theme_and_dataset_id_clash(self, config: PipelineConfig):
        clash = {**FRUITS, "id": "countries_base"}
        sources = [StaticThemes([clash]), StaticCanonical(EUROPE_ROWS)]
        report = await GenerationPipeline(sources, config).run()

        assert not report.success
        assert "[duplicate_id]" in report.errors[0]

    @pytest.mark.asyncio
    async def test_derived_without_canonical(self, config: PipelineConfig):
        report = await GenerationPipeline([derived(config)], config).run()

        assert not report.success
        assert "Canonical dataset not found" in report.errors[0]

    @pytest.mark.asyncio
    async def test_theme_clashes_with_canonical_read_from_disk(self, config: PipelineConfig):
        """The on-disk dataset id is reserved even when no canonical source ran."""
        config.canonical_dir.mkdir(parents=True)
        (config.canonical_dir / "countries_base.json").write_text(
            json.dumps({"id": "countries_base", "schema": "countries_base_v1", "entities": []}),
            encoding="utf-8",
        )
        clash = {**FRUITS, "id": "countries_base"}
        report = await GenerationPipeline([StaticThemes([clash]), derived(config)], config).run()

        assert not report.success
        assert "[duplicate_id]" in report.errors[0]
        assert not (config.datasets_dir / "countries_base.json").exists()

    @pytest.mark.asyncio
    async def test_write_error_fails_run(self, config: PipelineConfig):
        """An I/O error while writing is reported instead of raised."""
        manifest = config.datasets_dir / "_manifest.json"
        error = OSError(28, "No space left on device", str(manifest))

        with patch.object(ArtifactWriter, "write_manifest", side_effect=error):
            report = await GenerationPipeline([StaticThemes([FRUITS])], config).run()

        assert not report.success
        assert report.errors == [f"[write_failed] {manifest}: No space left on device"]
        assert [a.id for a in report.artifacts] == ["demo_fruits"]
        assert report.format().startswith("FAILED: 1 error(s) after writing 1 artifact(s)")
        assert not manifest.exists()

    def test_no_sources(self, config: PipelineConfig):
        with pytest.raises(PipelineError):
            GenerationPipeline([], config)


class TestStaleArtifacts:
    """Test handling of themes that are no longer produced."""

    @pytest.mark.asyncio
    async def test_stale_reported(self, config: PipelineConfig):
        await GenerationPipeline([StaticThemes([FRUITS, COLORS])], config).run()
        report = await GenerationPipeline([StaticThemes([FRUITS])], config).run()

        assert report.stale == ["datasets/demo_colors.json"]
        assert (config.datasets_dir / "demo_colors.json").exists()
        assert "STALE: datasets/demo_colors.json" in report.format()

    @pytest.mark.asyncio
    async def test_stale_pruned(self, config: PipelineConfig):
        await GenerationPipeline([StaticThemes([FRUITS, COLORS])], config).run()
        pruning = config.model_copy(update={"prune_stale": True})
        report = await GenerationPipeline([StaticThemes([FRUITS])], pruning).run()

        assert report.pruned == 1
        assert not (config.datasets_dir / "demo_colors.json").exists()


class TestGenerationReport:
    """Test report formatting."""

    def test_counts_line(self):
        report = GenerationReport(success=True)
        text = report.format()
        assert "themes: 0 (created 0, updated 0, unchanged 0)" in text
        assert text.endswith("OK: generated 0 themes (0 changed)")
