"""
Tests for reading generated artifacts and grading answers against them.
"""

import json
from pathlib import Path

import pytest

from factories import make_dataset, make_entity
from themeforge.catalog import ArtifactError, ThemeCatalog
from themeforge.grading import SUGGEST_MAX, grade_answers
from themeforge.models import ThemeSpec
from themeforge.persistence import ArtifactWriter


@pytest.fixture
def written(tmp_path: Path) -> Path:
    """A datasets directory with one theme, its manifest and one dataset."""
    theme = ThemeSpec(
        id="demo_fruits",
        title="フルーツ",
        category_id="demo",
        category_title="デモ",
        answers=("りんご", "バナナ"),
    )
    writer = ArtifactWriter(tmp_path)
    writer.write_theme(theme)
    writer.write_manifest([theme])
    writer.write_dataset(make_dataset([make_entity("JP", "日本")]))
    return tmp_path


class TestThemeCatalog:
    """Test artifact loading."""

    def test_list_themes(self, written: Path):
        entries = ThemeCatalog(written).list_themes()
        assert [e.id for e in entries] == ["demo_fruits"]
        assert entries[0].answer_count == 2
        assert entries[0].path == "demo_fruits.json"

    def test_load_theme(self, written: Path):
        theme = ThemeCatalog(written).load_theme("demo_fruits")
        assert theme.answers == ("りんご", "バナナ")
        assert theme.category_title == "デモ"

    def test_load_dataset(self, written: Path):
        dataset = ThemeCatalog(written).load_dataset("countries_base")
        assert dataset.entities[0].id == "JP"

    def test_missing_theme(self, written: Path):
        with pytest.raises(ArtifactError, match="not found"):
            ThemeCatalog(written).load_theme("nope")

    def test_invalid_json(self, written: Path):
        (written / "broken.json").write_text("{", encoding="utf-8")
        with pytest.raises(ArtifactError, match="Invalid JSON"):
            ThemeCatalog(written).load_theme("broken")

    def test_schema_mismatch(self, written: Path):
        (written / "bad.json").write_text(json.dumps({"id": "bad"}), encoding="utf-8")
        with pytest.raises(ArtifactError, match="Malformed artifact"):
            ThemeCatalog(written).load_theme("bad")

    def test_id_mismatch(self, written: Path):
        data = json.loads((written / "demo_fruits.json").read_text(encoding="utf-8"))
        (written / "other.json").write_text(json.dumps(data), encoding="utf-8")
        with pytest.raises(ArtifactError, match="expected 'other'"):
            ThemeCatalog(written).load_theme("other")

    def test_empty_answers(self, written: Path):
        data = json.loads((written / "demo_fruits.json").read_text(encoding="utf-8"))
        data.update(id="empty", answers=[])
        (written / "empty.json").write_text(json.dumps(data), encoding="utf-8")
        with pytest.raises(ArtifactError, match="no answers"):
            ThemeCatalog(written).load_theme("empty")

    def test_missing_manifest(self, tmp_path: Path):
        with pytest.raises(ArtifactError):
            ThemeCatalog(tmp_path).list_themes()


class TestGradeAnswers:
    """Test quiz grading."""

    def test_normalized_match(self):
        result = grade_answers(["ｲﾀﾘｱ", " ドイツ "], ["イタリア", "フランス"])

        assert result.score == 1
        assert result.wrong == [" ドイツ "]
        assert result.missing == ["フランス"]

    def test_blank_and_repeats_ignored(self):
        result = grade_answers(["", "イタリア", "いたりあ", "イタリア"], ["イタリア"])
        assert result.score == 1
        assert result.wrong == []
        assert result.missing == []

    def test_missing_in_theme_order_and_capped(self):
        correct = [f"国{i}" for i in range(8)]
        result = grade_answers([], correct)

        assert result.score == 0
        assert result.missing == correct
        assert result.missing_suggested == correct[:SUGGEST_MAX]
