"""
Tests for configuration loading and the command line entry point.
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from themeforge import cli
from themeforge.config import PipelineConfig, load_config


# =============================================================================
# Sample Data
# =============================================================================

CLDR_TERRITORIES = {
    "main": {"ja": {"localeDisplayNames": {"territories": {"JP": "日本", "FR": "フランス"}}}}
}


@pytest.fixture
def clean_env(monkeypatch, tmp_path: Path):
    """Isolate from THEMEFORGE_* variables and any .env in the working dir."""
    for name in ("DATASETS_DIR", "CLDR_PATH", "FIXTURE_PATH", "REST_COUNTRIES_URL",
                 "FETCH_TIMEOUT", "MIN_ANSWERS", "LOG_LEVEL"):
        monkeypatch.delenv(f"THEMEFORGE_{name}", raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestLoadConfig:
    """Test configuration precedence and validation."""

    def test_defaults(self, clean_env):
        config = load_config()
        assert config.datasets_dir == Path("datasets")
        assert config.canonical_dir == Path("datasets") / "canonical"
        assert config.min_answers == 10
        assert config.prune_stale is False

    def test_environment(self, clean_env):
        clean_env.setenv("THEMEFORGE_MIN_ANSWERS", "3")
        clean_env.setenv("THEMEFORGE_LOG_LEVEL", "debug")
        config = load_config()
        assert config.min_answers == 3
        assert config.log_level == "DEBUG"

    def test_override_beats_environment(self, clean_env):
        clean_env.setenv("THEMEFORGE_MIN_ANSWERS", "3")
        assert load_config(min_answers=5).min_answers == 5

    def test_none_override_ignored(self, clean_env):
        clean_env.setenv("THEMEFORGE_MIN_ANSWERS", "3")
        assert load_config(min_answers=None).min_answers == 3

    def test_dotenv_file(self, clean_env, tmp_path: Path):
        (tmp_path / ".env").write_text("THEMEFORGE_FETCH_TIMEOUT=12.5\n", encoding="utf-8")
        assert load_config().fetch_timeout == 12.5

    def test_invalid_values(self):
        with pytest.raises(ValidationError):
            PipelineConfig(fetch_timeout=0)
        with pytest.raises(ValidationError):
            PipelineConfig(min_answers=0)
        with pytest.raises(ValidationError):
            PipelineConfig(log_level="LOUD")


class TestParseArgs:
    """Test argument parsing."""

    def test_unset_flags_are_none(self):
        args = cli.parse_args([])
        assert args.skip_remote is None
        assert args.prune_stale is None
        assert args.fetch_timeout is None

    def test_flags(self):
        args = cli.parse_args(["--datasets-dir", "out", "--timeout", "5", "--prune", "--skip-remote"])
        assert args.datasets_dir == Path("out")
        assert args.fetch_timeout == 5.0
        assert args.prune_stale is True
        assert args.skip_remote is True


class TestMain:
    """Test the full command in offline mode."""

    def test_offline_run_without_canonical_fails(self, clean_env, tmp_path: Path, capsys):
        cldr = tmp_path / "territories.json"
        cldr.write_text(json.dumps(CLDR_TERRITORIES, ensure_ascii=False), encoding="utf-8")

        code = cli.main(["--skip-remote", "--cldr-path", str(cldr), "--datasets-dir", str(tmp_path / "out")])

        assert code == 1
        assert "Canonical dataset not found" in capsys.readouterr().out
        assert not (tmp_path / "out").exists()

    def test_offline_run_with_canonical(self, clean_env, tmp_path: Path, capsys):
        cldr = tmp_path / "territories.json"
        cldr.write_text(json.dumps(CLDR_TERRITORIES, ensure_ascii=False), encoding="utf-8")
        canonical = tmp_path / "out" / "canonical" / "countries_base.json"
        canonical.parent.mkdir(parents=True)
        canonical.write_text(
            json.dumps({"id": "countries_base", "schema": "countries_base_v1", "entities": []}),
            encoding="utf-8",
        )

        code = cli.main(["--skip-remote", "--cldr-path", str(cldr), "--datasets-dir", str(tmp_path / "out")])

        out = capsys.readouterr().out
        assert code == 0
        assert "OK: generated 3 themes" in out
        assert (tmp_path / "out" / "countries_world.json").exists()
        assert (tmp_path / "out" / "demo_fruits.json").exists()

    def test_malformed_rest_url_fails_cleanly(self, clean_env, tmp_path: Path, capsys):
        """A bad endpoint URL ends the run with exit code 1 and a report."""
        cldr = tmp_path / "territories.json"
        cldr.write_text(json.dumps(CLDR_TERRITORIES, ensure_ascii=False), encoding="utf-8")
        clean_env.setenv("THEMEFORGE_REST_COUNTRIES_URL", "https://example.test:x/all")

        code = cli.main(["--cldr-path", str(cldr), "--datasets-dir", str(tmp_path / "out")])

        out = capsys.readouterr().out
        assert code == 1
        assert "Invalid REST Countries URL" in out
        assert not (tmp_path / "out").exists()

    def test_invalid_config(self, clean_env, capsys):
        assert cli.main(["--timeout", "-1"]) == 1
        assert "invalid configuration" in capsys.readouterr().err
