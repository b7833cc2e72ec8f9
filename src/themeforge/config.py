"""
Generator configuration.

Values come from, in increasing priority: model defaults, a ``.env`` file
found from the working directory upwards, environment variables
(``THEMEFORGE_*``) and explicit overrides passed by the CLI.
"""

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, Field, field_validator

from .sources.cldr import DEFAULT_CLDR_PATH
from .sources.fixture import BUNDLED_FIXTURE
from .sources.rest_countries import DEFAULT_TIMEOUT, REST_COUNTRIES_URL

logger = logging.getLogger(__name__)

ENV_PREFIX = "THEMEFORGE_"

# field name -> environment variable suffix
ENV_FIELDS = {
    "datasets_dir": "DATASETS_DIR",
    "cldr_path": "CLDR_PATH",
    "fixture_path": "FIXTURE_PATH",
    "rest_countries_url": "REST_COUNTRIES_URL",
    "fetch_timeout": "FETCH_TIMEOUT",
    "min_answers": "MIN_ANSWERS",
    "log_level": "LOG_LEVEL",
}


class PipelineConfig(BaseModel):
    """Settings for one generation run."""

    # Output
    datasets_dir: Path = Field(
        default=Path("datasets"),
        description="Directory receiving theme artifacts",
    )
    canonical_dirname: str = Field(
        default="canonical",
        description="Sub-directory of datasets_dir receiving canonical artifacts",
    )
    prune_stale: bool = Field(
        default=False,
        description="Delete theme artifacts that this run no longer produces",
    )

    # Sources
    fixture_path: Path = Field(
        default=BUNDLED_FIXTURE,
        description="JSON/YAML file with hand-maintained themes",
    )
    cldr_path: Path = Field(
        default=DEFAULT_CLDR_PATH,
        description="Local copy of CLDR main/ja/territories.json",
    )
    rest_countries_url: str = Field(
        default=REST_COUNTRIES_URL,
        description="REST Countries endpoint including the fields query",
    )
    fetch_timeout: float = Field(
        default=DEFAULT_TIMEOUT,
        gt=0.0,
        description="Hard timeout in seconds for the REST Countries request",
    )
    skip_remote: bool = Field(
        default=False,
        description="Skip the network source and derive from the canonical artifact on disk",
    )

    # Derivation
    canonical_dataset_id: str = Field(
        default="countries_base",
        description="Canonical dataset used for derived themes",
    )
    min_answers: int = Field(
        default=10,
        ge=1,
        description="Minimum distinct answers for a derived theme",
    )
    require_membership: bool = Field(
        default=True,
        description="Only derive themes from entities with membership_flag True",
    )

    log_level: str = Field(default="INFO", description="Logging level name")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def canonical_dir(self) -> Path:
        return self.datasets_dir / self.canonical_dirname


def load_config(**overrides: Any) -> PipelineConfig:
    """
    Build a PipelineConfig from ``.env``, the environment and overrides.

    Overrides whose value is None are ignored so that unset CLI flags do
    not mask environment values.
    """
    dotenv_path = find_dotenv(usecwd=True)
    file_values = dotenv_values(dotenv_path) if dotenv_path else {}

    values: dict[str, Any] = {}
    for field_name, suffix in ENV_FIELDS.items():
        raw = os.getenv(ENV_PREFIX + suffix) or file_values.get(ENV_PREFIX + suffix)
        if raw:
            values[field_name] = raw

    values.update({k: v for k, v in overrides.items() if v is not None})
    config = PipelineConfig(**values)
    logger.debug("Config: %s", config.model_dump())
    return config
