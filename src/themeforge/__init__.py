"""
themeforge - offline generator for quiz theme datasets.

Builds a canonical country dictionary from external sources, derives quiz
themes from it, validates everything and writes the artifacts atomically.
"""

from .catalog import ArtifactError, ThemeCatalog
from .config import PipelineConfig, load_config
from .derive import derive_themes
from .grading import GradeResult, grade_answers
from .models import CanonicalDataset, EntityRecord, ThemeSpec
from .pipeline import GenerationPipeline, GenerationReport
from .validation import RunRegistry, validate_dataset, validate_theme

__version__ = "0.1.0"

__all__ = [
    "ArtifactError",
    "ThemeCatalog",
    "PipelineConfig",
    "load_config",
    "derive_themes",
    "GradeResult",
    "grade_answers",
    "CanonicalDataset",
    "EntityRecord",
    "ThemeSpec",
    "GenerationPipeline",
    "GenerationReport",
    "RunRegistry",
    "validate_dataset",
    "validate_theme",
]
