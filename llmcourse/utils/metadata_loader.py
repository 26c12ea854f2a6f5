"""
Metadata loader utility for llmcourse.

Loads the static curriculum and achievement tables from YAML files in the
data/ directory.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any
import yaml

from llmcourse.schemas import AchievementCatalog, Curriculum


# Default data directory (inside the package)
DATA_DIR = Path(__file__).parent.parent / "data"
CURRICULUM_FILE = "curriculum.yaml"
ACHIEVEMENTS_FILE = "achievements.yaml"


def load_yaml(file_path: Path) -> dict[str, Any]:
    """
    Load a YAML metadata file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Metadata file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_curriculum(path: Path | None = None) -> Curriculum:
    """
    Load the module/section metadata table.

    Args:
        path: Optional custom curriculum file (default: data/curriculum.yaml)

    Returns:
        Parsed Curriculum
    """
    return Curriculum.model_validate(load_yaml(path or DATA_DIR / CURRICULUM_FILE))


def load_achievement_catalog(path: Path | None = None) -> AchievementCatalog:
    """
    Load the achievement metadata table.

    Args:
        path: Optional custom achievements file (default: data/achievements.yaml)

    Returns:
        Parsed AchievementCatalog
    """
    return AchievementCatalog.model_validate(load_yaml(path or DATA_DIR / ACHIEVEMENTS_FILE))


@lru_cache(maxsize=1)
def default_curriculum() -> Curriculum:
    """Curriculum from settings override or the packaged default (cached)."""
    from llmcourse.config import get_settings
    return load_curriculum(get_settings().curriculum_path)


@lru_cache(maxsize=1)
def default_achievement_catalog() -> AchievementCatalog:
    """Achievement catalog from settings override or the packaged default (cached)."""
    from llmcourse.config import get_settings
    return load_achievement_catalog(get_settings().achievements_path)
