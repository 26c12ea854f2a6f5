"""llmcourse utilities."""

from .metadata_loader import (
    load_curriculum,
    load_achievement_catalog,
    default_curriculum,
    default_achievement_catalog,
)

__all__ = [
    "load_curriculum",
    "load_achievement_catalog",
    "default_curriculum",
    "default_achievement_catalog",
]
