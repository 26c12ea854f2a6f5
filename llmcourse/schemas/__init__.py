"""
llmcourse Schemas - Pydantic models for the course progress engine.

This module exports all schema classes for:
- Progress: the persisted progress document
- Curriculum: static module, section and achievement metadata
"""

# Progress schemas
from .progress import (
    PROGRESS_STORAGE_KEY,
    SCHEMA_VERSION,
    MODULE_IDS,
    ModuleStatus,
    LearnerVariant,
    AnimationSpeed,
    SectionProgress,
    ModuleProgress,
    Achievement,
    SessionRecord,
    UserPreferences,
    ProgressDocument,
)

# Curriculum schemas
from .curriculum import (
    SectionMeta,
    ModuleMeta,
    Curriculum,
    AchievementCategory,
    AchievementCriteria,
    AchievementMeta,
    AchievementCatalog,
)

__all__ = [
    # Progress
    'PROGRESS_STORAGE_KEY',
    'SCHEMA_VERSION',
    'MODULE_IDS',
    'ModuleStatus',
    'LearnerVariant',
    'AnimationSpeed',
    'SectionProgress',
    'ModuleProgress',
    'Achievement',
    'SessionRecord',
    'UserPreferences',
    'ProgressDocument',
    # Curriculum
    'SectionMeta',
    'ModuleMeta',
    'Curriculum',
    'AchievementCategory',
    'AchievementCriteria',
    'AchievementMeta',
    'AchievementCatalog',
]
