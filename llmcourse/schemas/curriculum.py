"""
Curriculum and achievement metadata schemas for llmcourse.

These are the static lookup tables the engine reads:
- Module/section table: titles, canonical section order, durations, prerequisites
- Achievement table: titles and criteria descriptors
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SectionMeta(BaseModel):
    id: str
    title: str
    description: str = ""
    estimated_minutes: int = Field(default=0, ge=0)


class ModuleMeta(BaseModel):
    id: int
    title: str
    description: str = ""
    sections: list[SectionMeta] = Field(..., min_length=1)
    prerequisites: list[int] = Field(default_factory=list)
    learning_objectives: list[str] = Field(default_factory=list)


class Curriculum(BaseModel):
    """Ordered module table. Module ids are unique; order is learning order."""
    modules: list[ModuleMeta]

    def get_module(self, module_id: int) -> Optional[ModuleMeta]:
        for module in self.modules:
            if module.id == module_id:
                return module
        return None

    def get_prerequisites(self, module_id: int) -> list[int]:
        module = self.get_module(module_id)
        return list(module.prerequisites) if module else []

    def has_prerequisites(self, module_id: int) -> bool:
        return bool(self.get_prerequisites(module_id))

    def get_section(self, module_id: int, section_id: str) -> Optional[SectionMeta]:
        module = self.get_module(module_id)
        if not module:
            return None
        for section in module.sections:
            if section.id == section_id:
                return section
        return None

    def section_ids(self, module_id: int) -> list[str]:
        module = self.get_module(module_id)
        return [section.id for section in module.sections] if module else []

    def module_total_minutes(self, module_id: int) -> int:
        module = self.get_module(module_id)
        if not module:
            return 0
        return sum(section.estimated_minutes for section in module.sections)

    @property
    def module_ids(self) -> list[int]:
        return [module.id for module in self.modules]


class AchievementCategory(str, Enum):
    PROGRESS = "progress"
    MASTERY = "mastery"
    ENGAGEMENT = "engagement"
    MILESTONE = "milestone"
    SPECIAL = "special"


class AchievementCriteria(BaseModel):
    """Criteria descriptor. Only `type` is required; the rest depend on it."""
    type: str
    module_id: Optional[int] = None
    percentage: Optional[int] = None
    max_minutes: Optional[int] = None
    min_minutes: Optional[int] = None
    count: Optional[int] = None
    days: Optional[int] = None
    max_hour: Optional[int] = None
    min_hour: Optional[int] = None


class AchievementMeta(BaseModel):
    id: str
    title: str
    description: str = ""
    category: AchievementCategory
    icon: str = ""
    points: int = Field(default=0, ge=0)
    criteria: AchievementCriteria
    hidden: bool = False


class AchievementCatalog(BaseModel):
    achievements: list[AchievementMeta]

    def get(self, achievement_id: str) -> Optional[AchievementMeta]:
        for achievement in self.achievements:
            if achievement.id == achievement_id:
                return achievement
        return None

    def by_category(self, category: AchievementCategory) -> list[AchievementMeta]:
        return [a for a in self.achievements if a.category == category]

    def visible(self) -> list[AchievementMeta]:
        return [a for a in self.achievements if not a.hidden]

    def hidden_achievements(self) -> list[AchievementMeta]:
        return [a for a in self.achievements if a.hidden]

    def total_points(self) -> int:
        return sum(a.points for a in self.achievements)

    def for_module(self, module_id: int) -> list[AchievementMeta]:
        """Achievements earned by finishing the given module."""
        return [
            a for a in self.achievements
            if a.criteria.type in ("module_complete", "module_perfect")
            and a.criteria.module_id == module_id
        ]
