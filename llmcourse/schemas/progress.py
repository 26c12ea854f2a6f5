"""
Progress tracking schemas for llmcourse.

Defines Pydantic models for the persisted progress document:
- Module and section completion state
- Achievements and session history
- Learner preferences

Attributes are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


PROGRESS_STORAGE_KEY = "llm_edu_progress"
SCHEMA_VERSION = 1
MODULE_IDS = (1, 2, 3)


class ModuleStatus(str, Enum):
    LOCKED = "locked"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class LearnerVariant(str, Enum):
    """Content track selector. The engine never branches on it."""
    A = "A"
    B = "B"


class AnimationSpeed(str, Enum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class WireModel(BaseModel):
    """Immutable base with camelCase aliases for the persisted form."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class SectionProgress(WireModel):
    id: str
    title: str
    completed: bool = False
    completed_at: Optional[datetime] = None


class ModuleProgress(WireModel):
    id: int
    title: str
    status: ModuleStatus = ModuleStatus.LOCKED
    sections: list[SectionProgress]
    completion_percentage: int = Field(default=0, ge=0, le=100)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def find_section(self, section_id: str) -> Optional[SectionProgress]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    @property
    def completed_count(self) -> int:
        return sum(1 for section in self.sections if section.completed)


class Achievement(WireModel):
    id: str
    title: str
    unlocked_at: datetime


class SessionRecord(WireModel):
    session_start: datetime
    session_end: Optional[datetime] = None
    modules_visited: list[int] = Field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.session_end is None


class UserPreferences(WireModel):
    animation_speed: AnimationSpeed = AnimationSpeed.NORMAL
    autoplay_animations: bool = True


class ProgressDocument(WireModel):
    """
    Root aggregate: one per learner, stored under a single key.

    Every engine operation returns a new document; instances are never
    mutated in place.
    """
    schema_version: int = SCHEMA_VERSION
    learner_variant: LearnerVariant
    last_updated: datetime
    current_module_id: int = 1
    current_section_id: Optional[str] = None
    modules: dict[int, ModuleProgress]
    achievements: list[Achievement] = Field(default_factory=list)
    session_history: list[SessionRecord] = Field(default_factory=list)
    preferences: UserPreferences = Field(default_factory=UserPreferences)

    def get_module(self, module_id: int) -> Optional[ModuleProgress]:
        return self.modules.get(module_id)

    def to_wire(self) -> dict[str, Any]:
        """JSON-compatible dict using the persisted field names."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "ProgressDocument":
        return cls.model_validate(data)
