"""
Navigator - Read-only queries over a progress document.

Provides:
- Module status with prerequisite locking
- Overall completion
- Next/previous module navigation
- Resume point and last visited location
- Module summaries for display

Stored module status is a cache. The prerequisite check here is what
decides whether a module is locked.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from llmcourse.schemas import (
    MODULE_IDS,
    Achievement,
    Curriculum,
    ModuleStatus,
    ProgressDocument,
    SectionProgress,
)
from llmcourse.utils import default_curriculum

from .completion import calculate_module_completion, round_half_up


logger = logging.getLogger(__name__)


@dataclass
class Location:
    """Where the learner last was."""
    module_id: int
    section_id: Optional[str]


@dataclass
class ResumePoint:
    """Where to send a returning learner, with display text."""
    status: str  # no-progress, in-progress, all-complete
    module_id: Optional[int]
    section_id: Optional[str]
    module_title: Optional[str]
    section_title: Optional[str]
    overall_progress: int
    message: str


@dataclass
class ModuleSummary:
    """Module with computed status for list/sidebar display."""
    id: int
    title: str
    status: ModuleStatus
    completion_percentage: int
    completed_count: int
    total_count: int
    is_current: bool
    missing_prerequisites: list[int]


# -------------------------------------------------------------------------
# Module Status
# -------------------------------------------------------------------------

def missing_prerequisites(
    module_id: int,
    doc: ProgressDocument,
    curriculum: Optional[Curriculum] = None,
) -> list[int]:
    """Direct prerequisites of a module that are not completed."""
    prerequisites = (curriculum or default_curriculum()).get_prerequisites(module_id)
    return [
        prereq for prereq in prerequisites
        if prereq not in doc.modules
        or doc.modules[prereq].status != ModuleStatus.COMPLETED
    ]


def module_status(
    module_id: int,
    doc: ProgressDocument,
    curriculum: Optional[Curriculum] = None,
) -> ModuleStatus:
    """Stored status, overridden to locked while any prerequisite is incomplete."""
    module = doc.modules.get(module_id)
    if module is None:
        logger.warning(f"Module {module_id} not found")
        return ModuleStatus.LOCKED

    if missing_prerequisites(module_id, doc, curriculum):
        return ModuleStatus.LOCKED

    return module.status


def is_module_complete(module_id: int, doc: ProgressDocument) -> bool:
    module = doc.modules.get(module_id)
    return module is not None and module.status == ModuleStatus.COMPLETED


def is_section_complete(module_id: int, section_id: str, doc: ProgressDocument) -> bool:
    module = doc.modules.get(module_id)
    if module is None:
        return False
    section = module.find_section(section_id)
    return section.completed if section else False


def overall_completion(doc: ProgressDocument) -> int:
    """
    Unweighted mean of module completion percentages, rounded.

    Every module counts equally regardless of how many sections it has.
    """
    if not doc.modules:
        return 0
    total = sum(m.completion_percentage for m in doc.modules.values())
    return round_half_up(total / len(doc.modules))


# -------------------------------------------------------------------------
# Navigation
# -------------------------------------------------------------------------

def next_module(
    current_id: int,
    doc: ProgressDocument,
    curriculum: Optional[Curriculum] = None,
) -> Optional[int]:
    """Following module id, or None if there is none or it is locked."""
    next_id = current_id + 1
    if next_id not in MODULE_IDS:
        return None
    if module_status(next_id, doc, curriculum) == ModuleStatus.LOCKED:
        return None
    return next_id


def previous_module(current_id: int) -> Optional[int]:
    """Preceding module id, or None for the first module."""
    previous_id = current_id - 1
    return previous_id if previous_id in MODULE_IDS else None


def last_visited_location(doc: Optional[ProgressDocument]) -> Location:
    if doc is None:
        return Location(module_id=MODULE_IDS[0], section_id=None)
    return Location(
        module_id=doc.current_module_id or MODULE_IDS[0],
        section_id=doc.current_section_id,
    )


def next_incomplete_section(module_id: int, doc: ProgressDocument) -> Optional[SectionProgress]:
    """First incomplete section of a module in canonical order."""
    module = doc.modules.get(module_id)
    if module is None:
        return None
    return next((s for s in module.sections if not s.completed), None)


def has_started_learning(doc: Optional[ProgressDocument]) -> bool:
    """True once any section in any module is completed."""
    if doc is None:
        return False
    return any(s.completed for m in doc.modules.values() for s in m.sections)


def resume_point(
    doc: Optional[ProgressDocument],
    curriculum: Optional[Curriculum] = None,
) -> ResumePoint:
    """
    Recommend where a learner should continue.

    Priority:
    1. Nothing stored: start at the first module
    2. Everything done: nothing to resume
    3. First incomplete section of the first unlocked module that has one
    4. Last visited location

    overall_progress here counts sections, not modules.
    """
    curriculum = curriculum or default_curriculum()
    first_id = MODULE_IDS[0]

    if doc is None or not doc.modules:
        first = curriculum.get_module(first_id)
        return ResumePoint(
            status="no-progress",
            module_id=first_id,
            section_id=None,
            module_title=first.title if first else None,
            section_title=None,
            overall_progress=0,
            message=f"Start your learning journey with Module {first_id}",
        )

    total_sections = sum(len(m.sections) for m in doc.modules.values())
    completed_sections = sum(m.completed_count for m in doc.modules.values())
    overall = round_half_up(100 * completed_sections / total_sections) if total_sections else 0

    if overall == 100:
        return ResumePoint(
            status="all-complete",
            module_id=None,
            section_id=None,
            module_title=None,
            section_title=None,
            overall_progress=100,
            message="Congratulations! You have completed all modules",
        )

    for module_id in MODULE_IDS:
        module = doc.modules.get(module_id)
        if module is None or module_status(module_id, doc, curriculum) == ModuleStatus.LOCKED:
            continue
        section = next_incomplete_section(module_id, doc)
        if section:
            section_meta = curriculum.get_section(module_id, section.id)
            return ResumePoint(
                status="in-progress",
                module_id=module_id,
                section_id=section.id,
                module_title=module.title,
                section_title=section_meta.title if section_meta else section.title,
                overall_progress=overall,
                message=f"Continue with {module.title}",
            )

    location = last_visited_location(doc)
    module = doc.modules.get(location.module_id)
    section = module.find_section(location.section_id) if module and location.section_id else None
    return ResumePoint(
        status="in-progress",
        module_id=location.module_id,
        section_id=location.section_id,
        module_title=module.title if module else None,
        section_title=section.title if section else None,
        overall_progress=overall,
        message="Resume your learning",
    )


# -------------------------------------------------------------------------
# Achievements
# -------------------------------------------------------------------------

def get_achievement(achievement_id: str, doc: ProgressDocument) -> Optional[Achievement]:
    return next((a for a in doc.achievements if a.id == achievement_id), None)


def has_achievement(achievement_id: str, doc: ProgressDocument) -> bool:
    return get_achievement(achievement_id, doc) is not None


# -------------------------------------------------------------------------
# Display
# -------------------------------------------------------------------------

def module_summaries(
    doc: ProgressDocument,
    curriculum: Optional[Curriculum] = None,
) -> list[ModuleSummary]:
    """All modules in id order with computed status."""
    summaries = []
    for module_id in sorted(doc.modules):
        module = doc.modules[module_id]
        summaries.append(ModuleSummary(
            id=module.id,
            title=module.title,
            status=module_status(module_id, doc, curriculum),
            completion_percentage=calculate_module_completion(module),
            completed_count=module.completed_count,
            total_count=len(module.sections),
            is_current=module_id == doc.current_module_id,
            missing_prerequisites=missing_prerequisites(module_id, doc, curriculum),
        ))
    return summaries


def get_status_indicator(
    module_id: int,
    doc: ProgressDocument,
    curriculum: Optional[Curriculum] = None,
) -> str:
    """
    Status indicator for sidebar display.

    Returns:
        ✓ for completed
        → for current
        ○ for in progress
        ◌ for locked
    """
    status = module_status(module_id, doc, curriculum)
    if status == ModuleStatus.COMPLETED:
        return "✓"
    if status == ModuleStatus.LOCKED:
        return "◌"
    if module_id == doc.current_module_id:
        return "→"
    return "○"
