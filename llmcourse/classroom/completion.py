"""
Completion engine - Section completion, module status and cascade unlocking.

Module state machine: locked -> in-progress -> completed.

Completion is derived from section state only: the percentage is always
recomputed from the section list and a module becomes completed exactly when
its last section does. Functions here never touch storage; callers persist
the returned document.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from llmcourse.schemas import (
    MODULE_IDS,
    SCHEMA_VERSION,
    Curriculum,
    LearnerVariant,
    ModuleMeta,
    ModuleProgress,
    ModuleStatus,
    ProgressDocument,
    SectionProgress,
    UserPreferences,
)
from llmcourse.utils import default_curriculum


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negatives."""
    return int(math.floor(value + 0.5))


def calculate_module_completion(module: ModuleProgress) -> int:
    """Percentage of completed sections, 0 for a module without sections."""
    if not module.sections:
        return 0
    return round_half_up(100 * module.completed_count / len(module.sections))


# -------------------------------------------------------------------------
# Initial document
# -------------------------------------------------------------------------

def _initial_module(meta: ModuleMeta, now: datetime) -> ModuleProgress:
    is_locked = bool(meta.prerequisites)
    return ModuleProgress(
        id=meta.id,
        title=meta.title,
        status=ModuleStatus.LOCKED if is_locked else ModuleStatus.IN_PROGRESS,
        sections=[
            SectionProgress(id=section.id, title=section.title)
            for section in meta.sections
        ],
        completion_percentage=0,
        started_at=None if is_locked else now,
    )


def create_initial_progress(
    learner_variant: LearnerVariant | str,
    curriculum: Optional[Curriculum] = None,
) -> ProgressDocument:
    """
    Build the first-use document: modules without prerequisites start
    in progress, the rest locked, nothing completed.

    Raises:
        ValueError: If the variant is unknown or the curriculum does not
            define exactly the fixed module ids
    """
    valid_variants = [v.value for v in LearnerVariant]
    if learner_variant not in valid_variants:
        raise ValueError(
            f"Invalid learner variant: {learner_variant}. Must be one of: {', '.join(valid_variants)}"
        )

    curriculum = curriculum or default_curriculum()
    if sorted(curriculum.module_ids) != list(MODULE_IDS):
        raise ValueError(
            f"Curriculum must define modules {list(MODULE_IDS)}, got {curriculum.module_ids}"
        )

    now = utc_now()
    return ProgressDocument(
        schema_version=SCHEMA_VERSION,
        learner_variant=LearnerVariant(learner_variant),
        last_updated=now,
        current_module_id=MODULE_IDS[0],
        current_section_id=None,
        modules={meta.id: _initial_module(meta, now) for meta in curriculum.modules},
        achievements=[],
        session_history=[],
        preferences=UserPreferences(),
    )


# -------------------------------------------------------------------------
# Section completion
# -------------------------------------------------------------------------

def _unlock_next_module(
    module_id: int,
    modules: dict[int, ModuleProgress],
    curriculum: Curriculum,
    now: datetime,
) -> dict[int, ModuleProgress]:
    """Unlock module_id + 1 if it is locked and all its prerequisites are completed."""
    next_id = module_id + 1
    next_module = modules.get(next_id)
    if next_module is None or next_module.status != ModuleStatus.LOCKED:
        return modules

    prerequisites = curriculum.get_prerequisites(next_id)
    all_met = all(
        prereq in modules and modules[prereq].status == ModuleStatus.COMPLETED
        for prereq in prerequisites
    )
    if not all_met:
        return modules

    logger.info(f"Unlocking module {next_id}")
    return {
        **modules,
        next_id: next_module.model_copy(update={
            "status": ModuleStatus.IN_PROGRESS,
            "started_at": now,
        }),
    }


def complete_section(
    module_id: int,
    section_id: str,
    doc: ProgressDocument,
    curriculum: Optional[Curriculum] = None,
) -> ProgressDocument:
    """
    Mark a section complete and return the updated document.

    Unknown module or section ids and already-completed sections return
    `doc` unchanged. Completing a module's last section marks it completed
    and may unlock the module after it.
    """
    module = doc.modules.get(module_id)
    if module is None:
        logger.error(f"Module {module_id} not found in progress data")
        return doc

    section_index = next(
        (i for i, s in enumerate(module.sections) if s.id == section_id), None
    )
    if section_index is None:
        logger.error(f"Section {section_id} not found in module {module_id}")
        return doc

    if module.sections[section_index].completed:
        logger.debug(f"Section {section_id} already completed")
        return doc

    now = utc_now()
    sections = list(module.sections)
    sections[section_index] = sections[section_index].model_copy(update={
        "completed": True,
        "completed_at": now,
    })

    completed_count = sum(1 for s in sections if s.completed)
    completion_percentage = round_half_up(100 * completed_count / len(sections))

    status = module.status
    completed_at = module.completed_at
    if completion_percentage == 100:
        status = ModuleStatus.COMPLETED
        completed_at = now
        logger.info(f"Module {module_id} completed")
    elif module.status == ModuleStatus.LOCKED:
        # any completed section means the module is being worked on
        status = ModuleStatus.IN_PROGRESS

    modules = {
        **doc.modules,
        module_id: module.model_copy(update={
            "sections": sections,
            "completion_percentage": completion_percentage,
            "status": status,
            "completed_at": completed_at,
            "started_at": module.started_at or now,
        }),
    }

    if status == ModuleStatus.COMPLETED:
        modules = _unlock_next_module(module_id, modules, curriculum or default_curriculum(), now)

    logger.info(f"Section {section_id} in module {module_id} marked as complete")
    return doc.model_copy(update={
        "modules": modules,
        "current_module_id": module_id,
        "current_section_id": section_id,
        "last_updated": now,
    })


def complete_module(
    module_id: int,
    doc: ProgressDocument,
    curriculum: Optional[Curriculum] = None,
) -> ProgressDocument:
    """Complete every remaining section of a module, in canonical order."""
    module = doc.modules.get(module_id)
    if module is None:
        logger.error(f"Module {module_id} not found in progress data")
        return doc

    updated = doc
    for section in module.sections:
        if not section.completed:
            updated = complete_section(module_id, section.id, updated, curriculum)
    return updated
