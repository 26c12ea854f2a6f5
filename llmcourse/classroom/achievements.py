"""
Achievements - Record unlocked badges and evaluate document-decidable criteria.

`unlock_achievement` only enforces the recording contract (known id, at most
once). Deciding when to unlock belongs to callers; `evaluate_achievements`
is one such caller for the criteria that can be judged from the progress
document alone.
"""

import logging
from typing import Optional

from llmcourse.schemas import (
    Achievement,
    AchievementCatalog,
    AchievementMeta,
    ModuleStatus,
    ProgressDocument,
)
from llmcourse.utils import default_achievement_catalog

from .completion import utc_now
from .navigator import overall_completion


logger = logging.getLogger(__name__)


def get_achievement_metadata(
    achievement_id: str,
    catalog: Optional[AchievementCatalog] = None,
) -> Optional[AchievementMeta]:
    return (catalog or default_achievement_catalog()).get(achievement_id)


def unlock_achievement(
    achievement_id: str,
    doc: ProgressDocument,
    catalog: Optional[AchievementCatalog] = None,
) -> ProgressDocument:
    """
    Append an achievement if it is known and not yet unlocked.

    Returns `doc` unchanged for unknown or already-unlocked ids.
    """
    meta = get_achievement_metadata(achievement_id, catalog)
    if meta is None:
        logger.error(f"Achievement {achievement_id} not found in metadata")
        return doc

    if any(a.id == achievement_id for a in doc.achievements):
        logger.debug(f"Achievement {achievement_id} already unlocked")
        return doc

    now = utc_now()
    achievement = Achievement(id=achievement_id, title=meta.title, unlocked_at=now)

    logger.info(f"Achievement unlocked: {meta.title} ({achievement_id})")
    return doc.model_copy(update={
        "achievements": [*doc.achievements, achievement],
        "last_updated": now,
    })


def _criteria_met(meta: AchievementMeta, doc: ProgressDocument) -> bool:
    criteria = meta.criteria
    if criteria.type == "module_complete":
        module = doc.modules.get(criteria.module_id)
        return module is not None and module.status == ModuleStatus.COMPLETED
    if criteria.type == "completion_percentage":
        return overall_completion(doc) >= (criteria.percentage or 0)
    if criteria.type == "all_modules_complete":
        return bool(doc.modules) and all(
            m.status == ModuleStatus.COMPLETED for m in doc.modules.values()
        )
    # timing, streak and score based criteria need data the document lacks
    return False


def evaluate_achievements(
    doc: ProgressDocument,
    catalog: Optional[AchievementCatalog] = None,
) -> list[str]:
    """
    IDs of not-yet-unlocked achievements whose criteria the document meets.

    Only module_complete, completion_percentage and all_modules_complete
    criteria are evaluated.
    """
    unlocked = {a.id for a in doc.achievements}
    return [
        meta.id
        for meta in (catalog or default_achievement_catalog()).achievements
        if meta.id not in unlocked and _criteria_met(meta, doc)
    ]
