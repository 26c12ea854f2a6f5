"""
ProgressTracker - Hold the learner's document and persist every change.

Mutations are optimistic: the new document is applied in memory first, then
saved. If the save fails the in-memory view rolls back to the last document
that was confirmed saved, and `error` describes the failure.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from llmcourse.schemas import (
    AchievementCatalog,
    Curriculum,
    LearnerVariant,
    ProgressDocument,
)
from llmcourse.utils import default_achievement_catalog, default_curriculum

from .achievements import evaluate_achievements, unlock_achievement
from .completion import complete_module, complete_section, create_initial_progress
from .navigator import overall_completion
from .sessions import SessionAction, record_session
from .storage import ProgressStorage, is_storage_available


logger = logging.getLogger(__name__)


@dataclass
class TrackerError:
    """Last failure, for display. `type` is a short machine-readable tag."""
    type: str
    message: str


class ProgressTracker:
    """
    Single owner of the current progress document.

    Combines ProgressStorage (durable state) with the pure engine functions.
    """

    def __init__(
        self,
        storage: ProgressStorage,
        curriculum: Optional[Curriculum] = None,
        catalog: Optional[AchievementCatalog] = None,
    ):
        """
        Initialize tracker.

        Args:
            storage: Gateway used for every load, save and clear
            curriculum: Module/section table (default: packaged curriculum)
            catalog: Achievement table (default: packaged achievements)
        """
        self.storage = storage
        self.curriculum = curriculum or default_curriculum()
        self.catalog = catalog or default_achievement_catalog()
        self.error: Optional[TrackerError] = None
        self._progress: Optional[ProgressDocument] = None
        self._last_confirmed: Optional[ProgressDocument] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def progress(self) -> Optional[ProgressDocument]:
        """Current (possibly unsaved) document."""
        return self._progress

    @property
    def last_confirmed(self) -> Optional[ProgressDocument]:
        """Most recent document known to be saved."""
        return self._last_confirmed

    @property
    def is_initialized(self) -> bool:
        return self._progress is not None

    @property
    def overall_completion(self) -> int:
        return overall_completion(self._progress) if self._progress else 0

    @property
    def memory_only(self) -> bool:
        """True when the store refuses a probe write, so nothing will persist."""
        return not is_storage_available(self.storage.store)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def load(self, initial_variant: LearnerVariant | str | None = None) -> Optional[ProgressDocument]:
        """
        Load stored progress.

        If nothing usable is stored and `initial_variant` is given, a fresh
        document is created and saved. A fresh document that cannot be saved
        is still kept in memory.
        """
        self.error = None
        loaded = self.storage.load()
        if loaded is not None:
            self._progress = loaded
            self._last_confirmed = loaded
            return loaded

        if initial_variant is None:
            return None

        fresh = create_initial_progress(initial_variant, self.curriculum)
        self._progress = fresh
        if self.storage.save(fresh):
            self._last_confirmed = fresh
        else:
            self.error = TrackerError("save_failed", "Could not save progress to storage")
        return fresh

    def initialize(self, learner_variant: LearnerVariant | str) -> bool:
        """Start over with a fresh document. Returns True if it was saved."""
        self.error = None
        try:
            fresh = create_initial_progress(learner_variant, self.curriculum)
        except ValueError as e:
            logger.error(f"Error initializing progress: {e}")
            self.error = TrackerError("init_failed", str(e))
            return False

        if not self.storage.save(fresh):
            logger.error("Failed to save initial progress")
            self.error = TrackerError("init_failed", "Could not initialize progress")
            return False

        logger.info("Progress initialized and saved for new learner")
        self._progress = fresh
        self._last_confirmed = fresh
        return True

    def reset(self) -> bool:
        """Remove stored progress entirely."""
        self.error = None
        if not self.storage.clear():
            self.error = TrackerError("reset_failed", "Could not clear progress")
            return False

        self._progress = None
        self._last_confirmed = None
        return True

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _require_progress(self, action: str) -> bool:
        if self._progress is None:
            logger.error(f"Cannot {action}: progress not initialized")
            self.error = TrackerError("not_initialized", "Progress not initialized")
            return False
        return True

    def _apply(self, updated: ProgressDocument) -> bool:
        """Apply optimistically, save, roll back on failure. Only a save clears `error`."""
        previous = self._progress
        if updated is previous:
            return True

        self._progress = updated
        if self.storage.save(updated):
            self._last_confirmed = updated
            self.error = None
            return True

        logger.error("Failed to save progress, rolling back")
        # nothing confirmed yet means memory-only mode: keep the prior view
        self._progress = self._last_confirmed if self._last_confirmed is not None else previous
        self.error = TrackerError(
            "save_failed", "Could not save progress. Your latest change may not persist."
        )
        return False

    def mark_section_complete(self, module_id: int, section_id: str) -> bool:
        if not self._require_progress("mark section complete"):
            return False
        return self._apply(complete_section(module_id, section_id, self._progress, self.curriculum))

    def mark_module_complete(self, module_id: int) -> bool:
        if not self._require_progress("mark module complete"):
            return False
        if module_id not in self._progress.modules:
            logger.error(f"Module {module_id} not found")
            self.error = TrackerError("module_not_found", f"Module {module_id} not found")
            return False
        return self._apply(complete_module(module_id, self._progress, self.curriculum))

    def unlock_achievement(self, achievement_id: str) -> bool:
        if not self._require_progress("unlock achievement"):
            return False
        if self.catalog.get(achievement_id) is None:
            self.error = TrackerError(
                "unknown_achievement", f"Achievement {achievement_id} not found"
            )
            return False
        return self._apply(unlock_achievement(achievement_id, self._progress, self.catalog))

    def _record_session(self, action: SessionAction) -> bool:
        if not self._require_progress(f"{action.value} session"):
            return False
        updated = record_session(self._progress, action)
        if updated is self._progress:
            return False
        return self._apply(updated)

    def start_session(self) -> bool:
        """Open a session. False if one is already open or the save failed."""
        return self._record_session(SessionAction.START)

    def end_session(self) -> bool:
        """Close the open session. False if none is open or the save failed."""
        return self._record_session(SessionAction.END)

    def award_earned_achievements(self) -> list[str]:
        """
        Unlock every achievement whose criteria the current document meets.

        Returns the ids that were unlocked and saved.
        """
        if not self._require_progress("award achievements"):
            return []
        earned = evaluate_achievements(self._progress, self.catalog)
        if not earned:
            return []

        updated = self._progress
        for achievement_id in earned:
            updated = unlock_achievement(achievement_id, updated, self.catalog)
        return earned if self._apply(updated) else []
