"""
llmcourse Classroom - Runtime progress engine.

This module provides:
- Validator: structural checks and schema migration
- ProgressStorage: persistence under a single key
- Completion, achievements and sessions: pure document updates
- Navigator: read-only queries
- ProgressTracker: optimistic state holder with rollback
"""

from .validator import (
    ValidationResult,
    MIGRATIONS,
    validate,
    migrate,
    needs_migration,
)

from .storage import (
    StorageError,
    StorageQuotaExceededError,
    StorageAccessDeniedError,
    KeyValueStore,
    MemoryKeyValueStore,
    SQLiteKeyValueStore,
    ProgressStorage,
    is_storage_available,
)

from .completion import (
    calculate_module_completion,
    create_initial_progress,
    complete_section,
    complete_module,
)

from .achievements import (
    get_achievement_metadata,
    unlock_achievement,
    evaluate_achievements,
)

from .sessions import (
    SessionAction,
    current_session,
    has_active_session,
    record_session,
)

from .navigator import (
    Location,
    ResumePoint,
    ModuleSummary,
    missing_prerequisites,
    module_status,
    is_module_complete,
    is_section_complete,
    overall_completion,
    next_module,
    previous_module,
    last_visited_location,
    next_incomplete_section,
    has_started_learning,
    resume_point,
    get_achievement,
    has_achievement,
    module_summaries,
    get_status_indicator,
)

from .tracker import (
    ProgressTracker,
    TrackerError,
)

__all__ = [
    # Validator
    "ValidationResult",
    "MIGRATIONS",
    "validate",
    "migrate",
    "needs_migration",
    # Storage
    "StorageError",
    "StorageQuotaExceededError",
    "StorageAccessDeniedError",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "ProgressStorage",
    "is_storage_available",
    # Completion
    "calculate_module_completion",
    "create_initial_progress",
    "complete_section",
    "complete_module",
    # Achievements
    "get_achievement_metadata",
    "unlock_achievement",
    "evaluate_achievements",
    # Sessions
    "SessionAction",
    "current_session",
    "has_active_session",
    "record_session",
    # Navigator
    "Location",
    "ResumePoint",
    "ModuleSummary",
    "missing_prerequisites",
    "module_status",
    "is_module_complete",
    "is_section_complete",
    "overall_completion",
    "next_module",
    "previous_module",
    "last_visited_location",
    "next_incomplete_section",
    "has_started_learning",
    "resume_point",
    "get_achievement",
    "has_achievement",
    "module_summaries",
    "get_status_indicator",
    # Tracker
    "ProgressTracker",
    "TrackerError",
]
