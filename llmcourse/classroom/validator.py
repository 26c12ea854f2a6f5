"""
Validator - Structural checks and schema migration for stored progress.

Operates on the wire form (the parsed JSON dict) before it is turned into a
ProgressDocument, so every violation can be reported at once.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from llmcourse.schemas import (
    MODULE_IDS,
    SCHEMA_VERSION,
    AnimationSpeed,
    LearnerVariant,
    ModuleStatus,
)


logger = logging.getLogger(__name__)

VALID_VARIANTS = [v.value for v in LearnerVariant]
VALID_STATUSES = [s.value for s in ModuleStatus]
VALID_ANIMATION_SPEEDS = [s.value for s in AnimationSpeed]

# from-version -> transform producing the next version's wire dict
MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {}


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _module_entry(modules: Mapping, module_id: int) -> Any:
    # JSON keys are strings; in-memory dumps keep ints
    if str(module_id) in modules:
        return modules[str(module_id)]
    return modules.get(module_id)


def validate(candidate: Any) -> ValidationResult:
    """
    Check a candidate progress document against the persisted schema.

    All violations are collected. The candidate is not modified.
    """
    if not isinstance(candidate, Mapping):
        return ValidationResult(valid=False, errors=["Data must be an object"])

    errors = []

    if not _is_int(candidate.get("schemaVersion")):
        errors.append("schemaVersion must be an integer")

    if candidate.get("learnerVariant") not in VALID_VARIANTS:
        errors.append(f"learnerVariant must be one of: {', '.join(VALID_VARIANTS)}")

    if not isinstance(candidate.get("lastUpdated"), str):
        errors.append("lastUpdated must be a string (ISO 8601 timestamp)")

    current_module = candidate.get("currentModuleId")
    if not _is_int(current_module) or current_module not in MODULE_IDS:
        errors.append(f"currentModuleId must be one of: {', '.join(map(str, MODULE_IDS))}")

    current_section = candidate.get("currentSectionId")
    if current_section is not None and not isinstance(current_section, str):
        errors.append("currentSectionId must be a string or null")

    modules = candidate.get("modules")
    if not isinstance(modules, Mapping):
        errors.append("modules must be an object")
    else:
        expected_keys = {str(mid) for mid in MODULE_IDS}
        for key in modules:
            if str(key) not in expected_keys:
                errors.append(f"Unexpected module key: {key}")

        for module_id in MODULE_IDS:
            module = _module_entry(modules, module_id)
            if not isinstance(module, Mapping):
                errors.append(f"Module {module_id} is missing")
                continue
            if module.get("id") != module_id or not _is_int(module.get("id")):
                errors.append(f"Module {module_id} has incorrect id: {module.get('id')}")
            if not isinstance(module.get("title"), str):
                errors.append(f"Module {module_id} title must be a string")
            if module.get("status") not in VALID_STATUSES:
                errors.append(f"Module {module_id} has invalid status: {module.get('status')}")
            if not isinstance(module.get("sections"), list):
                errors.append(f"Module {module_id} sections must be a list")
            if not _is_number(module.get("completionPercentage")):
                errors.append(f"Module {module_id} completionPercentage must be a number")

    if not isinstance(candidate.get("achievements"), list):
        errors.append("achievements must be a list")

    if not isinstance(candidate.get("sessionHistory"), list):
        errors.append("sessionHistory must be a list")

    preferences = candidate.get("preferences")
    if not isinstance(preferences, Mapping):
        errors.append("preferences must be an object")
    else:
        if preferences.get("animationSpeed") not in VALID_ANIMATION_SPEEDS:
            errors.append(
                f"preferences.animationSpeed must be one of: {', '.join(VALID_ANIMATION_SPEEDS)}"
            )
        if not isinstance(preferences.get("autoplayAnimations"), bool):
            errors.append("preferences.autoplayAnimations must be a boolean")

    return ValidationResult(valid=not errors, errors=errors)


def needs_migration(candidate: Any) -> bool:
    """True when the stored version is missing or older than SCHEMA_VERSION."""
    if not isinstance(candidate, Mapping):
        return False
    version = candidate.get("schemaVersion")
    if version is None:
        return True
    return _is_int(version) and version < SCHEMA_VERSION


def migrate(candidate: Any) -> dict[str, Any]:
    """
    Bring a wire-form document up to SCHEMA_VERSION.

    A missing schemaVersion is read as version 1. Registered transforms run
    one version at a time; lastUpdated is refreshed if anything changed.

    Raises:
        ValueError: If candidate is not an object or a transform is missing
    """
    if not isinstance(candidate, Mapping):
        raise ValueError("Invalid data for migration")

    migrated = dict(candidate)
    changed = False

    if migrated.get("schemaVersion") is None:
        migrated["schemaVersion"] = 1
        changed = True

    version = migrated["schemaVersion"]
    if not _is_int(version):
        raise ValueError(f"Invalid schemaVersion for migration: {version!r}")

    while version < SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise ValueError(f"No migration path from v{version} to v{version + 1}")
        logger.info(f"Migrating progress data from v{version} to v{version + 1}")
        migrated = dict(step(migrated))
        version += 1
        migrated["schemaVersion"] = version
        changed = True

    if changed:
        migrated["lastUpdated"] = datetime.now(timezone.utc).isoformat()

    return migrated
