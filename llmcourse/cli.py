"""
llmcourse command line - Inspect and update stored course progress.

Usage:
  llmcourse init --variant A
  llmcourse status
  llmcourse complete 1 intro_what_are_llms
  llmcourse complete-module 1
  llmcourse unlock first_steps
  llmcourse session start
  llmcourse award
  llmcourse resume
  llmcourse validate
  llmcourse reset --yes
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from llmcourse.classroom import (
    ProgressStorage,
    ProgressTracker,
    SQLiteKeyValueStore,
    StorageError,
    get_status_indicator,
    module_summaries,
    resume_point,
    validate,
)
from llmcourse.config import get_settings, open_default_storage
from llmcourse.schemas import LearnerVariant


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llmcourse",
        description="Inspect and update stored course progress",
    )
    parser.add_argument("--db", type=Path, help="Progress database (default: from settings)")
    parser.add_argument("--log-level", help="Logging level (default: from settings)")

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Create fresh progress")
    init.add_argument("--variant", choices=[v.value for v in LearnerVariant], required=True)

    sub.add_parser("status", help="Show module status and completion")

    complete = sub.add_parser("complete", help="Mark a section complete")
    complete.add_argument("module_id", type=int)
    complete.add_argument("section_id")

    complete_mod = sub.add_parser("complete-module", help="Mark every section of a module complete")
    complete_mod.add_argument("module_id", type=int)

    unlock = sub.add_parser("unlock", help="Unlock an achievement")
    unlock.add_argument("achievement_id")

    session = sub.add_parser("session", help="Start or end a learning session")
    session.add_argument("action", choices=["start", "end"])

    sub.add_parser("award", help="Unlock every achievement already earned")
    sub.add_parser("resume", help="Show where to continue")
    sub.add_parser("validate", help="Check the stored document")

    reset = sub.add_parser("reset", help="Delete all stored progress")
    reset.add_argument("--yes", action="store_true", help="Skip confirmation")

    return parser


def print_status(tracker: ProgressTracker):
    doc = tracker.progress
    print(f"Learner variant: {doc.learner_variant.value}")
    print(f"Overall completion: {tracker.overall_completion}%")
    print()
    for summary in module_summaries(doc, tracker.curriculum):
        indicator = get_status_indicator(summary.id, doc, tracker.curriculum)
        print(
            f"  {indicator} Module {summary.id}: {summary.title} "
            f"({summary.completed_count}/{summary.total_count}, {summary.completion_percentage}%) "
            f"[{summary.status.value}]"
        )
    if doc.achievements:
        print()
        print("Achievements:")
        for achievement in doc.achievements:
            print(f"  - {achievement.title} ({achievement.unlocked_at:%Y-%m-%d})")


def run(args: argparse.Namespace, storage: ProgressStorage) -> int:
    tracker = ProgressTracker(storage)

    if args.command == "init":
        ok = tracker.initialize(args.variant)
        if ok:
            print("Progress initialized.")
        return 0 if ok else 1

    if args.command == "reset":
        if not args.yes:
            answer = input("Delete all progress? [y/N] ")
            if answer.strip().lower() != "y":
                print("Aborted.")
                return 1
        ok = tracker.reset()
        if ok:
            print("Progress reset.")
        return 0 if ok else 1

    if args.command == "validate":
        try:
            raw = storage.store.get_item(storage.key)
        except StorageError as e:
            print(f"Cannot read storage: {e}")
            return 1
        if raw is None:
            print("No progress stored.")
            return 0
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            print(f"Stored progress is not valid JSON: {e}")
            return 1
        result = validate(data)
        if result.valid:
            print("Stored progress is valid.")
            return 0
        print("Stored progress is invalid:")
        for error in result.errors:
            print(f"  - {error}")
        return 1

    tracker.load()

    if args.command == "resume":
        point = resume_point(tracker.progress, tracker.curriculum)
        print(point.message)
        if point.module_id is not None:
            location = f"Module {point.module_id}"
            if point.section_title:
                location += f" - {point.section_title}"
            print(f"  {location} ({point.overall_progress}% overall)")
        return 0

    if not tracker.is_initialized:
        print("No progress found. Run `llmcourse init --variant A` first.")
        return 1

    if args.command == "status":
        print_status(tracker)
        return 0

    if args.command == "complete":
        ok = tracker.mark_section_complete(args.module_id, args.section_id)
    elif args.command == "complete-module":
        ok = tracker.mark_module_complete(args.module_id)
    elif args.command == "unlock":
        ok = tracker.unlock_achievement(args.achievement_id)
    elif args.command == "session":
        ok = tracker.start_session() if args.action == "start" else tracker.end_session()
    elif args.command == "award":
        awarded = tracker.award_earned_achievements()
        for achievement_id in awarded:
            print(f"Unlocked: {tracker.catalog.get(achievement_id).title}")
        ok = tracker.error is None
    else:
        raise ValueError(f"Unknown command: {args.command}")

    if tracker.error:
        print(f"Error ({tracker.error.type}): {tracker.error.message}")
    return 0 if ok else 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    if args.db:
        storage = ProgressStorage(
            SQLiteKeyValueStore(args.db, quota_bytes=settings.quota_bytes),
            key=settings.storage_key,
        )
    else:
        storage = open_default_storage(settings)

    return run(args, storage)


if __name__ == "__main__":
    sys.exit(main())
