"""
Sessions - Learning session start/end records.

At most one session is open at a time. A second start is refused rather
than closing the open session, so recorded durations stay as reported.
"""

import logging
from enum import Enum
from typing import Optional

from llmcourse.schemas import ProgressDocument, SessionRecord

from .completion import utc_now


logger = logging.getLogger(__name__)


class SessionAction(str, Enum):
    START = "start"
    END = "end"


def current_session(doc: ProgressDocument) -> Optional[SessionRecord]:
    """Most recent session record, or None."""
    return doc.session_history[-1] if doc.session_history else None


def has_active_session(doc: ProgressDocument) -> bool:
    session = current_session(doc)
    return session is not None and session.is_active


def record_session(doc: ProgressDocument, action: SessionAction | str) -> ProgressDocument:
    """
    Start or end a session. Misuse returns `doc` unchanged with a warning.
    """
    if action == SessionAction.START:
        if has_active_session(doc):
            logger.warning("Active session already exists. End it first before starting a new one.")
            return doc

        now = utc_now()
        session = SessionRecord(
            session_start=now,
            session_end=None,
            modules_visited=[doc.current_module_id],
        )
        logger.info(f"New session started at {now.isoformat()}")
        return doc.model_copy(update={
            "session_history": [*doc.session_history, session],
            "last_updated": now,
        })

    if action == SessionAction.END:
        session = current_session(doc)
        if session is None:
            logger.warning("No session to end")
            return doc
        if not session.is_active:
            logger.warning("Current session is already ended")
            return doc

        now = utc_now()
        logger.info(f"Session ended at {now.isoformat()}")
        return doc.model_copy(update={
            "session_history": [
                *doc.session_history[:-1],
                session.model_copy(update={"session_end": now}),
            ],
            "last_updated": now,
        })

    logger.error(f"Invalid action: {action}. Must be 'start' or 'end'.")
    return doc
