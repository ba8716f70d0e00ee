"""Resume snapshots for interrupted sessions."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from config.settings import settings
from observability import log_event
from storage import sessions as session_store
from storage import turns as turn_store

from .errors import InvalidState, NotFound
from .models import InterviewPhase, ResumeData, ResumeProgressState, Session, utc_now
from .turns import first_unanswered, last_answered, phase_for

logger = logging.getLogger(__name__)

RESUME_MESSAGES: dict[str, str] = {
    "small_talk": "Welcome back! Let's pick up our warm-up conversation where we left off.",
    "confirmation": "Welcome back! Whenever you're ready, we can start the interview questions.",
    "interview": "Welcome back! You've answered {answered} of {total} questions. Let's continue.",
    "complete": "All questions have been answered.",
    "pending": "Welcome back! Let's continue with your next question.",
}


def _expected_total(turn_count: int, answered: int) -> int:
    # the next turn may not have been generated yet
    return max(turn_count, answered + 1)


class ProgressTracker:
    """Persist and restore the advisory resume snapshot of a session.

    Snapshots are last-writer-wins: auto-save and answer submission may both
    write and neither is authoritative over the turn list itself.
    """

    def __init__(self, now: Callable[[], datetime] = utc_now) -> None:
        self._now = now

    def _require(self, session_id: str) -> Session:
        session = session_store.get_session(session_id)
        if session is None:
            raise NotFound(f"session {session_id} not found")
        return session

    def save_progress(
        self,
        session_id: str,
        current_turn_id: Optional[str],
        last_completed_turn_id: Optional[str],
        turn_index: int,
        phase: InterviewPhase,
    ) -> ResumeProgressState:
        turns = turn_store.list_turns(session_id)
        answered = sum(1 for turn in turns if turn.answered)
        timestamp = self._now().isoformat()
        state = ResumeProgressState(
            current_turn_id=current_turn_id,
            last_completed_turn_id=last_completed_turn_id,
            answered_count=answered,
            total_expected=_expected_total(len(turns), answered),
            turn_index=turn_index,
            interview_phase=phase,
            last_save_timestamp=timestamp,
        )
        session_store.save_progress_state(session_id, state, timestamp)
        log_event(
            "progress_saved",
            session_id,
            level=logging.DEBUG,
            turn_id=current_turn_id,
            phase=phase,
            turn_index=turn_index,
        )
        return state

    def auto_save(self, session_id: str) -> Optional[ResumeProgressState]:
        """Periodic snapshot derived from the turn list; no-op when nothing to save."""

        session = self._require(session_id)
        if session.status == "complete":
            return None
        turns = turn_store.list_turns(session_id)
        if not turns:
            return None
        current = first_unanswered(turns)
        completed = last_answered(turns)
        return self.save_progress(
            session_id,
            current.id if current else None,
            completed.id if completed else None,
            current.seq if current else len(turns),
            phase_for(current),
        )

    def get_resume_data(self, session_id: str) -> ResumeData:
        session = self._require(session_id)
        if session.status == "complete":
            return ResumeData(can_resume=False, message="This interview has already been completed.")
        state = session.progress_state
        if state is None:
            return ResumeData(can_resume=False, message="No saved progress found for this interview.")
        last_activity = session.last_activity or state.last_save_timestamp
        if self._now() - datetime.fromisoformat(last_activity) > timedelta(hours=settings.RESUME_WINDOW_HOURS):
            return ResumeData(
                can_resume=False,
                progress_state=state,
                message="Saved progress has expired. Please start the interview again.",
            )

        turns = turn_store.list_turns(session_id)
        by_id = {turn.id: turn for turn in turns}
        stored = by_id.get(state.current_turn_id) if state.current_turn_id else None
        resume_turn = stored if stored is not None and not stored.answered else first_unanswered(turns)
        if resume_turn is None:
            if session.status == "running":
                # answered but the next question is not generated yet; start() recreates it
                return ResumeData(can_resume=True, progress_state=state, message=RESUME_MESSAGES["pending"])
            return ResumeData(can_resume=False, progress_state=state, message=RESUME_MESSAGES["complete"])

        phase = phase_for(resume_turn)
        answered = sum(1 for turn in turns if turn.answered)
        message = RESUME_MESSAGES[phase].format(answered=answered, total=_expected_total(len(turns), answered))
        return ResumeData(can_resume=True, progress_state=state, resume_turn_id=resume_turn.id, message=message)

    def mark_complete(self, session_id: str) -> None:
        session = self._require(session_id)
        if session.status == "complete":
            return
        if not session_store.mark_complete(session_id):
            raise InvalidState(f"session {session_id} cannot complete from status {session.status}")
        logger.info("Session %s marked complete", session_id)


__all__ = ["ProgressTracker", "RESUME_MESSAGES"]
