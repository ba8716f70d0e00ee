"""Session controller: the single entry point driving an interview.

Every submission flows through one place: claim the session, attach the
answer, fold it into the rolling summary, then branch on the turn type. Only
scored questions run the adaptive loop (quality, difficulty, stage, next
question, bridge). Persistence goes through ``storage`` with conditional
updates so retries and concurrent duplicates never double-advance a session.
"""
from __future__ import annotations

import logging
import random
import uuid
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from config.settings import settings
from generation.client import TextGenerator
from generation.feedback import FeedbackGenerator, InterviewFeedback, load_feedback
from generation.narrative import NarrativeGenerator
from generation.prompts import difficulty_band
from generation.questions import QuestionGenerator, QuestionRequest
from observability import log_event, span
from storage import sessions as session_store
from storage import turns as turn_store
from storage.entitlements import EntitlementService

from .difficulty import baseline_entry, next_difficulty, opening_entry
from .errors import DuplicateSubmission, InvalidState, NotFound
from .models import (
    RESUMABLE_STATUSES,
    Category,
    InterviewState,
    Question,
    Session,
    StartResult,
    SubmitResult,
    Turn,
    TurnTiming,
    TurnType,
    utc_now,
)
from .progress import ProgressTracker
from .quality import assess_answer_quality
from .stages import even_split, generate_stage_targets, infer_stage_category, should_advance, stage_name
from .summary import update_summary
from .turns import (
    answered_in_stage,
    confirmation_question,
    first_unanswered,
    next_unanswered_after,
    question_turns,
    small_talk_question,
)

logger = logging.getLogger(__name__)

DONE_STATUSES = ("feedback", "complete")


def _new_id() -> str:
    return str(uuid.uuid4())


class SessionController:
    def __init__(
        self,
        questions: QuestionGenerator,
        narrative: NarrativeGenerator,
        feedback: FeedbackGenerator,
        entitlements: EntitlementService,
        *,
        progress: Optional[ProgressTracker] = None,
        rng: Optional[random.Random] = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.questions = questions
        self.narrative = narrative
        self.feedback = feedback
        self.entitlements = entitlements
        self.progress = progress or ProgressTracker(now=now)
        self._rng = rng
        self._now = now

    @classmethod
    def from_generator(
        cls, generator: TextGenerator, entitlements: EntitlementService, **kwargs: Any
    ) -> "SessionController":
        return cls(
            QuestionGenerator(generator),
            NarrativeGenerator(generator),
            FeedbackGenerator(generator),
            entitlements,
            **kwargs,
        )

    # ------------------------------------------------------------------ helpers

    def _require(self, session_id: str) -> Session:
        session = session_store.get_session(session_id)
        if session is None:
            raise NotFound(f"session {session_id} not found")
        return session

    def question_cap(self, session: Session) -> int:
        cap = session.limits.question_cap
        if not session.is_paid:
            return min(cap or settings.FREE_QUESTION_CAP, settings.FREE_QUESTION_CAP)
        if cap:
            return cap
        if session.stage_targets:
            return sum(session.stage_targets)
        return settings.DEFAULT_QUESTION_CAP

    def _stage_name(self, session: Session, stage: Optional[int] = None) -> str:
        return stage_name(stage or session.current_stage, session.stage_names)

    def _expected_category(self, session: Session, stage: int) -> Optional[Category]:
        if not session.is_multi_stage:
            return None
        return infer_stage_category(self._stage_name(session, stage))

    def _new_turn(self, session: Session, seq: int, turn_type: TurnType, question: Question, **extra: Any) -> Turn:
        return Turn(
            id=_new_id(),
            session_id=session.id,
            seq=seq,
            turn_type=turn_type,
            question=question,
            timing=TurnTiming(started_at=self._now().isoformat()),
            **extra,
        )

    @staticmethod
    def _next_seq(turns: List[Turn]) -> int:
        return max((turn.seq for turn in turns), default=-1) + 1

    def _request(
        self,
        session: Session,
        turns: List[Turn],
        *,
        stage: int,
        forced_difficulty=None,
    ) -> QuestionRequest:
        cap = self.question_cap(session)
        return QuestionRequest(
            snapshot=session.research_snapshot,
            prior_turns=turns,
            conversation_summary=session.conversation_summary,
            question_number=len(question_turns(turns)) + 1,
            total_questions=cap,
            stage_index=stage,
            stage_name=self._stage_name(session, stage),
            stages_planned=session.stages_planned,
            position_in_stage=answered_in_stage(turns, stage) + 1,
            mode=session.mode,
            forced_difficulty=forced_difficulty,
            expected_category=self._expected_category(session, stage),
        )

    def _generate_first_question(self, session: Session, turns: List[Turn]) -> Turn:
        """Generate the opening scored question and seed the difficulty curve."""

        request = self._request(session, turns, stage=session.current_stage)
        events: List[Dict[str, Any]] = []
        with span(events, "generate_question"):
            question = self.questions.generate(request)
        turn = self._new_turn(session, self._next_seq(turns), TurnType.QUESTION, question, stage=session.current_stage)
        if not turn_store.insert_turn(turn):
            logger.info("Opening question for %s already created concurrently", session.id)
            existing = first_unanswered(turn_store.list_turns(session.id))
            if existing is None:
                raise InvalidState(f"session {session.id} has no pending turn")
            return existing
        baseline = difficulty_band(1, request.total_questions)
        now = self._now()
        session_store.append_difficulty(
            session.id,
            [
                baseline_entry(baseline, now=now),
                opening_entry(baseline, question.difficulty, turn_index=request.question_number, now=now),
            ],
        )
        log_event(
            "difficulty_adjusted",
            session.id,
            turn_id=turn.id,
            difficulty=question.difficulty,
            adjustment="baseline",
            ms=events[-1]["ms"],
        )
        return turn

    def _opening_turns(self, session: Session) -> List[Turn]:
        time_limit = settings.QUESTION_TIME_LIMIT
        texts = self.narrative.small_talk(session)
        turns = [
            self._new_turn(session, seq, TurnType.SMALL_TALK, small_talk_question(text, time_limit))
            for seq, text in enumerate(texts)
        ]
        turns.append(self._new_turn(session, len(turns), TurnType.CONFIRMATION, confirmation_question(time_limit)))
        return turns

    # ------------------------------------------------------------------ start

    def start(self, session_id: str) -> StartResult:
        """Begin or resume a session and return the turn to present."""

        session = self._require(session_id)
        if session.status not in RESUMABLE_STATUSES:
            raise InvalidState(f"session {session_id} cannot start from status {session.status}")
        if session.status == "ready":
            session_store.transition_status(session_id, ["ready"], "running")
        if session.is_multi_stage and session.stage_targets is None:
            targets = session_store.set_stage_targets_if_absent(
                session_id, generate_stage_targets(session.stages_planned, self._rng)
            )
            logger.info("Stage targets for %s: %s", session_id, targets)
        if session.is_paid and session.intro_text is None:
            session_store.set_intro_if_absent(session_id, self.narrative.intro(session))
        session = self._require(session_id)

        turns = turn_store.list_turns(session_id)
        if not turns:
            if session.is_paid and session.current_stage == 1:
                turn_store.insert_turns_if_empty(session_id, self._opening_turns(session))
            else:
                self._generate_first_question(session, turns)
            turns = turn_store.list_turns(session_id)
        current = first_unanswered(turns)
        if current is None and not question_turns(turns):
            self._generate_first_question(session, turns)
            turns = turn_store.list_turns(session_id)
            current = first_unanswered(turns)
        elif current is None and session.status == "running":
            # an earlier submission stored its answer but failed before the next question existed
            self._resume_after(session_id, question_turns(turns)[-1])
            session = self._require(session_id)
            turns = turn_store.list_turns(session_id)
            current = first_unanswered(turns)

        small_talk_ids: List[str] = []
        if current is not None and current.turn_type is TurnType.SMALL_TALK:
            small_talk_ids = [
                turn.id for turn in turns if turn.turn_type is TurnType.SMALL_TALK and not turn.answered
            ]
            current = next(
                (turn for turn in turns if turn.turn_type is TurnType.CONFIRMATION and not turn.answered),
                current,
            )

        log_event(
            "session_started",
            session_id,
            status=session.status,
            stage=session.current_stage,
            turn_id=current.id if current else None,
            turn_type=current.turn_type.value if current else None,
        )
        return StartResult(
            session_id=session_id,
            turn_id=current.id if current else None,
            turn_type=current.turn_type if current else None,
            question=current.question if current else None,
            intro=session.intro_text or "",
            small_talk_turn_ids=small_talk_ids,
            current_stage=session.current_stage,
            stage_name=self._stage_name(session),
        )

    # ------------------------------------------------------------------ submit

    def _duplicate(self, session_id: str, turn: Turn, reason: str) -> SubmitResult:
        session = self._require(session_id)
        log_event("duplicate_submission", session.id, level=logging.WARNING, turn_id=turn.id, reason=reason)
        following = next_unanswered_after(turn_store.list_turns(session.id), turn.seq)
        return SubmitResult(
            done=session.status in DONE_STATUSES,
            next_question=following.question if following else None,
            turn_id=following.id if following else None,
            current_stage=session.current_stage,
            stage_name=self._stage_name(session),
            duplicate=True,
        )

    def _timing(self, turn: Turn, reveal_count: int) -> TurnTiming:
        completed = self._now()
        started = datetime.fromisoformat(turn.timing.started_at)
        return TurnTiming(
            started_at=turn.timing.started_at,
            completed_at=completed.isoformat(),
            duration_ms=max(0, int((completed - started).total_seconds() * 1000)),
            reveal_count=max(0, reveal_count),
        )

    def submit_answer(
        self,
        session_id: str,
        turn_id: str,
        answer_text: str,
        audio_key: Optional[str] = None,
        reveal_count: int = 0,
    ) -> SubmitResult:
        session = self._require(session_id)
        turn = turn_store.get_turn(turn_id)
        if turn is None or turn.session_id != session_id:
            raise NotFound(f"turn {turn_id} not found in session {session_id}")
        try:
            if session.status in DONE_STATUSES and turn.answered:
                raise DuplicateSubmission("session already finished")
            if session.status != "running":
                raise InvalidState(f"session {session_id} is not accepting answers (status {session.status})")
            claimed_at = self._now()
            if not session_store.claim_submission(
                session_id, turn_id, lease_seconds=settings.SUBMISSION_LEASE_SECONDS, now=claimed_at
            ):
                raise DuplicateSubmission("another submission is in flight")
            try:
                return self._process(session_id, turn_id, answer_text, audio_key, reveal_count)
            finally:
                session_store.release_submission(session_id, turn_id, claimed_at)
        except DuplicateSubmission as exc:
            return self._duplicate(session_id, turn, str(exc))

    def _resume_after(self, session_id: str, turn: Turn) -> None:
        """Rerun the adaptive step for an answered question that has no successor."""

        claimed_at = self._now()
        if not session_store.claim_submission(
            session_id, turn.id, lease_seconds=settings.SUBMISSION_LEASE_SECONDS, now=claimed_at
        ):
            logger.info("Submission for %s still in flight; not resuming turn %s", session_id, turn.id)
            return
        try:
            result = self._process(session_id, turn.id, turn.answer_text or "", turn.answer_audio_key, 0)
        except DuplicateSubmission as exc:
            logger.info("Turn %s of %s resumed concurrently: %s", turn.id, session_id, exc)
            return
        finally:
            session_store.release_submission(session_id, turn.id, claimed_at)
        log_event("generation_resumed", session_id, turn_id=turn.id, next_turn_id=result.turn_id, done=result.done)

    def _process(
        self,
        session_id: str,
        turn_id: str,
        answer_text: str,
        audio_key: Optional[str],
        reveal_count: int,
    ) -> SubmitResult:
        session = self._require(session_id)
        turn = turn_store.get_turn(turn_id)
        turns = turn_store.list_turns(session_id)
        if turn is None:
            raise NotFound(f"turn {turn_id} not found")

        if turn.answered:
            # A retry is only resumed when the earlier attempt failed before creating the next turn.
            later = [t for t in turns if t.seq > turn.seq]
            if later or turn.turn_type is TurnType.SMALL_TALK:
                raise DuplicateSubmission("turn already answered")
            answer = turn.answer_text or ""
        else:
            answer = answer_text
            answered_before = sum(1 for t in turns if t.answered)
            summary, digest = update_summary(
                session.conversation_summary,
                answered_before + 1,
                turn.question,
                answer,
                digest_fn=self.narrative.digest,
                session_id=session_id,
            )
            if not turn_store.attach_answer(
                turn_id,
                answer_text=answer,
                audio_key=audio_key,
                digest=digest,
                timing=self._timing(turn, reveal_count),
            ):
                raise DuplicateSubmission("turn already answered")
            session_store.save_summary(session_id, summary)
            log_event(
                "answer_submitted",
                session_id,
                turn_id=turn_id,
                turn_type=turn.turn_type.value,
                words=digest.word_count,
            )
            session = self._require(session_id)
            turns = turn_store.list_turns(session_id)
            turn = next(t for t in turns if t.id == turn_id)

        match turn.turn_type:
            case TurnType.SMALL_TALK:
                following = next_unanswered_after(turns, turn.seq)
                self.progress.auto_save(session_id)
                return SubmitResult(
                    done=False,
                    current_stage=session.current_stage,
                    stage_name=self._stage_name(session),
                    advance_to_turn_id=following.id if following else None,
                )
            case TurnType.CONFIRMATION:
                pending = next(
                    (t for t in question_turns(turns) if not t.answered),
                    None,
                )
                if pending is None:
                    pending = self._generate_first_question(session, turns)
                self.progress.auto_save(session_id)
                return SubmitResult(
                    done=False,
                    next_question=pending.question,
                    turn_id=pending.id,
                    current_stage=session.current_stage,
                    stage_name=self._stage_name(session),
                )
            case TurnType.QUESTION:
                return self._advance(session, turns, turn, answer)

    def _advance(self, session: Session, turns: List[Turn], turn: Turn, answer: str) -> SubmitResult:
        """Adaptive loop for an answered scored question."""

        answered = sum(1 for t in question_turns(turns) if t.answered)
        cap = self.question_cap(session)
        if answered >= cap:
            return self._finish(session, turn, answered)

        quality = assess_answer_quality(turn.question, answer)
        adjustment = next_difficulty(
            turn.question.difficulty,
            quality,
            answered,
            cap,
            turn_index=answered + 1,
            now=self._now(),
        )

        stage = session.current_stage
        advance = should_advance(
            stage,
            session.stages_planned,
            answered_in_stage(turns, stage),
            even_split(cap, session.stages_planned),
            session.stage_targets if session.is_multi_stage else None,
        )
        next_stage = stage + 1 if advance else stage

        events: List[Dict[str, Any]] = []
        request = self._request(session, turns, stage=next_stage, forced_difficulty=adjustment.new_difficulty)
        with span(events, "generate_question"):
            question = self.questions.generate(request)
        with span(events, "generate_bridge"):
            bridge = self.narrative.bridge(
                session,
                turn.question,
                answer,
                next_stage_name=self._stage_name(session, next_stage) if advance else None,
            )

        new_turn = self._new_turn(
            session,
            self._next_seq(turns),
            TurnType.QUESTION,
            question,
            stage=next_stage,
            bridge_text=bridge or None,
        )
        if not turn_store.insert_turn(new_turn):
            raise DuplicateSubmission("next turn already created")

        session_store.append_difficulty(session.id, [adjustment])
        log_event(
            "difficulty_adjusted",
            session.id,
            turn_id=new_turn.id,
            quality=quality,
            difficulty=adjustment.new_difficulty,
            adjustment=adjustment.adjustment,
            reason=adjustment.reason,
            ms=sum(event["ms"] for event in events),
        )
        if advance and session_store.advance_stage(session.id, stage, next_stage):
            log_event("stage_advanced", session.id, stage=next_stage, target=self._stage_name(session, next_stage))

        self.progress.save_progress(session.id, new_turn.id, turn.id, answered + 1, "interview")
        return SubmitResult(
            done=False,
            next_question=question,
            turn_id=new_turn.id,
            bridge_text=bridge,
            current_stage=next_stage,
            stage_name=self._stage_name(session, next_stage),
        )

    def _finish(self, session: Session, turn: Turn, answered: int) -> SubmitResult:
        won = session_store.transition_status(session.id, ["running"], "feedback")
        if won and session.is_paid:
            self._consume_entitlement(session)
        self.progress.save_progress(session.id, None, turn.id, answered, "complete")
        log_event("session_feedback", session.id, status="feedback", stage=session.current_stage, answered=answered)
        return SubmitResult(
            done=True,
            current_stage=session.current_stage,
            stage_name=self._stage_name(session),
        )

    def _consume_entitlement(self, session: Session) -> None:
        if not session.entitlement_id:
            logger.error("Paid session %s reached feedback without an entitlement", session.id)
            log_event("entitlement_consume_failed", session.id, level=logging.ERROR, reason="missing entitlement")
            return
        try:
            result = self.entitlements.consume(session.entitlement_id, session.user_id, session.id)
        except Exception as exc:  # noqa: BLE001
            logger.error("Entitlement consume failed for session %s: %s", session.id, exc)
            log_event("entitlement_consume_failed", session.id, level=logging.ERROR, reason=str(exc)[:200])
            return
        if not result.success:
            logger.error("Entitlement %s has no credits left for session %s", session.entitlement_id, session.id)
            log_event("entitlement_consume_failed", session.id, level=logging.ERROR, reason="no credits")

    # ------------------------------------------------------------------ feedback

    def generate_feedback(self, session_id: str) -> InterviewFeedback:
        """Produce the feedback report of a finished interview and complete the session.

        Only sessions in ``feedback`` generate a report. A report already stored
        is returned as is, so repeated calls never regenerate or re-score.
        """

        session = self._require(session_id)
        stored = session_store.get_feedback(session_id)
        if stored is not None:
            if session.status == "feedback":
                self.progress.mark_complete(session_id)
            return load_feedback(stored)
        if session.status != "feedback":
            raise InvalidState(f"session {session_id} has no feedback to generate (status {session.status})")

        events: List[Dict[str, Any]] = []
        with span(events, "generate_feedback"):
            report = self.feedback.generate(session, turn_store.list_turns(session_id))
        if not session_store.save_feedback(session_id, report.model_dump_json()):
            stored = session_store.get_feedback(session_id)
            if stored is None:
                raise InvalidState(f"session {session_id} left feedback before the report was stored")
            logger.info("Feedback for %s stored concurrently; keeping the first report", session_id)
            report = load_feedback(stored)
        self.progress.mark_complete(session_id)
        log_event(
            "feedback_generated",
            session_id,
            score=report.overall.score,
            grade=report.overall.grade,
            questions=report.questions_evaluated,
            ms=events[-1]["ms"],
        )
        return report

    def get_feedback(self, session_id: str) -> InterviewFeedback:
        self._require(session_id)
        stored = session_store.get_feedback(session_id)
        if stored is None:
            raise NotFound(f"session {session_id} has no feedback yet")
        return load_feedback(stored)

    # ------------------------------------------------------------------ reads and admin

    def get_state(self, session_id: str) -> InterviewState:
        session = self._require(session_id)
        turns = turn_store.list_turns(session_id)
        return InterviewState(
            session=session,
            turns=turns,
            current_turn=first_unanswered(turns),
            is_complete=session.status in DONE_STATUSES,
        )

    def start_fresh(self, session_id: str) -> Session:
        """Discard all turns and progress so the session can be retaken."""

        session = self._require(session_id)
        if session.status in ("intake", "research"):
            raise InvalidState(f"session {session_id} has not been prepared yet")
        session_store.reset_session(session_id)
        logger.info("Session %s reset for a fresh start", session_id)
        return self._require(session_id)

    def debug_snapshot(self, session_id: str) -> Dict[str, Any]:
        session = self._require(session_id)
        turns = turn_store.list_turns(session_id)
        counts = Counter(turn.turn_type.value for turn in turns)
        return {
            "session_id": session.id,
            "status": session.status,
            "plan_tier": session.plan_tier,
            "current_stage": session.current_stage,
            "stage_targets": session.stage_targets,
            "question_cap": self.question_cap(session),
            "turn_counts": dict(counts),
            "answered": sum(1 for turn in turns if turn.answered),
            "difficulty_curve": [entry.model_dump(mode="json") for entry in session.difficulty_curve],
            "timings": [
                {
                    "turn_id": turn.id,
                    "seq": turn.seq,
                    "turn_type": turn.turn_type.value,
                    "stage": turn.stage,
                    "difficulty": turn.question.difficulty,
                    "duration_ms": turn.timing.duration_ms,
                    "reveal_count": turn.timing.reveal_count,
                }
                for turn in turns
            ],
            "total_reveals": sum(turn.timing.reveal_count for turn in turns),
        }


__all__ = ["SessionController"]
