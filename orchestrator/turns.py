from __future__ import annotations  # Turn-type sequencing helpers

from typing import List, Optional, Sequence

from .models import InterviewPhase, Question, Turn, TurnType

CONFIRMATION_TEXT = "Thanks for chatting. Are you ready to begin the interview questions?"


def phase_for(turn: Optional[Turn]) -> InterviewPhase:  # Resume phase implied by the current unanswered turn
    if turn is None:
        return "complete"
    match turn.turn_type:
        case TurnType.SMALL_TALK:
            return "small_talk"
        case TurnType.CONFIRMATION:
            return "confirmation"
        case TurnType.QUESTION:
            return "interview"


def first_unanswered(turns: Sequence[Turn]) -> Optional[Turn]:
    return next((turn for turn in turns if not turn.answered), None)


def last_answered(turns: Sequence[Turn]) -> Optional[Turn]:
    answered = [turn for turn in turns if turn.answered]
    return answered[-1] if answered else None


def next_unanswered_after(turns: Sequence[Turn], seq: int) -> Optional[Turn]:
    return next((turn for turn in turns if turn.seq > seq and not turn.answered), None)


def question_turns(turns: Sequence[Turn]) -> List[Turn]:
    return [turn for turn in turns if turn.turn_type is TurnType.QUESTION]


def answered_in_stage(turns: Sequence[Turn], stage: int) -> int:
    return sum(1 for turn in question_turns(turns) if turn.stage == stage and turn.answered)


def small_talk_question(text: str, time_limit: int) -> Question:
    return Question(text=text, category="warmup", difficulty="easy", time_limit=time_limit)


def confirmation_question(time_limit: int) -> Question:
    return Question(text=CONFIRMATION_TEXT, category="warmup", difficulty="easy", time_limit=time_limit)


__all__ = [
    "CONFIRMATION_TEXT",
    "answered_in_stage",
    "confirmation_question",
    "first_unanswered",
    "last_answered",
    "next_unanswered_after",
    "phase_for",
    "question_turns",
    "small_talk_question",
]
