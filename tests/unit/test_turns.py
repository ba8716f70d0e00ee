from orchestrator.models import Turn, TurnTiming, TurnType
from orchestrator.turns import (
    answered_in_stage,
    confirmation_question,
    first_unanswered,
    next_unanswered_after,
    phase_for,
    question_turns,
    small_talk_question,
)


def _turn(seq, turn_type, answered=False, stage=1):
    question = (
        small_talk_question("Hi?", 90)
        if turn_type is TurnType.SMALL_TALK
        else confirmation_question(90)
        if turn_type is TurnType.CONFIRMATION
        else small_talk_question("Q?", 90).model_copy(update={"category": "technical"})
    )
    return Turn(
        id=f"t{seq}",
        session_id="s1",
        seq=seq,
        turn_type=turn_type,
        question=question,
        stage=stage,
        answer_text="ok" if answered else None,
        timing=TurnTiming(started_at="2026-01-01T00:00:00+00:00"),
    )


def test_phase_follows_first_unanswered_turn():
    turns = [
        _turn(0, TurnType.SMALL_TALK, answered=True),
        _turn(1, TurnType.CONFIRMATION),
        _turn(2, TurnType.QUESTION),
    ]
    assert phase_for(first_unanswered(turns)) == "confirmation"
    assert phase_for(turns[0]) == "small_talk"
    assert phase_for(turns[2]) == "interview"
    assert phase_for(None) == "complete"


def test_next_unanswered_after_skips_answered():
    turns = [
        _turn(0, TurnType.SMALL_TALK, answered=True),
        _turn(1, TurnType.SMALL_TALK, answered=True),
        _turn(2, TurnType.CONFIRMATION),
    ]
    assert next_unanswered_after(turns, 0).id == "t2"
    assert next_unanswered_after(turns, 2) is None


def test_question_counts_by_stage():
    turns = [
        _turn(0, TurnType.CONFIRMATION, answered=True),
        _turn(1, TurnType.QUESTION, answered=True, stage=1),
        _turn(2, TurnType.QUESTION, answered=True, stage=2),
        _turn(3, TurnType.QUESTION, stage=2),
    ]
    assert len(question_turns(turns)) == 3
    assert answered_in_stage(turns, 1) == 1
    assert answered_in_stage(turns, 2) == 1


def test_confirmation_question_is_easy_warmup():
    question = confirmation_question(90)
    assert question.category == "warmup"
    assert question.difficulty == "easy"
    assert question.time_limit == 90
