import pytest

from generation.feedback import FeedbackGenerator, load_feedback, score_to_grade
from orchestrator.errors import GenerationFailure, RecordShapeError
from orchestrator.models import Question, Turn, TurnTiming, TurnType
from orchestrator.turns import small_talk_question


def _turn(seq, turn_type, question, answer, reveals=0):
    return Turn(
        id=f"t{seq}",
        session_id="s1",
        seq=seq,
        turn_type=turn_type,
        question=question,
        answer_text=answer,
        timing=TurnTiming(started_at="2026-01-01T00:00:00+00:00", duration_ms=42000, reveal_count=reveals),
    )


def _turns():
    return [
        _turn(0, TurnType.SMALL_TALK, small_talk_question("How was your weekend?", 90), "Relaxing, thanks."),
        _turn(1, TurnType.QUESTION, Question(text="How do you scale APIs?", category="technical", difficulty="easy"),
              "We shard by tenant.", reveals=2),
        _turn(2, TurnType.QUESTION, Question(text="Tell me about a conflict.", category="behavioral", difficulty="medium"),
              "I listened first.", reveals=1),
        _turn(3, TurnType.QUESTION, Question(text="Unanswered?", category="technical", difficulty="hard"), None),
    ]


@pytest.mark.parametrize(
    "score, grade",
    [(100, "A"), (90, "A"), (89.5, "B"), (80, "B"), (70, "C"), (60, "D"), (59.9, "F"), (0, "F")],
)
def test_score_to_grade(score, grade):
    assert score_to_grade(score) == grade


def test_report_grade_follows_score(fake_generator, make_session):
    report = FeedbackGenerator(fake_generator).generate(make_session(), _turns())
    assert report.overall.score == 84
    assert report.overall.grade == "B"
    assert report.dimensions.communication.score == 80
    assert report.tips == ["Quantify impact earlier.", "Name trade-offs explicitly."]
    assert report.questions_evaluated == 2
    assert report.total_reveals == 3


def test_prompt_covers_scored_answers_only(fake_generator, make_session):
    FeedbackGenerator(fake_generator).generate(make_session(), _turns())
    prompt = fake_generator.calls[-1]["prompt"]
    assert "Question 1 (technical - easy): How do you scale APIs?" in prompt
    assert "Question 2 (behavioral - medium)" in prompt
    assert "Reveals: 2" in prompt
    assert "Time taken: 42s" in prompt
    assert "Warm-up questions before the formal interview: 1" in prompt
    assert "How was your weekend?" not in prompt
    assert "Unanswered?" not in prompt


def test_missing_dimension_is_fatal(fake_generator, make_session):
    del fake_generator.feedback["dimensions"]["cultural_fit"]
    with pytest.raises(GenerationFailure):
        FeedbackGenerator(fake_generator).generate(make_session(), _turns())


def test_empty_tips_are_fatal(fake_generator, make_session):
    fake_generator.feedback["tips"] = []
    with pytest.raises(GenerationFailure):
        FeedbackGenerator(fake_generator).generate(make_session(), _turns())


def test_out_of_range_score_is_fatal(fake_generator, make_session):
    fake_generator.feedback["overall"]["score"] = 140
    with pytest.raises(GenerationFailure):
        FeedbackGenerator(fake_generator).generate(make_session(), _turns())


def test_service_failure_is_fatal(fake_generator, make_session):
    fake_generator.fail_json = True
    with pytest.raises(GenerationFailure):
        FeedbackGenerator(fake_generator).generate(make_session(), _turns())


def test_stored_report_round_trip_and_corruption(fake_generator, make_session):
    report = FeedbackGenerator(fake_generator).generate(make_session(), _turns())
    assert load_feedback(report.model_dump_json()) == report
    with pytest.raises(RecordShapeError):
        load_feedback('{"overall": {}}')
