from orchestrator.models import Question
from orchestrator.quality import assess_answer_quality


def _q(category: str = "technical") -> Question:
    return Question(text="Tell me about it.", category=category, difficulty="medium")


def test_short_answers_are_always_weak():
    assert assess_answer_quality(_q(), "I built an API for 3 teams.") == "weak"
    # fifteen words but under eighty characters
    assert assess_answer_quality(_q(), "a b c d e f g h i j k l m n o p") == "weak"


def test_technical_answer_with_terms_and_evidence_is_strong():
    answer = (
        "For example, at my last job I had to optimize a database query that ran for 30 seconds; "
        "my approach was to add an index and then cache results in the API layer."
    )
    assert assess_answer_quality(_q("technical"), answer) == "strong"


def test_technical_answer_with_terms_but_no_evidence_is_medium():
    answer = (
        "The system I would pick is a framework that keeps the architecture easy to reason about "
        "for everyone who has to read the code later on."
    )
    assert assess_answer_quality(_q("technical"), answer) == "medium"


def test_behavioral_star_answer_is_strong():
    answer = (
        "In one situation on a client project we were late, so I decided to split the work into steps "
        "and the result was that we shipped two days early."
    )
    assert assess_answer_quality(_q("behavioral"), answer) == "strong"


def test_answer_without_markers_is_weak():
    answer = (
        "I think that would be fine and I would probably just go along with whatever everybody else "
        "wanted because that seems reasonable enough to me."
    )
    assert assess_answer_quality(_q("situational"), answer) == "weak"


def test_long_answer_is_at_least_medium():
    answer = " ".join(["well"] * 160)
    assert assess_answer_quality(_q(), answer) == "medium"


def test_assessment_is_deterministic():
    answer = "For example we had 4 services and my approach was to first measure latency, then fix it."
    answer = answer + " It was a difficult but rewarding piece of work overall."
    first = assess_answer_quality(_q("situational"), answer)
    assert all(assess_answer_quality(_q("situational"), answer) == first for _ in range(5))
