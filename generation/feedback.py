"""Feedback report for a finished interview.

The model scores the scored exchanges on four dimensions and returns tips and
exemplars. The output is validated against ``FeedbackDraft``; anything
malformed is fatal for the call, so the session stays in ``feedback`` and the
report can be requested again. The letter grade is always derived from the
overall score.
"""
from __future__ import annotations

import logging
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from orchestrator.errors import RecordShapeError
from orchestrator.models import Session, Turn, TurnType, utc_now

from .client import TextGenerator, must_generate
from .prompts import FEEDBACK_SYSTEM, feedback_prompt

logger = logging.getLogger(__name__)

Grade = Literal["A", "B", "C", "D", "F"]


def score_to_grade(score: float) -> Grade:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


class DimensionScore(BaseModel):
    score: float = Field(ge=0, le=100)
    feedback: str = Field(min_length=1)


class FeedbackDimensions(BaseModel):
    technical_competency: DimensionScore
    communication: DimensionScore
    problem_solving: DimensionScore
    cultural_fit: DimensionScore


class Exemplars(BaseModel):
    strengths: List[str]
    improvements: List[str]


class OverallDraft(BaseModel):
    score: float = Field(ge=0, le=100)
    grade: Optional[Grade] = None
    summary: str = Field(min_length=1)


class FeedbackDraft(BaseModel):  # Raw shape the model must return
    model_config = ConfigDict(str_strip_whitespace=True)

    overall: OverallDraft
    dimensions: FeedbackDimensions
    tips: List[str] = Field(min_length=1)
    exemplars: Exemplars


class OverallScore(BaseModel):
    score: float = Field(ge=0, le=100)
    grade: Grade
    summary: str


class InterviewFeedback(BaseModel):  # Stored report of a finished interview
    overall: OverallScore
    dimensions: FeedbackDimensions
    tips: List[str]
    exemplars: Exemplars
    questions_evaluated: int = Field(ge=0)
    total_reveals: int = Field(default=0, ge=0)
    generated_at: str = Field(default_factory=lambda: utc_now().isoformat())


def load_feedback(raw: str) -> InterviewFeedback:
    try:
        return InterviewFeedback.model_validate_json(raw)
    except ValidationError as exc:
        raise RecordShapeError("sessions.feedback has an invalid shape") from exc


class FeedbackGenerator:
    def __init__(self, generator: TextGenerator) -> None:
        self._generator = generator

    def generate(self, session: Session, turns: Sequence[Turn]) -> InterviewFeedback:
        """Score the answered questions of ``session``; raises GenerationFailure."""

        answered = [turn for turn in turns if turn.answered]
        scored = [turn for turn in answered if turn.turn_type is TurnType.QUESTION]
        prompt = feedback_prompt(session.research_snapshot, answered)
        draft = must_generate(
            lambda: self._generator.generate_json(prompt, FeedbackDraft, system=FEEDBACK_SYSTEM),
            what="feedback",
        )
        grade = score_to_grade(draft.overall.score)
        if draft.overall.grade is not None and draft.overall.grade != grade:
            logger.info("Replacing model grade %s with %s for session %s", draft.overall.grade, grade, session.id)
        return InterviewFeedback(
            overall=OverallScore(score=draft.overall.score, grade=grade, summary=draft.overall.summary),
            dimensions=draft.dimensions,
            tips=draft.tips,
            exemplars=draft.exemplars,
            questions_evaluated=len(scored),
            total_reveals=sum(turn.timing.reveal_count for turn in scored),
        )


__all__ = [
    "DimensionScore",
    "FeedbackDraft",
    "FeedbackGenerator",
    "Grade",
    "InterviewFeedback",
    "load_feedback",
    "score_to_grade",
]
