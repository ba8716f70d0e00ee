"""Question generation facade.

Builds one structured prompt from the research snapshot, prior turns and the
stage/difficulty plan, validates the model output and normalizes it into a
``Question``. Any malformed output is fatal for the call.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from config.settings import settings
from orchestrator.models import Category, Difficulty, Mode, Question, ResearchSnapshot, Turn

from .client import TextGenerator, must_generate
from .prompts import QUESTION_SYSTEM, conversation_block, difficulty_band, question_prompt

logger = logging.getLogger(__name__)


class QuestionDraft(BaseModel):  # Raw shape the model must return
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(min_length=1)
    category: Category
    difficulty: Difficulty
    follow_up: bool = False


class QuestionRequest(BaseModel):  # Everything needed to ask the next question
    snapshot: ResearchSnapshot
    prior_turns: List[Turn] = Field(default_factory=list)
    conversation_summary: str = ""
    question_number: int = Field(ge=1)
    total_questions: int = Field(ge=1)
    stage_index: int = Field(default=1, ge=1)
    stage_name: str = "Stage 1"
    stages_planned: int = Field(default=1, ge=1)
    position_in_stage: int = Field(default=1, ge=1)
    mode: Mode = "text"
    forced_difficulty: Optional[Difficulty] = None
    expected_category: Optional[Category] = None


class QuestionGenerator:
    def __init__(self, generator: TextGenerator) -> None:
        self._generator = generator

    def build_prompt(self, request: QuestionRequest) -> str:
        answered = [turn for turn in request.prior_turns if turn.answered]
        latest_answer = answered[-1].answer_text if answered else None
        difficulty = request.forced_difficulty or difficulty_band(request.question_number, request.total_questions)
        return question_prompt(
            snapshot=request.snapshot,
            conversation=conversation_block(request.prior_turns, request.conversation_summary),
            latest_answer=latest_answer,
            question_number=request.question_number,
            total_questions=request.total_questions,
            difficulty=difficulty,
            difficulty_forced=request.forced_difficulty is not None,
            mode=request.mode,
            stage_index=request.stage_index,
            stage_name=request.stage_name,
            stages_planned=request.stages_planned,
            position_in_stage=request.position_in_stage,
            expected_category=request.expected_category,
        )

    def generate(self, request: QuestionRequest) -> Question:
        """Generate and normalize the next question; raises GenerationFailure."""

        prompt = self.build_prompt(request)
        draft = must_generate(
            lambda: self._generator.generate_json(prompt, QuestionDraft, system=QUESTION_SYSTEM),
            what="question",
        )
        category: Category = draft.category
        if request.stages_planned > 1 and request.expected_category and category != request.expected_category:
            logger.info(
                "Coercing question category %s -> %s for stage %s",
                category,
                request.expected_category,
                request.stage_name,
            )
            category = request.expected_category
        difficulty: Difficulty = request.forced_difficulty or draft.difficulty
        return Question(
            text=draft.text,
            category=category,
            difficulty=difficulty,
            time_limit=settings.QUESTION_TIME_LIMIT,
            follow_up=draft.follow_up,
        )


__all__ = ["QuestionDraft", "QuestionGenerator", "QuestionRequest"]
