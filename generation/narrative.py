from __future__ import annotations  # Intro, small-talk, bridge and digest generation

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from orchestrator.models import Question, ResearchSnapshot, Session

from .client import TextGenerator, try_generate
from .prompts import (
    BRIDGE_SYSTEM,
    DIGEST_SYSTEM,
    INTRO_SYSTEM,
    SMALL_TALK_SYSTEM,
    bridge_prompt,
    digest_prompt,
    intro_prompt,
    small_talk_prompt,
)

logger = logging.getLogger(__name__)

CANNED_SMALL_TALK = (
    "Hi there! How has your day been so far?",
    "Before we dive in, what got you interested in this role?",
)
MAX_SMALL_TALK = 2
DIGEST_MAX_CHARS = 200


class SmallTalkDraft(BaseModel):
    questions: List[str] = Field(min_length=1)


def canned_intro(snapshot: ResearchSnapshot) -> str:
    name = snapshot.cv_summary.name
    greeting = f"Hello {name}" if name else "Hello"
    return (
        f"{greeting}, and welcome to your interview for the {snapshot.job_spec_summary.role} position "
        f"at {snapshot.company_facts.name}. We'll go through a series of questions together, so take your time."
    )


def _one_line(text: str, limit: int) -> str:
    line = " ".join(text.split())
    return line if len(line) <= limit else line[: limit - 3].rstrip() + "..."


class NarrativeGenerator:
    """Paid-tier narrative text around the scored questions.

    Intro, small talk and bridges are no-ops for free sessions and never call
    the text service for them. Failures degrade to canned or empty values.
    """

    def __init__(self, generator: TextGenerator, *, digest_generator: Optional[TextGenerator] = None) -> None:
        self._generator = generator
        self._digest_generator = digest_generator or generator

    def intro(self, session: Session) -> str:
        if not session.is_paid:
            return ""
        snapshot = session.research_snapshot
        return try_generate(
            lambda: self._generator.generate_text(intro_prompt(snapshot), system=INTRO_SYSTEM).strip(),
            default=canned_intro(snapshot),
            what="intro",
            session_id=session.id,
        )

    def small_talk(self, session: Session) -> List[str]:
        if not session.is_paid:
            return []
        snapshot = session.research_snapshot
        questions = try_generate(
            lambda: self._generator.generate_json(
                small_talk_prompt(snapshot, MAX_SMALL_TALK), SmallTalkDraft, system=SMALL_TALK_SYSTEM
            ).questions,
            default=list(CANNED_SMALL_TALK),
            what="small_talk",
            session_id=session.id,
        )
        cleaned = [q.strip() for q in questions if q and q.strip()][:MAX_SMALL_TALK]
        return cleaned or list(CANNED_SMALL_TALK)

    def bridge(
        self,
        session: Session,
        previous_question: Question,
        previous_answer: str,
        *,
        next_stage_name: Optional[str] = None,
    ) -> str:
        if not session.is_paid:
            return ""
        prompt = bridge_prompt(
            session.research_snapshot, previous_question, previous_answer, next_stage_name=next_stage_name
        )
        text = try_generate(
            lambda: self._generator.generate_text(prompt, system=BRIDGE_SYSTEM),
            default="",
            what="bridge",
            session_id=session.id,
        )
        return text.strip().strip('"').strip()

    def digest(self, question: Question, answer: str) -> str:
        """One-sentence digest of an exchange; raises on service failure."""

        text = self._digest_generator.generate_text(digest_prompt(question, answer), system=DIGEST_SYSTEM)
        digest = _one_line(text, DIGEST_MAX_CHARS)
        if not digest:
            raise ValueError("empty digest")
        return digest


__all__ = ["CANNED_SMALL_TALK", "NarrativeGenerator", "SmallTalkDraft", "canned_intro"]
