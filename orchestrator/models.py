from __future__ import annotations  # Interview session, turn and snapshot models

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Difficulty = Literal["easy", "medium", "hard"]
Quality = Literal["weak", "medium", "strong"]
Category = Literal["technical", "behavioral", "situational"]
TurnCategory = Literal["technical", "behavioral", "situational", "warmup"]
Adjustment = Literal["increase", "decrease", "maintain"]
SessionStatus = Literal["intake", "research", "ready", "running", "feedback", "complete"]
PlanTier = Literal["free", "paid"]
Mode = Literal["text", "voice"]
InterviewPhase = Literal["small_talk", "confirmation", "interview", "complete"]

STATUS_ORDER: tuple[SessionStatus, ...] = ("intake", "research", "ready", "running", "feedback", "complete")
RESUMABLE_STATUSES: tuple[SessionStatus, ...] = ("ready", "running")
DIFFICULTIES: tuple[Difficulty, ...] = ("easy", "medium", "hard")


def utc_now() -> datetime:  # Timezone-aware current time
    return datetime.now(timezone.utc)


class TurnType(str, Enum):  # Closed set of turn kinds driving the controller state machine
    SMALL_TALK = "small_talk"
    CONFIRMATION = "confirmation"
    QUESTION = "question"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class CvSummary(_Frozen):  # Candidate facts extracted from the CV
    name: Optional[str] = None
    experience_years: Optional[float] = None
    key_skills: List[str] = Field(default_factory=list)
    recent_roles: List[str] = Field(default_factory=list)
    education: List[str] = Field(default_factory=list)
    summary: str = ""


class JobSpecSummary(_Frozen):  # Role facts extracted from the job description
    role: str
    level: Optional[str] = None
    key_requirements: List[str] = Field(default_factory=list)
    nice_to_have: List[str] = Field(default_factory=list)
    responsibilities: List[str] = Field(default_factory=list)
    summary: str = ""


class CompanyFacts(_Frozen):  # Company context for the interviewer
    name: str
    industry: Optional[str] = None
    size: Optional[str] = None
    mission: Optional[str] = None
    values: List[str] = Field(default_factory=list)


class Competencies(_Frozen):  # Competencies to probe during the interview
    technical: List[str] = Field(default_factory=list)
    behavioral: List[str] = Field(default_factory=list)
    domain: List[str] = Field(default_factory=list)


class InterviewStyle(_Frozen):  # Industry interview-style configuration
    industry: Optional[str] = None
    sub_industry: Optional[str] = None
    tone: str = "professional"
    stage_names: List[str] = Field(default_factory=list)
    question_styles: List[str] = Field(default_factory=list)
    question_examples: List[str] = Field(default_factory=list)


class ResearchSnapshot(_Frozen):  # Immutable generation context created once per session
    version: Literal["1.0"] = "1.0"
    cv_summary: CvSummary
    job_spec_summary: JobSpecSummary
    company_facts: CompanyFacts
    competencies: Competencies = Field(default_factory=Competencies)
    interview_config: Optional[InterviewStyle] = None
    created_at: str = Field(default_factory=lambda: utc_now().isoformat())


class Question(BaseModel):  # Question attached to a turn
    text: str = Field(min_length=1)
    category: TurnCategory
    difficulty: Difficulty
    time_limit: int = Field(default=90, ge=1)
    follow_up: bool = False


class AnswerDigest(BaseModel):  # Compact summary of an answer
    summary: str
    key_points: List[str] = Field(default_factory=list)
    word_count: int = Field(ge=0)


class TurnTiming(BaseModel):  # Timing signals for one exchange
    started_at: str
    completed_at: Optional[str] = None
    duration_ms: Optional[int] = None
    reveal_count: int = Field(default=0, ge=0)


class Turn(BaseModel):  # One question/answer exchange
    id: str
    session_id: str
    seq: int = Field(ge=0)
    turn_type: TurnType
    question: Question
    stage: int = Field(default=1, ge=1)
    bridge_text: Optional[str] = None
    answer_text: Optional[str] = None
    answer_audio_key: Optional[str] = None
    answer_digest: Optional[AnswerDigest] = None
    timing: TurnTiming

    @property
    def answered(self) -> bool:
        return self.answer_text is not None


class DifficultyAdjustment(BaseModel):  # Append-only audit entry of the difficulty curve
    turn_index: int = Field(ge=0)
    previous_difficulty: Difficulty
    new_difficulty: Difficulty
    adjustment: Adjustment
    quality: Optional[Quality] = None
    reason: str
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())


class ResumeProgressState(BaseModel):  # Advisory resume snapshot
    version: Literal[1] = 1
    current_turn_id: Optional[str] = None
    last_completed_turn_id: Optional[str] = None
    answered_count: int = Field(default=0, ge=0)
    total_expected: int = Field(default=0, ge=0)
    turn_index: int = Field(default=0, ge=0)
    interview_phase: InterviewPhase
    last_save_timestamp: str


class SessionLimits(BaseModel):  # Per-session business limits
    version: Literal[1] = 1
    question_cap: Optional[int] = Field(default=None, ge=1)


class Session(BaseModel):  # Aggregate root owning its turns
    id: str
    user_id: str
    status: SessionStatus
    plan_tier: PlanTier = "free"
    mode: Mode = "text"
    research_snapshot: ResearchSnapshot
    limits: SessionLimits = Field(default_factory=SessionLimits)
    entitlement_id: Optional[str] = None
    stages_planned: int = Field(default=1, ge=1)
    current_stage: int = Field(default=1, ge=1)
    stage_targets: Optional[List[int]] = None
    conversation_summary: str = ""
    difficulty_curve: List[DifficultyAdjustment] = Field(default_factory=list)
    progress_state: Optional[ResumeProgressState] = None
    intro_text: Optional[str] = None
    last_activity: Optional[str] = None
    inflight_turn_id: Optional[str] = None
    inflight_since: Optional[str] = None
    created_at: str
    updated_at: str

    @property
    def is_paid(self) -> bool:
        return self.plan_tier == "paid"

    @property
    def is_multi_stage(self) -> bool:
        return self.is_paid and self.stages_planned > 1

    @property
    def stage_names(self) -> List[str]:
        style = self.research_snapshot.interview_config
        return list(style.stage_names) if style else []


class StartResult(BaseModel):  # Output of SessionController.start
    session_id: str
    turn_id: Optional[str]
    turn_type: Optional[TurnType]
    question: Optional[Question]
    intro: str = ""
    small_talk_turn_ids: List[str] = Field(default_factory=list)
    current_stage: int
    stage_name: str


class SubmitResult(BaseModel):  # Output of SessionController.submit_answer
    done: bool
    next_question: Optional[Question] = None
    turn_id: Optional[str] = None
    bridge_text: Optional[str] = None
    current_stage: int
    stage_name: str
    advance_to_turn_id: Optional[str] = None
    duplicate: bool = False


class InterviewState(BaseModel):  # Read-only projection returned by get_state
    session: Session
    turns: List[Turn]
    current_turn: Optional[Turn]
    is_complete: bool


class ResumeData(BaseModel):  # Output of ProgressTracker.get_resume_data
    can_resume: bool
    progress_state: Optional[ResumeProgressState] = None
    resume_turn_id: Optional[str] = None
    message: str


__all__ = [
    "Adjustment",
    "AnswerDigest",
    "Category",
    "Competencies",
    "CompanyFacts",
    "CvSummary",
    "DIFFICULTIES",
    "Difficulty",
    "DifficultyAdjustment",
    "InterviewPhase",
    "InterviewState",
    "InterviewStyle",
    "JobSpecSummary",
    "Mode",
    "PlanTier",
    "Quality",
    "Question",
    "RESUMABLE_STATUSES",
    "ResearchSnapshot",
    "ResumeData",
    "ResumeProgressState",
    "STATUS_ORDER",
    "Session",
    "SessionLimits",
    "SessionStatus",
    "StartResult",
    "SubmitResult",
    "Turn",
    "TurnCategory",
    "TurnTiming",
    "TurnType",
    "utc_now",
]
