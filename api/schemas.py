"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from orchestrator.models import ResumeProgressState

T = TypeVar("T")


class ApiError(BaseModel):
    code: str
    message: str


class Envelope(BaseModel, Generic[T]):
    data: Optional[T] = None
    error: Optional[ApiError] = None


class SubmitAnswerReq(BaseModel):
    turn_id: str
    answer_text: str
    audio_key: Optional[str] = None
    reveal_count: int = Field(default=0, ge=0)


class AutoSaveResp(BaseModel):
    saved: bool
    progress_state: Optional[ResumeProgressState] = None


__all__ = ["ApiError", "AutoSaveResp", "Envelope", "SubmitAnswerReq"]
