from __future__ import annotations  # Adaptive difficulty state-transition table

from datetime import datetime
from typing import Literal, Optional, Tuple

from .models import Adjustment, Difficulty, DifficultyAdjustment, Quality, utc_now

Bucket = Literal["early", "mid", "late"]

EARLY_CUTOFF = 0.3
LATE_CUTOFF = 0.7

_STEP_UP: dict[Difficulty, Difficulty] = {"easy": "medium", "medium": "hard", "hard": "hard"}
_STEP_DOWN: dict[Difficulty, Difficulty] = {"hard": "medium", "medium": "easy", "easy": "easy"}


def progress_bucket(question_number: int, total_questions: int) -> Bucket:  # Map interview progress to early/mid/late
    progress = question_number / max(total_questions, 1)
    if progress < EARLY_CUTOFF:
        return "early"
    if progress < LATE_CUTOFF:
        return "mid"
    return "late"


def _transition(bucket: Bucket, current: Difficulty, quality: Quality) -> Tuple[Difficulty, str]:
    if bucket == "early":
        if quality == "strong":
            return ("medium" if current == "easy" else current), "Strong early performance - building confidence"
        if quality == "weak":
            return "easy", "Weak early performance - building foundation"
        return current, "Steady early progress"
    if bucket == "mid":
        if quality == "strong":
            return _STEP_UP[current], "Strong performance - increasing challenge"
        if quality == "weak":
            return _STEP_DOWN[current], "Weak performance - reducing difficulty"
        return current, "Consistent performance"
    if quality == "strong" and current != "hard":
        return "hard", "Final challenge for strong performer"
    if quality == "weak" and current != "easy":
        return "medium", "Final support for struggling candidate"
    return current, "Maintaining final interview pace"


def _adjustment(previous: Difficulty, new: Difficulty) -> Adjustment:
    order = ("easy", "medium", "hard")
    if order.index(new) > order.index(previous):
        return "increase"
    if order.index(new) < order.index(previous):
        return "decrease"
    return "maintain"


def next_difficulty(
    current: Difficulty,
    quality: Quality,
    question_number: int,
    total_questions: int,
    *,
    turn_index: int,
    now: Optional[datetime] = None,
) -> DifficultyAdjustment:  # Decide the next question's difficulty and record why
    bucket = progress_bucket(question_number, total_questions)
    new, reason = _transition(bucket, current, quality)
    return DifficultyAdjustment(
        turn_index=turn_index,
        previous_difficulty=current,
        new_difficulty=new,
        adjustment=_adjustment(current, new),
        quality=quality,
        reason=reason,
        timestamp=(now or utc_now()).isoformat(),
    )


def baseline_entry(difficulty: Difficulty, *, now: Optional[datetime] = None) -> DifficultyAdjustment:  # Opening entry of the curve
    return DifficultyAdjustment(
        turn_index=0,
        previous_difficulty=difficulty,
        new_difficulty=difficulty,
        adjustment="maintain",
        quality=None,
        reason="Baseline difficulty",
        timestamp=(now or utc_now()).isoformat(),
    )


def opening_entry(
    baseline: Difficulty, chosen: Difficulty, *, turn_index: int, now: Optional[datetime] = None
) -> DifficultyAdjustment:  # Entry for a question generated without an answer signal
    return DifficultyAdjustment(
        turn_index=turn_index,
        previous_difficulty=baseline,
        new_difficulty=chosen,
        adjustment=_adjustment(baseline, chosen),
        quality=None,
        reason="Opening question difficulty",
        timestamp=(now or utc_now()).isoformat(),
    )


__all__ = ["baseline_entry", "next_difficulty", "opening_entry", "progress_bucket"]
