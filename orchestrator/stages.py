"""Stage planning for multi-stage paid interviews."""
from __future__ import annotations

import random
from typing import Optional, Sequence

from config.settings import settings

from .models import Category

_TECHNICAL_KEYWORDS = ("technical", "system design", "coding", "architecture", "portfolio")
_SITUATIONAL_KEYWORDS = ("scenario", "situational", "case", "simulation", "customer interaction", "ethical")
_BEHAVIORAL_KEYWORDS = ("behavioral", "behavioural", "fit", "leadership", "culture", "screening", "panel", "teaching")


def generate_stage_targets(stages_planned: int, rng: Optional[random.Random] = None) -> list[int]:
    """Draw one question target per stage, uniformly in the configured range."""

    picker = rng or random.Random()
    low, high = settings.STAGE_TARGET_MIN, settings.STAGE_TARGET_MAX
    return [picker.randint(low, high) for _ in range(max(stages_planned, 1))]


def even_split(question_cap: int, stages_planned: int) -> int:
    """Fallback per-stage target when no stage plan exists."""

    return max(1, question_cap // max(stages_planned, 1))


def should_advance(
    current_stage: int,
    stages_planned: int,
    answered_in_stage: int,
    planned_per_stage: int,
    stage_targets: Optional[Sequence[int]] = None,
) -> bool:
    """Return True when the current stage has met its question target.

    Never advances past the final stage. Stage targets, when present, are the
    only mechanism; the even split covers every session without a plan.
    """

    if current_stage >= stages_planned:
        return False
    if stage_targets:
        target = stage_targets[current_stage - 1]
    else:
        target = planned_per_stage
    return answered_in_stage >= target


def stage_name(stage_index: int, names: Sequence[str]) -> str:
    if 1 <= stage_index <= len(names) and names[stage_index - 1].strip():
        return names[stage_index - 1].strip()
    return f"Stage {stage_index}"


def infer_stage_category(name: str) -> Optional[Category]:
    """Map a stage label to the question category it should produce, if any."""

    lowered = name.lower()
    if any(keyword in lowered for keyword in _TECHNICAL_KEYWORDS):
        return "technical"
    if any(keyword in lowered for keyword in _SITUATIONAL_KEYWORDS):
        return "situational"
    if any(keyword in lowered for keyword in _BEHAVIORAL_KEYWORDS):
        return "behavioral"
    return None


__all__ = [
    "even_split",
    "generate_stage_targets",
    "infer_stage_category",
    "should_advance",
    "stage_name",
]
