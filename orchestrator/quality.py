"""Heuristic answer-quality classifier gating the adaptive difficulty loop."""
from __future__ import annotations

import re

from .models import Quality, Question

MIN_WORDS = 15
MIN_CHARS = 80
LONG_ANSWER_WORDS = 150

_EXAMPLE = re.compile(
    r"\b(for example|specifically|when I|in my experience|at [A-Z][\w\s]*,|project|team|client|customer)\b",
    re.IGNORECASE,
)
_NUMBERS = re.compile(r"\b\d+\b")
_METHOD = re.compile(r"\b(approach|method|process|strategy|steps|first|then|finally)\b", re.IGNORECASE)
_REFLECTION = re.compile(r"\b(learned|realized|discovered|challenge|difficult|improved)\b", re.IGNORECASE)
_TECHNICAL = re.compile(
    r"\b(algorithm|database|API|framework|architecture|system|code|programming|debug|optimize|scale)\b",
    re.IGNORECASE,
)
_SITUATION = re.compile(r"\b(situation|context|when|time|project|role)\b", re.IGNORECASE)
_ACTION = re.compile(r"\b(did|action|took|decided|implemented|created|developed)\b", re.IGNORECASE)
_RESULT = re.compile(r"\b(result|outcome|impact|successful|improved|increased|decreased)\b", re.IGNORECASE)


def _indicator_count(answer: str) -> int:
    markers = (_EXAMPLE, _NUMBERS, _METHOD, _REFLECTION)
    return sum(1 for pattern in markers if pattern.search(answer))


def _star_count(answer: str) -> int:
    return sum(1 for pattern in (_SITUATION, _ACTION, _RESULT) if pattern.search(answer))


def assess_answer_quality(question: Question, answer: str) -> Quality:
    """Classify an answer as weak, medium or strong.

    Pure and deterministic: no model call. Short answers are always weak;
    long answers are at least medium. Technical questions reward technical
    vocabulary and behavioral/situational questions reward STAR structure.
    """

    text = answer.strip()
    word_count = len(text.split())
    if word_count < MIN_WORDS or len(text) < MIN_CHARS:
        return "weak"

    indicators = _indicator_count(text)

    if word_count > LONG_ANSWER_WORDS:
        return "strong" if indicators >= 3 else "medium"

    if question.category == "technical" and _TECHNICAL.search(text):
        return "strong" if indicators >= 2 else "medium"

    if question.category in ("behavioral", "situational"):
        star = _star_count(text)
        if star >= 2 and indicators >= 2:
            return "strong"
        if star >= 1 and indicators >= 1:
            return "medium"

    if indicators >= 3:
        return "strong"
    if indicators >= 1:
        return "medium"
    return "weak"


__all__ = ["assess_answer_quality", "MIN_CHARS", "MIN_WORDS"]
