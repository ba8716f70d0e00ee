"""Bounded rolling conversation summary."""
from __future__ import annotations

import re
from typing import Callable, List, Optional, Tuple

from config.settings import settings
from generation.client import try_generate

from .models import AnswerDigest, Question

DigestFn = Callable[[Question, str], str]

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
LOCAL_DIGEST_CHARS = 150


def local_digest(question: Question, answer: str) -> str:
    """Canned digest used when the text service is unavailable."""

    text = " ".join(answer.split())
    if not text:
        return "No answer provided."
    first = _SENTENCE_END.split(text, maxsplit=1)[0]
    if len(first) > LOCAL_DIGEST_CHARS:
        first = first[: LOCAL_DIGEST_CHARS - 3].rstrip() + "..."
    return f"On '{question.text[:60].rstrip()}': {first}"


def digest_answer(question: Question, answer: str, *, digest_fn: DigestFn, session_id: str = "-") -> AnswerDigest:
    summary = try_generate(
        lambda: digest_fn(question, answer),
        default=local_digest(question, answer),
        what="summary",
        session_id=session_id,
    )
    return AnswerDigest(summary=summary, word_count=len(answer.split()))


def _size(lines: List[str]) -> int:
    return len("\n".join(lines).encode("utf-8"))


def _clip_bytes(text: str, limit: int) -> str:
    return text.encode("utf-8")[:limit].decode("utf-8", errors="ignore").rstrip()


def append_entry(
    summary: str,
    entry_number: int,
    digest: str,
    *,
    max_bytes: Optional[int] = None,
    keep_entries: Optional[int] = None,
) -> str:
    """Append ``"<n>. <digest>"`` and truncate to the byte budget.

    Over budget, only the most recent ``keep_entries`` lines survive next to
    the new one; older lines are then dropped and finally the new line is
    clipped until the result fits.
    """

    limit = max_bytes if max_bytes is not None else settings.SUMMARY_MAX_BYTES
    keep = keep_entries if keep_entries is not None else settings.SUMMARY_KEEP_ENTRIES
    new_line = f"{entry_number}. {' '.join(digest.split())}"
    lines = [line for line in summary.splitlines() if line.strip()]
    candidate = lines + [new_line]
    if _size(candidate) <= limit:
        return "\n".join(candidate)
    candidate = (lines[-keep:] if keep > 0 else []) + [new_line]
    while _size(candidate) > limit and len(candidate) > 1:
        candidate.pop(0)
    if _size(candidate) > limit:
        candidate = [_clip_bytes(new_line, limit)]
    return "\n".join(candidate)


def update_summary(
    summary: str,
    entry_number: int,
    question: Question,
    answer: str,
    *,
    digest_fn: DigestFn,
    session_id: str = "-",
) -> Tuple[str, AnswerDigest]:  # Digest the exchange and fold it into the rolling summary
    digest = digest_answer(question, answer, digest_fn=digest_fn, session_id=session_id)
    return append_entry(summary, entry_number, digest.summary), digest


__all__ = ["append_entry", "digest_answer", "local_digest", "update_summary"]
