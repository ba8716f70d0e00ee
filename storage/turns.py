"""Persistence helpers for interview turns."""
from __future__ import annotations

import sqlite3
from typing import List, Optional, Sequence

from pydantic import ValidationError

from orchestrator.errors import RecordShapeError
from orchestrator.models import AnswerDigest, Question, Turn, TurnTiming

from .sqlite import get_conn, immediate


def _row_to_turn(row: sqlite3.Row) -> Turn:
    try:
        return Turn(
            id=row["id"],
            session_id=row["session_id"],
            seq=row["seq"],
            turn_type=row["turn_type"],
            question=Question.model_validate_json(row["question"]),
            stage=row["stage"],
            bridge_text=row["bridge_text"],
            answer_text=row["answer_text"],
            answer_audio_key=row["answer_audio_key"],
            answer_digest=AnswerDigest.model_validate_json(row["answer_digest"]) if row["answer_digest"] else None,
            timing=TurnTiming.model_validate_json(row["timing"]),
        )
    except ValidationError as exc:
        raise RecordShapeError(f"turns row {row['id']} has an invalid shape") from exc


def _insert(conn: sqlite3.Connection, turn: Turn) -> None:
    conn.execute(
        """INSERT INTO turns
           (id, session_id, seq, turn_type, question, stage, bridge_text, answer_text,
            answer_audio_key, answer_digest, timing)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            turn.id,
            turn.session_id,
            turn.seq,
            turn.turn_type.value,
            turn.question.model_dump_json(),
            turn.stage,
            turn.bridge_text,
            turn.answer_text,
            turn.answer_audio_key,
            turn.answer_digest.model_dump_json() if turn.answer_digest else None,
            turn.timing.model_dump_json(),
        ),
    )


def insert_turn(turn: Turn) -> bool:
    """Insert a turn; False when another turn already holds its sequence slot."""

    try:
        with get_conn() as conn:
            _insert(conn, turn)
    except sqlite3.IntegrityError:
        return False
    return True


def insert_turns_if_empty(session_id: str, turns: Sequence[Turn]) -> bool:
    """Insert the opening turns only if the session has none yet."""

    with immediate() as conn:
        count = conn.execute("SELECT COUNT(*) FROM turns WHERE session_id=?", (session_id,)).fetchone()[0]
        if count:
            return False
        for turn in turns:
            _insert(conn, turn)
    return True


def list_turns(session_id: str) -> List[Turn]:
    with get_conn() as conn:
        rows = conn.execute("SELECT * FROM turns WHERE session_id=? ORDER BY seq", (session_id,)).fetchall()
    return [_row_to_turn(row) for row in rows]


def get_turn(turn_id: str) -> Optional[Turn]:
    with get_conn() as conn:
        row = conn.execute("SELECT * FROM turns WHERE id=?", (turn_id,)).fetchone()
    return _row_to_turn(row) if row else None


def attach_answer(
    turn_id: str,
    *,
    answer_text: str,
    audio_key: Optional[str],
    digest: AnswerDigest,
    timing: TurnTiming,
) -> bool:
    """Attach the answer exactly once; False if the turn was already answered."""

    with get_conn() as conn:
        cur = conn.execute(
            """UPDATE turns
               SET answer_text=?, answer_audio_key=?, answer_digest=?, timing=?
               WHERE id=? AND answer_text IS NULL""",
            (answer_text, audio_key, digest.model_dump_json(), timing.model_dump_json(), turn_id),
        )
        return cur.rowcount == 1


__all__ = ["attach_answer", "get_turn", "insert_turn", "insert_turns_if_empty", "list_turns"]
