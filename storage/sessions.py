"""Persistence helpers for interview sessions.

JSON columns are validated against their models on read; a mismatch raises
``RecordShapeError``. Status, stage and claim changes are conditional updates
so that concurrent callers cannot move a session backwards or twice.
"""
from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timedelta
from typing import Any, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from orchestrator.errors import RecordShapeError
from orchestrator.models import (
    DifficultyAdjustment,
    ResearchSnapshot,
    ResumeProgressState,
    Session,
    SessionLimits,
    SessionStatus,
    utc_now,
)

from .sqlite import get_conn, immediate

M = TypeVar("M", bound=BaseModel)

_CURVE = TypeAdapter(List[DifficultyAdjustment])
_TARGETS = TypeAdapter(List[int])


def _load(model: Type[M], raw: Optional[str], column: str) -> Optional[M]:
    if raw is None:
        return None
    try:
        return model.model_validate_json(raw)
    except ValidationError as exc:
        raise RecordShapeError(f"sessions.{column} has an invalid shape") from exc


def _load_list(adapter: TypeAdapter, raw: Optional[str], column: str) -> Optional[list]:
    if raw is None:
        return None
    try:
        return adapter.validate_json(raw)
    except ValidationError as exc:
        raise RecordShapeError(f"sessions.{column} has an invalid shape") from exc


def _dump_curve(curve: Sequence[DifficultyAdjustment]) -> str:
    return json.dumps([entry.model_dump(mode="json") for entry in curve])


def _row_to_session(row: sqlite3.Row) -> Session:
    try:
        return Session(
            id=row["id"],
            user_id=row["user_id"],
            status=row["status"],
            plan_tier=row["plan_tier"],
            mode=row["mode"],
            research_snapshot=_load(ResearchSnapshot, row["research_snapshot"], "research_snapshot"),
            limits=_load(SessionLimits, row["limits"], "limits"),
            entitlement_id=row["entitlement_id"],
            stages_planned=row["stages_planned"],
            current_stage=row["current_stage"],
            stage_targets=_load_list(_TARGETS, row["stage_targets"], "stage_targets"),
            conversation_summary=row["conversation_summary"],
            difficulty_curve=_load_list(_CURVE, row["difficulty_curve"], "difficulty_curve") or [],
            progress_state=_load(ResumeProgressState, row["progress_state"], "progress_state"),
            intro_text=row["intro_text"],
            last_activity=row["last_activity"],
            inflight_turn_id=row["inflight_turn_id"],
            inflight_since=row["inflight_since"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
    except ValidationError as exc:
        raise RecordShapeError(f"sessions row {row['id']} has an invalid shape") from exc


def insert_session(session: Session) -> None:
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO sessions
               (id, user_id, status, plan_tier, mode, research_snapshot, limits, entitlement_id,
                stages_planned, current_stage, stage_targets, conversation_summary, difficulty_curve,
                progress_state, intro_text, last_activity, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                session.id,
                session.user_id,
                session.status,
                session.plan_tier,
                session.mode,
                session.research_snapshot.model_dump_json(),
                session.limits.model_dump_json(),
                session.entitlement_id,
                session.stages_planned,
                session.current_stage,
                json.dumps(session.stage_targets) if session.stage_targets is not None else None,
                session.conversation_summary,
                _dump_curve(session.difficulty_curve),
                session.progress_state.model_dump_json() if session.progress_state else None,
                session.intro_text,
                session.last_activity,
                session.created_at,
                session.updated_at,
            ),
        )


def get_session(session_id: str) -> Optional[Session]:
    with get_conn() as conn:
        row = conn.execute("SELECT * FROM sessions WHERE id=?", (session_id,)).fetchone()
    return _row_to_session(row) if row else None


def _update(session_id: str, where: str, params: Sequence[Any], **fields: Any) -> bool:
    assignments = ", ".join(f"{column}=?" for column in fields)
    values = list(fields.values())
    sql = f"UPDATE sessions SET {assignments}, updated_at=? WHERE id=?"
    if where:
        sql += f" AND {where}"
    with get_conn() as conn:
        cur = conn.execute(sql, (*values, utc_now().isoformat(), session_id, *params))
        return cur.rowcount == 1


def transition_status(session_id: str, from_statuses: Sequence[SessionStatus], to_status: SessionStatus) -> bool:
    """Move the session to ``to_status`` only if it is still in one of ``from_statuses``."""

    marks = ", ".join("?" for _ in from_statuses)
    return _update(session_id, f"status IN ({marks})", list(from_statuses), status=to_status)


def set_stage_targets_if_absent(session_id: str, targets: Sequence[int]) -> List[int]:
    """Persist a stage plan once; returns whichever plan is stored afterwards."""

    with immediate() as conn:
        conn.execute(
            "UPDATE sessions SET stage_targets=?, updated_at=? WHERE id=? AND stage_targets IS NULL",
            (json.dumps(list(targets)), utc_now().isoformat(), session_id),
        )
        row = conn.execute("SELECT stage_targets FROM sessions WHERE id=?", (session_id,)).fetchone()
    return _load_list(_TARGETS, row["stage_targets"], "stage_targets") or []


def set_intro_if_absent(session_id: str, intro_text: str) -> str:
    with immediate() as conn:
        conn.execute(
            "UPDATE sessions SET intro_text=?, updated_at=? WHERE id=? AND intro_text IS NULL",
            (intro_text, utc_now().isoformat(), session_id),
        )
        row = conn.execute("SELECT intro_text FROM sessions WHERE id=?", (session_id,)).fetchone()
    return row["intro_text"] or ""


def advance_stage(session_id: str, from_stage: int, to_stage: int) -> bool:
    if to_stage <= from_stage:
        return False
    return _update(session_id, "current_stage=?", [from_stage], current_stage=to_stage)


def claim_submission(session_id: str, turn_id: str, *, lease_seconds: int, now: Optional[datetime] = None) -> bool:
    """Compare-and-swap the in-flight slot; a stale claim may be taken over."""

    moment = now or utc_now()
    stale_before = (moment - timedelta(seconds=lease_seconds)).isoformat()
    return _update(
        session_id,
        "(inflight_turn_id IS NULL OR inflight_since IS NULL OR inflight_since < ?)",
        [stale_before],
        inflight_turn_id=turn_id,
        inflight_since=moment.isoformat(),
    )


def release_submission(session_id: str, turn_id: str, claimed_at: datetime) -> bool:
    """Clear the in-flight slot only if it still holds this exact claim."""

    return _update(
        session_id,
        "inflight_turn_id=? AND inflight_since=?",
        [turn_id, claimed_at.isoformat()],
        inflight_turn_id=None,
        inflight_since=None,
    )


def save_summary(session_id: str, summary: str) -> None:
    _update(session_id, "", [], conversation_summary=summary)


def append_difficulty(session_id: str, entries: Sequence[DifficultyAdjustment]) -> List[DifficultyAdjustment]:
    """Append entries to the difficulty curve; existing entries are never rewritten."""

    with immediate() as conn:
        row = conn.execute("SELECT difficulty_curve FROM sessions WHERE id=?", (session_id,)).fetchone()
        curve = _load_list(_CURVE, row["difficulty_curve"], "difficulty_curve") if row else None
        if curve is None:
            curve = []
        curve.extend(entries)
        conn.execute(
            "UPDATE sessions SET difficulty_curve=?, updated_at=? WHERE id=?",
            (_dump_curve(curve), utc_now().isoformat(), session_id),
        )
    return curve


def save_progress_state(session_id: str, state: Optional[ResumeProgressState], last_activity: str) -> None:
    _update(
        session_id,
        "",
        [],
        progress_state=state.model_dump_json() if state else None,
        last_activity=last_activity,
    )


def mark_complete(session_id: str) -> bool:
    """Terminal transition; clears resume state."""

    return _update(
        session_id,
        "status IN ('running', 'feedback')",
        [],
        status="complete",
        progress_state=None,
        inflight_turn_id=None,
        inflight_since=None,
    )


def save_feedback(session_id: str, payload: str) -> bool:
    """Store the feedback report once, while the session is still in feedback."""

    return _update(session_id, "status='feedback' AND feedback IS NULL", [], feedback=payload)


def get_feedback(session_id: str) -> Optional[str]:
    with get_conn() as conn:
        row = conn.execute("SELECT feedback FROM sessions WHERE id=?", (session_id,)).fetchone()
    return row["feedback"] if row else None


def reset_session(session_id: str) -> None:
    """Delete turns and clear per-attempt state, keeping stage plan and intro."""

    with immediate() as conn:
        conn.execute("DELETE FROM turns WHERE session_id=?", (session_id,))
        conn.execute(
            """UPDATE sessions
               SET status='ready', current_stage=1, conversation_summary='', difficulty_curve='[]', feedback=NULL,
                   progress_state=NULL, last_activity=NULL, inflight_turn_id=NULL, inflight_since=NULL,
                   updated_at=?
               WHERE id=?""",
            (utc_now().isoformat(), session_id),
        )


def list_session_ids(limit: int = 20) -> List[str]:
    with get_conn() as conn:
        rows = conn.execute("SELECT id FROM sessions ORDER BY updated_at DESC LIMIT ?", (limit,)).fetchall()
    return [row["id"] for row in rows]


__all__ = [
    "advance_stage",
    "append_difficulty",
    "claim_submission",
    "get_feedback",
    "get_session",
    "insert_session",
    "list_session_ids",
    "mark_complete",
    "release_submission",
    "reset_session",
    "save_feedback",
    "save_progress_state",
    "save_summary",
    "set_intro_if_absent",
    "set_stage_targets_if_absent",
    "transition_status",
]
