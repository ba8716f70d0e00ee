"""Helpers for bootstrapping and loading interview sessions."""
from __future__ import annotations

import uuid
from typing import Optional

from orchestrator.models import Mode, PlanTier, ResearchSnapshot, Session, SessionLimits, utc_now
from storage import sessions as session_store


def new_session(
    snapshot: ResearchSnapshot,
    *,
    user_id: str,
    plan_tier: PlanTier = "free",
    mode: Mode = "text",
    question_cap: Optional[int] = None,
    entitlement_id: Optional[str] = None,
    stages_planned: Optional[int] = None,
    session_id: Optional[str] = None,
) -> Session:
    """Build a ``ready`` session with a generated identifier.

    Paid sessions default to one stage per configured stage name; free
    sessions always run a single stage.
    """

    if stages_planned is None:
        style = snapshot.interview_config
        stages_planned = len(style.stage_names) if plan_tier == "paid" and style and style.stage_names else 1
    timestamp = utc_now().isoformat()
    return Session(
        id=session_id or str(uuid.uuid4()),
        user_id=user_id,
        status="ready",
        plan_tier=plan_tier,
        mode=mode,
        research_snapshot=snapshot,
        limits=SessionLimits(question_cap=question_cap),
        entitlement_id=entitlement_id,
        stages_planned=max(stages_planned, 1),
        created_at=timestamp,
        updated_at=timestamp,
    )


def create_session(snapshot: ResearchSnapshot, **kwargs) -> Session:
    """Persist a new ``ready`` session and return it."""

    session = new_session(snapshot, **kwargs)
    session_store.insert_session(session)
    return session


def load_session(session_id: str) -> Optional[Session]:
    """Load the stored session for ``session_id`` if present."""

    return session_store.get_session(session_id)


__all__ = ["create_session", "load_session", "new_session"]
