"""Entitlement credits consumed when a paid session reaches feedback."""
from __future__ import annotations

import datetime as dt
from typing import Protocol

from pydantic import BaseModel, Field

from orchestrator.errors import EntitlementConsumptionFailure

from .sqlite import get_conn, immediate


class ConsumeResult(BaseModel):
    success: bool
    remaining_credits: int = Field(ge=0)


class EntitlementService(Protocol):  # Single credit-consumption call
    def consume(self, entitlement_id: str, user_id: str, session_id: str) -> ConsumeResult: ...


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


class SqliteEntitlements:
    """Credit ledger with one history row per (entitlement, session)."""

    def grant(self, entitlement_id: str, user_id: str, credits: int) -> None:
        with get_conn() as conn:
            conn.execute(
                """INSERT INTO entitlements (id, user_id, credits_remaining, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET credits_remaining=credits_remaining + excluded.credits_remaining,
                                                 updated_at=excluded.updated_at""",
                (entitlement_id, user_id, credits, _now()),
            )

    def remaining(self, entitlement_id: str) -> int:
        with get_conn() as conn:
            row = conn.execute("SELECT credits_remaining FROM entitlements WHERE id=?", (entitlement_id,)).fetchone()
        return int(row["credits_remaining"]) if row else 0

    def consume(self, entitlement_id: str, user_id: str, session_id: str) -> ConsumeResult:
        with immediate() as conn:
            row = conn.execute(
                "SELECT credits_remaining FROM entitlements WHERE id=? AND user_id=?", (entitlement_id, user_id)
            ).fetchone()
            if row is None:
                raise EntitlementConsumptionFailure(f"entitlement {entitlement_id} not found for user {user_id}")
            remaining = int(row["credits_remaining"])
            seen = conn.execute(
                "SELECT 1 FROM entitlement_history WHERE entitlement_id=? AND session_id=?",
                (entitlement_id, session_id),
            ).fetchone()
            if seen:
                return ConsumeResult(success=True, remaining_credits=remaining)
            if remaining <= 0:
                return ConsumeResult(success=False, remaining_credits=0)
            timestamp = _now()
            conn.execute(
                "UPDATE entitlements SET credits_remaining=credits_remaining - 1, updated_at=? WHERE id=?",
                (timestamp, entitlement_id),
            )
            conn.execute(
                """INSERT INTO entitlement_history (timestamp, entitlement_id, user_id, session_id, delta)
                   VALUES (?, ?, ?, ?, ?)""",
                (timestamp, entitlement_id, user_id, session_id, -1),
            )
        return ConsumeResult(success=True, remaining_credits=remaining - 1)

    def history_count(self, session_id: str) -> int:
        with get_conn() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM entitlement_history WHERE session_id=?", (session_id,)
            ).fetchone()
        return int(row[0])


__all__ = ["ConsumeResult", "EntitlementService", "SqliteEntitlements"]
