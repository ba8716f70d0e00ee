"""Lightweight CLI helpers for inspecting interview sessions."""
from __future__ import annotations

import argparse
import json
import sqlite3
from typing import Any, List, Sequence

from config.settings import settings


def _rows(sql: str, params: Sequence[Any]) -> List[tuple]:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        return conn.execute(sql, params).fetchall()
    finally:
        conn.close()


def list_sessions(limit: int = 20) -> None:
    rows = _rows(
        """
        SELECT updated_at, id, user_id, status, plan_tier, current_stage, stages_planned
        FROM sessions
        ORDER BY updated_at DESC
        LIMIT ?
        """,
        (limit,),
    )
    for ts, session_id, user_id, status, tier, stage, stages in rows:
        print(f"[{ts}] {session_id} user={user_id} {status}/{tier} stage={stage}/{stages}")


def show_curve(session_id: str) -> None:
    rows = _rows("SELECT difficulty_curve FROM sessions WHERE id=?", (session_id,))
    if not rows:
        print(f"session {session_id} not found")
        return
    for entry in json.loads(rows[0][0] or "[]"):
        print(
            f"#{entry['turn_index']} {entry['previous_difficulty']} -> {entry['new_difficulty']} "
            f"({entry['adjustment']}, quality={entry.get('quality')}) {entry['reason']}"
        )


def show_turns(session_id: str) -> None:
    rows = _rows(
        "SELECT seq, turn_type, stage, question, answer_text, timing FROM turns WHERE session_id=? ORDER BY seq",
        (session_id,),
    )
    for seq, turn_type, stage, question, answer, timing in rows:
        q = json.loads(question)
        t = json.loads(timing)
        state = "answered" if answer is not None else "pending"
        print(
            f"{seq:>3} {turn_type:<12} stage={stage} {q['category']}/{q['difficulty']} {state} "
            f"duration_ms={t.get('duration_ms')} reveals={t.get('reveal_count', 0)} :: {q['text'][:60]}"
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect interview sessions in the SQLite store")
    parser.add_argument("--list", type=int, metavar="N", help="Show the N most recently updated sessions")
    parser.add_argument("--curve", metavar="SESSION_ID", help="Print the difficulty curve of a session")
    parser.add_argument("--turns", metavar="SESSION_ID", help="Print the turn timeline of a session")
    args = parser.parse_args()

    if args.list:
        list_sessions(args.list)
    if args.curve:
        show_curve(args.curve)
    if args.turns:
        show_turns(args.turns)


if __name__ == "__main__":
    main()
