"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable, Optional

from config.settings import settings

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS sessions (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  status TEXT NOT NULL,
  plan_tier TEXT NOT NULL DEFAULT 'free',
  mode TEXT NOT NULL DEFAULT 'text',
  research_snapshot TEXT NOT NULL,
  limits TEXT NOT NULL,
  entitlement_id TEXT,
  stages_planned INTEGER NOT NULL DEFAULT 1,
  current_stage INTEGER NOT NULL DEFAULT 1,
  stage_targets TEXT,
  conversation_summary TEXT NOT NULL DEFAULT '',
  difficulty_curve TEXT NOT NULL DEFAULT '[]',
  progress_state TEXT,
  intro_text TEXT,
  feedback TEXT,
  last_activity TEXT,
  inflight_turn_id TEXT,
  inflight_since TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS turns (
  id TEXT PRIMARY KEY,
  session_id TEXT NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
  seq INTEGER NOT NULL,
  turn_type TEXT NOT NULL,
  question TEXT NOT NULL,
  stage INTEGER NOT NULL DEFAULT 1,
  bridge_text TEXT,
  answer_text TEXT,
  answer_audio_key TEXT,
  answer_digest TEXT,
  timing TEXT NOT NULL,
  UNIQUE (session_id, seq)
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_turns_session ON turns(session_id, seq);
""",
    """
CREATE TABLE IF NOT EXISTS entitlements (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  credits_remaining INTEGER NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS entitlement_history (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  timestamp TEXT NOT NULL,
  entitlement_id TEXT NOT NULL,
  user_id TEXT NOT NULL,
  session_id TEXT NOT NULL,
  delta INTEGER NOT NULL,
  UNIQUE (entitlement_id, session_id)
);
""",
]


def migrate(db_path: Optional[str] = None) -> None:
    """Apply schema migrations to the SQLite database."""

    path = db_path or settings.DB_PATH
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    migrate()
