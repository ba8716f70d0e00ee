"""Structured event logging for interview sessions.

Every event goes out twice: a one-line human rendering (console and
``*-human.log``) and, when file logs are on, a JSON line for reconciliation
tooling (``LOG_FILE``). Both files rotate.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from typing import Any

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "1") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/interview.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

HUMAN_FORMATTER = logging.Formatter("[%(asctime)s] %(levelname)s %(name)s :: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

# Fields promoted into the human line, in this order.
HUMAN_KEYS = (
    "turn_id",
    "turn_type",
    "status",
    "stage",
    "quality",
    "difficulty",
    "adjustment",
    "target",
    "phase",
    "reason",
    "score",
    "grade",
    "ms",
)

_events = logging.getLogger("interview.events")
_events.setLevel(LOG_LEVEL)
_events.propagate = False


class _Channel(logging.Filter):  # Route records to the JSON or the human handlers
    def __init__(self, json_lines: bool) -> None:
        super().__init__()
        self.json_lines = json_lines

    def filter(self, record: logging.LogRecord) -> bool:
        return getattr(record, "is_json", False) is self.json_lines


def _rotating(path: str, formatter: logging.Formatter, *, json_lines: bool) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT)
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(formatter)
    handler.addFilter(_Channel(json_lines))
    return handler


def _human_log_path(path: str) -> str:
    root, ext = os.path.splitext(path)
    return f"{root}-human{ext or '.log'}"


def _ensure_handlers() -> None:
    if _events.handlers:
        return

    console = logging.StreamHandler(stream=sys.stdout)
    console.setLevel(LOG_LEVEL)
    console.setFormatter(HUMAN_FORMATTER)
    console.addFilter(_Channel(json_lines=False))
    _events.addHandler(console)

    if not ENABLE_FILE_LOGS:
        return
    log_dir = os.path.dirname(LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    _events.addHandler(_rotating(LOG_FILE, logging.Formatter("%(message)s"), json_lines=True))
    _events.addHandler(_rotating(_human_log_path(LOG_FILE), HUMAN_FORMATTER, json_lines=False))


def _format_human(evt: dict[str, Any]) -> str:
    extras = " ".join(f"{key}={evt[key]}" for key in HUMAN_KEYS if evt.get(key) is not None)
    base = f"session={evt.get('session_id')} kind={evt.get('kind')}"
    return f"{base} {extras}" if extras else base


def _emit(level: int, message: str, *, is_json: bool) -> None:
    record = _events.makeRecord(_events.name, level, "", 0, message, (), None)
    record.is_json = is_json  # type: ignore[attr-defined]
    _events.handle(record)


def log_event(kind: str, session_id: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one session event at ``level``; extra ``fields`` land in the JSON line."""

    _ensure_handlers()
    payload: dict[str, Any] = {
        "ts": time.time(),
        "trace": str(uuid.uuid4()),
        "kind": kind,
        "session_id": session_id,
        **fields,
    }
    _emit(level, _format_human(payload), is_json=False)
    if ENABLE_FILE_LOGS:
        _emit(level, json.dumps(payload, ensure_ascii=False, default=str), is_json=True)


__all__ = ["log_event"]
