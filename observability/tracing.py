"""Span helper timing generation calls into an event list."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List


@contextmanager
def span(events: List[Dict[str, Any]], name: str) -> Iterator[None]:
    started = time.perf_counter()
    ok = False
    try:
        yield
        ok = True
    finally:
        event: Dict[str, Any] = {"span": name, "ms": int((time.perf_counter() - started) * 1000)}
        if not ok:
            event["error"] = True
        events.append(event)


__all__ = ["span"]
