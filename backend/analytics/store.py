from __future__ import annotations

import threading
import time
from typing import Any

GENERATE = "generate"
DELETE = "delete"
RATING = "rating"
FINISH = "finish"

# Sync endpoints run on FastAPI's threadpool.
_lock = threading.Lock()
_events: list[dict[str, Any]] = []


def record_event(event_type: str, data: dict[str, Any]) -> None:
    event = {"type": event_type, "timestamp": time.time(), **data}
    with _lock:
        _events.append(event)


def get_events(event_type: str | None = None) -> list[dict[str, Any]]:
    with _lock:
        if event_type is None:
            return list(_events)
        return [e for e in _events if e["type"] == event_type]


def clear_events() -> None:
    with _lock:
        _events.clear()
