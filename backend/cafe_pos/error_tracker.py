# Overview: Per-application bounded record of unhandled errors, surfaced by the health endpoint.

"""
Error Tracker

WHY: Operators need to see recent crashes without shell access to the logs.

LIFECYCLE:
- init_app(app): allocate a bounded buffer for this application
- record_error(exc, context): append one entry (oldest entries fall off)
- query(limit): newest-first view for /api/health
- reset(): clear (tests, maintenance)

State lives in app.extensions["error_tracker"], so two applications in the same
process (tests) never share entries.
"""

from __future__ import annotations

import traceback
from collections import deque
from dataclasses import dataclass, field

from flask import Flask, current_app

from .time_utils import utcnow, to_utc_z


@dataclass
class _TrackerState:
    entries: deque
    total: int = 0
    by_type: dict = field(default_factory=dict)


class ErrorTracker:
    def __init__(self, app: Flask | None = None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        capacity = int(app.config.get("ERROR_TRACKER_CAPACITY", 50))
        app.extensions["error_tracker"] = _TrackerState(entries=deque(maxlen=capacity))

    def _state(self) -> _TrackerState:
        try:
            return current_app.extensions["error_tracker"]
        except KeyError:
            raise RuntimeError("ErrorTracker is not initialized for this application")

    def record_error(self, exc: BaseException, context: dict | None = None) -> dict:
        state = self._state()
        error_type = type(exc).__name__
        entry = {
            "type": error_type,
            "message": str(exc),
            "occurred_at": to_utc_z(utcnow()),
            "context": dict(context or {}),
            "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        }
        state.entries.append(entry)
        state.total += 1
        state.by_type[error_type] = state.by_type.get(error_type, 0) + 1
        return entry

    def query(self, limit: int | None = None) -> list[dict]:
        entries = list(reversed(self._state().entries))
        if limit is not None:
            entries = entries[:limit]
        return entries

    def counts(self) -> dict:
        state = self._state()
        return {"total": state.total, "retained": len(state.entries), "by_type": dict(state.by_type)}

    def reset(self) -> None:
        state = self._state()
        state.entries.clear()
        state.total = 0
        state.by_type.clear()
