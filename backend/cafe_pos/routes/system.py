# backend/cafe_pos/routes/system.py
"""
System health endpoint.

Reports database connectivity, process uptime and the error tracker's recent
unhandled exceptions for the admin dashboard.
"""

import os
import socket
import time

from flask import Blueprint, current_app, request
from sqlalchemy import text

from ..extensions import db, error_tracker
from ..models import Staff, Item, TimeLog
from cafe_pos.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)

_STARTED_AT = time.time()


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        details = {
            "staff": db.session.query(Staff).count(),
            "items": db.session.query(Item).count(),
            "time_logs": db.session.query(TimeLog).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2), "details": details}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {"status": "unhealthy", "latency_ms": round(elapsed_ms, 2), "error": "Database error"}


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    status = {
        "status": "ok" if database["status"] == "healthy" else "degraded",
        "timestamp": to_utc_z(utcnow()),
        "uptime_seconds": int(time.time() - _STARTED_AT),
        "hostname": socket.gethostname(),
        "pid": os.getpid(),
        "database": database,
        "errors": error_tracker.counts(),
    }

    # Latest errors only outside production or on explicit request
    if current_app.debug or current_app.testing or request.args.get("include_errors") == "true":
        status["latest_errors"] = [
            {k: v for k, v in entry.items() if k != "stack"}
            for entry in error_tracker.query(limit=5)
        ]

    return status, 200 if database["status"] == "healthy" else 503
