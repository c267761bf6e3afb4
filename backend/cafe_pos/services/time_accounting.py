# Overview: Service-layer operations for timekeeping; shift pairing, hours and overtime.

"""
Time Accounting (event-based)

WHY: Staff clock in and out at a kiosk. Each action is stored as an immutable
TimeLog event; shifts and hours are derived from the event sequence.

INVARIANTS:
- Events of one staff member are ordered by timestamp; a new event may not
  precede the latest stored one.
- clockIn is rejected while the latest event is already a clockIn.
- clockOut closes the latest event, which must be an open clockIn.
- Shift hours = (end - start) in hours, rounded half-up to 2 decimals, capped
  at MAX_SHIFT_HOURS (24). Only the upper bound is clamped; an inverted
  interval gives negative hours and is refused by the clock operations.
- Overtime is the part of a shift above OVERTIME_THRESHOLD_HOURS (8). The
  threshold is fixed for everyone; there is no per-staff schedule yet.
- Period totals satisfy regular_hours + overtime_hours == total_hours exactly
  (Decimal accumulation of 2-decimal shift values).
"""

from __future__ import annotations

import base64
import binascii
import enum
import os
import random
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, NamedTuple, Optional

from flask import current_app

from ..extensions import db
from ..models import TimeLog, CLOCK_IN, CLOCK_OUT
from .staff_service import get_staff
from cafe_pos.time_utils import utcnow, normalize_datetime

MAX_SHIFT_HOURS = 24
OVERTIME_THRESHOLD_HOURS = 8
LONG_SHIFT_WARNING_HOURS = 24

_HUNDREDTH = Decimal("0.01")
_ZERO = Decimal("0")
_MICROSECONDS_PER_HOUR = Decimal(3_600_000_000)


class TimekeepingError(ValueError):
    """Raised for invalid timekeeping operations."""
    pass


class AlreadyClockedInError(TimekeepingError):
    pass


class NoOpenShiftError(TimekeepingError):
    pass


class ClockSequenceError(TimekeepingError):
    """Event timestamp would precede the staff member's latest event."""
    pass


# =============================================================================
# PURE CALCULATIONS
# =============================================================================

@dataclass(frozen=True)
class ShiftEvent:
    """Plain clock event; TimeLog rows satisfy the same (kind, timestamp) shape."""
    kind: str
    timestamp: datetime


@dataclass(frozen=True)
class Shift:
    clock_in_at: datetime
    clock_out_at: datetime
    hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal

    @property
    def is_overtime(self) -> bool:
        return self.overtime_hours > 0


@dataclass(frozen=True)
class HoursSummary:
    total_hours: Decimal = _ZERO
    regular_hours: Decimal = _ZERO
    overtime_hours: Decimal = _ZERO
    shift_count: int = 0

    def to_dict(self) -> dict:
        return {
            "total_hours": float(self.total_hours),
            "regular_hours": float(self.regular_hours),
            "overtime_hours": float(self.overtime_hours),
            "shift_count": self.shift_count,
        }


def _decimal_hours(value) -> Decimal:
    return Decimal(str(value))


def _elapsed_hours(start: datetime, end: datetime) -> Decimal:
    micros = (end - start) // timedelta(microseconds=1)
    return Decimal(micros) / _MICROSECONDS_PER_HOUR


def compute_shift_hours(start: datetime, end: datetime, max_shift_hours=MAX_SHIFT_HOURS) -> float:
    """
    Hours between two instants, 2 decimals (half-up), capped at max_shift_hours.

    >>> compute_shift_hours(datetime(2025, 1, 6, 8), datetime(2025, 1, 6, 17, 30))
    9.5
    """
    hours = _elapsed_hours(start, end).quantize(_HUNDREDTH, rounding=ROUND_HALF_UP)
    return float(min(hours, _decimal_hours(max_shift_hours)))


def split_overtime(hours, threshold=OVERTIME_THRESHOLD_HOURS) -> tuple[Decimal, Decimal]:
    """(regular, overtime) for one shift."""
    hours = _decimal_hours(hours)
    limit = _decimal_hours(threshold)
    if hours > limit:
        return limit, hours - limit
    return hours, _ZERO


class PairingState(enum.Enum):
    AWAITING_CLOCK_IN = "AWAITING_CLOCK_IN"
    AWAITING_CLOCK_OUT = "AWAITING_CLOCK_OUT"


class _Pairing(NamedTuple):
    state: PairingState
    pending: Optional[object]


def _step(current: _Pairing, event) -> tuple[_Pairing, Optional[tuple]]:
    """
    One transition of the shift pairing machine.

    clockIn always (re)opens: a second clockIn replaces the pending one.
    clockOut closes only from AWAITING_CLOCK_OUT; an orphan clockOut is a no-op.
    """
    if event.kind == CLOCK_IN:
        return _Pairing(PairingState.AWAITING_CLOCK_OUT, event), None
    if event.kind == CLOCK_OUT and current.state is PairingState.AWAITING_CLOCK_OUT:
        return _Pairing(PairingState.AWAITING_CLOCK_IN, None), (current.pending, event)
    return current, None


def pair_shifts(
    events: Iterable,
    *,
    max_shift_hours=MAX_SHIFT_HOURS,
    overtime_threshold=OVERTIME_THRESHOLD_HOURS,
) -> list[Shift]:
    """
    Pair clock events into shifts, walking them once in timestamp order.

    A trailing clockIn with no clockOut is not a shift and is ignored.
    """
    pairing = _Pairing(PairingState.AWAITING_CLOCK_IN, None)
    shifts: list[Shift] = []
    for event in sorted(events, key=lambda e: e.timestamp):
        pairing, closed = _step(pairing, event)
        if closed is None:
            continue
        clock_in, clock_out = closed
        hours = _decimal_hours(
            compute_shift_hours(clock_in.timestamp, clock_out.timestamp, max_shift_hours=max_shift_hours)
        )
        regular, overtime = split_overtime(hours, overtime_threshold)
        shifts.append(Shift(
            clock_in_at=clock_in.timestamp,
            clock_out_at=clock_out.timestamp,
            hours=hours,
            regular_hours=regular,
            overtime_hours=overtime,
        ))
    return shifts


def aggregate_hours(
    events: Iterable,
    *,
    max_shift_hours=MAX_SHIFT_HOURS,
    overtime_threshold=OVERTIME_THRESHOLD_HOURS,
) -> HoursSummary:
    shifts = pair_shifts(events, max_shift_hours=max_shift_hours, overtime_threshold=overtime_threshold)
    regular = sum((s.regular_hours for s in shifts), _ZERO)
    overtime = sum((s.overtime_hours for s in shifts), _ZERO)
    return HoursSummary(
        total_hours=regular + overtime,
        regular_hours=regular,
        overtime_hours=overtime,
        shift_count=len(shifts),
    )


# =============================================================================
# CLOCK OPERATIONS (database)
# =============================================================================

def _setting(key: str, default):
    return current_app.config.get(key, default)


def _latest_event(staff_id: int) -> TimeLog | None:
    return (
        db.session.query(TimeLog)
        .filter_by(staff_id=staff_id)
        .order_by(TimeLog.timestamp.desc(), TimeLog.id.desc())
        .first()
    )


def _event_time(timestamp: datetime | None) -> datetime:
    return normalize_datetime(timestamp) if timestamp is not None else utcnow()


def record_clock_in(*, staff_id: int, timestamp: datetime | None = None, photo_path: str | None = None) -> TimeLog:
    get_staff(staff_id)

    clock_in_at = _event_time(timestamp)
    last = _latest_event(staff_id)
    if last is not None:
        if last.kind == CLOCK_IN:
            raise AlreadyClockedInError("Already clocked in")
        if clock_in_at < last.timestamp:
            raise ClockSequenceError("Clock in cannot precede the latest time log")

    entry = TimeLog(
        staff_id=staff_id,
        kind=CLOCK_IN,
        timestamp=clock_in_at,
        is_overtime=False,
        photo_path=photo_path,
    )
    db.session.add(entry)
    db.session.commit()

    current_app.logger.info("Staff %s clocked in at %s", staff_id, clock_in_at.isoformat())
    return entry


def record_clock_out(*, staff_id: int, timestamp: datetime | None = None, photo_path: str | None = None) -> TimeLog:
    get_staff(staff_id)

    last = _latest_event(staff_id)
    if last is None or last.kind != CLOCK_IN:
        raise NoOpenShiftError("No clock in record found")

    clock_out_at = _event_time(timestamp)
    if clock_out_at < last.timestamp:
        raise ClockSequenceError("Clock out cannot precede clock in")

    elapsed = float(_elapsed_hours(last.timestamp, clock_out_at))
    if elapsed > _setting("LONG_SHIFT_WARNING_HOURS", LONG_SHIFT_WARNING_HOURS):
        current_app.logger.warning(
            "Very long shift detected: %.2f hours for staff %s", elapsed, staff_id
        )

    hours = compute_shift_hours(
        last.timestamp,
        clock_out_at,
        max_shift_hours=_setting("MAX_SHIFT_HOURS", MAX_SHIFT_HOURS),
    )
    is_overtime = hours > _setting("OVERTIME_THRESHOLD_HOURS", OVERTIME_THRESHOLD_HOURS)

    entry = TimeLog(
        staff_id=staff_id,
        kind=CLOCK_OUT,
        timestamp=clock_out_at,
        hours_worked=hours,
        is_overtime=is_overtime,
        photo_path=photo_path,
    )
    db.session.add(entry)
    db.session.commit()

    current_app.logger.info(
        "Staff %s clocked out at %s (%.2f hours%s)",
        staff_id, clock_out_at.isoformat(), hours, ", overtime" if is_overtime else "",
    )
    return entry


def get_clock_status(staff_id: int) -> dict:
    get_staff(staff_id)
    last = _latest_event(staff_id)
    if last is None or last.kind != CLOCK_IN:
        return {"status": "CLOCKED_OUT", "last_event": last.to_dict() if last else None}
    return {"status": "CLOCKED_IN", "last_event": last.to_dict()}


def _logs_in_period(staff_id: int, start: datetime | None, end: datetime | None):
    query = db.session.query(TimeLog).filter(TimeLog.staff_id == staff_id)
    if start is not None:
        query = query.filter(TimeLog.timestamp >= normalize_datetime(start))
    if end is not None:
        query = query.filter(TimeLog.timestamp <= normalize_datetime(end))
    return query


def list_time_logs(staff_id: int, start: datetime | None = None, end: datetime | None = None) -> list[TimeLog]:
    """Newest first."""
    get_staff(staff_id)
    return (
        _logs_in_period(staff_id, start, end)
        .order_by(TimeLog.timestamp.desc(), TimeLog.id.desc())
        .all()
    )


def aggregate_period(staff_id: int, start_date: datetime, end_date: datetime) -> HoursSummary:
    """
    Total/regular/overtime hours for shifts whose events fall in
    [start_date, end_date] (inclusive). A clockOut whose clockIn lies before
    start_date has no partner in the window and is skipped.
    """
    logs = (
        _logs_in_period(staff_id, start_date, end_date)
        .order_by(TimeLog.timestamp.asc(), TimeLog.id.asc())
        .all()
    )
    return aggregate_hours(
        logs,
        max_shift_hours=_setting("MAX_SHIFT_HOURS", MAX_SHIFT_HOURS),
        overtime_threshold=_setting("OVERTIME_THRESHOLD_HOURS", OVERTIME_THRESHOLD_HOURS),
    )


# =============================================================================
# PHOTOS
# =============================================================================

_DATA_URL_RE = re.compile(r"^data:image/([A-Za-z0-9+.-]+);base64,(.+)$", re.DOTALL)
_PHOTO_EXTENSIONS = {"jpeg": "jpg", "jpg": "jpg", "png": "png", "gif": "gif"}


def save_base64_photo(data_url: str | None, staff_id: int) -> str | None:
    """
    Store a kiosk snapshot sent as a data URL and return its path relative to
    UPLOAD_FOLDER. Invalid or oversized images are dropped (the clock action
    still succeeds without a photo).
    """
    if not data_url or not isinstance(data_url, str):
        return None
    match = _DATA_URL_RE.match(data_url.strip())
    if not match:
        current_app.logger.warning("Ignoring time log photo for staff %s: not an image data URL", staff_id)
        return None

    extension = _PHOTO_EXTENSIONS.get(match.group(1).lower())
    if extension is None:
        current_app.logger.warning("Ignoring time log photo for staff %s: unsupported type", staff_id)
        return None

    try:
        payload = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError):
        current_app.logger.warning("Ignoring time log photo for staff %s: invalid base64", staff_id)
        return None

    if len(payload) > current_app.config.get("MAX_PHOTO_BYTES", 5 * 1024 * 1024):
        current_app.logger.warning("Ignoring time log photo for staff %s: too large", staff_id)
        return None

    directory = os.path.join(current_app.config["UPLOAD_FOLDER"], "timelogs")
    os.makedirs(directory, exist_ok=True)
    filename = f"{utcnow().strftime('%Y%m%d%H%M%S%f')}-{staff_id}-photo.{extension}"
    with open(os.path.join(directory, filename), "wb") as fh:
        fh.write(payload)
    return f"timelogs/{filename}"


# =============================================================================
# TEST DATA (administrative)
# =============================================================================

def _delete_logs(staff_id, start, end) -> int:
    query = db.session.query(TimeLog)
    if staff_id is not None:
        query = query.filter(TimeLog.staff_id == staff_id)
    if start is not None:
        query = query.filter(TimeLog.timestamp >= normalize_datetime(start))
    if end is not None:
        query = query.filter(TimeLog.timestamp <= normalize_datetime(end))
    return query.delete(synchronize_session=False)


def purge_time_logs(staff_id: int | None = None, start: datetime | None = None, end: datetime | None = None) -> int:
    """Bulk delete for test-data resets. Returns the number of rows removed."""
    deleted = _delete_logs(staff_id, start, end)
    db.session.commit()
    current_app.logger.info("Purged %d time logs", deleted)
    return deleted


def generate_test_logs(
    *,
    staff_id: int,
    start: datetime,
    end: datetime,
    days: int = 21,
    hours_per_day: float = 8,
    include_overtime: bool = True,
    seed: int | None = None,
) -> list[TimeLog]:
    """
    Replace the staff member's logs in [start, end] with synthetic weekday
    shifts: clock-in between 08:00 and 08:29, mostly hours_per_day long, ~30%
    of days with 1-2 h overtime and ~20% short days of 7-7.9 h.
    """
    get_staff(staff_id)
    start = normalize_datetime(start)
    end = normalize_datetime(end)
    if end < start:
        raise TimekeepingError("end must not be before start")

    rng = random.Random(seed)

    created: list[TimeLog] = []
    max_hours = _setting("MAX_SHIFT_HOURS", MAX_SHIFT_HOURS)
    threshold = _setting("OVERTIME_THRESHOLD_HOURS", OVERTIME_THRESHOLD_HOURS)
    for offset in range(days):
        day = (start + timedelta(days=offset)).replace(hour=0, minute=0, second=0, microsecond=0)
        if day.weekday() >= 5:
            continue

        clock_in_at = day.replace(hour=8, minute=rng.randrange(30))
        if clock_in_at < start:
            continue
        work_hours = float(hours_per_day)
        if include_overtime and rng.random() < 0.3:
            work_hours += 1 + rng.random()
        if rng.random() < 0.2:
            work_hours = 7 + rng.random() * 0.9
        clock_out_at = clock_in_at + timedelta(hours=work_hours)
        if clock_out_at > end:
            break

        hours = compute_shift_hours(clock_in_at, clock_out_at, max_shift_hours=max_hours)
        created.append(TimeLog(staff_id=staff_id, kind=CLOCK_IN, timestamp=clock_in_at, is_overtime=False))
        created.append(TimeLog(
            staff_id=staff_id,
            kind=CLOCK_OUT,
            timestamp=clock_out_at,
            hours_worked=hours,
            is_overtime=hours > threshold,
        ))

    # Old rows go in the same transaction as the new ones
    try:
        purged = _delete_logs(staff_id, start, end)
        db.session.add_all(created)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(
        "Replaced %d time logs with %d test time logs for staff %s", purged, len(created), staff_id,
    )
    return created
