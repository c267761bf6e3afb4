"""
Clock-in/out against the database: sequencing rules, stored hours and period
aggregation.
"""

import logging
import os
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from cafe_pos.extensions import db
from cafe_pos.models import TimeLog, CLOCK_IN, CLOCK_OUT
from cafe_pos.services import time_accounting
from cafe_pos.services.time_accounting import (
    AlreadyClockedInError,
    NoOpenShiftError,
    ClockSequenceError,
    TimekeepingError,
)
from cafe_pos.services.staff_service import StaffNotFoundError


def test_clock_in_then_out_stores_hours(make_staff):
    staff = make_staff()
    clock_in = time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 8, 0))
    clock_out = time_accounting.record_clock_out(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 17, 30))

    assert clock_in.kind == CLOCK_IN
    assert clock_in.hours_worked is None
    assert clock_out.kind == CLOCK_OUT
    assert clock_out.hours_worked == 9.5
    assert clock_out.is_overtime is True


def test_exactly_eight_hours_is_not_overtime(make_staff):
    staff = make_staff()
    time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 8, 0))
    entry = time_accounting.record_clock_out(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 16, 0))
    assert entry.hours_worked == 8.0
    assert entry.is_overtime is False


def test_double_clock_in_rejected(make_staff):
    staff = make_staff()
    time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 8, 0))
    with pytest.raises(AlreadyClockedInError):
        time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 9, 0))
    assert TimeLog.query.filter_by(staff_id=staff.id).count() == 1


def test_clock_out_without_clock_in_rejected(make_staff):
    staff = make_staff()
    with pytest.raises(NoOpenShiftError):
        time_accounting.record_clock_out(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 17, 0))


def test_clock_out_after_closed_shift_rejected(make_staff):
    staff = make_staff()
    time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 8, 0))
    time_accounting.record_clock_out(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 16, 0))
    with pytest.raises(NoOpenShiftError):
        time_accounting.record_clock_out(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 17, 0))


def test_clock_out_before_clock_in_rejected(make_staff):
    staff = make_staff()
    time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 8, 0))
    with pytest.raises(ClockSequenceError):
        time_accounting.record_clock_out(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 7, 0))


def test_clock_in_before_latest_event_rejected(make_staff):
    staff = make_staff()
    time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 8, 0))
    time_accounting.record_clock_out(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 16, 0))
    with pytest.raises(ClockSequenceError):
        time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 15, 0))


def test_unknown_staff(db_session):
    with pytest.raises(StaffNotFoundError):
        time_accounting.record_clock_in(staff_id=999)


def test_long_shift_capped_and_logged(make_staff, caplog):
    staff = make_staff()
    time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 8, 0))
    with caplog.at_level(logging.WARNING):
        entry = time_accounting.record_clock_out(staff_id=staff.id, timestamp=datetime(2025, 1, 7, 10, 0))

    assert entry.hours_worked == 24.0
    assert entry.is_overtime is True
    assert "Very long shift detected" in caplog.text


def test_clock_status(make_staff):
    staff = make_staff()
    assert time_accounting.get_clock_status(staff.id)["status"] == "CLOCKED_OUT"

    time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 8, 0))
    status = time_accounting.get_clock_status(staff.id)
    assert status["status"] == "CLOCKED_IN"
    assert status["last_event"]["kind"] == CLOCK_IN


def _work(staff_id, start, end):
    time_accounting.record_clock_in(staff_id=staff_id, timestamp=start)
    time_accounting.record_clock_out(staff_id=staff_id, timestamp=end)


def test_aggregate_period(make_staff):
    staff = make_staff()
    _work(staff.id, datetime(2025, 1, 6, 8, 0), datetime(2025, 1, 6, 17, 30))
    _work(staff.id, datetime(2025, 1, 7, 9, 0), datetime(2025, 1, 7, 16, 15))
    _work(staff.id, datetime(2025, 1, 13, 8, 0), datetime(2025, 1, 13, 16, 0))

    week = time_accounting.aggregate_period(staff.id, datetime(2025, 1, 6), datetime(2025, 1, 12, 23, 59, 59))
    assert week.shift_count == 2
    assert week.total_hours == Decimal("16.75")
    assert week.regular_hours == Decimal("15.25")
    assert week.overtime_hours == Decimal("1.5")
    assert week.regular_hours + week.overtime_hours == week.total_hours


def test_aggregate_period_bounds_are_inclusive(make_staff):
    staff = make_staff()
    _work(staff.id, datetime(2025, 1, 6, 8, 0), datetime(2025, 1, 6, 16, 0))

    summary = time_accounting.aggregate_period(staff.id, datetime(2025, 1, 6, 8, 0), datetime(2025, 1, 6, 16, 0))
    assert summary.shift_count == 1
    assert summary.total_hours == Decimal("8")


def test_aggregate_period_skips_shift_started_before_window(make_staff):
    staff = make_staff()
    _work(staff.id, datetime(2025, 1, 5, 22, 0), datetime(2025, 1, 6, 6, 0))

    summary = time_accounting.aggregate_period(staff.id, datetime(2025, 1, 6), datetime(2025, 1, 6, 23, 59))
    assert summary.shift_count == 0
    assert summary.total_hours == Decimal("0")


def test_list_time_logs_newest_first(make_staff):
    staff = make_staff()
    _work(staff.id, datetime(2025, 1, 6, 8, 0), datetime(2025, 1, 6, 16, 0))
    logs = time_accounting.list_time_logs(staff.id)
    assert [log.kind for log in logs] == [CLOCK_OUT, CLOCK_IN]


def test_generate_test_logs_is_repeatable(make_staff):
    staff = make_staff()
    kwargs = dict(
        staff_id=staff.id,
        start=datetime(2025, 1, 6),
        end=datetime(2025, 1, 31, 23, 59),
        days=14,
        seed=7,
    )
    first = [(log.kind, log.timestamp) for log in time_accounting.generate_test_logs(**kwargs)]
    second = [(log.kind, log.timestamp) for log in time_accounting.generate_test_logs(**kwargs)]

    assert first == second
    # 14 days from a Monday: 10 weekdays
    assert len(first) == 20
    assert all(ts.weekday() < 5 for _, ts in first)
    assert TimeLog.query.filter_by(staff_id=staff.id).count() == 20


def test_generate_test_logs_rejects_inverted_range(make_staff):
    staff = make_staff()
    with pytest.raises(TimekeepingError):
        time_accounting.generate_test_logs(
            staff_id=staff.id, start=datetime(2025, 1, 31), end=datetime(2025, 1, 1)
        )


def test_generate_test_logs_keeps_old_rows_when_insert_fails(make_staff, monkeypatch):
    staff = make_staff()
    _work(staff.id, datetime(2025, 1, 6, 8, 0), datetime(2025, 1, 6, 16, 0))

    def failing_commit():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db.session, "commit", failing_commit)
    with pytest.raises(SQLAlchemyError):
        time_accounting.generate_test_logs(
            staff_id=staff.id, start=datetime(2025, 1, 6), end=datetime(2025, 1, 31, 23, 59), seed=3
        )
    monkeypatch.undo()

    logs = TimeLog.query.filter_by(staff_id=staff.id).order_by(TimeLog.timestamp.asc()).all()
    assert [(log.kind, log.timestamp) for log in logs] == [
        (CLOCK_IN, datetime(2025, 1, 6, 8, 0)),
        (CLOCK_OUT, datetime(2025, 1, 6, 16, 0)),
    ]


def test_purge_time_logs(make_staff):
    staff = make_staff()
    other = make_staff(name="Ben Cruz", position="Cashier")
    _work(staff.id, datetime(2025, 1, 6, 8, 0), datetime(2025, 1, 6, 16, 0))
    _work(other.id, datetime(2025, 1, 6, 8, 0), datetime(2025, 1, 6, 16, 0))

    assert time_accounting.purge_time_logs(staff_id=staff.id) == 2
    assert TimeLog.query.filter_by(staff_id=staff.id).count() == 0
    assert TimeLog.query.filter_by(staff_id=other.id).count() == 2


def test_save_base64_photo(app, make_staff):
    staff = make_staff()
    # 1x1 transparent GIF
    data_url = "data:image/gif;base64,R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7"
    path = time_accounting.save_base64_photo(data_url, staff.id)

    assert path.startswith("timelogs/")
    assert path.endswith(".gif")
    assert os.path.exists(os.path.join(app.config["UPLOAD_FOLDER"], path))


def test_save_base64_photo_ignores_bad_input(make_staff):
    staff = make_staff()
    assert time_accounting.save_base64_photo(None, staff.id) is None
    assert time_accounting.save_base64_photo("not a data url", staff.id) is None
    assert time_accounting.save_base64_photo("data:image/png;base64,@@@", staff.id) is None
