from __future__ import annotations

from ..extensions import db
from cafe_pos.time_utils import to_utc_z

CLOCK_IN = "clockIn"
CLOCK_OUT = "clockOut"
TIME_LOG_KINDS = (CLOCK_IN, CLOCK_OUT)


class TimeLog(db.Model):
    """
    Single clock-in or clock-out event for a staff member.

    WHY: Shifts are derived by pairing events, not stored. Keeping raw events
    lets hours be recomputed for any period.

    LIFECYCLE:
    - clockIn: opens a shift; hours_worked is NULL
    - clockOut: closes the latest open clockIn; hours_worked and is_overtime
      are computed once at creation

    IMMUTABLE: Events are never updated. The only delete path is the
    administrative test-data purge (cli: timelogs purge).
    """
    __tablename__ = "time_logs"
    __table_args__ = (
        db.Index("ix_time_logs_staff_timestamp", "staff_id", "timestamp"),
        db.CheckConstraint("hours_worked IS NULL OR hours_worked >= 0", name="ck_time_logs_hours_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=False, index=True)

    # clockIn | clockOut
    kind = db.Column(db.String(16), nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False)

    # Set on clockOut only (hours, 2 decimals)
    hours_worked = db.Column(db.Float, nullable=True)
    is_overtime = db.Column(db.Boolean, nullable=False, default=False)

    # Relative path under UPLOAD_FOLDER
    photo_path = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    staff = db.relationship("Staff", backref=db.backref("time_logs", lazy=True))

    def __repr__(self) -> str:
        return f"<TimeLog id={self.id} staff_id={self.staff_id} kind={self.kind} timestamp={self.timestamp}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staff_id": self.staff_id,
            "kind": self.kind,
            "timestamp": to_utc_z(self.timestamp),
            "hours_worked": self.hours_worked,
            "is_overtime": bool(self.is_overtime),
            "photo_path": self.photo_path,
            "created_at": to_utc_z(self.created_at),
        }
