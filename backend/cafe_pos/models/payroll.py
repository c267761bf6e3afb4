from __future__ import annotations

from ..extensions import db
from cafe_pos.time_utils import to_utc_z


class Payroll(db.Model):
    """
    Payroll record for one staff member and one pay period.

    Hours are a snapshot of time_accounting.aggregate_period at generation
    time; later time logs do not change an existing record.
    """
    __tablename__ = "payrolls"
    __table_args__ = (
        db.UniqueConstraint("staff_id", "period_start", name="uq_payrolls_staff_period"),
        db.Index("ix_payrolls_staff_period", "staff_id", "period_start"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=False, index=True)

    period_start = db.Column(db.DateTime(timezone=True), nullable=False)
    period_end = db.Column(db.DateTime(timezone=True), nullable=False)

    total_hours = db.Column(db.Float, nullable=False, default=0)
    regular_hours = db.Column(db.Float, nullable=False, default=0)
    overtime_hours = db.Column(db.Float, nullable=False, default=0)

    basic_pay_cents = db.Column(db.Integer, nullable=False, default=0)
    overtime_pay_cents = db.Column(db.Integer, nullable=False, default=0)
    allowances_cents = db.Column(db.Integer, nullable=False, default=0)
    late_deduction_cents = db.Column(db.Integer, nullable=False, default=0)
    absence_deduction_cents = db.Column(db.Integer, nullable=False, default=0)
    net_pay_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    staff = db.relationship("Staff", backref=db.backref("payrolls", lazy=True))

    @property
    def gross_pay_cents(self) -> int:
        return self.basic_pay_cents + self.overtime_pay_cents + self.allowances_cents

    @property
    def total_deductions_cents(self) -> int:
        return self.late_deduction_cents + self.absence_deduction_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staff_id": self.staff_id,
            "period_start": to_utc_z(self.period_start),
            "period_end": to_utc_z(self.period_end),
            "total_hours": self.total_hours,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "basic_pay_cents": self.basic_pay_cents,
            "overtime_pay_cents": self.overtime_pay_cents,
            "allowances_cents": self.allowances_cents,
            "late_deduction_cents": self.late_deduction_cents,
            "absence_deduction_cents": self.absence_deduction_cents,
            "gross_pay_cents": self.gross_pay_cents,
            "total_deductions_cents": self.total_deductions_cents,
            "net_pay_cents": self.net_pay_cents,
            "created_at": to_utc_z(self.created_at),
        }
