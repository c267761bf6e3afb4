# Overview: Service-layer operations for payroll; pay breakdown from aggregated hours.

"""
Payroll Service

Pay rules (all amounts in cents, half-up rounding at each line):
- hourly rate   = daily_rate / STANDARD_WORKDAY_HOURS (8)
- regular pay   = regular_hours * hourly rate
- overtime pay  = overtime_hours * hourly rate * OVERTIME_PAY_MULTIPLIER (1.25)
- late          = late_minutes * hourly rate / 60
- absence       = absences * daily_rate
- net pay       = regular + overtime + allowances - deductions, never below 0

Hours come from time_accounting.aggregate_period and are frozen into the
payroll row when it is generated.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Payroll
from .staff_service import get_staff
from .time_accounting import aggregate_period
from cafe_pos.time_utils import normalize_datetime

STANDARD_WORKDAY_HOURS = 8
OVERTIME_PAY_MULTIPLIER = Decimal("1.25")


class PayrollError(ValueError):
    """Raised for invalid payroll operations."""
    pass


class DuplicatePayrollError(PayrollError):
    pass


@dataclass(frozen=True)
class PayBreakdown:
    basic_pay_cents: int
    overtime_pay_cents: int
    allowances_cents: int
    late_deduction_cents: int
    absence_deduction_cents: int
    net_pay_cents: int

    @property
    def gross_pay_cents(self) -> int:
        return self.basic_pay_cents + self.overtime_pay_cents + self.allowances_cents


def _cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_pay(
    *,
    daily_rate_cents: int,
    regular_hours,
    overtime_hours,
    late_minutes: int = 0,
    absences: int = 0,
    allowances_cents: int = 0,
    workday_hours=STANDARD_WORKDAY_HOURS,
    overtime_multiplier=OVERTIME_PAY_MULTIPLIER,
) -> PayBreakdown:
    if daily_rate_cents < 0 or allowances_cents < 0:
        raise PayrollError("Rates cannot be negative")
    if late_minutes < 0 or absences < 0:
        raise PayrollError("Deductions cannot be negative")

    daily = Decimal(daily_rate_cents)
    hourly = daily / Decimal(str(workday_hours))

    basic = _cents(Decimal(str(regular_hours)) * hourly)
    overtime = _cents(Decimal(str(overtime_hours)) * hourly * Decimal(str(overtime_multiplier)))
    late = _cents(Decimal(late_minutes) * hourly / Decimal(60))
    absence = _cents(Decimal(absences) * daily)

    net = max(basic + overtime + allowances_cents - late - absence, 0)
    return PayBreakdown(
        basic_pay_cents=basic,
        overtime_pay_cents=overtime,
        allowances_cents=allowances_cents,
        late_deduction_cents=late,
        absence_deduction_cents=absence,
        net_pay_cents=net,
    )


def generate_payroll(
    *,
    staff_id: int,
    period_start: datetime,
    period_end: datetime,
    late_minutes: int = 0,
    absences: int = 0,
    allowances_cents: int | None = None,
) -> Payroll:
    staff = get_staff(staff_id)
    period_start = normalize_datetime(period_start)
    period_end = normalize_datetime(period_end)
    if period_end < period_start:
        raise PayrollError("period_end must not be before period_start")

    existing = db.session.query(Payroll).filter_by(staff_id=staff_id, period_start=period_start).first()
    if existing is not None:
        raise DuplicatePayrollError("Payroll already exists for this period")

    hours = aggregate_period(staff_id, period_start, period_end)
    pay = calculate_pay(
        daily_rate_cents=staff.daily_rate_cents,
        regular_hours=hours.regular_hours,
        overtime_hours=hours.overtime_hours,
        late_minutes=late_minutes,
        absences=absences,
        allowances_cents=staff.allowances_cents if allowances_cents is None else allowances_cents,
        workday_hours=current_app.config.get("STANDARD_WORKDAY_HOURS", STANDARD_WORKDAY_HOURS),
        overtime_multiplier=current_app.config.get("OVERTIME_PAY_MULTIPLIER", OVERTIME_PAY_MULTIPLIER),
    )

    payroll = Payroll(
        staff_id=staff_id,
        period_start=period_start,
        period_end=period_end,
        total_hours=float(hours.total_hours),
        regular_hours=float(hours.regular_hours),
        overtime_hours=float(hours.overtime_hours),
        basic_pay_cents=pay.basic_pay_cents,
        overtime_pay_cents=pay.overtime_pay_cents,
        allowances_cents=pay.allowances_cents,
        late_deduction_cents=pay.late_deduction_cents,
        absence_deduction_cents=pay.absence_deduction_cents,
        net_pay_cents=pay.net_pay_cents,
    )
    db.session.add(payroll)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicatePayrollError("Payroll already exists for this period")

    current_app.logger.info(
        "Generated payroll %s for staff %s: %.2f h, net %d cents",
        payroll.id, staff_id, payroll.total_hours, payroll.net_pay_cents,
    )
    return payroll


def list_payrolls(staff_id: int, start: datetime | None = None, end: datetime | None = None) -> list[Payroll]:
    get_staff(staff_id)
    query = db.session.query(Payroll).filter(Payroll.staff_id == staff_id)
    if start is not None:
        query = query.filter(Payroll.period_start >= normalize_datetime(start))
    if end is not None:
        query = query.filter(Payroll.period_start <= normalize_datetime(end))
    return query.order_by(Payroll.period_start.desc()).all()
