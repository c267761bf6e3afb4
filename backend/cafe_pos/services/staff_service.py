# Overview: Service-layer operations for staff records and clock PINs.

"""
Staff Service

PIN SECURITY:
- PINs are 4-6 digits, stored only as bcrypt hashes.
- New staff get the default PIN "0000" until a manager sets one.
- PIN checks are a capability check made by the HTTP layer before a clock
  action; the time accounting engine itself never sees a PIN.
"""

from __future__ import annotations

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Staff, STAFF_POSITIONS, STAFF_STATUSES

DEFAULT_PIN = "0000"
_PIN_RE = re.compile(r"^\d{4,6}$")


class StaffError(ValueError):
    """Raised for invalid staff operations."""
    pass


class StaffNotFoundError(StaffError):
    pass


class InvalidPinError(StaffError):
    pass


def hash_pin(pin: str) -> str:
    if not isinstance(pin, str) or not _PIN_RE.match(pin):
        raise StaffError("PIN must be 4-6 digits")
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_pin(staff: Staff, pin: str | None) -> bool:
    """Timing-safe comparison; a staff row without a hash never matches."""
    if not pin or not staff.pin_hash:
        return False
    try:
        return bcrypt.checkpw(str(pin).encode("utf-8"), staff.pin_hash.encode("utf-8"))
    except ValueError:
        return False


def require_pin(staff: Staff, pin: str | None) -> None:
    if not verify_pin(staff, pin):
        raise InvalidPinError("Invalid PIN code")


def get_staff(staff_id: int) -> Staff:
    staff = db.session.get(Staff, staff_id)
    if staff is None:
        raise StaffNotFoundError("Staff member not found")
    return staff


def list_staff(*, status: str | None = None) -> list[Staff]:
    query = db.session.query(Staff)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Staff.name.asc(), Staff.id.asc()).all()


def _check_enums(patch: dict) -> None:
    if "position" in patch and patch["position"] not in STAFF_POSITIONS:
        raise StaffError(f"position must be one of: {', '.join(STAFF_POSITIONS)}")
    if "status" in patch and patch["status"] not in STAFF_STATUSES:
        raise StaffError(f"status must be one of: {', '.join(STAFF_STATUSES)}")
    for key in ("daily_rate_cents", "allowances_cents"):
        if key in patch and patch[key] is not None and patch[key] < 0:
            raise StaffError(f"{key} must be >= 0")


def create_staff(
    *,
    name: str,
    position: str,
    daily_rate_cents: int = 0,
    phone: str | None = None,
    allowances_cents: int = 0,
    status: str = "Active",
    pin: str | None = None,
) -> Staff:
    patch = {
        "position": position,
        "status": status,
        "daily_rate_cents": daily_rate_cents,
        "allowances_cents": allowances_cents,
    }
    _check_enums(patch)

    staff = Staff(
        name=name,
        phone=phone,
        pin_hash=hash_pin(pin or DEFAULT_PIN),
        **patch,
    )
    db.session.add(staff)
    db.session.commit()
    current_app.logger.info("Created staff %s (%s)", staff.id, staff.position)
    return staff


def update_staff(staff_id: int, patch: dict) -> Staff:
    staff = get_staff(staff_id)
    _check_enums(patch)
    for key, value in patch.items():
        setattr(staff, key, value)
    db.session.commit()
    return staff


def set_pin(staff_id: int, pin: str) -> Staff:
    staff = get_staff(staff_id)
    staff.pin_hash = hash_pin(pin)
    db.session.commit()
    return staff


def delete_staff(staff_id: int) -> None:
    """
    Staff with time logs or payroll history are deactivated instead of deleted
    so hours stay attributable.
    """
    staff = get_staff(staff_id)
    if staff.time_logs or staff.payrolls:
        staff.status = "Inactive"
    else:
        db.session.delete(staff)
    db.session.commit()
