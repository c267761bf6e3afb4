from __future__ import annotations

from ..extensions import db
from cafe_pos.time_utils import to_utc_z

STAFF_POSITIONS = ("Barista", "Cashier", "Chef", "Manager", "Server", "Cook")
STAFF_STATUSES = ("Active", "On Leave", "Inactive")


class Staff(db.Model):
    """
    Café staff member.

    WHY: Time logs and payroll are owned by a staff identity. Rates are stored
    in cents like every other money value.

    PIN: 4-6 digit code checked before clock-in/out. Only the bcrypt hash is
    stored (see staff_service.set_pin).
    """
    __tablename__ = "staff"
    __table_args__ = (
        db.Index("ix_staff_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    position = db.Column(db.String(32), nullable=False)
    phone = db.Column(db.String(32), nullable=True)

    daily_rate_cents = db.Column(db.Integer, nullable=False, default=0)
    allowances_cents = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="Active")
    pin_hash = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Staff id={self.id} name={self.name!r} position={self.position!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position,
            "phone": self.phone,
            "daily_rate_cents": self.daily_rate_cents,
            "allowances_cents": self.allowances_cents,
            "status": self.status,
            "has_pin": bool(self.pin_hash),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
