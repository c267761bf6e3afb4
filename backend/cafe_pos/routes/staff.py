# backend/cafe_pos/routes/staff.py
"""
Staff management routes.

Rates are in cents. PINs are write-only: responses expose has_pin, never the
hash.
"""

from flask import Blueprint, request, jsonify

from ..models import Staff, STAFF_POSITIONS, STAFF_STATUSES
from ..services import staff_service
from ..services.staff_service import StaffError, StaffNotFoundError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
)

staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")

STAFF_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "position", "phone", "daily_rate_cents", "allowances_cents", "status"}),
    required_on_create=frozenset({"name", "position", "daily_rate_cents"}),
    choices={"position": STAFF_POSITIONS, "status": STAFF_STATUSES},
    money_fields=frozenset({"daily_rate_cents", "allowances_cents"}),
)


@staff_bp.get("")
def list_staff_route():
    staff = staff_service.list_staff(status=request.args.get("status"))
    return jsonify({"staff": [s.to_dict() for s in staff], "count": len(staff)})


@staff_bp.post("")
def create_staff_route():
    payload = request.get_json(silent=True) or {}
    pin = payload.pop("pin", None)

    try:
        patch = validate_payload(model=Staff, payload=payload, policy=STAFF_POLICY, partial=False)
        staff = staff_service.create_staff(pin=pin, **patch)
    except (ValidationError, StaffError) as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"staff": staff.to_dict()}), 201


@staff_bp.get("/<int:staff_id>")
def get_staff_route(staff_id: int):
    try:
        staff = staff_service.get_staff(staff_id)
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"staff": staff.to_dict()})


@staff_bp.put("/<int:staff_id>")
def update_staff_route(staff_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Staff, payload=payload, policy=STAFF_POLICY, partial=True)
        staff = staff_service.update_staff(staff_id, patch)
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, StaffError) as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"staff": staff.to_dict()})


@staff_bp.put("/<int:staff_id>/pin")
def set_pin_route(staff_id: int):
    data = request.get_json(silent=True) or {}
    pin = data.get("pin")
    if pin is None:
        return jsonify({"error": "pin is required"}), 400

    try:
        staff = staff_service.set_pin(staff_id, str(pin))
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except StaffError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"staff": staff.to_dict()})


@staff_bp.delete("/<int:staff_id>")
def delete_staff_route(staff_id: int):
    try:
        staff_service.delete_staff(staff_id)
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Staff member removed"})
