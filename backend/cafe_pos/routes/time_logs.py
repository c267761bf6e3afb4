# Overview: Flask API routes for the time clock; parses input and returns JSON responses.

"""
Time Log Routes

CLOCK ACTIONS:
- Body: {"staff_id": int, "pin": "1234" (optional), "photo_base64": "data:image/..." (optional)}
- When a PIN is supplied it must match the staff member's PIN; the check
  happens here, before the time accounting engine is called.
- Timestamps are server time (UTC).

HOURS:
- /staff/<id>/hours?start_date=...&end_date=... returns total/regular/overtime
  hours for shifts inside the inclusive range.
"""

from flask import Blueprint, request, jsonify

from ..services import time_accounting, staff_service
from ..services.time_accounting import (
    TimekeepingError,
    AlreadyClockedInError,
    NoOpenShiftError,
)
from ..services.staff_service import StaffNotFoundError, InvalidPinError
from ..validation import ValidationError, parse_query_datetime, parse_non_negative_int


time_logs_bp = Blueprint("time_logs", __name__, url_prefix="/api/time-logs")


def _clock_request():
    data = request.get_json(silent=True) or {}
    staff_id = parse_non_negative_int(data.get("staff_id"), "staff_id", default=0)
    if not staff_id:
        raise ValidationError("staff_id is required")

    staff = staff_service.get_staff(staff_id)
    if data.get("pin") is not None:
        staff_service.require_pin(staff, str(data["pin"]))

    photo_path = time_accounting.save_base64_photo(data.get("photo_base64"), staff_id)
    return staff_id, photo_path


@time_logs_bp.post("/clock-in")
def clock_in_route():
    try:
        staff_id, photo_path = _clock_request()
        entry = time_accounting.record_clock_in(staff_id=staff_id, photo_path=photo_path)
        return jsonify({"time_log": entry.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InvalidPinError as e:
        return jsonify({"error": str(e)}), 401
    except AlreadyClockedInError as e:
        return jsonify({"error": str(e), "code": "ALREADY_CLOCKED_IN"}), 409
    except TimekeepingError as e:
        return jsonify({"error": str(e)}), 400


@time_logs_bp.post("/clock-out")
def clock_out_route():
    try:
        staff_id, photo_path = _clock_request()
        entry = time_accounting.record_clock_out(staff_id=staff_id, photo_path=photo_path)
        return jsonify({"time_log": entry.to_dict()})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InvalidPinError as e:
        return jsonify({"error": str(e)}), 401
    except NoOpenShiftError as e:
        return jsonify({"error": str(e), "code": "NO_OPEN_SHIFT"}), 409
    except TimekeepingError as e:
        return jsonify({"error": str(e)}), 400


@time_logs_bp.get("/staff/<int:staff_id>")
def list_time_logs_route(staff_id: int):
    try:
        start = parse_query_datetime(request.args, "start_date")
        end = parse_query_datetime(request.args, "end_date")
        logs = time_accounting.list_time_logs(staff_id, start, end)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"time_logs": [log.to_dict() for log in logs], "count": len(logs)})


@time_logs_bp.get("/staff/<int:staff_id>/status")
def clock_status_route(staff_id: int):
    try:
        return jsonify(time_accounting.get_clock_status(staff_id))
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404


@time_logs_bp.get("/staff/<int:staff_id>/hours")
def staff_hours_route(staff_id: int):
    try:
        start = parse_query_datetime(request.args, "start_date", required=True)
        end = parse_query_datetime(request.args, "end_date", required=True)
        if end < start:
            raise ValidationError("end_date must not be before start_date")
        staff = staff_service.get_staff(staff_id)
        hours = time_accounting.aggregate_period(staff_id, start, end)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404

    data = hours.to_dict()
    data.update({
        "staff_id": staff.id,
        "staff_name": staff.name,
        "staff_position": staff.position,
        "start_date": request.args.get("start_date"),
        "end_date": request.args.get("end_date"),
    })
    return jsonify(data)
