# backend/cafe_pos/routes/payroll.py
"""
Payroll routes.

POST /api/payroll generates (and freezes) one period for one staff member from
their time logs. A period can only be generated once.
"""

from flask import Blueprint, request, jsonify

from ..services import payroll_service
from ..services.payroll_service import PayrollError, DuplicatePayrollError
from ..services.staff_service import StaffNotFoundError
from ..validation import ValidationError, parse_query_datetime, parse_non_negative_int


payroll_bp = Blueprint("payroll", __name__, url_prefix="/api/payroll")


@payroll_bp.post("")
def generate_payroll_route():
    data = request.get_json(silent=True) or {}

    try:
        staff_id = parse_non_negative_int(data.get("staff_id"), "staff_id", default=0)
        if not staff_id:
            raise ValidationError("staff_id is required")
        period_start = parse_query_datetime(data, "period_start", required=True)
        period_end = parse_query_datetime(data, "period_end", required=True)
        allowances = data.get("allowances_cents")

        payroll = payroll_service.generate_payroll(
            staff_id=staff_id,
            period_start=period_start,
            period_end=period_end,
            late_minutes=parse_non_negative_int(data.get("late_minutes"), "late_minutes"),
            absences=parse_non_negative_int(data.get("absences"), "absences"),
            allowances_cents=parse_non_negative_int(allowances, "allowances_cents") if allowances is not None else None,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except DuplicatePayrollError as e:
        return jsonify({"error": str(e)}), 409
    except PayrollError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"payroll": payroll.to_dict()}), 201


@payroll_bp.get("/staff/<int:staff_id>")
def list_payrolls_route(staff_id: int):
    try:
        start = parse_query_datetime(request.args, "start_date")
        end = parse_query_datetime(request.args, "end_date")
        payrolls = payroll_service.list_payrolls(staff_id, start, end)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StaffNotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"payrolls": [p.to_dict() for p in payrolls], "count": len(payrolls)})
