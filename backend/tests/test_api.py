"""
HTTP surface: status codes and response shapes for staff, time clock, items
and payroll.
"""

from datetime import datetime

from cafe_pos.services import time_accounting


def _create_item(client, **overrides):
    payload = {
        "name": "Espresso Beans",
        "category": "Ingredients",
        "unit": "grams",
        "cost_cents": 45000,
        "price_cents": 60000,
        "vendor": "Roasters Inc",
        "batches": [
            {"quantity": 3, "expiration_date": "2025-01-10"},
            {"quantity": 5, "expiration_date": "2025-01-05"},
        ],
    }
    payload.update(overrides)
    return client.post("/api/items", json=payload)


class TestStaffApi:
    """Staff CRUD; PINs are write-only."""

    def test_create_and_get_staff(self, client, db_session):
        response = client.post("/api/staff", json={
            "name": "Ana Reyes",
            "position": "Barista",
            "daily_rate_cents": 80000,
            "pin": "2468",
        })
        assert response.status_code == 201
        staff = response.get_json()["staff"]
        assert staff["has_pin"] is True
        assert "pin_hash" not in staff

        response = client.get(f"/api/staff/{staff['id']}")
        assert response.status_code == 200
        assert response.get_json()["staff"]["name"] == "Ana Reyes"

    def test_create_staff_validation(self, client, db_session):
        response = client.post("/api/staff", json={"name": "Ana", "position": "Pilot", "daily_rate_cents": 1})
        assert response.status_code == 400

        response = client.post("/api/staff", json={"name": "Ana", "position": "Barista"})
        assert response.status_code == 400
        assert "daily_rate_cents" in response.get_json()["error"]

        response = client.post("/api/staff", json={
            "name": "Ana", "position": "Barista", "daily_rate_cents": 1, "pin_hash": "x",
        })
        assert response.status_code == 400

    def test_update_staff(self, client, make_staff):
        staff = make_staff()
        response = client.put(f"/api/staff/{staff.id}", json={"status": "On Leave"})
        assert response.status_code == 200
        assert response.get_json()["staff"]["status"] == "On Leave"

        assert client.put("/api/staff/999", json={"status": "Active"}).status_code == 404

    def test_list_staff(self, client, make_staff):
        make_staff(name="Ana")
        make_staff(name="Ben", status="Inactive")
        data = client.get("/api/staff?status=Active").get_json()
        assert data["count"] == 1
        assert data["staff"][0]["name"] == "Ana"


class TestTimeClockApi:
    """Clock actions, PIN checks and the hours report."""

    def test_clock_in_and_out(self, client, make_staff):
        staff = make_staff()

        response = client.post("/api/time-logs/clock-in", json={"staff_id": staff.id, "pin": "1234"})
        assert response.status_code == 201
        assert response.get_json()["time_log"]["kind"] == "clockIn"

        response = client.post("/api/time-logs/clock-in", json={"staff_id": staff.id})
        assert response.status_code == 409
        assert response.get_json()["code"] == "ALREADY_CLOCKED_IN"

        response = client.post("/api/time-logs/clock-out", json={"staff_id": staff.id})
        assert response.status_code == 200
        log = response.get_json()["time_log"]
        assert log["kind"] == "clockOut"
        assert log["hours_worked"] is not None

        response = client.post("/api/time-logs/clock-out", json={"staff_id": staff.id})
        assert response.status_code == 409
        assert response.get_json()["code"] == "NO_OPEN_SHIFT"

    def test_clock_in_wrong_pin(self, client, make_staff):
        staff = make_staff()
        response = client.post("/api/time-logs/clock-in", json={"staff_id": staff.id, "pin": "0000"})
        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid PIN code"
        assert time_accounting.list_time_logs(staff.id) == []

    def test_clock_in_unknown_staff(self, client, db_session):
        assert client.post("/api/time-logs/clock-in", json={"staff_id": 77}).status_code == 404
        assert client.post("/api/time-logs/clock-in", json={}).status_code == 400

    def test_clock_in_with_photo(self, client, make_staff):
        staff = make_staff()
        response = client.post("/api/time-logs/clock-in", json={
            "staff_id": staff.id,
            "photo_base64": "data:image/gif;base64,R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7",
        })
        assert response.status_code == 201
        assert response.get_json()["time_log"]["photo_path"].startswith("timelogs/")

    def test_staff_hours(self, client, make_staff):
        staff = make_staff()
        time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 8, 0))
        time_accounting.record_clock_out(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 17, 30))

        response = client.get(
            f"/api/time-logs/staff/{staff.id}/hours?start_date=2025-01-06&end_date=2025-01-06T23:59:59Z"
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["total_hours"] == 9.5
        assert data["regular_hours"] == 8.0
        assert data["overtime_hours"] == 1.5
        assert data["shift_count"] == 1
        assert data["staff_name"] == staff.name

    def test_staff_hours_requires_range(self, client, make_staff):
        staff = make_staff()
        assert client.get(f"/api/time-logs/staff/{staff.id}/hours").status_code == 400
        response = client.get(f"/api/time-logs/staff/{staff.id}/hours?start_date=bogus&end_date=2025-01-06")
        assert response.status_code == 400
        response = client.get(f"/api/time-logs/staff/{staff.id}/hours?start_date=2025-01-07&end_date=2025-01-06")
        assert response.status_code == 400

    def test_time_logs_and_status(self, client, make_staff):
        staff = make_staff()
        client.post("/api/time-logs/clock-in", json={"staff_id": staff.id})

        data = client.get(f"/api/time-logs/staff/{staff.id}").get_json()
        assert data["count"] == 1

        status = client.get(f"/api/time-logs/staff/{staff.id}/status").get_json()
        assert status["status"] == "CLOCKED_IN"

        assert client.get("/api/time-logs/staff/999/status").status_code == 404


class TestItemsApi:
    def test_create_item_reports_derived_fields(self, client, db_session):
        response = _create_item(client)
        assert response.status_code == 201
        item = response.get_json()["item"]
        assert item["total_quantity"] == 8
        assert item["status"] == "In Stock"
        assert len(item["batches"]) == 2

    def test_create_item_validation(self, client, db_session):
        assert _create_item(client, category="Furniture").status_code == 400
        assert _create_item(client, cost_cents=-1).status_code == 400
        assert _create_item(client, batches="lots").status_code == 400
        assert _create_item(client, batches=[{"quantity": 0, "expiration_date": "2025-01-05"}]).status_code == 400

    def test_sell_fifo(self, client, db_session):
        item_id = _create_item(client).get_json()["item"]["id"]

        response = client.patch(f"/api/items/{item_id}/sell", json={"quantity": 6})
        assert response.status_code == 200
        item = response.get_json()["item"]
        assert item["total_quantity"] == 2
        assert item["status"] == "Low Stock"
        assert [(b["quantity"], b["expiration_date"]) for b in item["batches"]] == [(2, "2025-01-10T00:00:00Z")]

    def test_sell_insufficient_stock(self, client, db_session):
        item_id = _create_item(client).get_json()["item"]["id"]

        response = client.patch(f"/api/items/{item_id}/sell", json={"quantity": 20})
        assert response.status_code == 409
        data = response.get_json()
        assert data["code"] == "INSUFFICIENT_STOCK"
        assert data["requested"] == 20
        assert data["available"] == 8
        assert data["error"] == "Insufficient stock. Only 8 available"

        item = client.get(f"/api/items/{item_id}").get_json()["item"]
        assert item["total_quantity"] == 8

    def test_sell_invalid_quantity(self, client, db_session):
        item_id = _create_item(client).get_json()["item"]["id"]
        response = client.patch(f"/api/items/{item_id}/sell", json={"quantity": 0})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid quantity"

    def test_non_ascii_digits_are_rejected_not_500(self, client, db_session):
        item_id = _create_item(client).get_json()["item"]["id"]

        response = client.patch(f"/api/items/{item_id}/sell", json={"quantity": "\u00b2"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid quantity"

        response = _create_item(client, cost_cents="\u00b2")
        assert response.status_code == 400
        assert response.get_json()["error"] == "cost_cents must be a plain integer"

    def test_sell_fractional_quantity(self, client, db_session):
        item_id = _create_item(client, unit="liters", batches=[
            {"quantity": 1.5, "expiration_date": "2025-01-05"},
            {"quantity": 2, "expiration_date": "2025-01-10"},
        ]).get_json()["item"]["id"]

        response = client.patch(f"/api/items/{item_id}/sell", json={"quantity": 2.25})
        assert response.status_code == 200
        item = response.get_json()["item"]
        assert item["total_quantity"] == 1.25
        assert [(b["quantity"], b["expiration_date"]) for b in item["batches"]] == [(1.25, "2025-01-10T00:00:00Z")]

        response = client.patch(f"/api/items/{item_id}/sell", json={"quantity": 2})
        assert response.status_code == 409
        assert response.get_json()["available"] == 1.25

    def test_restock(self, client, db_session):
        item_id = _create_item(client, batches=[]).get_json()["item"]["id"]

        response = client.patch(f"/api/items/{item_id}/restock", json={"quantity": 4, "expiration_date": "2025-06-01"})
        assert response.status_code == 200
        item = response.get_json()["item"]
        assert item["total_quantity"] == 4
        assert item["status"] == "Low Stock"

        response = client.patch(f"/api/items/{item_id}/restock", json={"quantity": 4})
        assert response.status_code == 400
        assert client.patch("/api/items/999/restock", json={"quantity": 1, "expiration_date": "2025-06-01"}).status_code == 404

    def test_update_item_cannot_touch_batches(self, client, db_session):
        item_id = _create_item(client).get_json()["item"]["id"]
        assert client.put(f"/api/items/{item_id}", json={"batches": []}).status_code == 400

        response = client.put(f"/api/items/{item_id}", json={"price_cents": 65000})
        assert response.status_code == 200
        assert response.get_json()["item"]["price_cents"] == 65000

    def test_delete_item(self, client, db_session):
        item_id = _create_item(client).get_json()["item"]["id"]
        assert client.delete(f"/api/items/{item_id}").status_code == 200
        assert client.get(f"/api/items/{item_id}").status_code == 404

    def test_expiration_alerts(self, client, db_session):
        _create_item(client)
        response = client.get("/api/items/alerts?as_of=2025-01-04T00:00:00Z")
        assert response.status_code == 200
        data = response.get_json()
        assert [a["days_left"] for a in data["alerts"]] == [1, 6]
        assert data["alerts"][0]["item_name"] == "Espresso Beans"

        data = client.get("/api/items/alerts?as_of=2025-01-04T00:00:00Z&window_days=2").get_json()
        assert data["count"] == 1

        assert client.get("/api/items/alerts?window_days=-1").status_code == 400


class TestPayrollAndHealthApi:
    def test_generate_payroll(self, client, make_staff):
        staff = make_staff(daily_rate_cents=80000)
        time_accounting.record_clock_in(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 8, 0))
        time_accounting.record_clock_out(staff_id=staff.id, timestamp=datetime(2025, 1, 6, 17, 30))
        body = {"staff_id": staff.id, "period_start": "2025-01-01", "period_end": "2025-01-15T23:59:59Z"}

        response = client.post("/api/payroll", json=body)
        assert response.status_code == 201
        payroll = response.get_json()["payroll"]
        assert payroll["total_hours"] == 9.5
        assert payroll["basic_pay_cents"] == 80000
        assert payroll["overtime_pay_cents"] == 18750

        assert client.post("/api/payroll", json=body).status_code == 409

        listing = client.get(f"/api/payroll/staff/{staff.id}").get_json()
        assert listing["count"] == 1

    def test_generate_payroll_validation(self, client, make_staff):
        staff = make_staff()
        assert client.post("/api/payroll", json={"staff_id": staff.id}).status_code == 400
        response = client.post("/api/payroll", json={
            "staff_id": 999, "period_start": "2025-01-01", "period_end": "2025-01-15",
        })
        assert response.status_code == 404

    def test_health(self, client, db_session):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "ok"
        assert data["database"]["status"] == "healthy"
        assert data["errors"]["total"] == 0
        # TESTING exposes the latest errors
        assert data["latest_errors"] == []

    def test_cors_for_allowed_origin(self, client, db_session):
        response = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

        response = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in response.headers
