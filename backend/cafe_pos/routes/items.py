# backend/cafe_pos/routes/items.py
"""
Stock item routes.

Every item response carries the derived fields:
- total_quantity: sum of batch quantities
- status: In Stock / Low Stock / Out of Stock
- expiration_alerts: batches within the expiration window, with days_left

Batches change only through /restock (adds a dated batch) and /sell
(first-expiring-first-out, all-or-nothing).
"""
from flask import Blueprint, request, jsonify

from ..models import Item, ITEM_CATEGORIES, ITEM_UNITS, quantity_number
from ..services import inventory_ledger
from ..services.inventory_ledger import (
    InventoryError,
    ItemNotFoundError,
    InsufficientStockError,
)
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    parse_query_datetime,
    parse_non_negative_int,
)


items_bp = Blueprint("items", __name__, url_prefix="/api/items")

ITEM_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "category", "unit", "cost_cents", "price_cents", "vendor"}),
    required_on_create=frozenset({"name", "category", "unit", "cost_cents", "price_cents", "vendor"}),
    choices={"category": ITEM_CATEGORIES, "unit": ITEM_UNITS},
    money_fields=frozenset({"cost_cents", "price_cents"}),
)


@items_bp.get("")
def list_items_route():
    items = inventory_ledger.list_items(
        category=request.args.get("category"),
        status=request.args.get("status"),
    )
    return jsonify({"items": [inventory_ledger.serialize_item(i) for i in items], "count": len(items)})


@items_bp.post("")
def create_item_route():
    payload = request.get_json(silent=True) or {}
    batches = payload.pop("batches", [])
    if not isinstance(batches, list):
        return jsonify({"error": "batches must be an array"}), 400

    try:
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
        item = inventory_ledger.create_item(patch, batches)
    except (ValidationError, InventoryError) as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"item": inventory_ledger.serialize_item(item)}), 201


@items_bp.get("/alerts")
def expiration_alerts_route():
    try:
        window = request.args.get("window_days")
        window_days = parse_non_negative_int(window, "window_days") if window is not None else None
        reference = parse_query_datetime(request.args, "as_of")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    alerts = inventory_ledger.list_expiring_batches(window_days=window_days, reference=reference)
    return jsonify({"alerts": alerts, "count": len(alerts)})


@items_bp.get("/<int:item_id>")
def get_item_route(item_id: int):
    try:
        item = inventory_ledger.get_item(item_id)
    except ItemNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"item": inventory_ledger.serialize_item(item)})


@items_bp.put("/<int:item_id>")
def update_item_route(item_id: int):
    payload = request.get_json(silent=True) or {}
    if "batches" in payload:
        return jsonify({"error": "batches change only through restock and sell"}), 400

    try:
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=True)
        item = inventory_ledger.update_item(item_id, patch)
    except ItemNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, InventoryError) as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"item": inventory_ledger.serialize_item(item)})


@items_bp.delete("/<int:item_id>")
def delete_item_route(item_id: int):
    try:
        inventory_ledger.delete_item(item_id)
    except ItemNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Item deleted successfully"})


@items_bp.patch("/<int:item_id>/restock")
def restock_item_route(item_id: int):
    data = request.get_json(silent=True) or {}

    try:
        item = inventory_ledger.restock(
            item_id=item_id,
            quantity=data.get("quantity"),
            expiration_date=data.get("expiration_date"),
        )
    except ItemNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InventoryError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"item": inventory_ledger.serialize_item(item)})


@items_bp.patch("/<int:item_id>/sell")
def sell_item_route(item_id: int):
    data = request.get_json(silent=True) or {}

    try:
        item = inventory_ledger.sell(item_id=item_id, quantity=data.get("quantity"))
    except ItemNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InsufficientStockError as e:
        return jsonify({
            "error": str(e),
            "code": "INSUFFICIENT_STOCK",
            "requested": quantity_number(e.requested),
            "available": quantity_number(e.available),
        }), 409
    except InventoryError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"item": inventory_ledger.serialize_item(item)})
