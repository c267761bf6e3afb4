# Overview: Service-layer operations for stock; dated batches, status, expiration alerts, FIFO sale.

"""
Inventory Ledger (batch-based)

Stock model:
- An Item owns InventoryBatch rows; each batch has a quantity and an
  expiration date. Quantity on hand = SUM(batch.quantity).
- Quantities are positive decimals with at most three places (250.5 grams,
  0.75 liters). Arithmetic runs on Decimal so FIFO never drifts.
- status is derived: 0 -> Out of Stock, <= LOW_STOCK_THRESHOLD (5) -> Low
  Stock, otherwise In Stock. It is recomputed on every batch change.
- Batches at quantity 0 are consumed and deleted.

Sale semantics (first-expiring-first-out):
- Phase 1 (plan_depletion) walks a read-only snapshot of the batches sorted
  by expiration date (insertion order breaks ties) and decides how much to
  take from each. If the walk runs out of stock, InsufficientStockError is
  raised and nothing has been touched.
- Phase 2 (apply_depletion) applies the plan. A sale is all-or-nothing.

Expiration alerts:
- Expiration dates are local calendar dates stored as UTC instants. Both the
  expiration and the reference time are shifted by STORE_UTC_OFFSET_HOURS
  before taking the calendar date, so days_left counts local midnights.
- A batch alerts when abs(days_left) <= EXPIRATION_WINDOW_DAYS: upcoming and
  recently expired batches are both reported.

Concurrency:
- Mutations lock the item row (FOR UPDATE where supported), bump the item's
  version_id and run under run_with_retry. A concurrent writer that loses the
  version check is retried against fresh rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable

from flask import current_app

from ..extensions import db
from ..models import (
    Item,
    InventoryBatch,
    ITEM_CATEGORIES,
    ITEM_UNITS,
    STATUS_IN_STOCK,
    STATUS_LOW_STOCK,
    STATUS_OUT_OF_STOCK,
    QUANTITY_STEP,
    MAX_BATCH_QUANTITY,
    quantity_number,
)
from .concurrency import lock_for_update, run_with_retry
from cafe_pos.time_utils import utcnow, parse_iso_datetime, normalize_datetime, to_local_date

LOW_STOCK_THRESHOLD = 5
EXPIRATION_WINDOW_DAYS = 7
STORE_UTC_OFFSET_HOURS = 8


class InventoryError(ValueError):
    """Raised for invalid stock operations."""
    pass


class ItemNotFoundError(InventoryError):
    pass


class InvalidRestockError(InventoryError):
    pass


class InvalidQuantityError(InventoryError):
    pass


class InsufficientStockError(InventoryError):
    def __init__(self, requested: Decimal, available: Decimal):
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient stock. Only {quantity_number(available)} available")


# =============================================================================
# PURE CALCULATIONS
# =============================================================================

def _as_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def total_quantity(batches: Iterable) -> Decimal:
    return sum((_as_decimal(b.quantity) for b in batches), Decimal(0))


def status_for_quantity(quantity, low_stock_threshold: int = LOW_STOCK_THRESHOLD) -> str:
    if quantity <= 0:
        return STATUS_OUT_OF_STOCK
    if quantity <= low_stock_threshold:
        return STATUS_LOW_STOCK
    return STATUS_IN_STOCK


def compute_status(batches: Iterable, low_stock_threshold: int = LOW_STOCK_THRESHOLD) -> str:
    return status_for_quantity(total_quantity(batches), low_stock_threshold)


def days_until(expiration: datetime, reference: datetime, utc_offset_hours: int = STORE_UTC_OFFSET_HOURS) -> int:
    """Whole local calendar days from reference to expiration (negative once past)."""
    return (to_local_date(expiration, utc_offset_hours) - to_local_date(reference, utc_offset_hours)).days


@dataclass(frozen=True)
class ExpirationAlert:
    batch: object
    days_left: int

    def to_dict(self) -> dict:
        data = self.batch.to_dict()
        data["days_left"] = self.days_left
        return data


def compute_expiration_alerts(
    batches: Iterable,
    window_days: int = EXPIRATION_WINDOW_DAYS,
    reference: datetime | None = None,
    utc_offset_hours: int = STORE_UTC_OFFSET_HOURS,
) -> list[ExpirationAlert]:
    reference = normalize_datetime(reference) if reference is not None else utcnow()
    alerts = []
    for batch in batches:
        days_left = days_until(batch.expiration_date, reference, utc_offset_hours)
        if abs(days_left) <= window_days:
            alerts.append(ExpirationAlert(batch=batch, days_left=days_left))
    alerts.sort(key=lambda a: a.days_left)
    return alerts


@dataclass(frozen=True)
class DepletionStep:
    batch: object
    take: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class DepletionPlan:
    requested: Decimal
    steps: tuple

    @property
    def exhausted(self) -> list:
        return [s.batch for s in self.steps if s.remaining == 0]


def plan_depletion(batches: Iterable, quantity) -> DepletionPlan:
    """
    Decide how a sale of `quantity` is taken from the batches, nearest
    expiration first. Does not modify any batch.
    """
    quantity = _as_decimal(quantity)
    if not quantity.is_finite() or quantity <= 0:
        raise InvalidQuantityError("Invalid quantity")

    remaining = quantity
    steps = []
    for batch in sorted(batches, key=lambda b: b.expiration_date):
        if remaining <= 0:
            break
        on_hand = _as_decimal(batch.quantity)
        if on_hand <= 0:
            continue
        take = min(on_hand, remaining)
        steps.append(DepletionStep(batch=batch, take=take, remaining=on_hand - take))
        remaining -= take

    if remaining > 0:
        raise InsufficientStockError(requested=quantity, available=quantity - remaining)

    return DepletionPlan(requested=quantity, steps=tuple(steps))


def apply_depletion(batches: Iterable, plan: DepletionPlan) -> list:
    """Apply a plan; returns the batches still holding stock, in their original order."""
    for step in plan.steps:
        step.batch.quantity = step.remaining
    return [b for b in batches if b.quantity > 0]


# =============================================================================
# STOCK OPERATIONS (database)
# =============================================================================

def _setting(key: str, default):
    return current_app.config.get(key, default)


def _coerce_quantity(value, error_cls) -> Decimal:
    """Positive decimal with at most three places, from a JSON number or string."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
        raise error_cls("Quantity must be a number")
    try:
        quantity = Decimal(str(value).strip())
    except InvalidOperation:
        raise error_cls("Quantity must be a number")
    if not quantity.is_finite():
        raise error_cls("Quantity must be a number")
    if quantity <= 0:
        raise error_cls("Quantity must be greater than 0")
    if quantity > MAX_BATCH_QUANTITY:
        raise error_cls(f"Quantity cannot exceed {MAX_BATCH_QUANTITY}")
    if quantity != quantity.quantize(QUANTITY_STEP):
        raise error_cls("Quantity allows at most 3 decimal places")
    return quantity


def _coerce_expiration(value) -> datetime:
    if isinstance(value, datetime):
        return normalize_datetime(value)
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise InvalidRestockError("Invalid expiration date format")


def _load_item(item_id: int, *, lock: bool = False) -> Item:
    query = db.session.query(Item).filter_by(id=item_id)
    if lock:
        query = lock_for_update(query)
    item = query.first()
    if item is None:
        raise ItemNotFoundError("Item not found")
    return item


def _refresh_status(item: Item) -> None:
    item.status = compute_status(item.batches, _setting("LOW_STOCK_THRESHOLD", LOW_STOCK_THRESHOLD))
    # Always touch the row so the version_id check covers batch-only changes
    item.updated_at = utcnow()


def restock(*, item_id: int, quantity, expiration_date, added_at: datetime | None = None) -> Item:
    if quantity is None or expiration_date in (None, ""):
        raise InvalidRestockError("Quantity and expiration date are required")
    qty = _coerce_quantity(quantity, InvalidRestockError)
    expires = _coerce_expiration(expiration_date)

    def _op():
        item = _load_item(item_id, lock=True)
        item.batches.append(InventoryBatch(
            quantity=qty,
            expiration_date=expires,
            added_at=normalize_datetime(added_at) if added_at else utcnow(),
        ))
        _refresh_status(item)
        db.session.commit()
        return item

    item = run_with_retry(_op)
    current_app.logger.info(
        "Restocked item %s with %s (expires %s)", item.id, quantity_number(qty), expires.date().isoformat(),
    )
    return item


def sell(*, item_id: int, quantity) -> Item:
    try:
        qty = _coerce_quantity(quantity, InvalidQuantityError)
    except InvalidQuantityError:
        raise InvalidQuantityError("Invalid quantity")

    def _op():
        item = _load_item(item_id, lock=True)
        try:
            plan = plan_depletion(item.batches, qty)
        except InventoryError:
            db.session.rollback()
            raise

        consumed = len(plan.exhausted)
        item.batches = apply_depletion(item.batches, plan)
        _refresh_status(item)
        db.session.commit()
        return item, consumed

    item, consumed = run_with_retry(_op)
    current_app.logger.info(
        "Sold %s of item %s (%d batch%s consumed, status %s)",
        quantity_number(qty), item.id, consumed, "" if consumed == 1 else "es", item.status,
    )
    return item


def get_item(item_id: int) -> Item:
    return _load_item(item_id)


def list_items(*, category: str | None = None, status: str | None = None) -> list[Item]:
    query = db.session.query(Item)
    if category:
        query = query.filter_by(category=category)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Item.name.asc(), Item.id.asc()).all()


def _check_item_fields(patch: dict) -> None:
    if "category" in patch and patch["category"] not in ITEM_CATEGORIES:
        raise InventoryError(f"category must be one of: {', '.join(ITEM_CATEGORIES)}")
    if "unit" in patch and patch["unit"] not in ITEM_UNITS:
        raise InventoryError(f"unit must be one of: {', '.join(ITEM_UNITS)}")
    for key in ("cost_cents", "price_cents"):
        if key in patch and patch[key] is not None and patch[key] < 0:
            raise InventoryError(f"{key} cannot be negative")


def create_item(fields: dict, batches: Iterable[dict] = ()) -> Item:
    """
    Create an item with optional opening batches
    ([{"quantity": .., "expiration_date": ..}, ...]).
    """
    _check_item_fields(fields)

    opening = []
    for raw in batches or ():
        if not isinstance(raw, dict):
            raise InvalidRestockError("Each batch must be an object")
        opening.append(InventoryBatch(
            quantity=_coerce_quantity(raw.get("quantity"), InvalidRestockError),
            expiration_date=_coerce_expiration(raw.get("expiration_date")),
            added_at=utcnow(),
        ))

    item = Item(**fields)
    item.batches = opening
    item.status = compute_status(opening, _setting("LOW_STOCK_THRESHOLD", LOW_STOCK_THRESHOLD))
    db.session.add(item)
    db.session.commit()
    current_app.logger.info("Created item %s (%s)", item.id, item.name)
    return item


def update_item(item_id: int, patch: dict) -> Item:
    """Update descriptive fields. Batches only change through restock/sell."""
    _check_item_fields(patch)

    def _op():
        item = _load_item(item_id, lock=True)
        for key, value in patch.items():
            setattr(item, key, value)
        db.session.commit()
        return item

    return run_with_retry(_op)


def delete_item(item_id: int) -> None:
    item = _load_item(item_id)
    db.session.delete(item)
    db.session.commit()
    current_app.logger.info("Deleted item %s", item_id)


def serialize_item(item: Item, reference: datetime | None = None) -> dict:
    data = item.to_dict()
    data["total_quantity"] = quantity_number(total_quantity(item.batches))
    data["status"] = compute_status(item.batches, _setting("LOW_STOCK_THRESHOLD", LOW_STOCK_THRESHOLD))
    data["expiration_alerts"] = [
        alert.to_dict()
        for alert in compute_expiration_alerts(
            item.batches,
            window_days=_setting("EXPIRATION_WINDOW_DAYS", EXPIRATION_WINDOW_DAYS),
            reference=reference,
            utc_offset_hours=_setting("STORE_UTC_OFFSET_HOURS", STORE_UTC_OFFSET_HOURS),
        )
    ]
    return data


def list_expiring_batches(*, window_days: int | None = None, reference: datetime | None = None) -> list[dict]:
    """Expiration alerts across all items, soonest first."""
    if window_days is None:
        window_days = _setting("EXPIRATION_WINDOW_DAYS", EXPIRATION_WINDOW_DAYS)
    offset = _setting("STORE_UTC_OFFSET_HOURS", STORE_UTC_OFFSET_HOURS)

    rows = []
    for item in db.session.query(Item).order_by(Item.id.asc()).all():
        for alert in compute_expiration_alerts(item.batches, window_days, reference, offset):
            row = alert.to_dict()
            row["item_name"] = item.name
            row["unit"] = item.unit
            rows.append(row)
    rows.sort(key=lambda r: (r["days_left"], r["item_id"]))
    return rows
