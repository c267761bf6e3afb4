from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from cafe_pos.time_utils import to_utc_z

ITEM_CATEGORIES = ("Food", "Beverages", "Ingredients", "Packaging")
ITEM_UNITS = ("pieces", "grams", "liters")

STATUS_IN_STOCK = "In Stock"
STATUS_LOW_STOCK = "Low Stock"
STATUS_OUT_OF_STOCK = "Out of Stock"
ITEM_STATUSES = (STATUS_IN_STOCK, STATUS_LOW_STOCK, STATUS_OUT_OF_STOCK)

# Batch quantities are fixed-point: grams and liters come in fractions
QUANTITY_SCALE = 3
QUANTITY_STEP = Decimal("0.001")
MAX_BATCH_QUANTITY = Decimal("999999999.999")


def quantity_number(value):
    """JSON-friendly quantity: int when whole, float otherwise."""
    if value is None:
        return None
    value = Decimal(str(value))
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class Item(db.Model):
    """
    Stock item (ingredient, packaged good, beverage).

    WHY: Stock is tracked per dated batch so the nearest expiration is sold
    first. Quantity on hand is SUM(batch.quantity); it is never stored.

    status is a persisted copy of the derived value (0 -> Out of Stock,
    <= LOW_STOCK_THRESHOLD -> Low Stock) so list filters do not need the
    batches. inventory_ledger recomputes it on every batch change.

    CONCURRENCY: version_id is an optimistic lock. Two writers depleting the
    same item cannot both commit; the loser gets StaleDataError and retries.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.Index("ix_items_category_name", "category", "name"),
        db.CheckConstraint("cost_cents >= 0", name="ck_items_cost_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_items_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(32), nullable=False)
    unit = db.Column(db.String(16), nullable=False)

    cost_cents = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    vendor = db.Column(db.String(255), nullable=False)

    status = db.Column(db.String(16), nullable=False, default=STATUS_OUT_OF_STOCK, index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # Insertion order, not expiration order
    batches = db.relationship(
        "InventoryBatch",
        back_populates="item",
        order_by="InventoryBatch.id",
        cascade="all, delete-orphan",
        lazy=True,
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "cost_cents": self.cost_cents,
            "price_cents": self.price_cents,
            "vendor": self.vendor,
            "status": self.status,
            "batches": [b.to_dict() for b in self.batches],
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryBatch(db.Model):
    """
    A quantity of one item sharing an expiration date.

    A batch at quantity 0 is consumed and is deleted with the sale that
    emptied it.
    """
    __tablename__ = "inventory_batches"
    __table_args__ = (
        db.Index("ix_inventory_batches_item_expiration", "item_id", "expiration_date"),
        db.CheckConstraint("quantity >= 0", name="ck_inventory_batches_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)

    quantity = db.Column(db.Numeric(12, QUANTITY_SCALE), nullable=False)
    expiration_date = db.Column(db.DateTime(timezone=True), nullable=False)
    added_at = db.Column(db.DateTime(timezone=True), nullable=False)

    item = db.relationship("Item", back_populates="batches")

    def __repr__(self) -> str:
        return f"<InventoryBatch id={self.id} item_id={self.item_id} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "quantity": quantity_number(self.quantity),
            "expiration_date": to_utc_z(self.expiration_date),
            "added_at": to_utc_z(self.added_at),
        }
