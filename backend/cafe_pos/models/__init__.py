from .staff import Staff, STAFF_POSITIONS, STAFF_STATUSES
from .timekeeping import TimeLog, CLOCK_IN, CLOCK_OUT, TIME_LOG_KINDS
from .inventory import (
    Item,
    InventoryBatch,
    ITEM_CATEGORIES,
    ITEM_UNITS,
    ITEM_STATUSES,
    STATUS_IN_STOCK,
    STATUS_LOW_STOCK,
    STATUS_OUT_OF_STOCK,
    QUANTITY_STEP,
    MAX_BATCH_QUANTITY,
    quantity_number,
)
from .payroll import Payroll

__all__ = [
    'Staff', 'STAFF_POSITIONS', 'STAFF_STATUSES',
    'TimeLog', 'CLOCK_IN', 'CLOCK_OUT', 'TIME_LOG_KINDS',
    'Item', 'InventoryBatch',
    'ITEM_CATEGORIES', 'ITEM_UNITS', 'ITEM_STATUSES',
    'STATUS_IN_STOCK', 'STATUS_LOW_STOCK', 'STATUS_OUT_OF_STOCK',
    'QUANTITY_STEP', 'MAX_BATCH_QUANTITY', 'quantity_number',
    'Payroll',
]
