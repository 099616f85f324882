"""Orders: entities, lifecycle orchestration, dashboard and history."""

from splitpay.orders.entities import ExtractedRecord, Order, OrderStatus, SplitItem
from splitpay.orders.lifecycle import Draft, OrderLifecycle

__all__ = [
    "Draft",
    "ExtractedRecord",
    "Order",
    "OrderLifecycle",
    "OrderStatus",
    "SplitItem",
]
