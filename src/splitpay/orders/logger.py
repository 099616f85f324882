"""Logging for order lifecycle operations.

Keeps log wording out of the lifecycle service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import loguru
from loguru import logger

if TYPE_CHECKING:
    from splitpay.core.aggregator import CurrencyTotals
    from splitpay.orders.entities import Order


class OrderLifecycleLogger:
    """Handles all logging for OrderLifecycle."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        """Initialize logger.

        Args:
            logger_instance: Logger instance to use (defaults to loguru.logger)
        """
        self._logger = logger_instance

    def draft_generated(self, order_id: str, total: int, values: list[int]) -> None:
        """Log split draft generated."""
        self._logger.bind(order_id=order_id, total=total, parts=len(values)).info(
            "Generated draft {} splitting {} into {} values",
            order_id,
            total,
            len(values),
        )

    def generation_failed(
        self, total: int, max_per_part: int, error: Exception
    ) -> None:
        """Log split generation failure."""
        self._logger.bind(total=total, max_per_part=max_per_part).warning(
            "Split generation failed for {} (max {}): {}", total, max_per_part, error
        )

    def order_saved(self, order: Order) -> None:
        """Log draft saved as an order."""
        self._logger.bind(
            order_id=order.id, total=order.total_amount, items=len(order.links)
        ).info(
            "Saved order {} ({} items, total {})",
            order.id,
            len(order.links),
            order.total_amount,
        )

    def item_updated(self, order_id: str, item_id: str, field: str) -> None:
        """Log split item field updated."""
        self._logger.bind(order_id=order_id, item_id=item_id, field=field).debug(
            "Updated {} on item {} of order {}", field, item_id, order_id
        )

    def status_changed(self, order: Order) -> None:
        """Log order status change."""
        self._logger.bind(order_id=order.id, status=order.status.value).info(
            "Order {} is now {}", order.id, order.status.value
        )

    def item_deleted(self, order_id: str, item_id: str, remaining: int) -> None:
        """Log split item deleted."""
        self._logger.bind(order_id=order_id, item_id=item_id, remaining=remaining).info(
            "Deleted item {} from order {} ({} left)", item_id, order_id, remaining
        )

    def orders_deleted(self, order_ids: list[str]) -> None:
        """Log orders deleted."""
        self._logger.bind(order_ids=order_ids).info(
            "Deleted {} order(s): {}", len(order_ids), ", ".join(order_ids)
        )

    def records_saved(self, order_id: str, count: int) -> None:
        """Log execution record count after a change."""
        self._logger.bind(order_id=order_id, records=count).debug(
            "Order {} now has {} execution record(s)", order_id, count
        )

    def records_locked(self, order_id: str, operation: str) -> None:
        """Log record edit ignored on a registered order."""
        self._logger.bind(order_id=order_id, operation=operation).warning(
            "Ignored {} on order {}: execution already registered", operation, order_id
        )

    def execution_registered(self, order_id: str, totals: CurrencyTotals) -> None:
        """Log execution totals registered."""
        self._logger.bind(
            order_id=order_id,
            quantity=totals.total_quantity,
            average_price=totals.average_price,
        ).info(
            "Registered execution for order {}: quantity {}, average price {:.4f}",
            order_id,
            totals.total_quantity,
            totals.average_price,
        )

    def registration_skipped(self, order_id: str, reason: str) -> None:
        """Log execution registration skipped."""
        self._logger.bind(order_id=order_id, reason=reason).info(
            "Skipped execution registration for order {}: {}", order_id, reason
        )
