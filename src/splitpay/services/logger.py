"""Logging for debounced order persistence."""

from __future__ import annotations

import loguru
from loguru import logger


class PersistenceLogger:
    """Handles all logging for DebouncedOrderWriter."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        """Initialize logger.

        Args:
            logger_instance: Logger instance to use (defaults to loguru.logger)
        """
        self._logger = logger_instance

    def write_scheduled(self, order_id: str, delay: float, coalesced: bool) -> None:
        """Log order write scheduled."""
        self._logger.bind(order_id=order_id, delay=delay, coalesced=coalesced).debug(
            "Scheduled write of order {} in {}s{}",
            order_id,
            delay,
            " (replaced pending write)" if coalesced else "",
        )

    def write_completed(self, order_id: str) -> None:
        """Log order write completed."""
        self._logger.bind(order_id=order_id).debug("Wrote order {}", order_id)

    def write_failed(self, order_id: str, error: Exception) -> None:
        """Log order write failure with traceback."""
        self._logger.bind(order_id=order_id).exception(
            "Failed to write order {}: {}", order_id, error
        )

    def write_cancelled(self, order_id: str) -> None:
        """Log pending order write cancelled."""
        self._logger.bind(order_id=order_id).debug(
            "Cancelled pending write of order {}", order_id
        )

    def flushed(self, count: int) -> None:
        """Log pending writes flushed."""
        if count:
            self._logger.bind(count=count).info(
                "Flushed {} pending order write(s)", count
            )
