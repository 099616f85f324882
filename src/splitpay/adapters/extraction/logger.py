"""Logging for trade confirmation extraction."""

from __future__ import annotations

from pathlib import Path

import loguru
from loguru import logger


class ExtractionLogger:
    """Handles all logging for extraction with business logic separated."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        """Initialize logger.

        Args:
            logger_instance: Logger instance to use (defaults to loguru.logger)
        """
        self._logger = logger_instance

    def request_sent(self, model: str, mime_type: str, size_bytes: int) -> None:
        """Log extraction request sent."""
        self._logger.bind(model=model, mime_type=mime_type, size=size_bytes).debug(
            "Sending {} image ({} bytes) to {}", mime_type, size_bytes, model
        )

    def records_extracted(self, model: str, count: int) -> None:
        """Log records returned by the model."""
        self._logger.bind(model=model, records=count).info(
            "{} returned {} record(s)", model, count
        )

    def empty_response(self, model: str) -> None:
        """Log empty extraction response."""
        self._logger.bind(model=model).error("{} returned no text content", model)

    def parse_failed(self, model: str, error: Exception) -> None:
        """Log extraction response parse failure."""
        self._logger.bind(model=model).error(
            "Failed to parse extraction response from {}: {}", model, error
        )

    def batch_started(self, file_count: int) -> None:
        """Log extraction batch started."""
        self._logger.bind(files=file_count).info(
            "Extracting records from {} file(s)", file_count
        )

    def file_extracted(self, path: Path, count: int) -> None:
        """Log file extracted."""
        self._logger.bind(path=str(path), records=count).info(
            "Extracted {} record(s) from {}", count, path.name
        )

    def batch_aborted(self, path: Path, processed: int, error: Exception) -> None:
        """Log extraction batch aborted."""
        self._logger.bind(path=str(path), processed=processed).error(
            "Extraction aborted at {} after {} file(s): {}", path.name, processed, error
        )
