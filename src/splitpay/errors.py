"""Exception hierarchy shared across splitpay."""

from __future__ import annotations


class SplitpayError(Exception):
    """Base error for splitpay operations."""


class InvalidInputError(SplitpayError, ValueError):
    """Input that cannot be accepted: bad amounts, fields or record indexes."""


class AllocationUnresolvableError(SplitpayError, ValueError):
    """Distinct positive split values could not be produced for a total."""


class OrderNotFoundError(SplitpayError, LookupError):
    """No order exists with the requested id."""


class ItemNotFoundError(SplitpayError, LookupError):
    """The order has no split item with the requested id."""


class ExtractionError(SplitpayError):
    """The extraction service failed or returned unusable data."""


class UnsupportedFileError(ExtractionError):
    """A file submitted for extraction is not an image."""
