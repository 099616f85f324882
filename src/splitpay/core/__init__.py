"""Pure split allocation, amount parsing and totals aggregation."""

from splitpay.core.aggregator import CurrencyTotals, aggregate
from splitpay.core.allocator import allocate, count_parts
from splitpay.core.currency import Locale, ParsedAmount, parse_currency_value

__all__ = [
    "CurrencyTotals",
    "Locale",
    "ParsedAmount",
    "aggregate",
    "allocate",
    "count_parts",
    "parse_currency_value",
]
