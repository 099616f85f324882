"""History of registered executions: filtering and CSV export."""

from __future__ import annotations

from collections.abc import Iterable
import csv
from datetime import date
from typing import TextIO

from splitpay.core.aggregator import DEFAULT_SETTLEMENT_CURRENCY
from splitpay.orders.entities import Order


def _plain(value: float) -> str:
    """Render a number the way a user would type it when searching."""
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def _search_text(order: Order, settlement_currency: str) -> str:
    totals = order.execution_totals
    parts = [order.id, _plain(order.total_amount)]
    if totals is not None:
        parts.append(_plain(totals.settlement_cost(settlement_currency)))
        parts.append(_plain(totals.total_quantity))
        parts.extend(_plain(amount) for amount in totals.total_fees.values())
        parts.append(_plain(totals.average_price))
    return " ".join(parts).lower()


def filter_history(
    orders: Iterable[Order],
    *,
    start: date | None = None,
    end: date | None = None,
    search: str = "",
    settlement_currency: str = DEFAULT_SETTLEMENT_CURRENCY,
) -> list[Order]:
    """Registered orders created within ``[start, end]`` matching ``search``.

    Dates compare against the UTC creation day. The search is a
    case-insensitive substring match over the order id, amount and
    registered totals.
    """
    needle = search.strip().lower()
    matched: list[Order] = []
    for order in orders:
        if not order.is_execution_registered or order.execution_totals is None:
            continue
        created = order.created_at.date()
        if start is not None and created < start:
            continue
        if end is not None and created > end:
            continue
        if needle and needle not in _search_text(order, settlement_currency):
            continue
        matched.append(order)
    return matched


def history_headers(
    settlement_currency: str = DEFAULT_SETTLEMENT_CURRENCY,
) -> list[str]:
    return [
        "PO Code",
        "Date",
        "Total Amount",
        f"Total {settlement_currency} Exec",
        "Total Quantity Exec",
        "Fee Exec",
        "Average Price",
    ]


def history_row(
    order: Order, settlement_currency: str = DEFAULT_SETTLEMENT_CURRENCY
) -> list[str]:
    totals = order.execution_totals
    if totals is None:
        raise ValueError(f"Order {order.id} has no registered execution totals")

    fees = " | ".join(
        f"{amount:.4f} {currency}" for currency, amount in totals.total_fees.items()
    )
    return [
        order.id,
        order.created_at.isoformat(timespec="seconds"),
        f"{order.total_amount:.2f}",
        f"{totals.settlement_cost(settlement_currency):.2f}",
        f"{totals.total_quantity:.4f}",
        fees or "0",
        f"{totals.average_price:.4f}",
    ]


def export_history_csv(
    orders: Iterable[Order],
    out: TextIO,
    settlement_currency: str = DEFAULT_SETTLEMENT_CURRENCY,
) -> int:
    """Write registered orders as CSV to ``out``.

    Returns:
        Number of data rows written
    """
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(history_headers(settlement_currency))
    count = 0
    for order in orders:
        if order.execution_totals is None:
            continue
        writer.writerow(history_row(order, settlement_currency))
        count += 1
    return count


def default_export_filename(today: date) -> str:
    return f"operations_history_{today.isoformat()}.csv"
